from pydantic import BaseModel, ConfigDict
from typing import Optional, Any
from datetime import datetime


class SyncLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    booking_id: Optional[str] = None
    website_id: Optional[str] = None
    direction: str
    event_type: str
    payload: Optional[Any] = None
    status: str
    error_message: Optional[str] = None
    created_at: datetime
