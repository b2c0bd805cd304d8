from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
import re

WEBSITE_ID_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class WebsiteCreate(BaseModel):
    id: str = Field(..., min_length=2, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    domain: str = Field(..., min_length=1, max_length=255)
    webhook_url: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = None

    @field_validator("id")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        v = v.strip().lower()
        if not WEBSITE_ID_PATTERN.match(v):
            raise ValueError("id must be a lowercase slug such as 'hanuman-world'")
        return v

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: Optional[str]) -> Optional[str]:
        if v in (None, ""):
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("webhook_url must be an http(s) URL")
        return v


class WebsiteUpdate(BaseModel):
    """Editable website fields. Credentials are rotated through their own endpoint."""
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    domain: Optional[str] = Field(None, min_length=1, max_length=255)
    webhook_url: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: Optional[str]) -> Optional[str]:
        if v in (None, ""):
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("webhook_url must be an http(s) URL")
        return v


class WebsiteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    domain: str
    webhook_url: Optional[str] = None
    logo_url: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class WebsiteCredentials(WebsiteResponse):
    """Returned to admins only, on create / key rotation / detail."""
    api_key: str
    webhook_secret: Optional[str] = None
