from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from ..database import get_db
from ..models.sync_log import SyncLog, SyncDirection, SyncStatus
from ..schemas.common import ok
from ..schemas.pagination import PaginatedResponse, paginate_query, MAX_PER_PAGE
from ..schemas.sync_log import SyncLogResponse
from ..utils.dependencies import StaffIdentity, get_current_staff

router = APIRouter(prefix="/api/sync-logs", tags=["Sync Logs"])


@router.get("")
def list_sync_logs(
    website_id: Optional[str] = None,
    direction: Optional[SyncDirection] = None,
    status: Optional[SyncStatus] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=MAX_PER_PAGE),
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff)
):
    """Inbound and outbound sync history across all websites."""
    query = db.query(SyncLog)

    if website_id:
        query = query.filter(SyncLog.website_id == website_id)
    if direction:
        query = query.filter(SyncLog.direction == direction.value)
    if status:
        query = query.filter(SyncLog.status == status.value)

    query = query.order_by(SyncLog.created_at.desc())
    items, total = paginate_query(query, page, per_page)

    response = PaginatedResponse.create(
        items=[SyncLogResponse.model_validate(log).model_dump(mode="json") for log in items],
        total=total,
        page=page,
        per_page=per_page
    )
    return ok(response.model_dump(mode="json"))
