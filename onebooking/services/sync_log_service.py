"""
Sync audit trail.

Every inbound event that reaches a website and every outbound delivery
attempt leaves one row in `sync_logs`. Outbound rows are inserted as
PENDING before the network call and then moved to a terminal state by id.
"""

from typing import Optional, Any, Dict

from sqlalchemy.orm import Session

from ..models.sync_log import SyncLog, SyncDirection, SyncStatus


def log_inbound(
    db: Session,
    website_id: str,
    event_type: str,
    payload: Optional[Dict[str, Any]],
    status: SyncStatus,
    booking_id: Optional[str] = None,
    error_message: Optional[str] = None,
    commit: bool = True
) -> SyncLog:
    """Record the outcome of an inbound sync event."""
    entry = SyncLog(
        booking_id=booking_id,
        website_id=website_id,
        direction=SyncDirection.INBOUND.value,
        event_type=event_type,
        payload=payload,
        status=status.value,
        error_message=error_message,
    )
    db.add(entry)
    if commit:
        db.commit()
    else:
        db.flush()
    return entry


def start_outbound(
    db: Session,
    booking_id: Optional[str],
    website_id: Optional[str],
    event_type: str,
    payload: Dict[str, Any]
) -> SyncLog:
    """Insert the PENDING row for an outbound attempt and commit it."""
    entry = SyncLog(
        booking_id=booking_id,
        website_id=website_id,
        direction=SyncDirection.OUTBOUND.value,
        event_type=event_type,
        payload=payload,
        status=SyncStatus.PENDING.value,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def complete_outbound(
    db: Session,
    log_id: str,
    status: SyncStatus,
    error_message: Optional[str] = None
) -> Optional[SyncLog]:
    """Move one pending outbound row to SUCCESS or FAILED."""
    entry = db.query(SyncLog).filter(SyncLog.id == log_id).first()
    if not entry:
        return None
    entry.status = status.value
    entry.error_message = error_message
    db.commit()
    return entry


def log_outbound(
    db: Session,
    booking_id: Optional[str],
    website_id: Optional[str],
    event_type: str,
    payload: Dict[str, Any],
    status: SyncStatus,
    error_message: Optional[str] = None
) -> SyncLog:
    """Record an outbound side effect that has no pending phase (e-mail)."""
    entry = SyncLog(
        booking_id=booking_id,
        website_id=website_id,
        direction=SyncDirection.OUTBOUND.value,
        event_type=event_type,
        payload=payload,
        status=status.value,
        error_message=error_message,
    )
    db.add(entry)
    db.commit()
    return entry
