from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date
import logging

from ..database import get_db
from ..exceptions import PayloadValidationError, WebhookNotConfiguredError
from ..models.booking import BookingStatus
from ..models.sync_log import SyncLog, SyncStatus
from ..schemas.booking import BookingResponse, BookingStaffUpdate, PickupTimeUpdate
from ..schemas.common import ok, fail
from ..schemas.pagination import PaginatedResponse, MAX_PER_PAGE
from ..schemas.sync_log import SyncLogResponse
from ..services import booking_service, sync_log_service
from ..services.email_service import EmailService
from ..services.webhook_sender import WebhookSender
from ..utils.dependencies import (
    StaffIdentity, get_current_staff, get_email_service, get_webhook_sender
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Bookings"])


def _serialize(booking) -> dict:
    return BookingResponse.model_validate(booking).model_dump(mode="json")


def _delivery_summary(result) -> dict:
    return {
        "outcome": result.outcome.value,
        "status_code": result.status_code,
        "error": result.error,
    }


@router.get("")
def list_bookings(
    website_id: Optional[str] = None,
    status: Optional[BookingStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=MAX_PER_PAGE),
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff)
):
    """Bookings across all websites, newest first."""
    items, total = booking_service.list_bookings(
        db,
        website_id=website_id,
        status=status.value if status else None,
        date_from=date_from,
        date_to=date_to,
        search=search,
        page=page,
        per_page=per_page
    )
    response = PaginatedResponse.create(
        items=[_serialize(b) for b in items],
        total=total,
        page=page,
        per_page=per_page
    )
    return ok(response.model_dump(mode="json"))


@router.get("/{booking_id}")
def get_booking(
    booking_id: str,
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff)
):
    booking = booking_service.get_booking(db, booking_id)
    return ok(_serialize(booking))


@router.put("/{booking_id}")
def update_booking(
    booking_id: str,
    update: BookingStaffUpdate,
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    sender: WebhookSender = Depends(get_webhook_sender)
):
    """
    Staff edit. Only the allowed fields are read from the body; if any of
    them changed, the source website is notified with the changed fields.
    The edit stands even when the webhook fails.
    """
    booking = booking_service.get_booking(db, booking_id)
    changed = booking_service.apply_staff_update(db, booking, update)

    if not changed:
        return ok(_serialize(booking), "No changes detected")

    delivery = sender.notify(booking, changed, staff.email)
    db.refresh(booking)
    return ok(
        {
            "booking": _serialize(booking),
            "changed_fields": changed,
            "webhook": _delivery_summary(delivery),
        },
        "Booking updated successfully"
    )


@router.post("/{booking_id}/sync-to-source")
def sync_to_source(
    booking_id: str,
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    sender: WebhookSender = Depends(get_webhook_sender)
):
    """Re-send the current staff-editable snapshot to the source website."""
    booking = booking_service.get_booking(db, booking_id)
    result = sender.force_resync(booking, staff.email)

    if result.skipped:
        raise WebhookNotConfiguredError()

    if not result.delivered:
        return JSONResponse(
            status_code=500,
            content=fail(f"Failed to sync: {result.error}", "SYNC_FAILED")
        )

    return ok(_delivery_summary(result), "Changes synced to source website")


@router.patch("/{booking_id}/pickup-time")
def update_pickup_time(
    booking_id: str,
    body: PickupTimeUpdate,
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    email_service: EmailService = Depends(get_email_service)
):
    """Save the hotel pickup time and optionally e-mail it to the customer."""
    if not body.is_valid_time:
        raise PayloadValidationError("Invalid pickup time format. Use HH:MM")

    booking = booking_service.get_booking(db, booking_id)
    booking_service.set_pickup_time(db, booking, body.pickup_time)
    data = {"pickup_time": body.pickup_time, "email_sent": False}

    if not body.send_email:
        return ok(data, "Pickup time saved successfully")

    if not email_service.enabled:
        return ok(data, "Pickup time saved but email not sent (RESEND_API_KEY not configured)")

    result = email_service.send_pickup_time(booking, body.pickup_time)
    sync_log_service.log_outbound(
        db,
        booking_id=booking.id,
        website_id=booking.website_id,
        event_type="pickup_time_notification",
        payload={"pickup_time": body.pickup_time, "customer_email": booking.customer_email},
        status=SyncStatus.SUCCESS if result.sent else SyncStatus.FAILED,
        error_message=result.error
    )

    if not result.sent:
        logger.warning(f"Pickup time e-mail failed for booking {booking.id}: {result.error}")
        return ok(data, "Pickup time saved but email failed to send")

    data["email_sent"] = True
    return ok(data, "Pickup time saved and email sent successfully")


@router.get("/{booking_id}/sync-logs")
def booking_sync_logs(
    booking_id: str,
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff)
):
    """Sync history of one booking, newest first."""
    booking = booking_service.get_booking(db, booking_id)
    logs = db.query(SyncLog).filter(
        SyncLog.booking_id == booking.id
    ).order_by(SyncLog.created_at.desc()).all()
    return ok([SyncLogResponse.model_validate(log).model_dump(mode="json") for log in logs])
