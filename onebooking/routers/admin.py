from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload

from ..database import get_db
from ..exceptions import NotFoundError, PayloadValidationError
from ..models.booking import Booking
from ..schemas.booking import TestWebhookRequest
from ..services.webhook_sender import WebhookSender
from ..utils.dependencies import StaffIdentity, require_superadmin, get_webhook_sender

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post("/test-webhook")
def test_webhook(
    body: TestWebhookRequest,
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(require_superadmin),
    sender: WebhookSender = Depends(get_webhook_sender)
):
    """
    Send a field-level webhook for an existing booking without changing it.
    Used to check a website's receiver and signature verification.
    """
    missing = [name for name in ("website_id", "booking_id") if not getattr(body, name)]
    if missing:
        raise PayloadValidationError(missing_fields=missing)

    booking = db.query(Booking).options(joinedload(Booking.website)).filter(
        Booking.id == body.booking_id,
        Booking.website_id == body.website_id
    ).first()
    if not booking:
        raise NotFoundError("Booking not found")

    result = sender.send_test(booking, body.fields, staff.email)
    return {
        "success": result.delivered,
        "message": "Test webhook sent successfully" if result.delivered else "Webhook delivery failed",
        "data": {
            "outcome": result.outcome.value,
            "event": result.event,
            "status_code": result.status_code,
            "error": result.error,
        },
    }
