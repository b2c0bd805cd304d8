"""
Inbound booking sync endpoint.

Source websites push booking.created / updated / cancelled / refunded events
here, authenticated by their X-API-Key.
"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..config import Settings
from ..database import get_db
from ..exceptions import PayloadValidationError, StorageError, SyncError
from ..schemas.booking import SyncEvent
from ..schemas.common import ok
from ..services import credentials
from ..services.background import spawn_detached
from ..services.booking_reconciler import BookingReconciler, validate_payload
from ..services.line_notify import BookingNotification, send_booking_notification
from ..utils.dependencies import get_app_settings
from ..utils.metrics import record_sync_event
from ..utils.rate_limiter import limiter, sync_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["Sync"])


@router.post("/sync")
@limiter.limit(sync_rate_limit)
async def sync_booking(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
):
    """
    Reconcile one booking event from a source website.

    201 for booking.created, 200 for the other events.
    """
    try:
        website = await run_in_threadpool(
            credentials.resolve, db, request.headers.get("X-API-Key")
        )

        try:
            raw = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise PayloadValidationError("Invalid JSON payload")

        try:
            payload = validate_payload(raw)
        except PayloadValidationError as e:
            logger.warning(f"Rejected sync payload from {website.id}: {e.message}")
            record_sync_event(str(raw.get("event") if isinstance(raw, dict) else None), "invalid")
            raise

        reconciler = BookingReconciler(db, default_currency=settings.default_currency)
        result = await run_in_threadpool(reconciler.reconcile, website, payload, raw)

        if result.created:
            notification = BookingNotification.from_booking(result.booking, website.name)
            spawn_detached(
                send_booking_notification(
                    notification,
                    settings,
                    transport=getattr(request.app.state, "http_transport", None)
                ),
                name=f"line-notify-{result.booking.booking_ref}"
            )

    except SyncError:
        raise
    except Exception as e:
        db.rollback()
        logger.exception(f"Sync error: {e}")
        record_sync_event("unknown", "error")
        raise StorageError()

    return JSONResponse(
        status_code=201 if payload.event == SyncEvent.CREATED else 200,
        content=ok({"booking_id": result.booking_id}, "Booking synced successfully")
    )
