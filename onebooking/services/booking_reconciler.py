"""
Booking Reconciler

Turns inbound sync events from source websites into one canonical booking
per (website_id, source_booking_id):

    booking.created   + absent  -> insert                  (create)
    booking.created   + present -> DUPLICATE_BOOKING, no write
    updated/cancelled/refunded + present -> overwrite sync-owned fields
                                            (update, status_change for cancel)
    updated/cancelled/refunded + absent  -> insert          (create)

The unique constraint on (website_id, source_booking_id) is the arbiter when
two requests race on the same key. Staff-only columns (admin_notes,
pickup_time) are not part of BookingSyncFields and are never written here.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..exceptions import ConflictError, PayloadValidationError
from ..models.booking import Booking
from ..models.sync_log import SyncStatus
from ..models.website import Website
from ..schemas.booking import BookingSyncFields, BookingSyncPayload, SyncEvent
from ..utils.logging_config import get_logger
from ..utils.metrics import record_sync_event
from . import sync_log_service

logger = get_logger(__name__)

REQUIRED_FIELDS = ("source_booking_id", "booking_ref", "customer.email")


@dataclass
class ReconcileResult:
    """Outcome of an accepted sync event"""
    action: str  # create, update, status_change
    booking: Booking
    event: SyncEvent

    @property
    def created(self) -> bool:
        return self.action == "create"

    @property
    def booking_id(self) -> str:
        return self.booking.id


def _lookup(data: Dict[str, Any], dotted: str) -> Any:
    value: Any = data
    for part in dotted.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def find_missing_fields(raw: Dict[str, Any]) -> List[str]:
    """Required fields that are absent or empty, in declaration order."""
    return [name for name in REQUIRED_FIELDS if not _lookup(raw, name)]


def validate_payload(raw: Any) -> BookingSyncPayload:
    """
    Parse a decoded JSON body into a BookingSyncPayload.

    Raises PayloadValidationError listing every missing required field,
    or describing the first type/enum problem otherwise.
    """
    if not isinstance(raw, dict):
        raise PayloadValidationError("Invalid JSON payload")

    missing = find_missing_fields(raw)
    if missing:
        raise PayloadValidationError(missing_fields=missing)

    event = raw.get("event")
    if event not in {e.value for e in SyncEvent}:
        raise PayloadValidationError(f"Unknown event: {event}")

    try:
        return BookingSyncPayload.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise PayloadValidationError(f"Invalid value for {location}: {first.get('msg')}")


class BookingReconciler:
    """Applies sync events for one website inside one DB session."""

    def __init__(self, db: Session, default_currency: str = "THB"):
        self.db = db
        self.default_currency = default_currency

    def reconcile(
        self,
        website: Website,
        payload: BookingSyncPayload,
        raw_payload: Optional[Dict[str, Any]] = None
    ) -> ReconcileResult:
        fields = BookingSyncFields.from_payload(payload, self.default_currency)
        log_payload = raw_payload if raw_payload is not None else payload.model_dump(mode="json")

        if payload.event == SyncEvent.CREATED:
            result = self._handle_created(website, fields, payload.event, log_payload)
        else:
            result = self._handle_update(website, fields, payload.event, log_payload)

        record_sync_event(payload.event.value, result.action)
        logger.booking_synced(result.booking_id, website.id, payload.event.value, result.action)
        return result

    # ==================
    # Transitions
    # ==================

    def _find(self, website_id: str, source_booking_id: str, lock: bool = False) -> Optional[Booking]:
        query = self.db.query(Booking).filter(
            Booking.website_id == website_id,
            Booking.source_booking_id == source_booking_id
        )
        if lock:
            query = query.with_for_update()
        return query.first()

    def _handle_created(
        self,
        website: Website,
        fields: BookingSyncFields,
        event: SyncEvent,
        log_payload: Dict[str, Any]
    ) -> ReconcileResult:
        existing = self._find(website.id, fields.source_booking_id)
        if existing:
            self._reject_duplicate(website, event, log_payload, existing.id)

        try:
            booking = self._insert(website, fields)
        except IntegrityError:
            # Another request inserted the same key first
            self.db.rollback()
            existing = self._find(website.id, fields.source_booking_id)
            self._reject_duplicate(website, event, log_payload, existing.id if existing else None)

        return self._accept(website, booking, "create", event, log_payload)

    def _handle_update(
        self,
        website: Website,
        fields: BookingSyncFields,
        event: SyncEvent,
        log_payload: Dict[str, Any]
    ) -> ReconcileResult:
        action = "status_change" if event == SyncEvent.CANCELLED else "update"

        booking = self._find(website.id, fields.source_booking_id, lock=True)
        if booking:
            self._overwrite(booking, fields)
            return self._accept(website, booking, action, event, log_payload)

        logger.info(
            f"{event.value} for unknown booking {website.id}/{fields.source_booking_id}, creating"
        )
        try:
            booking = self._insert(website, fields)
            return self._accept(website, booking, "create", event, log_payload)
        except IntegrityError:
            # Lost the race to a concurrent insert: the row exists now, so update it
            self.db.rollback()
            booking = self._find(website.id, fields.source_booking_id, lock=True)
            if booking is None:
                raise
            self._overwrite(booking, fields)
            return self._accept(website, booking, action, event, log_payload)

    # ==================
    # Helpers
    # ==================

    def _insert(self, website: Website, fields: BookingSyncFields) -> Booking:
        booking = Booking(website_id=website.id, **fields.column_values())
        self.db.add(booking)
        self.db.flush()
        return booking

    def _overwrite(self, booking: Booking, fields: BookingSyncFields) -> None:
        for column, value in fields.column_values().items():
            setattr(booking, column, value)
        booking.updated_at = datetime.utcnow()
        self.db.flush()

    def _accept(
        self,
        website: Website,
        booking: Booking,
        action: str,
        event: SyncEvent,
        log_payload: Dict[str, Any]
    ) -> ReconcileResult:
        sync_log_service.log_inbound(
            self.db,
            website_id=website.id,
            event_type=action,
            payload=log_payload,
            status=SyncStatus.SUCCESS,
            booking_id=booking.id,
            commit=False
        )
        self.db.commit()
        self.db.refresh(booking)
        return ReconcileResult(action=action, booking=booking, event=event)

    def _reject_duplicate(
        self,
        website: Website,
        event: SyncEvent,
        log_payload: Dict[str, Any],
        booking_id: Optional[str]
    ) -> None:
        error = ConflictError()
        sync_log_service.log_inbound(
            self.db,
            website_id=website.id,
            event_type=event.value,
            payload=log_payload,
            status=SyncStatus.FAILED,
            booking_id=booking_id,
            error_message=f"{error.code}: {error.message}"
        )
        record_sync_event(event.value, "duplicate")
        logger.warning(
            f"Duplicate booking.created from {website.id} for {log_payload.get('source_booking_id')}"
        )
        raise error
