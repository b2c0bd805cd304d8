"""
Outbound webhooks to source websites.

Staff edits are pushed back to the website a booking came from. Every attempt
is logged as PENDING before the POST and that same row is moved to SUCCESS or
FAILED afterwards. Delivery problems never propagate to the caller: the staff
edit is already committed and a failed delivery is reported through
DeliveryResult and the sync log.

Two signing schemes are in use:

- TIMESTAMPED (field-level notifications): X-Webhook-Timestamp +
  X-Webhook-Signature = "sha256=" + HMAC(secret, "{ts}.{body}")
- RAW_DIGEST (force resync): X-OneBooking-Signature = HMAC(secret, body)
"""

import json
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..exceptions import DeliveryError
from ..models.booking import Booking
from ..models.sync_log import SyncStatus
from ..schemas.booking import RESYNC_FIELDS
from ..utils.logging_config import get_logger
from ..utils.metrics import record_webhook_delivery
from ..utils.signature import sign_payload, sign_raw
from . import sync_log_service

logger = get_logger(__name__)

EVENT_STATUS_CHANGED = "booking.status_changed"
EVENT_UPDATED = "booking.updated"


class SignatureScheme(str, Enum):
    TIMESTAMPED = "timestamped"
    RAW_DIGEST = "raw_digest"


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class DeliveryResult:
    """Result of one outbound webhook attempt"""
    outcome: DeliveryOutcome
    event: Optional[str] = None
    status_code: Optional[int] = None
    error: Optional[str] = None
    sync_log_id: Optional[str] = None
    duration_ms: Optional[float] = None

    @property
    def delivered(self) -> bool:
        return self.outcome == DeliveryOutcome.DELIVERED

    @property
    def skipped(self) -> bool:
        return self.outcome == DeliveryOutcome.SKIPPED


class WebhookSender:
    """Delivers booking changes to the owning website's webhook URL."""

    def __init__(
        self,
        db: Session,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.transport = transport

    # ==================
    # Public operations
    # ==================

    def notify(self, booking: Booking, changed_fields: List[str], actor: str) -> DeliveryResult:
        """Send the current values of `changed_fields` to the source website."""
        event = EVENT_STATUS_CHANGED if "status" in changed_fields else EVENT_UPDATED
        payload = self._build_payload(booking, event, changed_fields, actor)
        return self._deliver(booking, payload, SignatureScheme.TIMESTAMPED)

    def force_resync(self, booking: Booking, actor: str) -> DeliveryResult:
        """Send a full snapshot of the staff-editable fields, changed or not."""
        payload = self._build_payload(booking, EVENT_UPDATED, list(RESYNC_FIELDS), actor)
        return self._deliver(booking, payload, SignatureScheme.RAW_DIGEST)

    def send_test(
        self,
        booking: Booking,
        fields: Optional[List[str]],
        actor: str
    ) -> DeliveryResult:
        return self.notify(booking, list(fields or ["status"]), actor)

    # ==================
    # Internals
    # ==================

    def _build_payload(
        self,
        booking: Booking,
        event: str,
        fields: List[str],
        actor: str
    ) -> Dict[str, Any]:
        data = {field: getattr(booking, field, None) for field in fields}
        return {
            "event": event,
            "source_booking_id": booking.source_booking_id,
            "updated_fields": list(fields),
            "data": jsonable_encoder(data),
            "updated_at": datetime.utcnow().isoformat() + "Z",
            "updated_by": actor,
        }

    def _headers(self, body: str, secret: Optional[str], scheme: SignatureScheme) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if not secret:
            return headers

        if scheme == SignatureScheme.TIMESTAMPED:
            timestamp = str(int(time.time()))
            headers["X-Webhook-Timestamp"] = timestamp
            headers["X-Webhook-Signature"] = sign_payload(body, secret, timestamp)
        else:
            headers["X-OneBooking-Signature"] = sign_raw(body, secret)
        return headers

    def _post(self, url: str, body: str, headers: Dict[str, str]) -> httpx.Response:
        with httpx.Client(
            timeout=self.settings.webhook_timeout_seconds,
            transport=self.transport
        ) as client:
            response = client.post(url, content=body.encode("utf-8"), headers=headers)

        if not response.is_success:
            limit = self.settings.webhook_error_body_limit
            raise DeliveryError(
                f"HTTP {response.status_code}: {response.text[:limit]}",
                status_code=response.status_code
            )
        return response

    def _deliver(
        self,
        booking: Booking,
        payload: Dict[str, Any],
        scheme: SignatureScheme
    ) -> DeliveryResult:
        website = booking.website
        event = payload["event"]

        if not website or not website.webhook_url:
            logger.info(f"No webhook URL for website {booking.website_id}, skipping {event}")
            record_webhook_delivery(scheme.value, DeliveryOutcome.SKIPPED.value)
            return DeliveryResult(outcome=DeliveryOutcome.SKIPPED, event=event)

        body = json.dumps(payload, separators=(",", ":"))
        headers = self._headers(body, website.webhook_secret, scheme)

        pending = sync_log_service.start_outbound(
            self.db,
            booking_id=booking.id,
            website_id=website.id,
            event_type=event,
            payload=payload
        )

        start = time.monotonic()
        status_code = None
        error = None
        try:
            response = self._post(website.webhook_url, body, headers)
            status_code = response.status_code
        except DeliveryError as e:
            status_code = e.status_code
            error = str(e)
        except Exception as e:
            logger.warning(f"Webhook transport error for {website.webhook_url}: {e!r}")
            error = str(e) or type(e).__name__
        duration_ms = round((time.monotonic() - start) * 1000, 2)

        outcome = DeliveryOutcome.FAILED if error else DeliveryOutcome.DELIVERED
        sync_log_service.complete_outbound(
            self.db,
            pending.id,
            SyncStatus.FAILED if error else SyncStatus.SUCCESS,
            error_message=error
        )

        record_webhook_delivery(scheme.value, outcome.value)
        logger.webhook_delivered(
            booking.id,
            website.webhook_url,
            outcome.value,
            status_code=status_code,
            duration_ms=duration_ms
        )

        return DeliveryResult(
            outcome=outcome,
            event=event,
            status_code=status_code,
            error=error,
            sync_log_id=pending.id,
            duration_ms=duration_ms,
        )
