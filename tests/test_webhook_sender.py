"""
Tests for outbound webhook delivery

Covers:
- Timestamped signing for field-level notifications
- Raw digest signing for force resync
- Pending row is created first and moved to a terminal state
- Delivery failures never raise
- Skip when the website has no webhook URL
"""

import json
import httpx

from onebooking.models.booking import Booking
from onebooking.models.sync_log import SyncLog
from onebooking.services.webhook_sender import WebhookSender, DeliveryOutcome
from onebooking.utils.signature import verify_signature, verify_raw
from onebooking.utils.metrics import webhook_deliveries_total

from conftest import WEBHOOK_URL, WEBHOOK_SECRET


def make_booking(db, website, **overrides):
    values = dict(
        website_id=website.id,
        source_booking_id="src-001",
        booking_ref="HW-2025-0001",
        customer_email="jane@example.com",
        status="confirmed",
        hotel_name="Patong Beach Hotel",
        room_number="214",
        guest_count=2,
        admin_notes="VIP",
    )
    values.update(overrides)
    booking = Booking(**values)
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


def outbound_logs(db):
    db.expire_all()
    return db.query(SyncLog).filter(SyncLog.direction == "outbound").all()


class TestNotify:

    def test_delivered_with_timestamped_signature(self, db, website, settings, transport, outbound):
        booking = make_booking(db, website)
        sender = WebhookSender(db, settings, transport=transport)

        result = sender.notify(booking, ["hotel_name"], "staff@onebooking.co")

        assert result.outcome == DeliveryOutcome.DELIVERED
        assert result.status_code == 200
        request = outbound.to(WEBHOOK_URL)[0]
        body = request.content.decode()
        assert verify_signature(
            body,
            request.headers["X-Webhook-Signature"],
            WEBHOOK_SECRET,
            request.headers["X-Webhook-Timestamp"]
        )
        assert "X-OneBooking-Signature" not in request.headers

        payload = json.loads(body)
        assert payload["event"] == "booking.updated"
        assert payload["source_booking_id"] == "src-001"
        assert payload["updated_fields"] == ["hotel_name"]
        assert payload["data"] == {"hotel_name": "Patong Beach Hotel"}
        assert payload["updated_by"] == "staff@onebooking.co"

        logs = outbound_logs(db)
        assert len(logs) == 1
        assert logs[0].status == "success"
        assert logs[0].id == result.sync_log_id
        assert logs[0].event_type == "booking.updated"

    def test_status_change_event(self, db, website, settings, transport, outbound):
        booking = make_booking(db, website)

        result = WebhookSender(db, settings, transport=transport).notify(
            booking, ["status", "admin_notes"], "staff@onebooking.co"
        )

        assert result.event == "booking.status_changed"
        payload = json.loads(outbound.requests[0].content)
        assert payload["data"] == {"status": "confirmed", "admin_notes": "VIP"}

    def test_unsigned_without_secret(self, db, website, settings, transport, outbound):
        website.webhook_secret = None
        db.commit()
        booking = make_booking(db, website)

        WebhookSender(db, settings, transport=transport).notify(booking, ["status"], "a@b.c")

        headers = outbound.requests[0].headers
        assert "X-Webhook-Signature" not in headers
        assert "X-Webhook-Timestamp" not in headers

    def test_http_error_marks_pending_row_failed(self, db, website, settings, transport, outbound):
        outbound.respond(WEBHOOK_URL, status_code=500, text="x" * 2000)
        booking = make_booking(db, website)

        result = WebhookSender(db, settings, transport=transport).notify(booking, ["status"], "a@b.c")

        assert result.outcome == DeliveryOutcome.FAILED
        assert result.status_code == 500
        assert result.error == "HTTP 500: " + "x" * 500

        logs = outbound_logs(db)
        assert len(logs) == 1
        assert logs[0].status == "failed"
        assert logs[0].error_message == result.error

    def test_transport_exception_never_raises(self, db, website, settings, transport, outbound):
        outbound.respond(WEBHOOK_URL, exc=httpx.ConnectError("connection refused"))
        booking = make_booking(db, website)

        result = WebhookSender(db, settings, transport=transport).notify(booking, ["status"], "a@b.c")

        assert result.outcome == DeliveryOutcome.FAILED
        assert result.error == "connection refused"
        assert outbound_logs(db)[0].status == "failed"
        assert webhook_deliveries_total.get(scheme="timestamped", outcome="failed") == 1

    def test_skipped_without_webhook_url(self, db, website, settings, transport, outbound):
        website.webhook_url = None
        db.commit()
        booking = make_booking(db, website)

        result = WebhookSender(db, settings, transport=transport).notify(booking, ["status"], "a@b.c")

        assert result.outcome == DeliveryOutcome.SKIPPED
        assert outbound.requests == []
        assert outbound_logs(db) == []

    def test_send_test_defaults_to_status(self, db, website, settings, transport, outbound):
        booking = make_booking(db, website)

        result = WebhookSender(db, settings, transport=transport).send_test(booking, None, "root@b.c")

        assert result.delivered
        assert json.loads(outbound.requests[0].content)["updated_fields"] == ["status"]


class TestForceResync:

    def test_full_snapshot_with_raw_digest(self, db, website, settings, transport, outbound):
        booking = make_booking(db, website)

        result = WebhookSender(db, settings, transport=transport).force_resync(booking, "staff@onebooking.co")

        assert result.delivered
        request = outbound.requests[0]
        body = request.content.decode()
        assert verify_raw(body, request.headers["X-OneBooking-Signature"], WEBHOOK_SECRET)
        assert "X-Webhook-Signature" not in request.headers

        payload = json.loads(body)
        assert payload["event"] == "booking.updated"
        assert set(payload["data"]) == {
            "status", "hotel_name", "room_number", "activity_date",
            "time_slot", "guest_count", "special_requests", "admin_notes",
        }
        assert payload["data"]["admin_notes"] == "VIP"
        assert outbound_logs(db)[0].status == "success"
        assert webhook_deliveries_total.get(scheme="raw_digest", outcome="delivered") == 1

    def test_skipped_without_webhook_url(self, db, website, settings, transport, outbound):
        website.webhook_url = None
        db.commit()
        booking = make_booking(db, website)

        result = WebhookSender(db, settings, transport=transport).force_resync(booking, "a@b.c")

        assert result.skipped
        assert outbound.requests == []
