"""
Tests for POST /api/bookings/sync

End-to-end through the FastAPI app with an in-memory database.
"""

from unittest.mock import patch

from fastapi.testclient import TestClient

from onebooking.main import create_app
from onebooking.models.booking import Booking
from onebooking.models.sync_log import SyncLog
from onebooking.utils.metrics import sync_events_total

from conftest import API_KEY, make_payload


def post_sync(client, payload, api_key=API_KEY):
    headers = {"X-API-Key": api_key} if api_key is not None else {}
    return client.post("/api/bookings/sync", json=payload, headers=headers)


def _discard(coro, name=None):
    coro.close()


class TestSyncEndpoint:

    @patch("onebooking.routers.sync.spawn_detached", side_effect=_discard)
    def test_create_returns_201(self, spawn, client, db, website):
        response = post_sync(client, make_payload())

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Booking synced successfully"
        booking = db.query(Booking).one()
        assert body["data"] == {"booking_id": booking.id}
        spawn.assert_called_once()

    @patch("onebooking.routers.sync.spawn_detached", side_effect=_discard)
    def test_example_scenario(self, spawn, client, db, website):
        """create -> duplicate create -> update -> cancel"""
        assert post_sync(client, make_payload()).status_code == 201

        duplicate = post_sync(client, make_payload())
        assert duplicate.status_code == 409
        assert duplicate.json() == {
            "success": False,
            "error": "Booking already exists. Use booking.updated event to update.",
            "code": "DUPLICATE_BOOKING",
        }

        updated = post_sync(client, make_payload(event="booking.updated", guest_count=3))
        assert updated.status_code == 200

        cancelled = post_sync(client, make_payload(event="booking.cancelled", status="cancelled", guest_count=3))
        assert cancelled.status_code == 200

        db.expire_all()
        booking = db.query(Booking).one()
        assert booking.guest_count == 3
        assert booking.status == "cancelled"

        logs = db.query(SyncLog).order_by(SyncLog.created_at).all()
        assert [(l.event_type, l.status) for l in logs] == [
            ("create", "success"),
            ("booking.created", "failed"),
            ("update", "success"),
            ("status_change", "success"),
        ]
        # Only the accepted create triggers a chat notification
        assert spawn.call_count == 1
        assert sync_events_total.get(event_type="booking.created", result="duplicate") == 1

    @patch("onebooking.routers.sync.spawn_detached", side_effect=_discard)
    def test_fallback_insert_returns_200(self, spawn, client, db, website):
        response = post_sync(client, make_payload(event="booking.updated"))

        assert response.status_code == 200
        assert db.query(Booking).count() == 1
        spawn.assert_called_once()

    def test_missing_api_key(self, client, website):
        response = post_sync(client, make_payload(), api_key=None)

        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_FAILED"
        assert response.json()["error"] == "Missing API key"

    def test_invalid_api_key(self, client, db, website):
        response = post_sync(client, make_payload(), api_key="wrong")

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid API key"
        assert db.query(SyncLog).count() == 0

    def test_missing_fields(self, client, db, website):
        payload = make_payload(customer={"name": "No Email"})

        response = post_sync(client, payload)

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Missing required fields: customer.email",
            "code": "INVALID_PAYLOAD",
        }
        assert db.query(Booking).count() == 0
        assert db.query(SyncLog).count() == 0

    def test_malformed_json(self, client, website):
        response = client.post(
            "/api/bookings/sync",
            content=b"{not json",
            headers={"X-API-Key": API_KEY, "Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON payload"

    def test_auth_checked_before_payload(self, client, website):
        response = client.post(
            "/api/bookings/sync",
            content=b"{not json",
            headers={"X-API-Key": "wrong", "Content-Type": "application/json"}
        )

        assert response.status_code == 401

    def test_unexpected_error_is_server_error(self, client, db, website):
        with patch(
            "onebooking.routers.sync.BookingReconciler.reconcile",
            side_effect=RuntimeError("database went away")
        ):
            response = post_sync(client, make_payload())

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Internal server error",
            "code": "SERVER_ERROR",
        }

    def test_request_id_echoed(self, client, website):
        response = post_sync(client, make_payload(booking_ref=""))
        assert response.headers["X-Request-ID"]

        response = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"


class TestSyncRateLimit:

    @patch("onebooking.routers.sync.spawn_detached", side_effect=_discard)
    def test_limit_comes_from_app_settings(self, spawn, settings, database, transport, website):
        settings.sync_rate_limit = "2/minute"
        app = create_app(settings=settings, database=database, http_transport=transport)

        with TestClient(app) as client:
            responses = [
                post_sync(client, make_payload(source_booking_id=f"src-{i}"))
                for i in range(4)
            ]

        assert [r.status_code for r in responses] == [201, 201, 429, 429]
        assert responses[-1].json() == {
            "success": False,
            "error": "Too many requests, try again later",
            "code": "RATE_LIMITED",
        }
