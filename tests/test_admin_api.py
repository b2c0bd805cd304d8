"""
Tests for website management, the test-webhook tool and the metrics endpoint
"""

import json

from onebooking.models.booking import Booking
from onebooking.models.website import Website

from conftest import API_KEY, WEBHOOK_URL, make_payload


class TestWebsites:

    def test_create_issues_credentials(self, client, db, admin_headers):
        response = client.post(
            "/api/websites",
            json={"id": "Flying-Hanuman", "name": "Flying Hanuman", "domain": "flyinghanuman.com"},
            headers=admin_headers
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["id"] == "flying-hanuman"
        assert data["api_key"].startswith("fh_sk_live_")
        assert data["webhook_secret"].startswith("whsec_")
        assert data["is_active"] is True
        assert db.query(Website).filter(Website.id == "flying-hanuman").count() == 1

    def test_duplicate_id(self, client, website, admin_headers):
        response = client.post(
            "/api/websites",
            json={"id": "hanuman-world", "name": "Again", "domain": "again.example"},
            headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE"

    def test_invalid_slug(self, client, admin_headers):
        response = client.post(
            "/api/websites",
            json={"id": "bad id!", "name": "Bad", "domain": "bad.example"},
            headers=admin_headers
        )
        assert response.status_code == 400

    def test_staff_cannot_create(self, client, staff_headers):
        response = client.post(
            "/api/websites",
            json={"id": "sky-rock", "name": "Sky Rock", "domain": "skyrock.app"},
            headers=staff_headers
        )

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    def test_staff_does_not_see_credentials(self, client, website, staff_headers, admin_headers):
        staff_view = client.get("/api/websites/hanuman-world", headers=staff_headers).json()["data"]
        admin_view = client.get("/api/websites/hanuman-world", headers=admin_headers).json()["data"]

        assert "api_key" not in staff_view
        assert admin_view["api_key"] == API_KEY

    def test_update_clears_webhook_url(self, client, db, website, admin_headers):
        response = client.put(
            "/api/websites/hanuman-world",
            json={"webhook_url": None, "api_key": "ignored"},
            headers=admin_headers
        )

        assert response.status_code == 200
        db.expire_all()
        stored = db.query(Website).one()
        assert stored.webhook_url is None
        assert stored.api_key == API_KEY

    def test_empty_update(self, client, website, admin_headers):
        response = client.put("/api/websites/hanuman-world", json={"name": None}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "No valid fields to update"

    def test_regenerate_key_revokes_old_key(self, client, website, admin_headers):
        response = client.post("/api/websites/hanuman-world/regenerate-key", headers=admin_headers)

        assert response.status_code == 200
        new_key = response.json()["data"]["api_key"]
        assert new_key.startswith("hw_sk_live_")
        assert new_key != API_KEY

        old = client.post("/api/bookings/sync", json=make_payload(), headers={"X-API-Key": API_KEY})
        assert old.status_code == 401

    def test_regenerate_unknown_website(self, client, admin_headers):
        response = client.post("/api/websites/nope/regenerate-key", headers=admin_headers)
        assert response.status_code == 404


class TestTestWebhook:

    def _booking(self, db, website):
        booking = Booking(
            website_id=website.id,
            source_booking_id="src-001",
            booking_ref="HW-2025-0001",
            customer_email="jane@example.com",
            status="confirmed",
        )
        db.add(booking)
        db.commit()
        return booking

    def test_superadmin_sends_test_webhook(self, client, db, website, superadmin_headers, outbound):
        booking = self._booking(db, website)

        response = client.post(
            "/api/admin/test-webhook",
            json={"website_id": website.id, "booking_id": booking.id, "fields": ["status"]},
            headers=superadmin_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["event"] == "booking.status_changed"
        assert json.loads(outbound.to(WEBHOOK_URL)[0].content)["updated_by"] == "root@onebooking.co"

    def test_rejects_non_column_fields(self, client, db, website, superadmin_headers, outbound):
        """Only staff-editable booking fields can be sent"""
        booking = self._booking(db, website)

        response = client.post(
            "/api/admin/test-webhook",
            json={"website_id": website.id, "booking_id": booking.id, "fields": ["status", "website"]},
            headers=superadmin_headers
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PAYLOAD"
        assert "website" in response.json()["error"]
        assert outbound.requests == []

    def test_admin_is_forbidden(self, client, admin_headers):
        response = client.post("/api/admin/test-webhook", json={}, headers=admin_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden - Superadmin only"

    def test_missing_ids(self, client, superadmin_headers):
        response = client.post("/api/admin/test-webhook", json={"website_id": "x"}, headers=superadmin_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: booking_id"


class TestSyncLogsAndMetrics:

    def test_sync_logs_filter_by_direction(self, client, website, staff_headers):
        client.post("/api/bookings/sync", json=make_payload(booking_ref="HW-1"), headers={"X-API-Key": API_KEY})

        inbound = client.get("/api/sync-logs?direction=inbound", headers=staff_headers).json()["data"]
        outbound = client.get("/api/sync-logs?direction=outbound", headers=staff_headers).json()["data"]

        assert inbound["total"] == 1
        assert inbound["items"][0]["event_type"] == "create"
        assert outbound["total"] == 0

    def test_metrics_exposed(self, client, website):
        client.post("/api/bookings/sync", json=make_payload(), headers={"X-API-Key": API_KEY})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "# TYPE sync_events_total counter" in response.text
        assert 'sync_events_total{event_type="booking.created",result="create"} 1.0' in response.text
