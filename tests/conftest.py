"""Pytest fixtures: in-memory SQLite database and a fake outbound HTTP layer."""
import pytest
import httpx
from fastapi.testclient import TestClient

from onebooking.config import Settings
from onebooking.database import Database
from onebooking.main import create_app
from onebooking.models.website import Website
from onebooking.utils.metrics import ALL_COUNTERS
from onebooking.utils.rate_limiter import limiter
from onebooking.utils.security import create_access_token

WEBHOOK_URL = "https://hanuman.example/api/onebooking/webhook"
API_KEY = "hw_sk_live_0123456789abcdef0123456789abcdef0123456789abcdef"
WEBHOOK_SECRET = "whsec_test_secret"


class OutboundRecorder:
    """
    httpx handler that records every request and answers from a table of
    URL prefixes. Unmatched requests get 200 {"ok": true}.
    """

    def __init__(self):
        self.requests = []
        self._routes = []

    def respond(self, url_prefix: str, status_code: int = 200, text: str = '{"ok":true}', exc: Exception = None):
        self._routes.insert(0, (url_prefix, status_code, text, exc))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for prefix, status_code, text, exc in self._routes:
            if str(request.url).startswith(prefix):
                if exc is not None:
                    raise exc
                return httpx.Response(status_code, text=text)
        return httpx.Response(200, json={"ok": True})

    def to(self, url_prefix: str):
        return [r for r in self.requests if str(r.url).startswith(url_prefix)]


@pytest.fixture(autouse=True)
def reset_counters():
    for counter in ALL_COUNTERS:
        counter.reset()
    limiter.reset()
    yield


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="test",
        database_url="sqlite://",
        secret_key="test-secret-key-that-is-at-least-32-characters",
        line_channel_access_token="",
        line_group_id="",
        resend_api_key="",
        sync_rate_limit="1000/minute",
    )


@pytest.fixture
def database(settings):
    database = Database(settings.database_url)
    database.create_tables()
    yield database
    database.drop_tables()
    database.dispose()


@pytest.fixture
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def outbound():
    return OutboundRecorder()


@pytest.fixture
def transport(outbound):
    return httpx.MockTransport(outbound)


@pytest.fixture
def app(settings, database, transport):
    return create_app(settings=settings, database=database, http_transport=transport)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def website(db):
    site = Website(
        id="hanuman-world",
        name="Hanuman World Phuket",
        domain="hanumanworldphuket.com",
        api_key=API_KEY,
        webhook_url=WEBHOOK_URL,
        webhook_secret=WEBHOOK_SECRET,
        is_active=True,
    )
    db.add(site)
    db.commit()
    db.refresh(site)
    return site


def _auth(settings, email, role):
    token = create_access_token({"sub": email, "role": role}, settings=settings)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_headers(settings):
    return _auth(settings, "staff@onebooking.co", "staff")


@pytest.fixture
def admin_headers(settings):
    return _auth(settings, "admin@onebooking.co", "admin")


@pytest.fixture
def superadmin_headers(settings):
    return _auth(settings, "root@onebooking.co", "superadmin")


def make_payload(**overrides) -> dict:
    """A complete booking.created body; nested keys may be overridden."""
    payload = {
        "event": "booking.created",
        "source_booking_id": "src-001",
        "booking_ref": "HW-2025-0001",
        "package_name": "World A+ Zipline",
        "package_price": 3000,
        "activity_date": "2025-06-01",
        "time_slot": "09:00",
        "guest_count": 2,
        "total_amount": 6000,
        "customer": {
            "name": "Jane Traveller",
            "email": "jane@example.com",
            "phone": "+66812345678",
            "country_code": "TH",
        },
        "transport": {
            "type": "hotel_pickup",
            "hotel_name": "Patong Beach Hotel",
            "room_number": "214",
        },
    }
    payload.update(overrides)
    return payload
