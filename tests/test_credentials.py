"""
Tests for API key resolution and rotation.
"""

import pytest

from onebooking.exceptions import AuthError, NotFoundError
from onebooking.services import credentials

from conftest import API_KEY


class TestResolve:

    def test_resolves_active_website(self, db, website):
        assert credentials.resolve(db, API_KEY).id == "hanuman-world"

    @pytest.mark.parametrize("key", [None, ""])
    def test_missing_key(self, db, website, key):
        with pytest.raises(AuthError) as exc:
            credentials.resolve(db, key)
        assert exc.value.reason == AuthError.MISSING_KEY
        assert exc.value.code == "AUTH_FAILED"
        assert exc.value.status_code == 401

    def test_unknown_key(self, db, website):
        with pytest.raises(AuthError) as exc:
            credentials.resolve(db, API_KEY + "x")
        assert exc.value.reason == AuthError.INVALID_OR_INACTIVE

    def test_inactive_website_does_not_authenticate(self, db, website):
        website.is_active = False
        db.commit()

        with pytest.raises(AuthError):
            credentials.resolve(db, API_KEY)


class TestRotate:

    def test_old_key_stops_working(self, db, website):
        rotated = credentials.rotate(db, "hanuman-world")

        assert rotated.api_key != API_KEY
        assert rotated.api_key.startswith("hw_sk_live_")
        assert credentials.resolve(db, rotated.api_key).id == "hanuman-world"
        with pytest.raises(AuthError):
            credentials.resolve(db, API_KEY)

    def test_unknown_website(self, db):
        with pytest.raises(NotFoundError):
            credentials.rotate(db, "nope")
