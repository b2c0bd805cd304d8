"""
Tests for webhook signing helpers and credential generation.
"""

import hashlib
import hmac
import re

from onebooking.utils.signature import (
    sign_payload, verify_signature, sign_raw, verify_raw,
    api_key_prefix, generate_api_key, generate_webhook_secret
)


class TestTimestampedSignature:

    def test_sign_then_verify(self):
        """A signature verifies against the same body, secret and timestamp"""
        body = '{"event":"booking.updated"}'
        signature = sign_payload(body, "whsec_abc", "1700000000")

        assert signature.startswith("sha256=")
        assert verify_signature(body, signature, "whsec_abc", "1700000000")

    def test_signature_covers_timestamp(self):
        """The timestamp is part of the signed message"""
        body = '{"a":1}'
        expected = hmac.new(b"secret", b"1700000000." + body.encode(), hashlib.sha256).hexdigest()

        assert sign_payload(body, "secret", "1700000000") == f"sha256={expected}"

    def test_tampering_is_rejected(self):
        signature = sign_payload('{"a":1}', "secret", "1700000000")

        assert not verify_signature('{"a":2}', signature, "secret", "1700000000")
        assert not verify_signature('{"a":1}', signature, "other", "1700000000")
        assert not verify_signature('{"a":1}', signature, "secret", "1700000001")
        assert not verify_signature('{"a":1}', "", "secret", "1700000000")


class TestRawDigest:

    def test_raw_digest_is_plain_hex_hmac(self):
        body = '{"event":"booking.updated"}'
        expected = hmac.new(b"whsec_abc", body.encode(), hashlib.sha256).hexdigest()

        assert sign_raw(body, "whsec_abc") == expected
        assert verify_raw(body, expected, "whsec_abc")
        assert not verify_raw(body, expected, "whsec_xyz")


class TestCredentialGeneration:

    def test_prefix_is_initials_of_slug(self):
        assert api_key_prefix("hanuman-world") == "hw"
        assert api_key_prefix("sky-rock") == "sr"
        assert api_key_prefix("banana") == "b"

    def test_api_key_format(self):
        key = generate_api_key("hw")
        assert re.fullmatch(r"hw_sk_live_[0-9a-f]{48}", key)
        assert generate_api_key("hw") != key

    def test_webhook_secret_format(self):
        assert re.fullmatch(r"whsec_[0-9a-f]{48}", generate_webhook_secret())
