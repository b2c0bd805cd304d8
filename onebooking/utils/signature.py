"""
Webhook signing helpers.

Two outbound schemes coexist and receivers must know which one an endpoint
uses:

* timestamped: ``X-Webhook-Timestamp`` + ``X-Webhook-Signature`` where the
  signature is ``sha256=`` + HMAC-SHA256(secret, "{timestamp}.{body}")
* raw digest: ``X-OneBooking-Signature`` = HMAC-SHA256(secret, body), hex
"""

import hashlib
import hmac
import secrets

SIGNATURE_PREFIX = "sha256="


def _hmac_hex(secret: str, message: str) -> str:
    return hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256
    ).hexdigest()


def sign_payload(payload: str, secret: str, timestamp: str) -> str:
    """Timestamp-bound signature for the X-Webhook-Signature header."""
    return f"{SIGNATURE_PREFIX}{_hmac_hex(secret, f'{timestamp}.{payload}')}"


def verify_signature(payload: str, signature: str, secret: str, timestamp: str) -> bool:
    """Recompute and compare in constant time."""
    if not signature:
        return False
    expected = sign_payload(payload, secret, timestamp)
    return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))


def sign_raw(body: str, secret: str) -> str:
    """Raw HMAC-SHA256 hex digest of the body, no timestamp and no prefix."""
    return _hmac_hex(secret, body)


def verify_raw(body: str, signature: str, secret: str) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(sign_raw(body, secret).encode("utf-8"), signature.encode("utf-8"))


def api_key_prefix(website_id: str) -> str:
    """'hanuman-world' -> 'hw'"""
    return "".join(part[0] for part in website_id.split("-") if part).lower()


def generate_api_key(prefix: str) -> str:
    return f"{prefix}_sk_live_{secrets.token_hex(24)}"


def generate_webhook_secret() -> str:
    return f"whsec_{secrets.token_hex(24)}"
