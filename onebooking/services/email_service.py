"""
Customer e-mail via the Resend HTTP API.

Each source website sends from its own brand address; unknown websites fall
back to the OneBooking sender.
"""

import html
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import Settings, get_settings
from ..models.booking import Booking

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BrandConfig:
    sender_email: str
    sender_name: str
    support_email: str
    brand_color: str


BRAND_CONFIGS = {
    "hanuman-world": BrandConfig(
        sender_email="support@hanumanworldphuket.com",
        sender_name="Hanuman World Phuket",
        support_email="support@hanumanworldphuket.com",
        brand_color="#16a34a",
    ),
    "flying-hanuman": BrandConfig(
        sender_email="support@flyinghanuman.com",
        sender_name="Flying Hanuman",
        support_email="support@flyinghanuman.com",
        brand_color="#ea580c",
    ),
    "sky-rock": BrandConfig(
        sender_email="support@skyrock.app",
        sender_name="Sky Rock Khao Lak",
        support_email="support@skyrock.app",
        brand_color="#0ea5e9",
    ),
    "hanuman-luge": BrandConfig(
        sender_email="support@hanumanluge.com",
        sender_name="Hanuman Luge",
        support_email="support@hanumanluge.com",
        brand_color="#9333ea",
    ),
    "banana-beach": BrandConfig(
        sender_email="support@bananabeach.app",
        sender_name="Banana Beach",
        support_email="support@bananabeach.app",
        brand_color="#eab308",
    ),
}

DEFAULT_BRAND = BrandConfig(
    sender_email="noreply@onebooking.co",
    sender_name="OneBooking",
    support_email="support@onebooking.co",
    brand_color="#1a237e",
)


def get_brand_config(website_id: Optional[str]) -> BrandConfig:
    if not website_id:
        return DEFAULT_BRAND
    return BRAND_CONFIGS.get(website_id, DEFAULT_BRAND)


def get_from_address(website_id: Optional[str], custom_name: Optional[str] = None) -> str:
    """'Hanuman World Phuket <support@hanumanworldphuket.com>'"""
    config = get_brand_config(website_id)
    return f"{custom_name or config.sender_name} <{config.sender_email}>"


@dataclass
class EmailResult:
    sent: bool
    error: Optional[str] = None
    message_id: Optional[str] = None


class EmailService:
    """Thin Resend client"""

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.BaseTransport] = None):
        self.settings = settings or get_settings()
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.settings.resend_api_key)

    def send(self, sender: str, to: str, subject: str, html_body: str) -> EmailResult:
        if not self.enabled:
            return EmailResult(sent=False, error="RESEND_API_KEY not configured")

        try:
            with httpx.Client(timeout=10.0, transport=self.transport) as client:
                response = client.post(
                    self.settings.resend_api_url,
                    json={"from": sender, "to": [to], "subject": subject, "html": html_body},
                    headers={"Authorization": f"Bearer {self.settings.resend_api_key}"}
                )
        except httpx.HTTPError as e:
            logger.warning(f"Resend request failed: {e}")
            return EmailResult(sent=False, error=str(e) or type(e).__name__)

        if not response.is_success:
            error = f"HTTP {response.status_code}: {response.text[:500]}"
            logger.warning(f"Resend rejected e-mail to {to}: {error}")
            return EmailResult(sent=False, error=error)

        message_id = None
        try:
            message_id = response.json().get("id")
        except ValueError:
            pass
        return EmailResult(sent=True, message_id=message_id)

    def send_pickup_time(self, booking: Booking, pickup_time: str) -> EmailResult:
        """Tell the customer when the driver will be at their hotel."""
        config = get_brand_config(booking.website_id)
        website_name = booking.website.name if booking.website else config.sender_name
        subject = f"Your Pickup Time Confirmed - {booking.booking_ref}"
        body = render_pickup_time_email(booking, pickup_time, config, website_name)
        return self.send(get_from_address(booking.website_id, website_name), booking.customer_email, subject, body)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def render_pickup_time_email(
    booking: Booking,
    pickup_time: str,
    config: BrandConfig,
    website_name: str
) -> str:
    e = html.escape
    activity_date = booking.activity_date.strftime("%A, %d %B %Y") if booking.activity_date else "-"
    guests = _plural(booking.guest_count or 0, "player")
    if booking.non_players:
        guests += f" + {_plural(booking.non_players, 'non-player')}"
    room = f"<br><span style=\"color:#64748b;font-size:14px;\">Room: {e(booking.room_number)}</span>" if booking.room_number else ""

    return f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="margin:0;padding:0;font-family:Arial,sans-serif;background-color:#f5f5f5;">
  <table width="600" cellpadding="0" cellspacing="0" align="center" style="background:#ffffff;">
    <tr>
      <td style="background:{config.brand_color};padding:40px 30px;text-align:center;">
        <h1 style="color:#ffffff;margin:0;">Pickup Time Confirmed</h1>
        <p style="color:#ffffff;margin:10px 0 0 0;">Your transport is scheduled!</p>
      </td>
    </tr>
    <tr>
      <td style="padding:40px 30px;">
        <p>Dear <strong>{e(booking.customer_name or "guest")}</strong>,</p>
        <p>Your pickup time has been confirmed for your upcoming tour.</p>
        <p>Date<br><strong>{e(activity_date)}</strong></p>
        <p>Pickup Time<br><strong style="color:{config.brand_color};font-size:24px;">{e(pickup_time)}</strong></p>
        <p>Pickup Location<br><strong>{e(booking.hotel_name or "Your hotel")}</strong>{room}</p>
        <p>Booking Reference<br><strong>{e(booking.booking_ref)}</strong></p>
        <p><strong>Important:</strong> Please be ready at the hotel lobby 5-10 minutes before the pickup time.</p>
        <p>Package: <strong>{e(booking.package_name or "-")}</strong><br>
           Guests: <strong>{guests}</strong><br>
           Time Slot: <strong>{e(booking.time_slot or "-")}</strong></p>
      </td>
    </tr>
    <tr>
      <td style="background:#f8fafc;padding:25px 30px;text-align:center;">
        Thank you for choosing {e(website_name)}! Questions? {e(config.support_email)}
      </td>
    </tr>
  </table>
</body>
</html>
"""
