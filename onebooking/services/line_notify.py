"""
New-booking alerts to the staff LINE group.

Sent from a detached task after an inbound create. Nothing here raises: an
unconfigured channel is a skip and API failures are logged at warning level.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

import httpx

from ..config import Settings, get_settings
from ..models.booking import Booking
from ..utils.metrics import record_notification
from .email_service import get_brand_config

logger = logging.getLogger(__name__)

TRANSPORT_LABELS = {
    "hotel_pickup": "Hotel Pickup",
    "private": "Private Transfer",
}

STATUS_EMOJI = {
    "confirmed": "✅",
    "pending": "⏳",
    "cancelled": "❌",
}


@dataclass
class BookingNotification:
    """Snapshot of a booking, detached from the DB session."""
    website_id: str
    website_name: Optional[str]
    booking_ref: str
    customer_name: Optional[str]
    customer_email: str
    customer_phone: Optional[str]
    package_name: Optional[str]
    activity_date: Optional[date]
    time_slot: Optional[str]
    guest_count: int
    adult_count: Optional[int]
    child_count: Optional[int]
    non_players: int
    transport_type: Optional[str]
    hotel_name: Optional[str]
    room_number: Optional[str]
    total_amount: Decimal
    currency: str
    status: str
    special_requests: Optional[str]

    @classmethod
    def from_booking(cls, booking: Booking, website_name: Optional[str] = None) -> "BookingNotification":
        return cls(
            website_id=booking.website_id,
            website_name=website_name,
            booking_ref=booking.booking_ref,
            customer_name=booking.customer_name,
            customer_email=booking.customer_email,
            customer_phone=booking.customer_phone,
            package_name=booking.package_name,
            activity_date=booking.activity_date,
            time_slot=booking.time_slot,
            guest_count=booking.guest_count or 0,
            adult_count=booking.adult_count,
            child_count=booking.child_count,
            non_players=booking.non_players or 0,
            transport_type=booking.transport_type,
            hotel_name=booking.hotel_name,
            room_number=booking.room_number,
            total_amount=Decimal(booking.total_amount or 0),
            currency=booking.currency or "THB",
            status=booking.status or "confirmed",
            special_requests=booking.special_requests,
        )


@dataclass
class NotificationResult:
    success: bool
    error: Optional[str] = None


def _format_amount(amount: Decimal) -> str:
    if amount == amount.to_integral_value():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"


def _guest_info(data: BookingNotification) -> str:
    if data.adult_count is not None:
        info = f"{data.adult_count} adults"
        if data.child_count:
            info += f" + {data.child_count} children"
    else:
        info = f"{data.guest_count} guests"
    if data.non_players > 0:
        info += f" + {data.non_players} non-players"
    return info


def format_booking_message(data: BookingNotification) -> str:
    website_name = data.website_name or get_brand_config(data.website_id).sender_name
    activity_date = data.activity_date.strftime("%d %b %Y") if data.activity_date else "-"

    lines = [
        "🎫 NEW BOOKING",
        "",
        f"📍 {website_name}",
        f"📋 {data.booking_ref}",
        f"👤 {data.customer_name or '-'}",
        f"📧 {data.customer_email}",
    ]
    if data.customer_phone:
        lines.append(f"📱 {data.customer_phone}")

    lines += [
        "",
        f"📦 {data.package_name or '-'}",
        f"📅 {activity_date}",
        f"⏰ {data.time_slot or '-'}",
        f"👥 {_guest_info(data)}",
    ]

    if data.transport_type and data.transport_type not in ("self_arrange", "none"):
        lines.append("")
        lines.append(f"🚐 {TRANSPORT_LABELS.get(data.transport_type, data.transport_type)}")
        if data.hotel_name:
            hotel = f"🏨 {data.hotel_name}"
            if data.room_number:
                hotel += f" (Room {data.room_number})"
            lines.append(hotel)

    lines += [
        "",
        f"💰 {data.currency} {_format_amount(data.total_amount)}",
        f"{STATUS_EMOJI.get(data.status, '📋')} {data.status.capitalize()}",
    ]

    if data.special_requests:
        lines += ["", f"📝 Notes: {data.special_requests}"]

    return "\n".join(lines)


async def send_booking_notification(
    data: BookingNotification,
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> NotificationResult:
    """Push the booking summary to the configured LINE group."""
    settings = settings or get_settings()

    if not settings.line_enabled:
        logger.info("LINE notification skipped - LINE not configured")
        return NotificationResult(
            success=False,
            error="LINE_CHANNEL_ACCESS_TOKEN or LINE_GROUP_ID not configured"
        )

    url = f"{settings.line_api_base_url.rstrip('/')}/message/push"
    body = {
        "to": settings.line_group_id,
        "messages": [{"type": "text", "text": format_booking_message(data)}],
    }

    try:
        async with httpx.AsyncClient(timeout=settings.line_timeout_seconds, transport=transport) as client:
            response = await client.post(
                url,
                json=body,
                headers={"Authorization": f"Bearer {settings.line_channel_access_token}"}
            )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        error = f"HTTP {e.response.status_code}: {e.response.text[:200]}"
        logger.warning(f"LINE notification failed for {data.booking_ref}: {error}")
        record_notification("line", False)
        return NotificationResult(success=False, error=error)
    except httpx.HTTPError as e:
        error = str(e) or type(e).__name__
        logger.warning(f"LINE notification failed for {data.booking_ref}: {error}")
        record_notification("line", False)
        return NotificationResult(success=False, error=error)

    logger.info(f"LINE booking notification sent for {data.booking_ref}")
    record_notification("line", True)
    return NotificationResult(success=True)
