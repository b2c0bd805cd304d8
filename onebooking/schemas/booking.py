from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
import re

from ..models.booking import BookingStatus, TransportType


class SyncEvent(str, Enum):
    CREATED = "booking.created"
    UPDATED = "booking.updated"
    CANCELLED = "booking.cancelled"
    REFUNDED = "booking.refunded"


class BookingAddon(BaseModel):
    name: str
    quantity: int = 1
    unit_price: Decimal = Decimal("0")


# ==================
# Inbound sync payload
# ==================

class SyncCustomer(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    country_code: Optional[str] = None
    special_requests: Optional[str] = None


class SyncTransport(BaseModel):
    type: Optional[TransportType] = None
    hotel_name: Optional[str] = None
    room_number: Optional[str] = None
    non_players: Optional[int] = None
    private_passengers: Optional[int] = None
    cost: Optional[Decimal] = None


class BookingSyncPayload(BaseModel):
    """Body of POST /api/bookings/sync as sent by a source website."""
    model_config = ConfigDict(extra="ignore")

    event: SyncEvent
    source_booking_id: str
    booking_ref: str
    package_name: Optional[str] = None
    package_price: Decimal = Decimal("0")
    activity_date: Optional[date] = None
    time_slot: Optional[str] = None
    guest_count: int = 0
    adult_count: Optional[int] = None
    child_count: Optional[int] = None
    total_amount: Decimal = Decimal("0")
    discount_amount: Optional[Decimal] = None
    currency: Optional[str] = None
    status: Optional[BookingStatus] = None
    customer: SyncCustomer
    transport: Optional[SyncTransport] = None
    addons: Optional[List[BookingAddon]] = None
    stripe_payment_intent_id: Optional[str] = None
    created_at: Optional[datetime] = None


class BookingSyncFields(BaseModel):
    """
    Columns owned by inbound sync. The reconciler writes exactly these fields
    and nothing else, so staff-only columns survive every sync.
    """
    source_booking_id: str
    booking_ref: str
    package_name: Optional[str] = None
    package_price: Decimal = Decimal("0")
    activity_date: Optional[date] = None
    time_slot: Optional[str] = None
    guest_count: int = 0
    adult_count: Optional[int] = None
    child_count: Optional[int] = None
    total_amount: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    currency: str
    status: BookingStatus = BookingStatus.CONFIRMED
    customer_name: Optional[str] = None
    customer_email: str
    customer_phone: Optional[str] = None
    customer_country_code: Optional[str] = None
    special_requests: Optional[str] = None
    transport_type: Optional[TransportType] = None
    hotel_name: Optional[str] = None
    room_number: Optional[str] = None
    non_players: int = 0
    private_passengers: int = 0
    transport_cost: Decimal = Decimal("0")
    addons: List[BookingAddon] = Field(default_factory=list)
    stripe_payment_intent_id: Optional[str] = None
    source_created_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, payload: BookingSyncPayload, default_currency: str) -> "BookingSyncFields":
        transport = payload.transport or SyncTransport()
        # The event name never implies a status; sources send it explicitly
        status = payload.status or BookingStatus.CONFIRMED

        return cls(
            source_booking_id=payload.source_booking_id,
            booking_ref=payload.booking_ref,
            package_name=payload.package_name,
            package_price=payload.package_price,
            activity_date=payload.activity_date,
            time_slot=payload.time_slot,
            guest_count=payload.guest_count,
            adult_count=payload.adult_count,
            child_count=payload.child_count,
            total_amount=payload.total_amount,
            discount_amount=payload.discount_amount or Decimal("0"),
            currency=payload.currency or default_currency,
            status=status,
            customer_name=payload.customer.name,
            customer_email=payload.customer.email,
            customer_phone=payload.customer.phone or None,
            customer_country_code=payload.customer.country_code or None,
            special_requests=payload.customer.special_requests or None,
            transport_type=transport.type,
            hotel_name=transport.hotel_name or None,
            room_number=transport.room_number or None,
            non_players=transport.non_players or 0,
            private_passengers=transport.private_passengers or 0,
            transport_cost=transport.cost or Decimal("0"),
            addons=payload.addons or [],
            stripe_payment_intent_id=payload.stripe_payment_intent_id or None,
            source_created_at=payload.created_at,
        )

    def column_values(self) -> Dict[str, Any]:
        values = self.model_dump(mode="python")
        values["status"] = self.status.value
        values["transport_type"] = self.transport_type.value if self.transport_type else None
        values["addons"] = [addon.model_dump(mode="json") for addon in self.addons]
        return values


# ==================
# Staff edits
# ==================

class BookingStaffUpdate(BaseModel):
    """
    Fields staff may change from the dashboard. Anything else in the request
    body is ignored.
    """
    model_config = ConfigDict(extra="ignore")

    status: Optional[BookingStatus] = None
    admin_notes: Optional[str] = Field(None, max_length=5000)
    activity_date: Optional[date] = None
    time_slot: Optional[str] = Field(None, max_length=50)
    guest_count: Optional[int] = Field(None, ge=0)
    special_requests: Optional[str] = Field(None, max_length=5000)
    transport_type: Optional[TransportType] = None
    hotel_name: Optional[str] = Field(None, max_length=255)
    room_number: Optional[str] = Field(None, max_length=50)
    non_players: Optional[int] = Field(None, ge=0)
    private_passengers: Optional[int] = Field(None, ge=0)

    def provided_values(self) -> Dict[str, Any]:
        """Column values for the fields present in the request body."""
        values = {}
        for name, value in self.model_dump(exclude_unset=True).items():
            if value is None and name == "status":
                continue
            if isinstance(value, Enum):
                value = value.value
            values[name] = value
        return values


# Snapshot sent by a force resync
RESYNC_FIELDS = [
    "status",
    "hotel_name",
    "room_number",
    "activity_date",
    "time_slot",
    "guest_count",
    "special_requests",
    "admin_notes",
]


class PickupTimeUpdate(BaseModel):
    pickup_time: Optional[str] = None
    send_email: bool = False

    @property
    def is_valid_time(self) -> bool:
        return bool(self.pickup_time and re.fullmatch(r"\d{2}:\d{2}", self.pickup_time))


class TestWebhookRequest(BaseModel):
    website_id: Optional[str] = None
    booking_id: Optional[str] = None
    fields: Optional[List[str]] = None

    @field_validator("fields")
    @classmethod
    def staff_fields_only(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        unknown = [name for name in v if name not in BookingStaffUpdate.model_fields]
        if unknown:
            raise ValueError(f"unknown booking fields: {', '.join(unknown)}")
        return v


# ==================
# Responses
# ==================

class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    website_id: str
    source_booking_id: str
    booking_ref: str
    package_name: Optional[str] = None
    package_price: Optional[Decimal] = None
    activity_date: Optional[date] = None
    time_slot: Optional[str] = None
    guest_count: Optional[int] = None
    adult_count: Optional[int] = None
    child_count: Optional[int] = None
    total_amount: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    currency: Optional[str] = None
    status: str
    customer_name: Optional[str] = None
    customer_email: str
    customer_phone: Optional[str] = None
    customer_country_code: Optional[str] = None
    special_requests: Optional[str] = None
    transport_type: Optional[str] = None
    hotel_name: Optional[str] = None
    room_number: Optional[str] = None
    non_players: Optional[int] = None
    private_passengers: Optional[int] = None
    transport_cost: Optional[Decimal] = None
    addons: List[Dict[str, Any]] = Field(default_factory=list)
    stripe_payment_intent_id: Optional[str] = None
    admin_notes: Optional[str] = None
    pickup_time: Optional[str] = None
    source_created_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("addons", mode="before")
    @classmethod
    def none_addons(cls, v):
        return v or []
