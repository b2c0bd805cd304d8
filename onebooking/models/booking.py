import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Date, Numeric, Text, ForeignKey, DateTime, Integer, JSON,
    Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from ..database import Base
import enum


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    NO_SHOW = "no_show"


class TransportType(str, enum.Enum):
    HOTEL_PICKUP = "hotel_pickup"
    SELF_ARRANGE = "self_arrange"
    PRIVATE = "private"
    NONE = "none"


class Booking(Base):
    """
    Canonical booking record.

    One row per (website_id, source_booking_id). Trip, financial and customer
    columns are written by inbound sync; admin_notes and pickup_time only by staff.
    """
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    website_id = Column(String(100), ForeignKey("websites.id", ondelete="CASCADE"), nullable=False)

    # Source identity
    source_booking_id = Column(String(255), nullable=False)
    booking_ref = Column(String(100), nullable=False, index=True)

    # Trip
    package_name = Column(String(255), nullable=True)
    package_price = Column(Numeric(12, 2), default=0)
    activity_date = Column(Date, nullable=True)
    time_slot = Column(String(50), nullable=True)
    guest_count = Column(Integer, default=0)
    adult_count = Column(Integer, nullable=True)
    child_count = Column(Integer, nullable=True)

    # Financials
    total_amount = Column(Numeric(12, 2), default=0)
    discount_amount = Column(Numeric(12, 2), default=0)
    currency = Column(String(10), default="THB")
    status = Column(String(30), default=BookingStatus.CONFIRMED.value, index=True)

    # Customer
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=True)
    customer_country_code = Column(String(10), nullable=True)
    special_requests = Column(Text, nullable=True)

    # Transport
    transport_type = Column(String(30), nullable=True)
    hotel_name = Column(String(255), nullable=True)
    room_number = Column(String(50), nullable=True)
    non_players = Column(Integer, default=0)
    private_passengers = Column(Integer, default=0)
    transport_cost = Column(Numeric(12, 2), default=0)

    addons = Column(JSON, default=list)
    stripe_payment_intent_id = Column(String(255), nullable=True)

    # Staff-only
    admin_notes = Column(Text, nullable=True)
    pickup_time = Column(String(5), nullable=True)

    # Timestamps: reported by the source / first synced locally / last modified
    source_created_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    website = relationship("Website", back_populates="bookings")

    __table_args__ = (
        UniqueConstraint("website_id", "source_booking_id", name="uq_booking_website_source"),
        Index("ix_booking_activity_date", "activity_date"),
        Index("ix_booking_created_at", "created_at"),
    )

    def __repr__(self):
        return f"<Booking {self.booking_ref} ({self.website_id}/{self.source_booking_id})>"
