"""
Sync Log Model

Append-only audit trail of every inbound and outbound sync attempt.
Outbound attempts are written as PENDING before the HTTP call and moved to
SUCCESS/FAILED afterwards, so in-flight deliveries are visible without a queue.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON, Index
from ..database import Base
import enum


class SyncDirection(str, enum.Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


class SyncStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


class SyncLog(Base):
    __tablename__ = "sync_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Weak references: audit rows outlive the records they describe
    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True)
    website_id = Column(String(100), ForeignKey("websites.id", ondelete="SET NULL"), nullable=True)

    direction = Column(String(10), nullable=False)
    event_type = Column(String(100), nullable=False)
    payload = Column(JSON, nullable=True)
    status = Column(String(10), nullable=False, default=SyncStatus.PENDING.value)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_sync_log_booking", "booking_id", "direction", "status", "created_at"),
        Index("ix_sync_log_website", "website_id", "created_at"),
    )

    def __repr__(self):
        return f"<SyncLog {self.direction} {self.event_type} status={self.status}>"
