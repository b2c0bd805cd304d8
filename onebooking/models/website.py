from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text
from sqlalchemy.orm import relationship
from ..database import Base


class Website(Base):
    """
    A source website that pushes bookings into the dashboard and optionally
    receives sync-back webhooks.
    """
    __tablename__ = "websites"

    # Stable slug, e.g. "hanuman-world"
    id = Column(String(100), primary_key=True)
    name = Column(String(200), nullable=False)
    domain = Column(String(255), nullable=False)

    # Inbound credential
    api_key = Column(String(255), nullable=False, unique=True, index=True)

    # Outbound sync-back
    webhook_url = Column(String(500), nullable=True)
    webhook_secret = Column(String(255), nullable=True)

    logo_url = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bookings = relationship("Booking", back_populates="website")

    def __repr__(self):
        return f"<Website {self.id} active={self.is_active}>"
