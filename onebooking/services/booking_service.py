"""
Staff-side booking operations: listing, edits and pickup time.

Staff edits go through BookingStaffUpdate, so a dashboard request can only
touch the fields that model declares. Only values that actually differ from
the stored row count as changes; the caller uses that list to decide whether
the source website needs a webhook.
"""

import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ..exceptions import NotFoundError
from ..models.booking import Booking
from ..schemas.booking import BookingStaffUpdate
from ..schemas.pagination import paginate_query

logger = logging.getLogger(__name__)


def get_booking(db: Session, booking_id: str) -> Booking:
    booking = db.query(Booking).options(joinedload(Booking.website)).filter(
        Booking.id == booking_id
    ).first()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def list_bookings(
    db: Session,
    website_id: Optional[str] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    page: int = 1,
    per_page: int = 20
) -> Tuple[List[Booking], int]:
    """Filtered bookings, newest first."""
    query = db.query(Booking)

    if website_id:
        query = query.filter(Booking.website_id == website_id)
    if status:
        query = query.filter(Booking.status == status)
    if date_from:
        query = query.filter(Booking.activity_date >= date_from)
    if date_to:
        query = query.filter(Booking.activity_date <= date_to)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Booking.booking_ref.ilike(pattern),
            Booking.customer_name.ilike(pattern),
            Booking.customer_email.ilike(pattern),
        ))

    query = query.order_by(Booking.created_at.desc(), Booking.id)
    return paginate_query(query, page, per_page)


def apply_staff_update(db: Session, booking: Booking, update: BookingStaffUpdate) -> List[str]:
    """
    Write the provided fields that differ from the stored values.

    Returns the names of the changed fields (empty when nothing changed, in
    which case nothing is written).
    """
    changed = []
    for field, value in update.provided_values().items():
        if getattr(booking, field) != value:
            setattr(booking, field, value)
            changed.append(field)

    if not changed:
        return changed

    booking.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking.id} edited: {', '.join(changed)}")
    return changed


def set_pickup_time(db: Session, booking: Booking, pickup_time: str) -> Booking:
    booking.pickup_time = pickup_time
    booking.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(booking)
    return booking
