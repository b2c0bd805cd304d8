# Models package
from .website import Website
from .booking import Booking, BookingStatus, TransportType
from .sync_log import SyncLog, SyncDirection, SyncStatus

__all__ = [
    "Website",
    "Booking", "BookingStatus", "TransportType",
    "SyncLog", "SyncDirection", "SyncStatus",
]
