# Services package
from .booking_reconciler import BookingReconciler, ReconcileResult, validate_payload
from .webhook_sender import WebhookSender, DeliveryResult, DeliveryOutcome, SignatureScheme
from .email_service import EmailService, EmailResult, get_brand_config, get_from_address
from .line_notify import BookingNotification, send_booking_notification
from .background import spawn_detached
from . import credentials, sync_log_service, booking_service
