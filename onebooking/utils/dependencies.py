"""
Request dependencies: settings, staff identity, outbound senders.

Staff sessions are issued by the dashboard's auth provider; this service only
verifies the bearer token and reads the e-mail and role from it.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from ..config import Settings
from ..database import get_db
from ..exceptions import AuthError, ForbiddenError
from .logging_config import actor_var
from .security import STAFF_ROLES, verify_access_token


@dataclass
class StaffIdentity:
    email: str
    role: str = "staff"

    @property
    def is_admin(self) -> bool:
        return self.role in ("superadmin", "admin")

    @property
    def is_superadmin(self) -> bool:
        return self.role == "superadmin"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_staff(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_app_settings)
) -> StaffIdentity:
    """Resolve the staff member from `Authorization: Bearer <token>`."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AuthError(AuthError.MISSING_KEY, "Unauthorized")

    token = authorization.split(" ", 1)[1].strip()
    payload = verify_access_token(token, settings)
    if not payload or not payload.get("sub"):
        raise AuthError(AuthError.INVALID_OR_INACTIVE, "Unauthorized")

    role = payload.get("role", "staff")
    if role not in STAFF_ROLES:
        raise ForbiddenError()

    actor_var.set(payload["sub"])
    return StaffIdentity(email=payload["sub"], role=role)


def require_admin(staff: StaffIdentity = Depends(get_current_staff)) -> StaffIdentity:
    if not staff.is_admin:
        raise ForbiddenError()
    return staff


def require_superadmin(staff: StaffIdentity = Depends(get_current_staff)) -> StaffIdentity:
    if not staff.is_superadmin:
        raise ForbiddenError("Forbidden - Superadmin only")
    return staff


def get_webhook_sender(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings)
):
    from ..services.webhook_sender import WebhookSender

    return WebhookSender(db, settings, transport=getattr(request.app.state, "http_transport", None))


def get_email_service(
    request: Request,
    settings: Settings = Depends(get_app_settings)
):
    from ..services.email_service import EmailService

    return EmailService(settings, transport=getattr(request.app.state, "http_transport", None))
