from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from datetime import datetime
import logging

from ..database import get_db
from ..exceptions import ConflictError, NotFoundError, PayloadValidationError
from ..models.website import Website
from ..schemas.common import ok
from ..schemas.website import WebsiteCreate, WebsiteUpdate, WebsiteResponse, WebsiteCredentials
from ..services import credentials
from ..utils.dependencies import StaffIdentity, get_current_staff, require_admin
from ..utils.signature import api_key_prefix, generate_api_key, generate_webhook_secret

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/websites", tags=["Websites"])

NULLABLE_FIELDS = ("webhook_url", "logo_url")


def _serialize(website: Website, staff: StaffIdentity) -> dict:
    schema = WebsiteCredentials if staff.is_admin else WebsiteResponse
    return schema.model_validate(website).model_dump(mode="json")


def _get_website(db: Session, website_id: str) -> Website:
    website = db.query(Website).filter(Website.id == website_id).first()
    if not website:
        raise NotFoundError("Website not found")
    return website


@router.get("")
def list_websites(
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff)
):
    websites = db.query(Website).order_by(Website.name).all()
    return ok([_serialize(w, staff) for w in websites])


@router.post("")
def create_website(
    body: WebsiteCreate,
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(require_admin)
):
    """Register a source website and issue its API key and webhook secret."""
    if db.query(Website).filter(Website.id == body.id).first():
        raise ConflictError("Website with this ID already exists", code="DUPLICATE")

    website = Website(
        id=body.id,
        name=body.name,
        domain=body.domain,
        api_key=generate_api_key(api_key_prefix(body.id)),
        webhook_url=body.webhook_url,
        webhook_secret=generate_webhook_secret(),
        logo_url=body.logo_url,
        is_active=True,
    )
    db.add(website)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Website with this ID already exists", code="DUPLICATE")
    db.refresh(website)

    logger.info(f"Website {website.id} registered by {staff.email}")
    return JSONResponse(
        status_code=201,
        content=ok(_serialize(website, staff), "Website registered successfully")
    )


@router.get("/{website_id}")
def get_website(
    website_id: str,
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff)
):
    return ok(_serialize(_get_website(db, website_id), staff))


@router.put("/{website_id}")
def update_website(
    website_id: str,
    body: WebsiteUpdate,
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(require_admin)
):
    website = _get_website(db, website_id)

    updates = {
        field: value
        for field, value in body.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_FIELDS
    }
    if not updates:
        raise PayloadValidationError("No valid fields to update")

    for field, value in updates.items():
        setattr(website, field, value)
    website.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(website)

    logger.info(f"Website {website.id} updated by {staff.email}: {', '.join(updates)}")
    return ok(_serialize(website, staff), "Website updated successfully")


@router.post("/{website_id}/regenerate-key")
def regenerate_key(
    website_id: str,
    db: Session = Depends(get_db),
    staff: StaffIdentity = Depends(require_admin)
):
    """Rotate the website's API key; the previous key stops working immediately."""
    website = credentials.rotate(db, website_id)
    return ok({"api_key": website.api_key}, "API key regenerated successfully")
