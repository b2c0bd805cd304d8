"""
API key resolution and rotation for source websites.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..exceptions import AuthError, NotFoundError
from ..models.website import Website
from ..utils.signature import api_key_prefix, generate_api_key

logger = logging.getLogger(__name__)


def resolve(db: Session, api_key: Optional[str]) -> Website:
    """
    Return the active website owning exactly `api_key`.

    Raises AuthError(MISSING_KEY) for an absent/empty key and
    AuthError(INVALID_OR_INACTIVE) when no active website matches.
    """
    if not api_key:
        raise AuthError(AuthError.MISSING_KEY)

    website = db.query(Website).filter(
        Website.api_key == api_key,
        Website.is_active == True  # noqa: E712
    ).first()

    if not website:
        raise AuthError(AuthError.INVALID_OR_INACTIVE)

    return website


def rotate(db: Session, website_id: str) -> Website:
    """Replace the website's API key. The old key stops working on commit."""
    website = db.query(Website).filter(Website.id == website_id).first()
    if not website:
        raise NotFoundError("Website not found")

    website.api_key = generate_api_key(api_key_prefix(website.id))
    website.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(website)

    logger.info(f"API key regenerated for website {website.id}")
    return website
