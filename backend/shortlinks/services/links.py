import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import Settings, settings
from ..core.errors import (
    CodeUnavailable, InvalidLinkData, InvalidStatusTransition, LinkNotFound,
    PlanRestriction
)
from ..core.shortener import generate_short_code, validate_custom_code, is_code_available
from ..models import Link, LinkStatus, PlanType
from ..utils.validators import is_valid_url, normalize_domain

logger = logging.getLogger(__name__)

# Allowed status changes; EXPIRED -> ACTIVE is the admin override
STATUS_TRANSITIONS = {
    LinkStatus.PENDING_PAYMENT: {LinkStatus.ACTIVE, LinkStatus.EXPIRED},
    LinkStatus.ACTIVE: {LinkStatus.EXPIRED},
    LinkStatus.EXPIRED: {LinkStatus.ACTIVE},
}


def build_short_url(link: Link) -> str:
    return f"https://{link.domain}/{link.short_code}"


def get_link(db: Session, link_id: int) -> Link:
    link = db.get(Link, link_id)
    if link is None:
        raise LinkNotFound(f"Link {link_id} not found")
    return link


def create_link(
    db: Session,
    url: str,
    custom_code: Optional[str] = None,
    domain: Optional[str] = None,
    plan: PlanType = PlanType.BASIC,
    owner_id: Optional[str] = None,
    config: Settings = settings,
) -> Link:
    """
    Create a link awaiting payment.

    Raises:
        InvalidLinkData: bad URL or custom code
        CodeUnavailable: the custom code is taken under the domain
    """
    is_valid, error_msg = is_valid_url(url)
    if not is_valid:
        raise InvalidLinkData(error_msg)

    domain = normalize_domain(domain) or config.DEFAULT_DOMAIN

    if custom_code:
        is_valid_code, error_msg = validate_custom_code(custom_code)
        if not is_valid_code:
            raise InvalidLinkData(error_msg)

        if not is_code_available(custom_code, domain, db):
            raise CodeUnavailable(f"Code '{custom_code}' is already taken on {domain}")

        short_code = custom_code
    else:
        try:
            short_code = generate_short_code(db, domain, length=config.SHORT_CODE_LENGTH)
        except ValueError as e:
            raise CodeUnavailable(str(e)) from e

    link = Link(
        short_code=short_code,
        domain=domain,
        original_url=url,
        plan_type=plan,
        status=LinkStatus.PENDING_PAYMENT,
        clicks_count=0,
        owner_id=owner_id,
    )
    db.add(link)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race for the same code
        db.rollback()
        raise CodeUnavailable(f"Code '{short_code}' is already taken on {domain}") from e
    db.refresh(link)

    logger.info(f"Link created: {domain}/{short_code} ({plan.value}, pending payment)")
    return link


def set_status(db: Session, link_id: int, status: LinkStatus) -> Link:
    """
    Move a link to a new lifecycle status.

    Raises:
        LinkNotFound: no such link
        InvalidStatusTransition: the move is not allowed
    """
    link = get_link(db, link_id)

    if status == link.status:
        return link

    if status not in STATUS_TRANSITIONS[link.status]:
        raise InvalidStatusTransition(
            f"Cannot change link status from {link.status.value} to {status.value}"
        )

    previous = link.status
    link.status = status
    link.updated_at = func.now()
    db.commit()
    db.refresh(link)

    logger.info(f"Link {link.id} status: {previous.value} -> {status.value}")
    return link


def activate_link(db: Session, link_id: int) -> Link:
    return set_status(db, link_id, LinkStatus.ACTIVE)


def expire_link(db: Session, link_id: int) -> Link:
    return set_status(db, link_id, LinkStatus.EXPIRED)


def update_destination(db: Session, link_id: int, url: str) -> Link:
    """
    Change where a pro link points; code and status are kept.

    Raises:
        LinkNotFound: no such link
        PlanRestriction: the link is on the basic plan
        InvalidLinkData: bad URL
    """
    link = get_link(db, link_id)

    if link.plan_type != PlanType.PRO:
        raise PlanRestriction("Editing the destination requires the pro plan")

    is_valid, error_msg = is_valid_url(url)
    if not is_valid:
        raise InvalidLinkData(error_msg)

    link.original_url = url
    link.updated_at = func.now()
    db.commit()
    db.refresh(link)

    logger.info(f"Link {link.id} destination updated")
    return link


def delete_link(db: Session, link_id: int) -> None:
    link = get_link(db, link_id)
    db.delete(link)
    db.commit()
    logger.info(f"Link {link_id} deleted")
