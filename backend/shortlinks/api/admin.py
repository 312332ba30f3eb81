import secrets

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..core.errors import LinkError
from ..database import get_db
from ..schemas.analytics import LinkAnalytics
from ..schemas.link import LinkResponse, LinkUpdate
from ..services import links as link_service
from ..services.analytics import PERIODS, get_link_analytics
from .links import to_link_response

admin_key_header = APIKeyHeader(name="X-Admin-Key", auto_error=False)


def require_admin(
    api_key: str = Depends(admin_key_header),
    config: Settings = Depends(get_settings)
) -> None:
    """
    Guard for admin endpoints.

    Operators and the payment subsystem authenticate with the shared
    ADMIN_API_KEY; while it is unset the admin API is switched off.
    """
    if not config.ADMIN_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API is disabled"
        )

    if not api_key or not secrets.compare_digest(api_key, config.ADMIN_API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin key"
        )


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _link_error(e: LinkError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/links/{link_id}", response_model=LinkResponse)
def get_link_by_id(link_id: int, db: Session = Depends(get_db)):
    try:
        return to_link_response(link_service.get_link(db, link_id))
    except LinkError as e:
        raise _link_error(e)


@router.get("/links/{link_id}/analytics", response_model=LinkAnalytics)
def get_analytics(
    link_id: int,
    period: str = Query("7d", pattern="^(" + "|".join(PERIODS) + ")$"),
    db: Session = Depends(get_db)
):
    """Click analytics for a link over 24h, 7d, 30d or 90d"""
    try:
        link_service.get_link(db, link_id)
    except LinkError as e:
        raise _link_error(e)

    return get_link_analytics(db, link_id, period)


@router.post("/links/{link_id}/activate", response_model=LinkResponse)
def activate(link_id: int, db: Session = Depends(get_db)):
    """Mark a link paid, or re-enable an expired one"""
    try:
        return to_link_response(link_service.activate_link(db, link_id))
    except LinkError as e:
        raise _link_error(e)


@router.post("/links/{link_id}/expire", response_model=LinkResponse)
def expire(link_id: int, db: Session = Depends(get_db)):
    try:
        return to_link_response(link_service.expire_link(db, link_id))
    except LinkError as e:
        raise _link_error(e)


@router.patch("/links/{link_id}", response_model=LinkResponse)
def update_link(link_id: int, link_data: LinkUpdate, db: Session = Depends(get_db)):
    """Change the destination of a pro link"""
    try:
        return to_link_response(link_service.update_destination(db, link_id, link_data.original_url))
    except LinkError as e:
        raise _link_error(e)


@router.delete("/links/{link_id}", status_code=204)
def delete(link_id: int, db: Session = Depends(get_db)):
    try:
        link_service.delete_link(db, link_id)
    except LinkError as e:
        raise _link_error(e)
