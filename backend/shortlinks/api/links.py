from fastapi import APIRouter, HTTPException, Depends, Request
from sqlalchemy.orm import Session
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import Settings, get_settings, settings
from ..core.errors import LinkError
from ..database import get_db
from ..schemas.link import LinkCreate, LinkResponse
from ..services.links import build_short_url, create_link

router = APIRouter()
limiter = Limiter(key_func=get_remote_address)


def to_link_response(link) -> LinkResponse:
    return LinkResponse(
        id=link.id,
        short_code=link.short_code,
        domain=link.domain,
        original_url=link.original_url,
        short_url=build_short_url(link),
        plan_type=link.plan_type,
        status=link.status,
        clicks_count=link.clicks_count,
        created_at=link.created_at
    )


@router.post("/links", response_model=LinkResponse, status_code=201)
@limiter.limit(f"{settings.RATE_LIMIT_PER_HOUR}/hour")
def create_short_link(
    request: Request,
    link_data: LinkCreate,
    db: Session = Depends(get_db),
    config: Settings = Depends(get_settings)
):
    """
    Submit a URL for shortening.

    The link is created awaiting payment and does not resolve until it is
    activated. Rate limited to prevent spam.
    """
    try:
        link = create_link(
            db,
            link_data.url,
            custom_code=link_data.custom_code,
            domain=link_data.domain,
            plan=link_data.plan,
            config=config
        )
    except LinkError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return to_link_response(link)
