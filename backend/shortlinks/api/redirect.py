from functools import lru_cache

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from ..config import Settings, get_settings, settings
from ..core.errors import ErrorCategory, ResolutionError
from ..core.resolver import RedirectResolver
from ..database import get_db
from ..schemas.redirect import ResolveFailure, ResolveRequest, ResolveSuccess
from ..services.click_recorder import SqlAlchemyClickRecorder
from ..services.link_store import SqlAlchemyLinkStore
from ..utils.geo import GeoLocator
from ..utils.validators import get_client_ip

router = APIRouter()

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}

ERROR_PAGES = {
    ErrorCategory.INVALID_REQUEST: ("Invalid link", "The requested short link is malformed."),
    ErrorCategory.NOT_FOUND: ("Link not found", "The requested short link does not exist or is not active."),
    ErrorCategory.STORE_UNAVAILABLE: ("Temporarily unavailable", "Please try again in a moment."),
}


@lru_cache()
def get_geo_locator() -> GeoLocator:
    """Process-wide locator so the lookup cache is shared between requests"""
    return GeoLocator.from_settings(settings)


def close_geo_locator() -> None:
    """Close the shared locator, if one was built, and forget it"""
    if get_geo_locator.cache_info().currsize:
        get_geo_locator().close()
        get_geo_locator.cache_clear()


def get_resolver(
    db: Session = Depends(get_db),
    geo_locator: GeoLocator = Depends(get_geo_locator),
    config: Settings = Depends(get_settings)
) -> RedirectResolver:
    return RedirectResolver(
        link_store=SqlAlchemyLinkStore(db),
        click_recorder=SqlAlchemyClickRecorder(db),
        geo_locator=geo_locator,
        config=config
    )


def get_error_page(category: ErrorCategory, contact_link: str) -> str:
    title, message = ERROR_PAGES[category]
    return f"""
    <!DOCTYPE html>
    <html><head><meta charset="UTF-8"><title>{title}</title></head>
    <body style="font-family: Arial; text-align: center; padding: 50px;">
        <h1>{category.http_status} - {title}</h1>
        <p>{message}</p>
        <a href="/">Create your own short link</a> | <a href="{contact_link}">Contact us</a>
    </body></html>
    """


# Endpoints are sync so the blocking store and geolocation calls run in
# the threadpool instead of on the event loop.
@router.post("/api/redirect")
def resolve_short_link(
    request: Request,
    body: ResolveRequest,
    resolver: RedirectResolver = Depends(get_resolver)
):
    """
    Resolve a short code to its destination and record the click.

    userAgent and clientIP fall back to the request's own headers.
    """
    user_agent = body.user_agent or request.headers.get("user-agent", "")
    client_ip = body.client_ip or get_client_ip(request)

    try:
        resolution = resolver.resolve(body.short_code, body.domain, user_agent, client_ip)
    except ResolutionError as e:
        failure = ResolveFailure(error=e.message, category=e.category.value)
        return JSONResponse(content=failure.model_dump(), status_code=e.http_status)

    success = ResolveSuccess(
        destination_url=resolution.destination_url,
        click_count=resolution.click_count
    )
    return JSONResponse(content=success.model_dump(by_alias=True), headers=NO_CACHE_HEADERS)


def redirect_to_url(
    short_code: str,
    request: Request,
    resolver: RedirectResolver = Depends(get_resolver),
    config: Settings = Depends(get_settings)
):
    """
    Redirect to the original URL from short code.

    The code is looked up under the domain the request was sent to.
    """
    try:
        resolution = resolver.resolve(
            short_code,
            domain=request.headers.get("host"),
            user_agent=request.headers.get("user-agent", ""),
            client_ip=get_client_ip(request)
        )
    except ResolutionError as e:
        return HTMLResponse(
            content=get_error_page(e.category, config.CONTACT_LINK),
            status_code=e.http_status,
            headers=NO_CACHE_HEADERS
        )

    # 302 so every visit comes back through here and is counted
    return RedirectResponse(url=resolution.destination_url, status_code=302, headers=NO_CACHE_HEADERS)
