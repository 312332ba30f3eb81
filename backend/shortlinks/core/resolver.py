"""
Short-code resolution and click recording.

RedirectResolver turns a resolution request into a destination URL plus
the updated click count. Only failures that prevent finding the
destination are raised; geolocation, user-agent classification and the
click-event append are enrichment and degrade to sentinel values and a
log line.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..config import Settings
from ..services.click_recorder import ClickEvent, ClickRecorder
from ..services.link_store import LinkStore
from ..utils.geo import GeoLocator, Location, UNKNOWN_LOCATION
from ..utils.validators import normalize_domain
from .errors import ClickRecordError, InvalidRequest, NotFound
from .user_agent import classify_user_agent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    destination_url: str
    click_count: int


class RedirectResolver:
    """
    Resolve short codes for public redirection.

    The resolver keeps no link state between calls: every resolve() re-reads
    the link and delegates the counter update to the store's atomic
    increment.
    """

    def __init__(self, link_store: LinkStore, click_recorder: ClickRecorder,
                 geo_locator: GeoLocator, config: Settings):
        self.link_store = link_store
        self.click_recorder = click_recorder
        self.geo_locator = geo_locator
        self.config = config

    def resolve(self, short_code: Optional[str], domain: Optional[str] = None,
                user_agent: Optional[str] = None,
                client_ip: Optional[str] = None) -> Resolution:
        """
        Resolve a short code and record the visit.

        Args:
            short_code: Code from the short URL
            domain: Hostname the code was requested under, if known
            user_agent: Raw User-Agent of the visitor
            client_ip: Visitor IP address

        Returns:
            Resolution with the destination URL and the new click count

        Raises:
            InvalidRequest: empty code, or a domain-less code that is
                active under several domains
            NotFound: no active link matches
            StoreUnavailable: the link store could not be read or updated
        """
        code = (short_code or "").strip()
        if not code:
            raise InvalidRequest("Short code is required")

        domain = normalize_domain(domain)
        logger.debug(f"Redirect request: short_code={code}, domain={domain}")

        try:
            link = self.link_store.find_active_by_code(code, domain)
        except NotFound:
            logger.info(f"Link not found: {code} (domain={domain})")
            raise

        link_id = link.id
        destination_url = link.original_url

        ua = (user_agent or "")[:self.config.USER_AGENT_MAX_LENGTH]
        device = classify_user_agent(ua)
        location = self._locate(client_ip)

        new_count = self.link_store.increment_click_count(link_id)

        event = ClickEvent(
            link_id=link_id,
            clicked_at=datetime.now(timezone.utc),
            ip_address=client_ip or "unknown",
            user_agent=ua,
            device_type=device.device_type,
            browser=device.browser,
            os=device.os,
            country=location.country,
            region=location.region,
            city=location.city,
        )
        try:
            self.click_recorder.record(event)
        except ClickRecordError as e:
            logger.error(
                f"Click counted but event not recorded for link {link_id} "
                f"(clicks_count={new_count}): {e}"
            )

        logger.info(
            f"Redirect success: {code} -> {destination_url} "
            f"({device.device_type}, {device.browser}, {location.country})"
        )

        return Resolution(destination_url=destination_url, click_count=new_count)

    def _locate(self, client_ip: Optional[str]) -> Location:
        try:
            return self.geo_locator.locate(client_ip)
        except Exception as e:
            logger.warning(f"Geolocation failed for {client_ip}: {e}", exc_info=True)
            return UNKNOWN_LOCATION
