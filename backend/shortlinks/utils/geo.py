import ipaddress
import json
import logging
import time
from functools import lru_cache
from typing import NamedTuple, Optional, Union

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

# Upper bound on a geolocation response body
MAX_RESPONSE_BYTES = 64 * 1024


class Location(NamedTuple):
    """Coarse location of a client"""
    country: str
    region: str
    city: str


LOCAL_LOCATION = Location(country="Local", region="Local", city="Local")
UNKNOWN_LOCATION = Location(country="Unknown", region="Unknown", city="Unknown")


class GeoLookupError(Exception):
    """Geolocation service failed or returned an unusable payload"""


def parse_ip(ip: Optional[str]) -> Optional[IPAddress]:
    """Parse an IPv4/IPv6 literal, returning None for anything else"""
    if not ip:
        return None
    try:
        return ipaddress.ip_address(ip.strip())
    except ValueError:
        return None


def is_local_address(addr: IPAddress) -> bool:
    """Loopback, private or link-local, including IPv4-mapped IPv6 forms"""
    mapped = getattr(addr, "ipv4_mapped", None)
    if mapped is not None:
        addr = mapped
    return addr.is_private or addr.is_loopback or addr.is_link_local


def is_private_ip(ip: str) -> bool:
    """Check if IP address is private/local"""
    if ip.strip().lower() == "localhost":
        return True
    addr = parse_ip(ip)
    return addr is not None and is_local_address(addr)


def is_unknown_ip(ip: Optional[str]) -> bool:
    return not ip or ip.strip().lower() == "unknown"


class GeoLocator:
    """
    Maps client IPs to a Location through an ip-api.com compatible service.

    locate() never raises: private addresses short-circuit to
    LOCAL_LOCATION, anything that is not an IP literal and every lookup
    failure degrade to UNKNOWN_LOCATION. Only the canonical form of a
    parsed address reaches the service URL and the cache. Successful
    lookups are kept in a per-instance LRU cache; failures are not cached
    so a transient outage does not pin an IP to "Unknown".

    `timeout` bounds the whole lookup: it is the per-phase httpx timeout
    and also a deadline checked while the body is read.
    """

    def __init__(self, api_url: str = "http://ip-api.com/json/{ip}",
                 timeout: float = 2.0, cache_size: int = 10000,
                 client: Optional[httpx.Client] = None):
        self.api_url = api_url
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout))
        self._lookup_cached = lru_cache(maxsize=cache_size)(self._fetch)

    @classmethod
    def from_settings(cls, config: Settings) -> "GeoLocator":
        return cls(
            api_url=config.GEO_API_URL,
            timeout=config.GEO_TIMEOUT_SECONDS,
            cache_size=config.GEO_CACHE_SIZE,
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    def _read_body(self, response: httpx.Response, deadline: float) -> bytes:
        body = b""
        for chunk in response.iter_bytes():
            body += chunk
            if time.monotonic() > deadline:
                raise GeoLookupError(f"Lookup exceeded {self.timeout}s")
            if len(body) > MAX_RESPONSE_BYTES:
                raise GeoLookupError("Response body too large")
        return body

    def _fetch(self, ip: str) -> Location:
        """
        Query the geolocation service for a canonical IP string.

        Raises:
            GeoLookupError: on timeout, transport error, non-2xx status or
                a payload without status == "success"
        """
        deadline = time.monotonic() + self.timeout
        try:
            with self._client.stream(
                "GET",
                self.api_url.format(ip=ip),
                params={"fields": "status,country,regionName,city"},
                timeout=httpx.Timeout(self.timeout),
            ) as response:
                response.raise_for_status()
                body = self._read_body(response, deadline)
            data = json.loads(body)
        except (httpx.HTTPError, ValueError) as e:
            raise GeoLookupError(f"{type(e).__name__}: {e}") from e

        if not isinstance(data, dict) or data.get("status") != "success":
            raise GeoLookupError(f"Unexpected payload: {data!r}")

        return Location(
            country=data.get("country") or "Unknown",
            region=data.get("regionName") or "Unknown",
            city=data.get("city") or "Unknown",
        )

    def locate(self, ip: Optional[str]) -> Location:
        """Get location for IP address; best effort"""
        if is_unknown_ip(ip):
            return UNKNOWN_LOCATION

        if ip.strip().lower() == "localhost":
            return LOCAL_LOCATION

        addr = parse_ip(ip)
        if addr is None:
            logger.warning(f"Not an IP address, skipping geolocation: {ip[:64]!r}")
            return UNKNOWN_LOCATION

        if is_local_address(addr):
            return LOCAL_LOCATION

        try:
            return self._lookup_cached(str(addr))
        except GeoLookupError as e:
            logger.warning(f"Geolocation lookup failed for {addr}: {e}")
            return UNKNOWN_LOCATION

    def close(self) -> None:
        self._client.close()
