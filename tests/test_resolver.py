"""Tests for short-code resolution and click recording."""

import logging
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from shortlinks.core.errors import (
    ClickRecordError, ErrorCategory, InvalidRequest, NotFound, StoreUnavailable
)
from shortlinks.core.resolver import RedirectResolver, Resolution
from shortlinks.models import Click, Link, LinkStatus
from shortlinks.utils.geo import GeoLocator, Location

CHROME_ANDROID_UA = "Mozilla/5.0 ... Chrome/100 ... Android"


class FailingClickRecorder:
    def __init__(self):
        self.attempts = 0

    def record(self, event):
        self.attempts += 1
        raise ClickRecordError("disk full")


class ExplodingGeoLocator:
    def locate(self, ip):
        raise RuntimeError("geo backend crashed")


class BrokenLinkStore:
    def find_active_by_code(self, code, domain=None):
        raise StoreUnavailable()

    def increment_click_count(self, link_id):
        raise AssertionError("should not be reached")


def clicks_for(db, link_id):
    db.expire_all()
    return db.query(Click).filter(Click.link_id == link_id).all()


def test_end_to_end_example(db, make_link, make_resolver, geo_locator):
    link_id = make_link(short_code="abc123", domain="example.com",
                        original_url="https://dest.example/page", clicks_count=5)

    result = make_resolver(db, geo_locator).resolve(
        "abc123", "example.com", CHROME_ANDROID_UA, "8.8.8.8"
    )

    assert result == Resolution(destination_url="https://dest.example/page", click_count=6)

    clicks = clicks_for(db, link_id)
    assert len(clicks) == 1
    click = clicks[0]
    assert (click.device_type, click.browser, click.os) == ("mobile", "Chrome", "Android")
    assert (click.country, click.region, click.city) == ("United States", "California", "Mountain View")
    assert click.ip_address == "8.8.8.8"
    assert click.user_agent == CHROME_ANDROID_UA
    assert geo_locator.calls == ["8.8.8.8"]


@pytest.mark.parametrize("code", ["", "   ", None])
def test_missing_short_code_is_invalid(db, make_resolver, geo_locator, code):
    with pytest.raises(InvalidRequest) as exc_info:
        make_resolver(db, geo_locator).resolve(code)

    assert exc_info.value.category is ErrorCategory.INVALID_REQUEST
    assert exc_info.value.http_status == 400


@pytest.mark.parametrize("status", [LinkStatus.PENDING_PAYMENT, LinkStatus.EXPIRED])
def test_inactive_link_looks_missing(db, make_link, make_resolver, geo_locator, status):
    link_id = make_link(short_code="abc123", status=status, clicks_count=3)
    resolver = make_resolver(db, geo_locator)

    with pytest.raises(NotFound) as inactive:
        resolver.resolve("abc123", "example.com")
    with pytest.raises(NotFound) as missing:
        resolver.resolve("nope99", "example.com")

    assert inactive.value.message == missing.value.message
    assert db.get(Link, link_id).clicks_count == 3
    assert clicks_for(db, link_id) == []
    assert geo_locator.calls == []


def test_domain_is_normalized(db, make_link, make_resolver, geo_locator):
    make_link(short_code="abc123", domain="example.com")

    result = make_resolver(db, geo_locator).resolve("abc123", "Example.COM:8443")

    assert result.click_count == 1


def test_ambiguous_code_without_domain(db, make_link, make_resolver, geo_locator):
    make_link(short_code="promo", domain="example.com")
    make_link(short_code="promo", domain="brand.example")

    with pytest.raises(InvalidRequest):
        make_resolver(db, geo_locator).resolve("promo")


def test_returns_current_destination(db, make_link, make_resolver, geo_locator):
    link_id = make_link(short_code="abc123")
    resolver = make_resolver(db, geo_locator)
    resolver.resolve("abc123", "example.com")

    link = db.get(Link, link_id)
    link.original_url = "https://dest.example/new"
    db.commit()

    assert resolver.resolve("abc123", "example.com").destination_url == "https://dest.example/new"


def test_geolocation_timeout_still_redirects(db, make_link, make_resolver):
    def timeout_handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    locator = GeoLocator(client=httpx.Client(transport=httpx.MockTransport(timeout_handler)))
    link_id = make_link(short_code="abc123")

    result = make_resolver(db, locator).resolve("abc123", "example.com", "", "8.8.8.8")

    assert result.click_count == 1
    click = clicks_for(db, link_id)[0]
    assert (click.country, click.region, click.city) == ("Unknown", "Unknown", "Unknown")


def test_crashing_geolocator_still_redirects(db, make_link, make_resolver):
    link_id = make_link(short_code="abc123")

    result = make_resolver(db, ExplodingGeoLocator()).resolve("abc123", "example.com", None, "8.8.8.8")

    assert result.click_count == 1
    assert clicks_for(db, link_id)[0].country == "Unknown"


def test_loopback_ip_records_local_without_lookup(db, make_link, make_resolver):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"status": "success", "country": "Nowhere"})

    locator = GeoLocator(client=httpx.Client(transport=httpx.MockTransport(handler)))
    link_id = make_link(short_code="abc123")

    make_resolver(db, locator).resolve("abc123", "example.com", "", "127.0.0.1")

    assert calls == []
    click = clicks_for(db, link_id)[0]
    assert (click.country, click.region, click.city) == ("Local", "Local", "Local")


def test_missing_ua_and_ip_use_sentinels(db, make_link, make_resolver, geo_locator):
    geo_locator.location = Location("Unknown", "Unknown", "Unknown")
    link_id = make_link(short_code="abc123")

    make_resolver(db, geo_locator).resolve("abc123", "example.com")

    click = clicks_for(db, link_id)[0]
    assert click.ip_address == "unknown"
    assert (click.device_type, click.browser, click.os) == ("desktop", "unknown", "unknown")


def test_user_agent_is_truncated(db, make_link, make_resolver, geo_locator, test_settings):
    link_id = make_link(short_code="abc123")
    long_ua = "Firefox " + "x" * 2000

    make_resolver(db, geo_locator).resolve("abc123", "example.com", long_ua, "8.8.8.8")

    click = clicks_for(db, link_id)[0]
    assert len(click.user_agent) == test_settings.USER_AGENT_MAX_LENGTH
    assert click.browser == "Firefox"


def test_click_record_failure_keeps_redirect(db, make_link, make_resolver, geo_locator, caplog):
    link_id = make_link(short_code="abc123", clicks_count=5)
    recorder = FailingClickRecorder()

    with caplog.at_level(logging.ERROR, logger="shortlinks.core.resolver"):
        result = make_resolver(db, geo_locator, click_recorder=recorder).resolve(
            "abc123", "example.com", CHROME_ANDROID_UA, "8.8.8.8"
        )

    assert result.click_count == 6
    assert recorder.attempts == 1
    assert db.get(Link, link_id).clicks_count == 6
    assert "event not recorded" in caplog.text


def test_store_unavailable_propagates(test_settings, geo_locator):
    resolver = RedirectResolver(BrokenLinkStore(), FailingClickRecorder(), geo_locator, test_settings)

    with pytest.raises(StoreUnavailable) as exc_info:
        resolver.resolve("abc123", "example.com")

    assert exc_info.value.http_status == 503


def test_concurrent_resolutions_count_every_click(session_factory, make_link, make_resolver, geo_locator):
    link_id = make_link(short_code="hot", clicks_count=100)
    n = 30

    def hit(_):
        session = session_factory()
        try:
            return make_resolver(session, geo_locator).resolve(
                "hot", "example.com", CHROME_ANDROID_UA, "8.8.8.8"
            ).click_count
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=8) as pool:
        counts = list(pool.map(hit, range(n)))

    assert sorted(counts) == list(range(101, 101 + n))

    session = session_factory()
    try:
        assert session.get(Link, link_id).clicks_count == 100 + n
        assert session.query(Click).filter(Click.link_id == link_id).count() == n
    finally:
        session.close()
