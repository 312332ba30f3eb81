"""
Pytest configuration and shared fixtures for short link tests.
"""

import os
import tempfile
from pathlib import Path
from typing import Generator, List, Optional

# Point the application's default engine at a throwaway database before
# any shortlinks module is imported.
_DEFAULT_DB_DIR = tempfile.mkdtemp(prefix="shortlinks-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{Path(_DEFAULT_DB_DIR) / 'default.db'}")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from shortlinks.config import Settings
from shortlinks.core.resolver import RedirectResolver
from shortlinks.database import Base, build_engine, get_db
from shortlinks.models import Link, LinkStatus, PlanType
from shortlinks.services.click_recorder import SqlAlchemyClickRecorder
from shortlinks.services.link_store import SqlAlchemyLinkStore
from shortlinks.utils.geo import Location


class FakeGeoLocator:
    """GeoLocator stand-in that records the IPs it was asked about"""

    def __init__(self, location: Optional[Location] = None):
        self.location = location or Location(country="United States", region="California", city="Mountain View")
        self.calls: List[Optional[str]] = []

    def locate(self, ip):
        self.calls.append(ip)
        return self.location


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        DEFAULT_DOMAIN="example.com",
        USER_AGENT_MAX_LENGTH=500,
        RATE_LIMIT_PER_HOUR=10,
        ADMIN_API_KEY="test-admin-key",
    )


@pytest.fixture
def engine(tmp_path: Path):
    """Engine bound to a fresh SQLite file with all tables created."""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_link(session_factory):
    """Factory inserting a link directly, bypassing payment."""

    def _make_link(short_code: str = "abc123", domain: str = "example.com",
                   original_url: str = "https://dest.example/page",
                   status: LinkStatus = LinkStatus.ACTIVE,
                   plan_type: PlanType = PlanType.BASIC,
                   clicks_count: int = 0) -> int:
        session = session_factory()
        try:
            link = Link(
                short_code=short_code,
                domain=domain,
                original_url=original_url,
                status=status,
                plan_type=plan_type,
                clicks_count=clicks_count,
            )
            session.add(link)
            session.commit()
            return link.id
        finally:
            session.close()

    return _make_link


@pytest.fixture
def geo_locator() -> FakeGeoLocator:
    return FakeGeoLocator()


@pytest.fixture
def make_resolver(test_settings):
    """Build a resolver over a session with the real SQL store and recorder."""

    def _make_resolver(session: Session, geo_locator, click_recorder=None) -> RedirectResolver:
        return RedirectResolver(
            link_store=SqlAlchemyLinkStore(session),
            click_recorder=click_recorder or SqlAlchemyClickRecorder(session),
            geo_locator=geo_locator,
            config=test_settings,
        )

    return _make_resolver


@pytest.fixture
def client(session_factory, geo_locator, test_settings) -> Generator[TestClient, None, None]:
    """TestClient wired to the test database and fake geolocation."""
    from shortlinks.api import links as links_api
    from shortlinks.api.redirect import get_geo_locator
    from shortlinks.config import get_settings
    from shortlinks.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_geo_locator] = lambda: geo_locator
    app.dependency_overrides[get_settings] = lambda: test_settings
    links_api.limiter.reset()

    with TestClient(app, base_url="http://example.com") as test_client:
        yield test_client

    app.dependency_overrides.clear()
