import logging
from typing import Optional, Protocol

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import InvalidRequest, NotFound, StoreUnavailable
from ..models import Link, LinkStatus

logger = logging.getLogger(__name__)


class LinkStore(Protocol):
    """Lookup and atomic mutation of link rows"""

    def find_active_by_code(self, code: str, domain: Optional[str] = None) -> Link:
        ...

    def increment_click_count(self, link_id: int) -> int:
        ...


class SqlAlchemyLinkStore:
    """LinkStore backed by the links table through a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def find_active_by_code(self, code: str, domain: Optional[str] = None) -> Link:
        """
        Find the active link for a short code.

        Without a domain the code must be carried by exactly one active link.

        Raises:
            NotFound: no active link matches
            InvalidRequest: domain omitted and the code is active under
                several domains
            StoreUnavailable: the database could not be queried
        """
        query = self.db.query(Link).filter(
            Link.short_code == code,
            Link.status == LinkStatus.ACTIVE
        )
        if domain:
            query = query.filter(Link.domain == domain)

        try:
            matches = query.limit(2).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Link lookup failed for {code!r}: {e}")
            raise StoreUnavailable() from e

        if not matches:
            raise NotFound()

        if len(matches) > 1:
            raise InvalidRequest(
                f"Short code '{code}' exists under several domains; domain is required"
            )

        return matches[0]

    def increment_click_count(self, link_id: int) -> int:
        """
        Atomically add one click and return the new count.

        A single UPDATE ... RETURNING lets the database serialize concurrent
        increments of the same row.
        """
        stmt = (
            update(Link)
            .where(Link.id == link_id)
            .values(clicks_count=Link.clicks_count + 1)
            .returning(Link.clicks_count)
            .execution_options(synchronize_session=False)
        )

        try:
            new_count = self.db.execute(stmt).scalar_one_or_none()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Click increment failed for link {link_id}: {e}")
            raise StoreUnavailable() from e

        if new_count is None:
            # Deleted between lookup and increment
            raise NotFound()

        return new_count
