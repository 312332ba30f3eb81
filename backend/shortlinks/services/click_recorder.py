from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import ClickRecordError
from ..models import Click


@dataclass(frozen=True)
class ClickEvent:
    """One resolved visit, ready to be appended to the click log"""
    link_id: int
    clicked_at: datetime
    ip_address: str
    user_agent: str
    device_type: str
    browser: str
    os: str
    country: str
    region: str
    city: str


class ClickRecorder(Protocol):
    def record(self, event: ClickEvent) -> None:
        ...


class SqlAlchemyClickRecorder:
    """Appends click events to the clicks table"""

    def __init__(self, db: Session):
        self.db = db

    def record(self, event: ClickEvent) -> None:
        click = Click(
            link_id=event.link_id,
            clicked_at=event.clicked_at,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            device_type=event.device_type,
            browser=event.browser,
            os=event.os,
            country=event.country,
            region=event.region,
            city=event.city,
        )
        try:
            self.db.add(click)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise ClickRecordError(str(e)) from e
