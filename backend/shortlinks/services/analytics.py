from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Click

PERIODS = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}


def get_period_start(period: str) -> datetime:
    """Get start datetime for given period"""
    now = datetime.now(timezone.utc)
    return now - PERIODS.get(period, PERIODS["7d"])


def _percentages(rows, key: str) -> List[dict]:
    total = sum(row.clicks for row in rows)
    return [
        {
            key: getattr(row, key) or "Unknown",
            "clicks": row.clicks,
            "percentage": round(row.clicks / total * 100, 1) if total > 0 else 0
        }
        for row in rows
    ]


def get_clicks_by_day(db: Session, link_id: int, period: str) -> List[dict]:
    """Get clicks aggregated by day"""
    start_date = get_period_start(period)
    day = func.date(Click.clicked_at)

    results = db.query(
        day.label('date'),
        func.count(Click.id).label('clicks')
    ).filter(
        Click.link_id == link_id,
        Click.clicked_at >= start_date
    ).group_by(day).order_by(day).all()

    return [
        {
            "timestamp": row.date if isinstance(row.date, str) else row.date.isoformat() if row.date else "",
            "clicks": row.clicks
        }
        for row in results
    ]


def get_clicks_by_dimension(db: Session, link_id: int, period: str, column,
                            limit: int = 10) -> List[dict]:
    """Get clicks grouped by a single click column (country, browser, os...)"""
    start_date = get_period_start(period)

    results = db.query(
        column,
        func.count(Click.id).label('clicks')
    ).filter(
        Click.link_id == link_id,
        Click.clicked_at >= start_date
    ).group_by(
        column
    ).order_by(
        func.count(Click.id).desc()
    ).limit(limit).all()

    return _percentages(results, column.key)


def get_clicks_by_city(db: Session, link_id: int, period: str, limit: int = 10) -> List[dict]:
    """Get top cities by clicks"""
    start_date = get_period_start(period)

    results = db.query(
        Click.city,
        Click.country,
        func.count(Click.id).label('clicks')
    ).filter(
        Click.link_id == link_id,
        Click.clicked_at >= start_date,
        Click.city.isnot(None)
    ).group_by(
        Click.city,
        Click.country
    ).order_by(
        func.count(Click.id).desc()
    ).limit(limit).all()

    return [
        {
            "city": row.city,
            "country": row.country,
            "clicks": row.clicks
        }
        for row in results
    ]


def get_link_analytics(db: Session, link_id: int, period: str = "7d") -> dict:
    """Get complete analytics for a link"""
    start_date = get_period_start(period)
    total_clicks = db.query(func.count(Click.id)).filter(
        Click.link_id == link_id,
        Click.clicked_at >= start_date
    ).scalar() or 0

    return {
        "link_id": link_id,
        "period": period if period in PERIODS else "7d",
        "total_clicks": total_clicks,
        "clicks_by_time": get_clicks_by_day(db, link_id, period),
        "clicks_by_country": get_clicks_by_dimension(db, link_id, period, Click.country, limit=20),
        "clicks_by_city": get_clicks_by_city(db, link_id, period),
        "clicks_by_device": get_clicks_by_dimension(db, link_id, period, Click.device_type),
        "clicks_by_browser": get_clicks_by_dimension(db, link_id, period, Click.browser),
        "clicks_by_os": get_clicks_by_dimension(db, link_id, period, Click.os),
    }
