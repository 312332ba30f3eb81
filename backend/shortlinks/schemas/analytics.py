from typing import List, Optional
from pydantic import BaseModel


class TimeSeriesPoint(BaseModel):
    """Single point in time series data"""
    timestamp: str  # ISO date
    clicks: int


class CityStats(BaseModel):
    """City-level statistics"""
    city: str
    country: Optional[str] = None
    clicks: int


class LinkAnalytics(BaseModel):
    """Complete analytics for a link"""
    link_id: int
    period: str  # "24h", "7d", "30d", "90d"
    total_clicks: int
    clicks_by_time: List[TimeSeriesPoint]
    clicks_by_country: List[dict]
    clicks_by_city: List[CityStats]
    clicks_by_device: List[dict]
    clicks_by_browser: List[dict]
    clicks_by_os: List[dict]
