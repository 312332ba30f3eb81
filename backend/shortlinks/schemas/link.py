from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from ..models import LinkStatus, PlanType


class LinkCreate(BaseModel):
    """Schema for creating a new short link"""
    url: str = Field(..., description="Original URL to shorten", min_length=1, max_length=2048)
    custom_code: Optional[str] = Field(None, description="Custom short code", min_length=3, max_length=32)
    domain: Optional[str] = Field(None, description="Domain to serve the code under", max_length=255)
    plan: PlanType = Field(PlanType.BASIC, description="Plan tier")


class LinkResponse(BaseModel):
    """Schema for link response"""
    id: int
    short_code: str
    domain: str
    original_url: str
    short_url: str
    plan_type: PlanType
    status: LinkStatus
    clicks_count: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LinkUpdate(BaseModel):
    """Schema for changing a link's destination"""
    original_url: str = Field(..., min_length=1, max_length=2048)
