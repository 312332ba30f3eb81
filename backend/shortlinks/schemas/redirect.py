from pydantic import BaseModel, Field
from typing import Literal, Optional


class ResolveRequest(BaseModel):
    """Body of a resolution request"""
    short_code: Optional[str] = Field(None, alias="shortCode")
    domain: Optional[str] = None
    user_agent: Optional[str] = Field(None, alias="userAgent")
    client_ip: Optional[str] = Field(None, alias="clientIP")

    class Config:
        populate_by_name = True


class ResolveSuccess(BaseModel):
    success: Literal[True] = True
    destination_url: str = Field(..., serialization_alias="destinationUrl")
    click_count: int = Field(..., serialization_alias="clickCount")


class ResolveFailure(BaseModel):
    success: Literal[False] = False
    error: str
    category: str
