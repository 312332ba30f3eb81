from .link import LinkCreate, LinkResponse, LinkUpdate
from .redirect import ResolveRequest, ResolveSuccess, ResolveFailure
from .analytics import LinkAnalytics

__all__ = [
    "LinkCreate", "LinkResponse", "LinkUpdate",
    "ResolveRequest", "ResolveSuccess", "ResolveFailure",
    "LinkAnalytics",
]
