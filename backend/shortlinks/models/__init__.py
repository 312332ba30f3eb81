from .link import Link, LinkStatus, PlanType
from .click import Click

__all__ = ["Link", "LinkStatus", "PlanType", "Click"]
