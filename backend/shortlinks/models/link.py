import enum

from sqlalchemy import (
    Column, Integer, String, DateTime, Enum, func, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from ..database import Base


class LinkStatus(str, enum.Enum):
    """Lifecycle status of a link; only ACTIVE links resolve"""
    PENDING_PAYMENT = "pending_payment"
    ACTIVE = "active"
    EXPIRED = "expired"


class PlanType(str, enum.Enum):
    BASIC = "basic"
    PRO = "pro"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Link(Base):
    """Short link model"""
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True)
    short_code = Column(String(32), nullable=False)
    domain = Column(String(255), nullable=False)
    original_url = Column(String(2048), nullable=False)
    plan_type = Column(
        Enum(PlanType, name="plan_type", values_callable=_enum_values),
        nullable=False,
        default=PlanType.BASIC
    )
    status = Column(
        Enum(LinkStatus, name="link_status", values_callable=_enum_values),
        nullable=False,
        default=LinkStatus.PENDING_PAYMENT
    )
    clicks_count = Column(Integer, nullable=False, default=0)
    owner_id = Column(String(64), nullable=True)  # External user reference
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationship with clicks
    clicks = relationship("Click", back_populates="link", cascade="all, delete-orphan",
                          passive_deletes=True)

    __table_args__ = (
        UniqueConstraint('short_code', 'domain', name='uix_links_code_domain'),
        Index('idx_links_code_status', 'short_code', 'status'),
    )

    @property
    def is_active(self) -> bool:
        return self.status == LinkStatus.ACTIVE

    def __repr__(self):
        return f"<Link {self.domain}/{self.short_code} -> {self.original_url} ({self.status.value})>"
