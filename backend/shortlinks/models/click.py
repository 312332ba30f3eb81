from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import relationship
from ..database import Base


class Click(Base):
    """Click statistics model. Rows are append-only."""
    __tablename__ = "clicks"

    id = Column(Integer, primary_key=True, index=True)
    link_id = Column(Integer, ForeignKey("links.id", ondelete="CASCADE"), nullable=False)
    clicked_at = Column(DateTime(timezone=True), server_default=func.now())
    ip_address = Column(String(45), nullable=True)  # IPv4 or IPv6
    user_agent = Column(String(512), nullable=True)

    # Derived from the user agent
    device_type = Column(String(20), nullable=True)
    browser = Column(String(50), nullable=True)
    os = Column(String(50), nullable=True)

    # Derived from the IP address
    country = Column(String(100), nullable=True)
    region = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)

    # Relationship with link
    link = relationship("Link", back_populates="clicks")

    __table_args__ = (
        Index('idx_clicks_link_time', 'link_id', 'clicked_at'),
    )

    def __repr__(self):
        return f"<Click {self.id} for link {self.link_id}>"
