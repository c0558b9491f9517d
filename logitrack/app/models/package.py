"""
Package database model.

A package ("colis") belongs to a client, optionally to a partner company,
and is either in the unassigned pool (driver_id is NULL) or assigned to a
driver.
"""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from logitrack.app.db.session import Base
from logitrack.app.models.package_enums import PackageStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Package(Base):
    """
    Package model.

    `status` is free text; the status catalog only decides how it is shown.
    """
    __tablename__ = "packages"

    # Human readable reference, e.g. COL-2026-004211
    id = Column(String(50), primary_key=True, index=True)

    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True, index=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    status = Column(String(100), nullable=False, default=PackageStatus.PENDING, index=True)

    price = Column(Float, nullable=False, default=0.0)
    fee = Column(Float, nullable=False, default=0.0)
    delivery_address = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    client = relationship("Client", lazy="selectin")
    company = relationship("Company", lazy="selectin")
    driver = relationship("User", lazy="selectin")
    history = relationship(
        "PackageHistory",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PackageHistory.timestamp",
    )

    @property
    def is_unassigned(self) -> bool:
        return self.driver_id is None

    def __repr__(self):
        return f"<Package(id='{self.id}', status='{self.status}', driver_id={self.driver_id})>"
