"""
Package history (audit trail) database model.

One row per status change. Rows are append-only: nothing updates or deletes
them except the removal of the package itself.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from logitrack.app.db.session import Base
from logitrack.app.models.package import utcnow


class PackageHistory(Base):
    """Audit entry written on every package status change."""
    __tablename__ = "package_history"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    package_id = Column(String(50), ForeignKey("packages.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(100), nullable=False)
    previous_status = Column(String(100), nullable=True)

    # Who performed the change (None for system actions)
    acting_user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<PackageHistory(package='{self.package_id}', {self.previous_status} -> {self.status})>"
