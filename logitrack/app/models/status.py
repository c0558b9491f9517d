"""
Status catalog database model.

Catalog entries are typed, ordered, coloured and can be deactivated.
Inactive entries stay valid as historical values on existing packages.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from logitrack.app.db.session import Base
from logitrack.app.models.status_enums import StatusEntityType


class Status(Base):
    """
    Status catalog entry.

    Names are not unique, not even within a type; `display_order` drives UI
    ordering and may repeat.
    """
    __tablename__ = "statuses"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    # Stored as free text so legacy colours survive; read through resolve_color()
    color = Column(String(30), nullable=False, default="gray")
    entity_type = Column(Enum(StatusEntityType), nullable=False, index=True)
    display_order = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Status(id={self.id}, name='{self.name}', type='{self.entity_type.value}', active={self.active})>"
