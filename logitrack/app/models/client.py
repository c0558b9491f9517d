"""
Client database model.

Reference data used to enrich package listings and search.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from logitrack.app.db.session import Base


class Client(Base):
    """Package recipient."""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Client(id={self.id}, name='{self.name}')>"
