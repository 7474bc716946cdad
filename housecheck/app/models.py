# SQLAlchemy models
from __future__ import annotations
from sqlalchemy import (
    Column, String, DateTime, ForeignKey, Text
)
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
import uuid

# Portable Base (works with SQLite or Postgres)
Base = declarative_base()

def _uuid() -> str:
    """Store IDs as strings so it works on SQLite and Postgres without extra types."""
    return str(uuid.uuid4())

# ---------- Tables ----------

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_uuid)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    houses = relationship("House", back_populates="owner", cascade="all, delete-orphan")


class House(Base):
    __tablename__ = "houses"

    id = Column(String, primary_key=True, default=_uuid)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    address = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="houses")
    inspections = relationship(
        "Inspection",
        back_populates="house",
        cascade="all, delete-orphan",
        order_by="Inspection.inspection_date.desc()",
    )


class Inspection(Base):
    __tablename__ = "inspections"

    id = Column(String, primary_key=True, default=_uuid)
    house_id = Column(String, ForeignKey("houses.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    notes = Column(Text)
    inspection_date = Column(DateTime, nullable=False)  # chosen by the user, distinct from created_at
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    house = relationship("House", back_populates="inspections")
