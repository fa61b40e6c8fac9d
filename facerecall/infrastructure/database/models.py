"""SQLAlchemy models for the people database."""
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, String, Text, Index
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from facerecall.domain.entities.person import utcnow


def new_person_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class PersonRecord(Base):
    """One enrolled person, stored as a flat document row."""

    __tablename__ = "people"
    __table_args__ = (
        Index('idx_people_name', 'name'),
    )

    id: Mapped[str] = mapped_column(
        String(32),
        primary_key=True,
        default=new_person_id
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    relationship: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reference_embedding: Mapped[List[float]] = mapped_column(
        JSON,
        nullable=False,
        comment="Reference face embedding"
    )
    images: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Photo file references in selection order"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow
    )
    last_recognized: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True
    )
