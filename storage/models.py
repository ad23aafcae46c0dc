"""
SQLAlchemy models for users, profiles, analysis sessions/photos and treatments.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from config import ANGLE_NAMES
from storage.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _score_check(column: str) -> CheckConstraint:
    return CheckConstraint(f"{column} BETWEEN 0 AND 100", name=f"ck_{column}_range")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(Text, nullable=False)
    full_name = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"


class Profile(Base):
    __tablename__ = "profiles"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String(100), nullable=True)
    age = Column(Integer, nullable=True)
    hair_type = Column(String(20), nullable=True)
    family_history_hair_loss = Column(Boolean, default=False, nullable=False)
    weekly_reminder = Column(Boolean, default=True, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    user = relationship("User", back_populates="profile")


class AnalysisSession(Base):
    """One completed analysis. Rows are append-only."""

    __tablename__ = "analysis_sessions"
    __table_args__ = tuple(
        _score_check(c) for c in ("overall_score", "density_score", "hairline_score", "crown_score")
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    overall_score = Column(Integer, nullable=True)
    density_score = Column(Integer, nullable=True)
    hairline_score = Column(Integer, nullable=True)
    crown_score = Column(Integer, nullable=True)
    ai_summary = Column(Text, nullable=True)
    comparison_notes = Column(Text, nullable=True)
    alert_triggered = Column(Boolean, default=False, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True, nullable=False)

    photos = relationship(
        "AnalysisPhoto",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="AnalysisPhoto.position",
    )

    def __repr__(self):
        return f"<AnalysisSession(id='{self.id}', user='{self.user_id}', overall={self.overall_score})>"


class AnalysisPhoto(Base):
    __tablename__ = "analysis_photos"
    __table_args__ = (
        CheckConstraint(
            "angle IN (" + ", ".join(f"'{a}'" for a in ANGLE_NAMES) + ")",
            name="ck_analysis_photos_angle",
        ),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    session_id = Column(String(36), ForeignKey("analysis_sessions.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    angle = Column(String(20), nullable=False)
    photo_url = Column(Text, nullable=False)
    position = Column(Integer, default=0, nullable=False)

    session = relationship("AnalysisSession", back_populates="photos")


class Treatment(Base):
    __tablename__ = "treatments"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(20), nullable=False)
    cost_level = Column(String(10), nullable=True)
    commitment_level = Column(String(10), nullable=True)
    evidence_rating = Column(Integer, nullable=True)
    affiliate_url = Column(Text, nullable=True)
