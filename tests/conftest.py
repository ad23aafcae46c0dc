"""Shared fixtures: in-memory SQLite, a temporary local object store, tiny
test images and fake Anthropic responses."""
from __future__ import annotations

import os
import sys
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace
from typing import Dict, List

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from components.auth import AuthContext, CurrentUser
from components.photo_capture import ImageFile, PhotoSlot, build_preview, empty_slots
from config import ANALYSIS_TOOL_NAME
from storage.database import Base, init_db
from storage.models import User
from storage.object_store import LocalObjectStore
from storage.repository import AnalysisRepository


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TickingClock(FakeClock):
    """Moves forward one second on every read, so storage keys never repeat."""

    def __call__(self) -> float:
        self.now += 1
        return self.now


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def repository(session_factory):
    return AnalysisRepository(session_factory)


@pytest.fixture
def user(session_factory) -> CurrentUser:
    with session_factory() as db:
        row = User(email="sam@example.com", hashed_password="not-a-real-hash", full_name="Sam")
        db.add(row)
        db.commit()
        return CurrentUser(id=row.id, email=row.email, full_name=row.full_name)


@pytest.fixture
def auth(user) -> AuthContext:
    return AuthContext.signed_in(user)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(tmp_path, clock) -> LocalObjectStore:
    return LocalObjectStore(root=tmp_path / "objects", secret="test-secret", clock=clock)


def make_png(size=(8, 8), color=(120, 90, 60)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


def filled_slots(angles: List[str], data: bytes) -> List[PhotoSlot]:
    slots = empty_slots()
    for slot in slots:
        if slot.angle in angles:
            slot.file = ImageFile(name=f"{slot.angle}.png", content_type="image/png", data=data)
            slot.preview = build_preview(slot.file)
    return slots


def analysis_payload(**overrides) -> Dict:
    payload = {
        "overall_score": 72,
        "density_score": 70,
        "hairline_score": 75,
        "crown_score": 68,
        "ai_summary": "Good overall coverage with mild thinning at the crown.",
        "alert_triggered": False,
    }
    payload.update(overrides)
    return payload


def tool_message(payload: Dict, name: str = ANALYSIS_TOOL_NAME) -> SimpleNamespace:
    return SimpleNamespace(
        id="msg_test",
        content=[SimpleNamespace(type="tool_use", name=name, input=payload)],
    )


def text_message(text: str = "I cannot help with that.") -> SimpleNamespace:
    return SimpleNamespace(id="msg_text", content=[SimpleNamespace(type="text", text=text)])
