"""Treatment catalog: seeds data/treatments.json into the treatments table and
filters it for the Treatments page.

The JSON file is the hand-curated source; rows are only inserted when the
table is empty, so edits made directly in the database survive restarts.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from config import COMMITMENT_LABELS, COST_LABELS, LEVELS, TREATMENT_CATEGORIES, TREATMENTS_PATH
from storage.database import SessionLocal
from storage.models import Treatment

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = {"name", "description", "category"}


def _validate_treatment(item: Dict, index: int) -> List[str]:
    """Validate a treatment entry. Returns list of warnings."""
    warnings = []
    name = item.get("name", f"treatment[{index}]")

    for field in _REQUIRED_FIELDS:
        if not item.get(field):
            warnings.append(f"{name}: missing required field '{field}'")

    if item.get("category") not in TREATMENT_CATEGORIES:
        warnings.append(f"{name}: unknown category '{item.get('category')}'")

    for field in ("cost_level", "commitment_level"):
        value = item.get(field)
        if value is not None and value not in LEVELS:
            warnings.append(f"{name}: unknown {field} '{value}'")

    rating = item.get("evidence_rating")
    if rating is not None and not (isinstance(rating, int) and 1 <= rating <= 5):
        warnings.append(f"{name}: evidence_rating must be 1-5, got {rating!r}")

    return warnings


def load_treatments(path: Path = TREATMENTS_PATH) -> List[Dict]:
    """Read and validate the treatment list. Invalid entries are skipped."""
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)

    valid = []
    for i, item in enumerate(raw):
        warnings = _validate_treatment(item, i)
        if warnings:
            for w in warnings:
                logger.warning(w)
            continue
        valid.append(item)
    return valid


def seed_treatments(
    session_factory: Callable[[], Session] = SessionLocal,
    path: Path = TREATMENTS_PATH,
) -> int:
    """Insert the catalog into an empty treatments table. Returns rows added."""
    with session_factory() as db:
        if db.scalar(select(func.count()).select_from(Treatment)):
            return 0
        items = load_treatments(path)
        db.add_all(
            Treatment(
                name=item["name"],
                description=item["description"],
                category=item["category"],
                cost_level=item.get("cost_level"),
                commitment_level=item.get("commitment_level"),
                evidence_rating=item.get("evidence_rating"),
                affiliate_url=item.get("affiliate_url"),
            )
            for item in items
        )
        db.commit()
    logger.info("Seeded %d treatments from %s", len(items), path)
    return len(items)


def list_treatments(session_factory: Callable[[], Session] = SessionLocal) -> List[Treatment]:
    with session_factory() as db:
        rows = db.scalars(
            select(Treatment).order_by(Treatment.evidence_rating.desc().nullslast(), Treatment.name)
        ).all()
        db.expunge_all()
    return list(rows)


def filter_treatments(
    treatments: List[Treatment],
    category: Optional[str] = None,
    cost: Optional[str] = None,
    commitment: Optional[str] = None,
) -> List[Treatment]:
    """``None`` or ``"all"`` means no filter on that field."""
    def _match(value, wanted) -> bool:
        return wanted in (None, "all") or value == wanted

    return [
        t
        for t in treatments
        if _match(t.category, category)
        and _match(t.cost_level, cost)
        and _match(t.commitment_level, commitment)
    ]


def category_label(category: str) -> str:
    return category[:1].upper() + category[1:]


def cost_label(level: Optional[str]) -> str:
    return COST_LABELS.get(level, "—") if level else "—"


def commitment_label(level: Optional[str]) -> str:
    return COMMITMENT_LABELS.get(level, "—") if level else "—"


def evidence_stars(rating: Optional[int]) -> str:
    filled = max(0, min(5, rating or 0))
    return "★" * filled + "☆" * (5 - filled)
