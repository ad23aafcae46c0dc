from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Union

from sqlalchemy.orm import Session

from config import HAIR_TYPES, NAME_MAX_LENGTH
from storage.database import SessionLocal
from storage.models import Profile

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ["full_name", "age", "hair_type", "family_history_hair_loss", "weekly_reminder"]


class ProfileError(ValueError):
    pass


def _parse_age(age: Union[str, int, None]) -> Optional[int]:
    if age is None or (isinstance(age, str) and not age.strip()):
        return None
    try:
        parsed = int(str(age).strip())
    except ValueError as exc:
        raise ProfileError("Age must be between 1 and 120") from exc
    if parsed < 1 or parsed > 120:
        raise ProfileError("Age must be between 1 and 120")
    return parsed


def build_profile_update(
    full_name: Optional[str],
    age: Union[str, int, None],
    hair_type: Optional[str],
    family_history: bool,
    weekly_reminder: bool = True,
) -> Dict[str, Any]:
    """Normalize the profile form. Blank fields become None."""
    name = (full_name or "").strip()[:NAME_MAX_LENGTH]
    hair_type = (hair_type or "").strip().lower() or None
    if hair_type is not None and hair_type not in HAIR_TYPES:
        raise ProfileError(f"Unknown hair type: {hair_type}")
    return {
        "full_name": name or None,
        "age": _parse_age(age),
        "hair_type": hair_type,
        "family_history_hair_loss": bool(family_history),
        "weekly_reminder": bool(weekly_reminder),
    }


def _as_dict(profile: Profile) -> Dict[str, Any]:
    return {f: getattr(profile, f) for f in PROFILE_FIELDS}


def load_profile(user_id: str, session_factory: Callable[[], Session] = SessionLocal) -> Dict[str, Any]:
    with session_factory() as db:
        profile = db.get(Profile, user_id)
        if profile is None:
            return {
                "full_name": None,
                "age": None,
                "hair_type": None,
                "family_history_hair_loss": False,
                "weekly_reminder": True,
            }
        return _as_dict(profile)


def save_profile(
    user_id: str,
    update: Dict[str, Any],
    session_factory: Callable[[], Session] = SessionLocal,
) -> Dict[str, Any]:
    with session_factory() as db:
        profile = db.get(Profile, user_id)
        if profile is None:
            profile = Profile(user_id=user_id)
            db.add(profile)
        for field in PROFILE_FIELDS:
            if field in update:
                setattr(profile, field, update[field])
        db.commit()
        saved = _as_dict(profile)
    logger.info("Updated profile for user %s", user_id)
    return saved
