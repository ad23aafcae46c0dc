"""Static specialist clinic directory loaded from data/clinics.json."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from config import CLINICS_PATH

ALL = "All"
SPECIALTIES = ["Hair Transplant", "Dermatology", "PRP Therapy", "Trichology"]
SEARCH_MAX_LENGTH = 100


@dataclass(frozen=True)
class Clinic:
    id: str
    name: str
    specialty: str
    location: str
    city: str
    rating: float
    review_count: int
    phone: str
    website: str
    accepts_report: bool


def load_clinics(path: Path = CLINICS_PATH) -> List[Clinic]:
    with open(path, "r", encoding="utf-8") as f:
        return [Clinic(**item) for item in json.load(f)]


def cities(clinics: List[Clinic]) -> List[str]:
    seen: List[str] = []
    for c in clinics:
        if c.city not in seen:
            seen.append(c.city)
    return seen


def filter_clinics(
    clinics: List[Clinic],
    search: str = "",
    specialty: Optional[str] = None,
    city: Optional[str] = None,
) -> List[Clinic]:
    """Search matches name or street address, case-insensitively."""
    needle = (search or "").strip()[:SEARCH_MAX_LENGTH].lower()
    out = []
    for c in clinics:
        if specialty not in (None, ALL) and c.specialty != specialty:
            continue
        if city not in (None, ALL) and c.city != city:
            continue
        if needle and needle not in c.name.lower() and needle not in c.location.lower():
            continue
        out.append(c)
    return out
