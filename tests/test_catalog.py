"""Treatment and specialist listing tests."""
from __future__ import annotations

import json

from catalog.specialists import ALL, cities, filter_clinics, load_clinics
from catalog.treatments import (
    commitment_label,
    cost_label,
    evidence_stars,
    filter_treatments,
    list_treatments,
    load_treatments,
    seed_treatments,
)


def test_seed_is_idempotent(session_factory):
    added = seed_treatments(session_factory)
    assert added > 0
    assert seed_treatments(session_factory) == 0
    assert len(list_treatments(session_factory)) == added


def test_treatments_are_sorted_by_evidence(session_factory):
    seed_treatments(session_factory)
    ratings = [t.evidence_rating for t in list_treatments(session_factory)]
    assert ratings == sorted(ratings, reverse=True)


def test_filters_combine(session_factory):
    seed_treatments(session_factory)
    treatments = list_treatments(session_factory)

    topical = filter_treatments(treatments, category="topical")
    assert topical and all(t.category == "topical" for t in topical)

    cheap_easy = filter_treatments(treatments, cost="low", commitment="low")
    assert all(t.cost_level == "low" and t.commitment_level == "low" for t in cheap_easy)

    assert filter_treatments(treatments, "all", "all", "all") == treatments


def test_invalid_entries_are_skipped(tmp_path):
    path = tmp_path / "treatments.json"
    path.write_text(
        json.dumps(
            [
                {"name": "Good", "description": "ok", "category": "topical", "cost_level": "low"},
                {"name": "Bad category", "description": "x", "category": "magic"},
                {"name": "Bad rating", "description": "x", "category": "lifestyle", "evidence_rating": 9},
            ]
        ),
        encoding="utf-8",
    )
    assert [t["name"] for t in load_treatments(path)] == ["Good"]


def test_labels():
    assert cost_label("medium") == "$$"
    assert cost_label(None) == "—"
    assert commitment_label("high") == "High effort"
    assert evidence_stars(3) == "★★★☆☆"
    assert evidence_stars(None) == "☆☆☆☆☆"


def test_clinic_filters():
    clinics = load_clinics()
    assert len(clinics) == 6
    assert cities(clinics)[0] == "New York"

    derm = filter_clinics(clinics, specialty="Dermatology")
    assert {c.name for c in derm} == {"Derma Hair Solutions", "Scalp Health Institute"}

    assert [c.city for c in filter_clinics(clinics, search="innovation")] == ["Miami"]
    assert filter_clinics(clinics, search="", specialty=ALL, city=ALL) == clinics
    assert filter_clinics(clinics, specialty="Trichology", city="Miami") == []
