"""Trend derivations over stored analysis sessions.

Everything here is a pure read over session rows (anything with the
AnalysisSession attributes works, ORM rows or plain objects). Nothing is
written back.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

METRICS = [
    ("overall", "overall_score"),
    ("density", "density_score"),
    ("hairline", "hairline_score"),
    ("crown", "crown_score"),
]


def _day(value: Any) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def _chronological(sessions: Iterable[Any]) -> List[Any]:
    return sorted(sessions, key=lambda s: s.created_at)


def chart_label(created_at: Any) -> str:
    d = _day(created_at)
    return f"{d:%b} {d.day}"


def chart_series(sessions: Iterable[Any]) -> List[Dict[str, Any]]:
    """One point per session, oldest first. Missing scores plot as 0."""
    series = []
    for s in _chronological(sessions):
        point: Dict[str, Any] = {"date": chart_label(s.created_at)}
        for name, attr in METRICS:
            point[name] = getattr(s, attr) or 0
        series.append(point)
    return series


def utc_today() -> date:
    """Session timestamps are stored in UTC, so "this week" is a UTC week too."""
    return datetime.now(timezone.utc).date()


def week_start(day: Any) -> date:
    d = _day(day)
    return d - timedelta(days=d.weekday())


def weekly_streak(dates: Iterable[Any], today: Optional[date] = None) -> int:
    """Consecutive Monday-start weeks with a session, counting back from this week.

    An empty current week means no streak, even if earlier weeks are full.
    """
    today = today or utc_today()
    weeks = {week_start(d) for d in dates}
    current = week_start(today)
    streak = 0
    while current in weeks:
        streak += 1
        current -= timedelta(weeks=1)
    return streak


def score_delta(current: Any, previous: Any, attr: str = "overall_score") -> Optional[int]:
    if current is None or previous is None:
        return None
    a, b = getattr(current, attr), getattr(previous, attr)
    if a is None or b is None:
        return None
    return a - b


def deltas_by_session(sessions: Iterable[Any]) -> Dict[str, Optional[int]]:
    """Overall-score change against the chronologically previous session."""
    ordered = _chronological(sessions)
    deltas: Dict[str, Optional[int]] = {}
    previous = None
    for s in ordered:
        deltas[s.id] = score_delta(s, previous)
        previous = s
    return deltas


def format_delta(delta: Optional[int]) -> str:
    if delta is None:
        return ""
    return f"+{delta}" if delta > 0 else str(delta)


def compare_sessions(a: Any, b: Any, photos: Iterable[Any]) -> Dict[str, Any]:
    """Side-by-side view of two sessions; differences are ``b - a`` per metric."""
    photos = list(photos)
    differences = {name: score_delta(b, a, attr) for name, attr in METRICS}
    return {
        "a": {"session": a, "photos": [p for p in photos if p.session_id == a.id]},
        "b": {"session": b, "photos": [p for p in photos if p.session_id == b.id]},
        "differences": differences,
    }


def toggle_compare(
    compare_ids: Optional[Tuple[str, str]],
    session_id: str,
    sessions: Sequence[Any],
) -> Optional[Tuple[str, str]]:
    """Next compare selection after the user clicks a session.

    No selection yet: pair the clicked session with the first other one.
    Clicking an already-selected session closes the comparison. Anything
    else replaces the second slot.
    """
    if not compare_ids:
        other = next((s.id for s in sessions if s.id != session_id), session_id)
        return (session_id, other)
    if session_id in compare_ids:
        return None
    return (compare_ids[0], session_id)


def summarize_history(sessions: Iterable[Any]) -> Dict[str, Any]:
    ordered = [s for s in _chronological(sessions) if s.overall_score is not None]
    if not ordered:
        return {"total": 0, "average": 0, "latest": 0, "improvement": 0, "alerts": 0}

    total = len(ordered)
    average = sum(s.overall_score for s in ordered) / total
    return {
        "total": total,
        "average": round(average, 1),
        "latest": ordered[-1].overall_score,
        "improvement": ordered[-1].overall_score - ordered[0].overall_score,
        "alerts": sum(1 for s in ordered if s.alert_triggered),
    }
