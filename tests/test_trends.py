"""Unit tests for history/trend derivations."""
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import patch

from insights.trends import (
    chart_series,
    compare_sessions,
    deltas_by_session,
    format_delta,
    score_delta,
    summarize_history,
    toggle_compare,
    week_start,
    weekly_streak,
)


def _session(sid, created_at, overall, density=60, hairline=70, crown=50, alert=False):
    return SimpleNamespace(
        id=sid,
        created_at=created_at,
        overall_score=overall,
        density_score=density,
        hairline_score=hairline,
        crown_score=crown,
        alert_triggered=alert,
    )


# Wednesday
TODAY = date(2024, 3, 13)


def test_week_start_is_monday():
    assert week_start(TODAY) == date(2024, 3, 11)
    assert week_start(datetime(2024, 3, 17, 23, 59)) == date(2024, 3, 11)


def test_streak_of_three_consecutive_weeks():
    dates = [TODAY, TODAY - timedelta(weeks=1), TODAY - timedelta(weeks=2)]
    assert weekly_streak(dates, today=TODAY) == 3


def test_gap_breaks_the_streak():
    dates = [TODAY, TODAY - timedelta(weeks=2)]
    assert weekly_streak(dates, today=TODAY) == 1


def test_empty_current_week_means_no_streak():
    dates = [TODAY - timedelta(weeks=1), TODAY - timedelta(weeks=2)]
    assert weekly_streak(dates, today=TODAY) == 0
    assert weekly_streak([], today=TODAY) == 0


def test_several_sessions_in_one_week_count_once():
    monday = date(2024, 3, 11)
    dates = [monday, monday + timedelta(days=2), monday - timedelta(days=1)]
    assert weekly_streak(dates, today=TODAY) == 2


def test_delta_against_the_prior_session():
    earlier = _session("a", datetime(2024, 1, 1), 65)
    later = _session("b", datetime(2024, 1, 8), 70)
    assert score_delta(later, earlier) == 5
    assert deltas_by_session([later, earlier]) == {"a": None, "b": 5}


def test_delta_is_none_when_a_score_is_missing():
    earlier = _session("a", datetime(2024, 1, 1), None)
    later = _session("b", datetime(2024, 1, 8), 70)
    assert score_delta(later, earlier) is None
    assert score_delta(later, None) is None


def test_format_delta():
    assert format_delta(5) == "+5"
    assert format_delta(-3) == "-3"
    assert format_delta(0) == "0"
    assert format_delta(None) == ""


def test_chart_series_is_chronological_with_short_labels():
    sessions = [
        _session("b", datetime(2024, 1, 8), 70, crown=None),
        _session("a", datetime(2024, 1, 1), 65),
    ]
    series = chart_series(sessions)
    assert [p["date"] for p in series] == ["Jan 1", "Jan 8"]
    assert series[1]["overall"] == 70
    assert series[1]["crown"] == 0


def test_compare_sessions_pairs_photos_and_differences():
    a = _session("a", datetime(2024, 1, 1), 65, density=60)
    b = _session("b", datetime(2024, 1, 8), 70, density=58)
    photos = [
        SimpleNamespace(session_id="a", angle="top"),
        SimpleNamespace(session_id="b", angle="top"),
        SimpleNamespace(session_id="b", angle="crown"),
    ]
    view = compare_sessions(a, b, photos)
    assert len(view["a"]["photos"]) == 1
    assert len(view["b"]["photos"]) == 2
    assert view["differences"]["overall"] == 5
    assert view["differences"]["density"] == -2


def test_toggle_compare():
    sessions = [_session(s, datetime(2024, 1, i + 1), 60) for i, s in enumerate(["s1", "s2", "s3"])]
    assert toggle_compare(None, "s2", sessions) == ("s2", "s1")
    assert toggle_compare(("s1", "s2"), "s2", sessions) is None
    assert toggle_compare(("s1", "s2"), "s3", sessions) == ("s1", "s3")
    assert toggle_compare(None, "s1", sessions[:1]) == ("s1", "s1")


def test_summarize_history():
    sessions = [
        _session("a", datetime(2024, 1, 1), 60),
        _session("b", datetime(2024, 1, 8), 70, alert=True),
        _session("c", datetime(2024, 1, 15), 65),
    ]
    summary = summarize_history(sessions)
    assert summary == {"total": 3, "average": 65.0, "latest": 65, "improvement": 5, "alerts": 1}
    assert summarize_history([])["total"] == 0


def test_streak_defaults_to_the_utc_week():
    # Monday 00:30 UTC is still Sunday evening on a server west of UTC.
    monday = date(2024, 3, 11)
    dates = [datetime(2024, 3, 11, 0, 30), datetime(2024, 3, 4, 9, 0)]
    with patch("insights.trends.utc_today", return_value=monday):
        assert weekly_streak(dates) == 2


def test_aware_timestamps_are_bucketed_in_utc():
    # 05:00 Monday in UTC+10 is 19:00 Sunday UTC, so it belongs to the prior week.
    plus_ten = timezone(timedelta(hours=10))
    stamp = datetime(2024, 3, 11, 5, 0, tzinfo=plus_ten)
    assert week_start(stamp) == date(2024, 3, 4)
