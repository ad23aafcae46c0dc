import logging

import plotly.graph_objects as go
import streamlit as st

from components.ui_theme import apply_theme, require_auth, score_card, section_header, top_nav
from config import ANGLE_LABELS, SIGNED_URL_TTL_SECONDS
from insights.trends import chart_series, compare_sessions, deltas_by_session, format_delta, toggle_compare
from storage.object_store import StorageError, build_object_store
from storage.repository import AnalysisRepository

logger = logging.getLogger(__name__)

st.set_page_config(page_title="History", page_icon="📈", layout="wide")
apply_theme()
user = require_auth()
top_nav(user)


@st.cache_resource
def _store():
    return build_object_store()


repo = AnalysisRepository()
sessions = repo.list_sessions(user.id)
photos = repo.list_photos(user.id)
st.session_state.setdefault("compare_ids", None)

st.markdown("## Progress History")
st.caption(f"{len(sessions)} {'analysis' if len(sessions) == 1 else 'analyses'} recorded")


def _show_photo(photo) -> None:
    """Photos are private; mint a short-lived signed URL each time one is shown."""
    label = ANGLE_LABELS.get(photo.angle, photo.angle)
    try:
        signed = _store().sign_object_url(photo.photo_url, SIGNED_URL_TTL_SECONDS)
        if signed is None:
            st.caption(f"{label}: unavailable")
            return
        data, _ = _store().fetch(signed)
    except StorageError as exc:
        logger.warning("Could not load photo %s: %s", photo.id, exc)
        st.caption(f"{label}: unavailable")
        return
    st.image(data, caption=label, use_container_width=True)


if not sessions:
    section_header("No analyses yet", "Complete your first photo analysis to start tracking.")
    if st.button("Take your first photo", type="primary"):
        st.switch_page("pages/1_Analysis.py")
    st.stop()

series = chart_series(sessions)
if len(series) > 1:
    section_header("Score trends", "Overall, density, hairline and crown scores over time.")
    fig = go.Figure()
    for key, name, color, width in [
        ("overall", "Overall", "#2f7a5b", 3),
        ("density", "Density", "#c9834a", 2),
        ("hairline", "Hairline", "#8aa88f", 2),
        ("crown", "Crown", "#b5651d", 2),
    ]:
        fig.add_trace(go.Scatter(
            x=[p["date"] for p in series],
            y=[p[key] for p in series],
            mode="lines+markers",
            name=name,
            line=dict(color=color, width=width),
        ))
    fig.update_layout(yaxis=dict(range=[0, 100]), height=300, margin=dict(l=10, r=10, t=10, b=10))
    st.plotly_chart(fig, use_container_width=True)

compare_ids = st.session_state.compare_ids
if compare_ids:
    by_id = {s.id: s for s in sessions}
    a, b = by_id.get(compare_ids[0]), by_id.get(compare_ids[1])
    section_header("Side-by-side comparison", "Pick another session below to swap it into the right column.")
    if st.button("Close comparison"):
        st.session_state.compare_ids = None
        st.rerun()
    if a is not None and b is not None:
        view = compare_sessions(a, b, photos)
        left, right = st.columns(2)
        for col, side in ((left, "a"), (right, "b")):
            s = view[side]["session"]
            with col:
                st.markdown(f"**{s.created_at.strftime('%B %d, %Y')}**")
                score_card("Overall", s.overall_score)
                st.caption(f"D:{s.density_score} H:{s.hairline_score} C:{s.crown_score}")
                for photo in view[side]["photos"]:
                    _show_photo(photo)
        diffs = ", ".join(
            f"{name.title()} {format_delta(d) or '0'}" for name, d in view["differences"].items() if d is not None
        )
        if diffs:
            st.caption(f"Change: {diffs}")
elif len(sessions) >= 2:
    if st.button("Compare sessions"):
        st.session_state.compare_ids = (sessions[0].id, sessions[1].id)
        st.rerun()

section_header("Timeline", "Newest first.")
deltas = deltas_by_session(sessions)
for session in sessions:
    session_photos = [p for p in photos if p.session_id == session.id]
    delta = format_delta(deltas.get(session.id))
    title = f"{session.overall_score if session.overall_score is not None else '—'} · {session.created_at.strftime('%B %d, %Y')}"
    if delta:
        title += f"  ({delta})"
    if session.alert_triggered:
        title += "  ⚠ Alert"

    with st.expander(title):
        st.caption(
            f"{len(session_photos)} photo{'s' if len(session_photos) != 1 else ''} · "
            f"D:{session.density_score} H:{session.hairline_score} C:{session.crown_score}"
        )
        if session.ai_summary:
            st.write(session.ai_summary)
        if session.comparison_notes:
            st.info(session.comparison_notes)
        if session_photos:
            cols = st.columns(len(session_photos))
            for col, photo in zip(cols, session_photos):
                with col:
                    _show_photo(photo)
        if compare_ids:
            selected = session.id in compare_ids
            if st.button("Selected" if selected else "Compare", key=f"compare_{session.id}"):
                st.session_state.compare_ids = toggle_compare(compare_ids, session.id, sessions)
                st.rerun()
