from __future__ import annotations

import logging

from dotenv import load_dotenv
load_dotenv()

import streamlit as st

from catalog.treatments import seed_treatments
from components.auth import AuthContext, AuthError, AuthService
from components.ui_theme import apply_theme, current_auth, hero_block, score_card, section_header, set_auth, top_nav
from config import LOG_LEVEL
from insights.trends import deltas_by_session, format_delta, summarize_history, weekly_streak
from storage.database import init_db
from storage.repository import AnalysisRepository

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

st.set_page_config(page_title="Manetain", page_icon="🌿", layout="wide")
apply_theme()
st.markdown(
    """
    <style>
      [data-testid="stSidebarNav"] { display: none !important; }
      section[data-testid="stSidebar"] { display: none !important; }
      [data-testid="collapsedControl"] { display: none !important; }
      header[data-testid="stHeader"] { display: none !important; }
      [data-testid="stToolbar"] { display: none !important; }
      [data-testid="stDecoration"] { display: none !important; }
    </style>
    """,
    unsafe_allow_html=True,
)


@st.cache_resource
def _bootstrap() -> AuthService:
    init_db()
    seed_treatments()
    return AuthService()


if "auth" not in st.session_state:
    set_auth(AuthContext.loading())

auth = current_auth()
if auth.is_loading:
    with st.spinner("Loading..."):
        _bootstrap()
    set_auth(AuthContext.signed_out())
    auth = current_auth()

service = _bootstrap()


def _show_field_errors(err: AuthError) -> None:
    st.error(str(err))
    for message in err.errors.values():
        st.caption(f"• {message}")


if not auth.is_authenticated:
    top_nav()
    hero_block()

    sign_in_tab, sign_up_tab = st.tabs(["Sign in", "Create account"])
    with sign_in_tab:
        with st.form("sign_in"):
            email = st.text_input("Email", max_chars=255)
            password = st.text_input("Password", type="password", max_chars=128)
            submitted = st.form_submit_button("Sign in", type="primary", use_container_width=True)
        if submitted:
            try:
                set_auth(service.sign_in(email, password))
                st.rerun()
            except AuthError as err:
                _show_field_errors(err)

    with sign_up_tab:
        with st.form("sign_up"):
            full_name = st.text_input("Full name", max_chars=100)
            email = st.text_input("Email", max_chars=255, key="sign_up_email")
            password = st.text_input("Password", type="password", max_chars=128, key="sign_up_password")
            submitted = st.form_submit_button("Create account", type="primary", use_container_width=True)
        if submitted:
            try:
                set_auth(service.sign_up(email, password, full_name))
                st.rerun()
            except AuthError as err:
                _show_field_errors(err)

    st.caption("Manetain provides informational estimates only. It is not a medical diagnosis.")
    st.stop()

user = auth.user
top_nav(user)

st.markdown(f"## Welcome{', ' + user.full_name if user.full_name else ''}!")

sessions = AnalysisRepository().list_sessions(user.id)
summary = summarize_history(sessions)
streak = weekly_streak([s.created_at for s in sessions])

c1, c2, c3 = st.columns(3)
with c1:
    st.metric("Weekly streak", f"{streak} week{'s' if streak != 1 else ''}")
with c2:
    st.metric("Analyses", summary["total"])
with c3:
    st.metric("Average score", summary["average"])

if sessions:
    latest = sessions[0]
    delta = format_delta(deltas_by_session(sessions).get(latest.id))
    section_header("Latest analysis", latest.created_at.strftime("%B %d, %Y"))
    cols = st.columns(4)
    for col, (label, value, d) in zip(
        cols,
        [
            ("Overall", latest.overall_score, delta),
            ("Density", latest.density_score, ""),
            ("Hairline", latest.hairline_score, ""),
            ("Crown", latest.crown_score, ""),
        ],
    ):
        with col:
            score_card(label, value, d)
    if latest.ai_summary:
        st.write(latest.ai_summary)
    if latest.alert_triggered:
        st.warning("Notable changes were detected in your latest analysis. Consider talking to a specialist.")
else:
    section_header("No analyses yet", "Complete your first photo analysis to start tracking.")

if streak == 0:
    st.info("You haven't taken photos this week. A weekly check keeps your trend accurate.")

b1, b2 = st.columns(2)
with b1:
    if st.button("Start new analysis", type="primary", use_container_width=True):
        st.switch_page("pages/1_Analysis.py")
with b2:
    if st.button("Sign out", use_container_width=True):
        set_auth(service.sign_out(auth))
        for key in ("wizard", "compare_ids"):
            st.session_state.pop(key, None)
        st.rerun()
