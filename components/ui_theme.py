from __future__ import annotations

from typing import List, Optional

import streamlit as st

from components.auth import AuthContext, CurrentUser

NAV_LINKS = [
    ("app.py", "Dashboard"),
    ("pages/1_Analysis.py", "Analysis"),
    ("pages/2_History.py", "History"),
    ("pages/3_Treatments.py", "Treatments"),
    ("pages/4_Specialists.py", "Specialists"),
    ("pages/5_Profile.py", "Profile"),
]


def apply_theme() -> None:
    st.markdown(
        """
        <style>
          @import url('https://fonts.googleapis.com/css2?family=DM+Sans:wght@400;500;600&family=Cormorant+Garamond:wght@500;600;700&display=swap');

          :root {
            --bg: #f5f7f4;
            --surface: #fcfdfb;
            --surface-2: #ffffff;
            --text: #1b211d;
            --muted: #66706a;
            --line: #dde5df;
            --accent: #2f7a5b;
            --accent-dark: #236047;
            --warm: #c9834a;
            --danger: #c2412d;
          }

          .stApp {
            background:
              radial-gradient(circle at 0% 40%, rgba(205, 224, 213, 0.22) 0, rgba(245,247,244,0) 38%),
              radial-gradient(circle at 95% 20%, rgba(226, 215, 202, 0.18) 0, rgba(245,247,244,0) 34%),
              var(--bg);
            color: var(--text);
            font-family: 'DM Sans', -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
          }

          .block-container {
            max-width: 900px;
            padding-top: 1.0rem;
            padding-bottom: 2rem;
          }

          h1, h2, h3 {
            color: var(--text) !important;
            letter-spacing: -0.01em;
          }

          .top-nav {
            display: flex;
            justify-content: space-between;
            align-items: center;
            border-bottom: 1px solid var(--line);
            padding: 0.45rem 0;
            margin-bottom: 0.9rem;
          }

          .brand-mark {
            font-family: 'Cormorant Garamond', Georgia, serif;
            font-size: 1.45rem;
            font-weight: 700;
          }

          .avatar {
            width: 32px;
            height: 32px;
            border-radius: 999px;
            background: rgba(47, 122, 91, 0.12);
            color: var(--accent);
            display: flex;
            align-items: center;
            justify-content: center;
            font-weight: 700;
          }

          .stepper {
            display: grid;
            grid-auto-flow: column;
            grid-auto-columns: 1fr;
            gap: 0.4rem;
            margin: 0.2rem 0 1rem 0;
            align-items: center;
          }

          .step {
            display: flex;
            flex-direction: column;
            align-items: center;
            gap: 0.24rem;
            color: var(--muted);
            font-size: 0.72rem;
          }

          .step .dot {
            width: 26px;
            height: 26px;
            border-radius: 999px;
            border: 1px solid var(--line);
            background: #fff;
            display: flex;
            align-items: center;
            justify-content: center;
            font-size: 0.74rem;
            color: #6f7a73;
          }

          .step.active .dot,
          .step.done .dot {
            background: var(--accent);
            color: #fff;
            border-color: transparent;
          }

          .hero-wrap {
            text-align: center;
            border: 1px solid var(--line);
            background: linear-gradient(180deg, rgba(255,255,255,0.82), rgba(248,252,249,0.75));
            border-radius: 20px;
            padding: 1.8rem 1.1rem;
            margin-bottom: 1rem;
          }

          .display-serif {
            font-family: 'Cormorant Garamond', Georgia, serif;
            font-size: 3.0rem;
            line-height: 0.98;
            letter-spacing: -0.02em;
            margin: 0;
            color: var(--text);
          }

          .hero-sub {
            color: var(--muted) !important;
            max-width: 640px;
            margin: 0.5rem auto 0 auto;
            line-height: 1.42;
            font-size: 1rem;
          }

          .pill {
            display: inline-block;
            border: 1px solid var(--line);
            border-radius: 999px;
            padding: 0.2rem 0.68rem;
            color: #6f7a73;
            background: #fff;
            font-size: 0.78rem;
            margin-bottom: 0.7rem;
          }

          .section-card {
            border: 1px solid var(--line);
            border-radius: 14px;
            background: rgba(255,255,255,0.86);
            padding: 0.8rem 0.95rem;
            margin: 0.9rem 0 0.45rem 0;
          }

          .section-title {
            color: var(--text);
            font-weight: 600;
            font-size: 1.01rem;
          }

          .section-hint {
            color: var(--muted) !important;
            font-size: 0.89rem;
            margin-top: 0.12rem;
          }

          .score-card {
            border: 1px solid var(--line);
            border-radius: 14px;
            background: #fff;
            padding: 0.8rem;
            text-align: center;
          }

          .score-card .value {
            font-family: 'Cormorant Garamond', Georgia, serif;
            font-size: 2.1rem;
            font-weight: 700;
            color: var(--accent);
          }

          .score-card .label {
            color: var(--muted);
            font-size: 0.8rem;
          }

          .delta-up { color: var(--accent); font-weight: 600; }
          .delta-down { color: var(--danger); font-weight: 600; }

          .stButton > button {
            border-radius: 10px;
            border: 1px solid var(--line);
            padding: 0.5rem 0.95rem;
            font-weight: 600;
            background: #fff;
            color: var(--text);
          }

          .stButton > button[kind="primary"] {
            background: var(--accent);
            color: white;
            border-color: transparent;
          }

          [data-testid="stFileUploader"] section,
          [data-testid="stFileUploaderDropzone"] {
            background: rgba(255, 255, 255, 0.94) !important;
            border: 1px dashed var(--line) !important;
          }

          [data-testid="stExpander"] {
            border-radius: 12px;
            border: 1px solid var(--line);
            background: rgba(255,255,255,0.86);
          }
        </style>
        """,
        unsafe_allow_html=True,
    )


def current_auth() -> AuthContext:
    return st.session_state.get("auth") or AuthContext.loading()


def set_auth(context: AuthContext) -> None:
    st.session_state["auth"] = context


def require_auth() -> CurrentUser:
    """Send anyone not signed in (including a session still loading) to app.py."""
    context = current_auth()
    if not context.is_authenticated:
        st.switch_page("app.py")
    return context.user


def top_nav(user: Optional[CurrentUser] = None) -> None:
    avatar = f"<div class='avatar'>{user.initial}</div>" if user else ""
    st.markdown(
        f"""
        <div class="top-nav">
          <div class="brand-mark">Manetain</div>
          {avatar}
        </div>
        """,
        unsafe_allow_html=True,
    )
    if user:
        cols = st.columns(len(NAV_LINKS))
        for col, (page, label) in zip(cols, NAV_LINKS):
            with col:
                st.page_link(page, label=label)


def render_stepper(labels: List[str], active_idx: int) -> None:
    """Steps before ``active_idx`` are done; the one at ``active_idx`` is active."""
    bits = ["<div class='stepper'>"]
    for i, label in enumerate(labels):
        done = i < active_idx
        cls = "done" if done else ("active" if i == active_idx else "")
        marker = "✓" if done else str(i + 1)
        bits.append(
            f"<div class='step {cls}'><div class='dot'>{marker}</div><div>{label}</div></div>"
        )
    bits.append("</div>")
    st.markdown("".join(bits), unsafe_allow_html=True)


def hero_block() -> None:
    st.markdown(
        """
        <div class="hero-wrap">
          <div class="pill">AI-powered hair health tracking</div>
          <div class="display-serif">Keep the hair <span style="color:#2f7a5b;">you have</span></div>
          <div class="hero-sub">Photograph your scalp each week. Manetain scores density, hairline and crown so you can spot changes early.</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def section_header(title: str, hint: str) -> None:
    st.markdown(
        f"""
        <div class="section-card">
          <div class="section-title">{title}</div>
          <div class="section-hint">{hint}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


def score_card(label: str, value: Optional[int], delta: str = "") -> None:
    shown = "—" if value is None else value
    delta_html = ""
    if delta:
        cls = "delta-down" if delta.startswith("-") else "delta-up"
        delta_html = f"<div class='{cls}'>{delta}</div>"
    st.markdown(
        f"""
        <div class="score-card">
          <div class="value">{shown}</div>
          <div class="label">{label}</div>
          {delta_html}
        </div>
        """,
        unsafe_allow_html=True,
    )
