import streamlit as st

from analysis.errors import FailureCode, guidance_for
from analysis.pipeline import build_submission
from components.capture_wizard import (
    ANALYZING,
    ERROR,
    INTRO,
    RESULTS,
    REVIEW,
    CaptureWizard,
    SubmissionBlocked,
)
from components.photo_capture import ImageRejected, from_camera, from_file, from_gallery
from components.ui_theme import apply_theme, current_auth, render_stepper, require_auth, score_card, section_header, top_nav
from config import ANGLES, MIN_PHOTOS_TO_SUBMIT

st.set_page_config(page_title="Analysis", page_icon="📸", layout="wide")
apply_theme()
user = require_auth()
top_nav(user)


@st.cache_resource
def _submission():
    return build_submission()


if "wizard" not in st.session_state:
    st.session_state.wizard = CaptureWizard()
st.session_state.setdefault("_capture_nonce", 0)

wizard: CaptureWizard = st.session_state.wizard

STEP_LABELS = ["Start"] + [a["label"] for a in ANGLES] + ["Review", "Results"]


def _stepper_index() -> int:
    if wizard.step in (ANALYZING, RESULTS, ERROR):
        return len(STEP_LABELS) - 1
    return wizard.step


def _accept(result: dict, angle: str) -> None:
    wizard.set_photo(angle, result["file"], result["preview"])
    st.session_state._capture_nonce += 1
    st.rerun()


def _capture_widgets(angle: str) -> None:
    nonce = st.session_state._capture_nonce
    camera_tab, gallery_tab, file_tab = st.tabs(["Camera", "Gallery", "Upload file"])
    with camera_tab:
        shot = st.camera_input("Take a photo", key=f"camera_{angle}_{nonce}")
        if shot is not None:
            try:
                _accept(from_camera(angle, shot.getvalue()), angle)
            except ImageRejected as err:
                st.error(f"**{err.title}** {err.description}")
    with gallery_tab:
        picked = st.file_uploader(
            "Choose from gallery", type=["jpg", "jpeg", "png", "webp"], key=f"gallery_{angle}_{nonce}"
        )
        if picked is not None:
            try:
                _accept(from_gallery(angle, picked.getvalue()), angle)
            except ImageRejected as err:
                st.error(f"**{err.title}** {err.description}")
    with file_tab:
        uploaded = st.file_uploader("Upload an image file", key=f"file_{angle}_{nonce}")
        if uploaded is not None:
            try:
                _accept(from_file(uploaded.name, uploaded.type, uploaded.getvalue()), angle)
            except ImageRejected as err:
                st.error(f"**{err.title}** {err.description}")


render_stepper(STEP_LABELS, _stepper_index())
st.progress(wizard.progress)

if wizard.step == INTRO:
    section_header(
        "Scalp photo analysis",
        f"We'll guide you through {len(ANGLES)} angles. Any angle can be skipped, "
        f"but at least {MIN_PHOTOS_TO_SUBMIT} photos are needed.",
    )
    st.caption("Use good lighting and keep your hair dry. Results are informational estimates, not a diagnosis.")
    if st.button("Start", type="primary", use_container_width=True):
        wizard.start()
        st.rerun()

elif wizard.is_capturing:
    slot = wizard.current_slot
    section_header(slot.label, slot.instruction)

    if slot.filled:
        st.image(slot.file.data, caption=slot.label, width=320)
        if st.button("Remove photo"):
            wizard.remove_photo(slot.angle)
            st.session_state._capture_nonce += 1
            st.rerun()
    else:
        _capture_widgets(slot.angle)

    c_back, c_next = st.columns(2)
    with c_back:
        if st.button("Back", use_container_width=True):
            wizard.back()
            st.rerun()
    with c_next:
        label = "Next" if slot.filled else "Skip"
        if st.button(label, type="primary" if slot.filled else "secondary", use_container_width=True):
            wizard.next()
            st.rerun()

elif wizard.step == REVIEW:
    section_header("Review your photos", f"{wizard.filled_count} of {len(ANGLES)} angles captured.")
    cols = st.columns(len(wizard.slots))
    for col, slot in zip(cols, wizard.slots):
        with col:
            if slot.filled:
                st.image(slot.file.data, caption=slot.label, use_container_width=True)
                if st.button("Remove", key=f"remove_{slot.angle}"):
                    wizard.remove_photo(slot.angle)
                    st.rerun()
            else:
                st.caption(f"{slot.label}: skipped")

    if not wizard.can_submit:
        st.warning(f"Add at least {MIN_PHOTOS_TO_SUBMIT} photos to run an analysis.")

    c_back, c_submit = st.columns(2)
    with c_back:
        if st.button("Back", use_container_width=True):
            wizard.back()
            st.rerun()
    with c_submit:
        if st.button("Analyze", type="primary", disabled=not wizard.can_submit, use_container_width=True):
            try:
                wizard.submit()
            except SubmissionBlocked as err:
                st.warning(str(err))
            else:
                st.rerun()

elif wizard.step == ANALYZING:
    if not wizard.claim():
        wizard.interrupted()
        st.rerun()
    with st.spinner("Analyzing your photos..."):
        # Outcome must be on the wizard before the spinner exits.
        outcome = _submission().run(current_auth(), wizard.slots)
        if outcome.ok:
            wizard.complete(outcome.result, outcome.session_id)
        else:
            wizard.fail(outcome.failure)
    st.rerun()

elif wizard.step == RESULTS:
    result = wizard.result
    section_header("Your results", "Scores run from 0 to 100. Higher is healthier.")
    cols = st.columns(4)
    for col, (label, value) in zip(
        cols,
        [
            ("Overall", result.overall_score),
            ("Density", result.density_score),
            ("Hairline", result.hairline_score),
            ("Crown", result.crown_score),
        ],
    ):
        with col:
            score_card(label, value)

    st.write(result.ai_summary)
    if result.comparison_notes:
        with st.expander("Compared with your last analysis", expanded=True):
            st.write(result.comparison_notes)
    if result.alert_triggered:
        st.warning("Notable thinning or recession was detected. Consider booking a specialist.")
        if st.button("Find a specialist"):
            st.switch_page("pages/4_Specialists.py")

    c_hist, c_new = st.columns(2)
    with c_hist:
        if st.button("View history", use_container_width=True):
            st.switch_page("pages/2_History.py")
    with c_new:
        if st.button("New analysis", type="primary", use_container_width=True):
            wizard.restart()
            st.rerun()

elif wizard.step == ERROR:
    failure = wizard.failure
    guidance = guidance_for(failure.code)
    st.error(f"**{guidance['title']}**  \n{failure.message}")
    st.caption(guidance["hint"])

    c_edit, c_retry = st.columns(2)
    with c_edit:
        if st.button("Edit photos", use_container_width=True):
            wizard.edit_photos()
            st.rerun()
    with c_retry:
        if failure.code is FailureCode.AUTH:
            if st.button("Sign in again", type="primary", use_container_width=True):
                st.session_state.pop("auth", None)
                st.switch_page("app.py")
        elif st.button("Try again", type="primary", use_container_width=True):
            wizard.retry()
            st.rerun()
