import streamlit as st

from components.auth import AuthService
from components.profile_builder import ProfileError, build_profile_update, load_profile, save_profile
from components.ui_theme import apply_theme, current_auth, require_auth, section_header, set_auth, top_nav
from config import HAIR_TYPES, NAME_MAX_LENGTH

st.set_page_config(page_title="Profile", page_icon="👤", layout="wide")
apply_theme()
user = require_auth()
top_nav(user)

st.markdown("## Your Profile")
st.caption("Manage your hair profile and preferences.")

profile = load_profile(user.id)

section_header("Personal information", "Used to give the analysis more context.")
with st.form("profile"):
    full_name = st.text_input("Full name", value=profile["full_name"] or "", max_chars=NAME_MAX_LENGTH)
    age = st.text_input("Age", value="" if profile["age"] is None else str(profile["age"]))
    hair_options = [""] + HAIR_TYPES
    current_type = profile["hair_type"] if profile["hair_type"] in HAIR_TYPES else ""
    hair_type = st.selectbox(
        "Hair type",
        hair_options,
        index=hair_options.index(current_type),
        format_func=lambda h: "Not set" if not h else h.title(),
    )
    family_history = st.checkbox("Family history of hair loss", value=profile["family_history_hair_loss"])
    weekly_reminder = st.toggle("Weekly photo reminders", value=profile["weekly_reminder"])
    submitted = st.form_submit_button("Save changes", type="primary")

if submitted:
    try:
        update = build_profile_update(full_name, age, hair_type, family_history, weekly_reminder)
    except ProfileError as err:
        st.error(str(err))
    else:
        save_profile(user.id, update)
        st.success("Profile updated. Your changes have been saved.")

section_header("Account", user.email)
if st.button("Sign out", use_container_width=True):
    set_auth(AuthService().sign_out(current_auth()))
    for key in ("wizard", "compare_ids"):
        st.session_state.pop(key, None)
    st.switch_page("app.py")

with st.expander("Delete account"):
    st.caption("This cannot be undone. All your data, photos and analysis history would be permanently deleted.")
    if st.button("Delete account", type="secondary"):
        st.info("Please contact support to delete your account.")
