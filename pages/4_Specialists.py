import streamlit as st

from catalog.specialists import ALL, SEARCH_MAX_LENGTH, SPECIALTIES, cities, filter_clinics, load_clinics
from components.ui_theme import apply_theme, require_auth, top_nav

st.set_page_config(page_title="Specialists", page_icon="🩺", layout="wide")
apply_theme()
user = require_auth()
top_nav(user)

st.markdown("## Find a Specialist")
st.caption("Connect with trusted hair health professionals near you.")

clinics = load_clinics()

c1, c2, c3 = st.columns([2, 1, 1])
with c1:
    search = st.text_input("Search clinics...", max_chars=SEARCH_MAX_LENGTH)
with c2:
    specialty = st.selectbox("Specialty", [ALL] + SPECIALTIES)
with c3:
    city = st.selectbox("City", [ALL] + cities(clinics))

filtered = filter_clinics(clinics, search, specialty, city)

if not filtered:
    st.info("No clinics match your search.")

for clinic in filtered:
    with st.container(border=True):
        left, right = st.columns([3, 1])
        with left:
            st.markdown(f"**{clinic.name}**")
            st.caption(f"{clinic.specialty}  ·  {clinic.location}, {clinic.city}")
            st.caption(f"★ {clinic.rating} ({clinic.review_count} reviews)  ·  {clinic.phone}")
            if clinic.accepts_report:
                st.caption("Accepts Manetain reports")
        with right:
            st.link_button("Website", clinic.website, use_container_width=True)
