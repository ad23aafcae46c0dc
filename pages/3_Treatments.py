import streamlit as st

from catalog.treatments import (
    category_label,
    commitment_label,
    cost_label,
    evidence_stars,
    filter_treatments,
    list_treatments,
)
from components.ui_theme import apply_theme, require_auth, section_header, top_nav
from config import LEVELS, TREATMENT_CATEGORIES

st.set_page_config(page_title="Treatments", page_icon="💊", layout="wide")
apply_theme()
user = require_auth()
top_nav(user)

st.markdown("## Treatment Options")
st.caption("Evidence-rated options, most studied first. Talk to a professional before starting anything new.")

treatments = list_treatments()

c1, c2, c3 = st.columns(3)
with c1:
    category = st.selectbox("Category", ["all"] + TREATMENT_CATEGORIES, format_func=lambda c: "All" if c == "all" else category_label(c))
with c2:
    cost = st.selectbox("Cost", ["all"] + LEVELS, format_func=lambda c: "All" if c == "all" else cost_label(c))
with c3:
    commitment = st.selectbox("Commitment", ["all"] + LEVELS, format_func=lambda c: "All" if c == "all" else commitment_label(c))

filtered = filter_treatments(treatments, category, cost, commitment)
st.caption(f"Showing {len(filtered)} of {len(treatments)} treatments")

if not filtered:
    section_header("No treatments match your filters.", "Try clearing one of the filters above.")

for t in filtered:
    with st.container(border=True):
        st.markdown(f"**{t.name}**  ·  {category_label(t.category)}")
        st.write(t.description)
        st.caption(
            f"Evidence {evidence_stars(t.evidence_rating)}  ·  "
            f"Cost {cost_label(t.cost_level)}  ·  {commitment_label(t.commitment_level)}"
        )
        if t.affiliate_url:
            st.markdown(f"[Learn more]({t.affiliate_url})")
