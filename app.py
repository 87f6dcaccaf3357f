import json

import streamlit as st

from decay_source.config import DEFAULTS
from decay_source.data import inventory_from_dict, inventory_summary
from decay_source.distribution import build
from decay_source.errors import DataUnavailable, NormalizationError
from decay_source.export import (
    distribution_to_mcnp_bytes,
    spectrum_to_json_bytes,
    spectrum_to_png_bytes,
    spectrum_to_text_bytes,
)
from decay_source.nuclides import RadiationType, SortKey
from decay_source.providers import make_provider
from decay_source.spectrum import assemble, spectrum_to_dataframe

st.set_page_config(
    page_title="Decay Source Builder (FISPACT-II -> MCNP)",
    page_icon="☢️",
    layout="wide",
)

st.title("Decay Source Builder")

st.markdown(
    """
Upload a **FISPACT-II JSON** inventory and pick a time step.

For the selected step, the app:
- Looks up decay lines for every active nuclide (pre-built IAEA table or live IAEA API),
- Weights every line by its nuclide's activity to form a **composite spectrum**,
- Builds **MCNP SDEF** distributions: one energy law per nuclide plus an activity-based selector.
"""
)


# --------------------------------------------------------
# CACHED LOADERS
# --------------------------------------------------------
@st.cache_resource
def load_provider(fetch: bool, timeout_s: float):
    return make_provider(fetch, timeout_s=timeout_s)


@st.cache_data
def parse_inventory(raw: bytes):
    return inventory_from_dict(json.loads(raw.decode("utf-8")))


uploaded = st.sidebar.file_uploader("FISPACT-II JSON", type=["json"])
if uploaded is None:
    st.info("Upload an inventory to start.")
    st.stop()

try:
    steps = parse_inventory(uploaded.getvalue())
except ValueError as e:
    st.error(f"Inventory could not be read: {e}")
    st.stop()

if not steps:
    st.error("The inventory contains no time steps.")
    st.stop()

st.subheader("Time steps")
st.dataframe(inventory_summary(steps))

# --------------------------------------------------------
# SIDEBAR: STEP AND DATA OPTIONS
# --------------------------------------------------------
st.sidebar.header("Step & Data")
step_index = st.sidebar.selectbox("Step", [s.index for s in steps], index=len(steps) - 1)

radiation = st.sidebar.selectbox(
    "Radiation type",
    list(RadiationType),
    index=list(RadiationType).index(RadiationType.GAMMA),
    format_func=lambda r: r.value,
    help="Gamma includes x-rays; use x-ray to see the x-ray part alone.",
)
sort_key = st.sidebar.radio("Sort lines by", list(SortKey), format_func=lambda k: k.value)
fetch = st.sidebar.checkbox("Query IAEA directly (slow)", value=DEFAULTS["fetch"])

st.sidebar.header("MCNP")
start_id = st.sidebar.number_input("First distribution number", min_value=1, value=DEFAULTS["start_id"], step=1)

# --------------------------------------------------------
# BUILD SPECTRUM AND DISTRIBUTION
# --------------------------------------------------------
step = steps[step_index]
try:
    spectrum = assemble(step, radiation, sort_key, load_provider(fetch, DEFAULTS["timeout_s"]))
    distribution = build(spectrum, start_id=int(start_id))
except (DataUnavailable, NormalizationError) as e:
    st.error(f"Step {step_index} failed: {e}")
    st.stop()

if not spectrum:
    st.warning(f"No {radiation.value} decay data found for step {step_index}.")
    st.stop()

df = spectrum_to_dataframe(spectrum)
title = f"Step {step_index} - {radiation.value}"

col_plot, col_stats = st.columns([3, 1])

with col_plot:
    st.subheader(title)
    st.image(spectrum_to_png_bytes(df, title=title))

with col_stats:
    st.subheader("Summary")
    st.write(f"**Nuclides with data:** {df['Nuclide'].nunique()}")
    st.write(f"**Decay lines:** {len(df)}")
    if distribution is not None:
        st.write(f"**Total activity:** {distribution.total_activity:.3e} Bq")
        st.write(f"**Particles/decay:** {distribution.particles_per_decay:.3e}")
        st.write(f"**Distributions:** {distribution.ids[0]}-{distribution.ids[-1]}")

st.markdown("---")
st.subheader("Composite spectrum")
st.dataframe(df)

# --------------------------------------------------------
# DOWNLOAD BUTTONS
# --------------------------------------------------------
st.subheader("Downloads")

st.download_button(
    label="Download text table",
    data=spectrum_to_text_bytes(df, title=title),
    file_name=f"step_{step_index}.txt",
    mime="text/plain",
)
st.download_button(
    label="Download JSON",
    data=spectrum_to_json_bytes(spectrum, step_index=step_index, radiation=radiation.value),
    file_name=f"step_{step_index}.json",
    mime="application/json",
)
if distribution is not None:
    st.download_button(
        label="Download MCNP SDEF cards",
        data=distribution_to_mcnp_bytes(distribution),
        file_name=f"step_{step_index}.i",
        mime="text/plain",
    )
