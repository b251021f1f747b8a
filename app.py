import time

import streamlit as st

from cstrsim.config import (
    ALLOWED_SPEEDS,
    DEFAULT_INITIAL_STATE,
    DEFAULT_PARAMETERS,
    PARAMETER_RANGES,
    SimulationSettings,
)
from cstrsim.safety import SafetyLevel
from cstrsim.session import SimulationSession

try:
    st.set_page_config(page_title="CSTRSim", page_icon="🧪", layout="wide")
except Exception:
    pass

settings = SimulationSettings()

if "session" not in st.session_state:
    st.session_state["session"] = SimulationSession(
        DEFAULT_INITIAL_STATE,
        DEFAULT_PARAMETERS,
        speed=settings.speed,
        history_size=settings.history_size,
    )
    st.session_state["running"] = False

session: SimulationSession = st.session_state["session"]

st.title("CSTR Simulator")
st.caption("Jacketed, variable-volume CSTR with an nth-order exothermic reaction (RK4, dt = 0.1 s).")

###############################################################################
# Controls
###############################################################################
with st.sidebar:
    st.header("Controls")
    c1, c2, c3 = st.columns(3)
    if c1.button("Start", use_container_width=True):
        st.session_state["running"] = True
    if c2.button("Pause", use_container_width=True):
        st.session_state["running"] = False
    if c3.button("Reset", use_container_width=True):
        st.session_state["running"] = False
        session.reset()

    speed = st.selectbox("Speed", ALLOWED_SPEEDS, index=ALLOWED_SPEEDS.index(session.speed), format_func=lambda s: f"{s}x")
    if speed != session.speed:
        session.set_speed(speed)

    st.subheader("Parameters")
    changes = {}
    for field, rng in PARAMETER_RANGES.items():
        current = float(getattr(session.parameters, field))
        label = f"{rng.label} [{rng.unit}]" if rng.unit else rng.label
        value = st.slider(label, min_value=rng.minimum, max_value=rng.maximum, value=current, step=rng.step)
        if value != current:
            changes[field] = value
    if changes:
        session.update_parameters(changes)

###############################################################################
# Current state
###############################################################################
state = session.state
diag = session.diagnostics()

cols = st.columns(4)
cols[0].metric("Volume [m³]", f"{state.volume:.3f}")
cols[1].metric("Concentration [mol/m³]", f"{state.concentration:.4f}")
cols[2].metric("Temperature [K]", f"{state.temperature:.2f}")
cols[3].metric("Jacket temperature [K]", f"{state.jacket_temperature:.2f}")

cols = st.columns(5)
cols[0].metric("Time [s]", f"{state.time:.1f}")
cols[1].metric("Conversion [%]", f"{diag['conversion']:.1f}")
cols[2].metric("Residence time [s]", f"{diag['residence_time']:.2f}")
cols[3].metric("Heat removal [kW]", f"{diag['heat_removal_rate']:.3f}")
cols[4].metric("Outlet flow [m³/s]", f"{diag['outlet_flow']:.3f}")

st.subheader("Safety")
badge = {SafetyLevel.NORMAL: "🟢", SafetyLevel.WARNING: "🟡", SafetyLevel.DANGER: "🔴"}
cols = st.columns(4)
for col, (name, level) in zip(cols, session.safety().items()):
    col.write(f"{badge[level]} {name.capitalize()}: {level.value}")

###############################################################################
# History
###############################################################################
st.subheader("History")
df = session.history_frame().set_index("time")
chart_cols = st.columns(2)
with chart_cols[0]:
    st.caption("Volume [m³]")
    st.line_chart(df[["volume"]])
    st.caption("Temperatures [K]")
    st.line_chart(df[["temperature", "jacket_temperature"]])
with chart_cols[1]:
    st.caption("Concentration [mol/m³]")
    st.line_chart(df[["concentration"]])
    st.caption("Conversion [%]")
    st.line_chart(df[["conversion"]])

with st.expander("Model assumptions"):
    st.markdown(
        """
- Perfect mixing and constant liquid density
- Outlet flow through a valve: F = KV·(V − Vmin)
- Single reaction A → products, rate r = α·exp(−E/RT)·CA^n
- Jacket is a lumped, well-mixed coolant volume with thermal lag
- No validation: an emptying reactor (V → 0) drives the model to inf/nan
"""
    )

if st.session_state["running"]:
    session.tick()
    time.sleep(settings.tick_interval_s)
    st.rerun()
