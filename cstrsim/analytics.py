from __future__ import annotations

import logging
import time
from dataclasses import asdict
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from .config import resolve_parameter_name
from .model import ReactorModel, ReactorParameters, ReactorState, derivatives
from .session import snapshot
from .solver import integrate_ode

logger = logging.getLogger(__name__)

STATE_COLUMNS: List[str] = ["volume", "concentration", "temperature", "jacket_temperature"]


def steps_for(t_end: float, dt: float = ReactorModel.dt) -> int:
    return max(0, int(round(t_end / dt)))


def _row(model: ReactorModel) -> Dict[str, float]:
    row = asdict(snapshot(model))
    row["residence_time"] = model.residence_time()
    row["heat_removal_rate"] = model.heat_removal_rate()
    return row


def simulate_steps(initial_state: ReactorState, parameters: ReactorParameters, n_steps: int) -> pd.DataFrame:
    """Run the fixed-step model and tabulate state plus diagnostics.

    The first row is the initial state, then one row per step.
    """
    if n_steps < 0:
        raise ValueError("n_steps must be non-negative")
    model = ReactorModel(initial_state, parameters)
    rows = [_row(model)]
    for _ in range(n_steps):
        model.step()
        rows.append(_row(model))
    return pd.DataFrame(rows)


def parameter_sweep(
    initial_state: ReactorState,
    parameters: ReactorParameters,
    name: str,
    values: Sequence[float],
    n_steps: int,
) -> pd.DataFrame:
    """Final state and diagnostics after ``n_steps`` for each value of one parameter.

    Every value runs on its own model instance.
    """
    if n_steps < 0:
        raise ValueError("n_steps must be non-negative")
    field = resolve_parameter_name(name)
    rows: List[Dict[str, float]] = []
    start = time.perf_counter()
    for value in values:
        model = ReactorModel(initial_state, parameters.merge(**{field: float(value)}))
        for _ in range(n_steps):
            model.step()
        rows.append({field: float(value), **_row(model)})
    logger.info("Swept %s over %d values in %.3f s", field, len(rows), time.perf_counter() - start)
    return pd.DataFrame(rows)


def reference_trajectory(
    initial_state: ReactorState,
    parameters: ReactorParameters,
    times: Sequence[float],
    method: str = "LSODA",
) -> pd.DataFrame:
    """Integrate the same balances with SciPy's adaptive solvers on a given time grid.

    Only meant as a yardstick for the fixed-step integrator.
    """
    t_eval = np.asarray(times, dtype=float)
    res = integrate_ode(
        lambda _t, y: derivatives(np.asarray(y), parameters),
        y0=initial_state.as_vector(),
        t_span=(float(t_eval[0]), float(t_eval[-1])),
        t_eval=t_eval,
        method=method,
    )
    if res.status < 0:
        raise RuntimeError(f"Reference integration failed: {res.message}")
    df = pd.DataFrame({"time": res.t})
    for i, col in enumerate(STATE_COLUMNS):
        df[col] = res.y[i]
    return df


def compare_with_reference(
    initial_state: ReactorState,
    parameters: ReactorParameters,
    t_end: float,
    method: str = "LSODA",
) -> Dict[str, float]:
    """Max absolute deviation per state variable between RK4 and the reference solver."""
    n_steps = steps_for(t_end)
    if n_steps == 0:
        raise ValueError("t_end must cover at least one time step")
    rk4 = simulate_steps(initial_state, parameters, n_steps)
    ref = reference_trajectory(initial_state, parameters, rk4["time"].to_numpy(), method=method)
    return {col: float(np.max(np.abs(rk4[col].to_numpy() - ref[col].to_numpy()))) for col in STATE_COLUMNS}
