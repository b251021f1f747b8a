from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from scipy.integrate import solve_ivp

RHSFunction = Callable[[np.ndarray], np.ndarray]


@dataclass(frozen=True)
class SolveResult:
    t: List[float]
    y: List[List[float]]  # y[i][k] state variable i at time k
    status: int
    message: str


def rk4_step(rhs: RHSFunction, y: np.ndarray, h: float) -> np.ndarray:
    """Advance an autonomous system y' = rhs(y) by one classical RK4 step.

    Stage increments are scaled by h before combination:
    k1 = h f(y), k2 = h f(y + k1/2), k3 = h f(y + k2/2), k4 = h f(y + k3).
    Every stage starts from the same y; y itself is never modified.
    """
    y0 = np.asarray(y, dtype=np.float64)
    with np.errstate(all="ignore"):
        k1 = h * rhs(y0)
        k2 = h * rhs(y0 + k1 / 2)
        k3 = h * rhs(y0 + k2 / 2)
        k4 = h * rhs(y0 + k3)
        return y0 + (k1 + 2 * k2 + 2 * k3 + k4) / 6


def integrate_ode(
    rhs: Callable[[float, Sequence[float]], Sequence[float]],
    y0: Sequence[float],
    t_span: Tuple[float, float],
    t_eval: Optional[Sequence[float]] = None,
    method: str = "LSODA",
    rtol: float = 1e-8,
    atol: float = 1e-10,
) -> SolveResult:
    sol = solve_ivp(
        fun=lambda t, y: rhs(t, y),
        y0=np.asarray(y0, dtype=float),
        t_span=t_span,
        t_eval=np.asarray(t_eval, dtype=float) if t_eval is not None else None,
        method=method,
        rtol=rtol,
        atol=atol,
    )
    return SolveResult(t=sol.t.tolist(), y=sol.y.tolist(), status=sol.status, message=sol.message)
