"""CSTRSim: dynamic simulation of a jacketed, variable-volume CSTR.

This package provides:
- Model: four-ODE reactor model (volume, concentration, temperature, jacket
  temperature) advanced with fixed-step RK4 (dt = 0.1 s)
- Validation: optional fail-fast hooks for non-physical states
- Session: interactive driver with speed multiplier and rolling history
- Analytics: trajectories, parameter sweeps, comparison with SciPy solvers
- Safety: threshold classification of the operating point

Run the CLI with: python -m cstrsim.cli
"""

from .model import TIME_STEP_S, ReactorModel, ReactorParameters, ReactorState, derivatives

__all__ = [
    "TIME_STEP_S",
    "ReactorModel",
    "ReactorParameters",
    "ReactorState",
    "derivatives",
]

__version__ = "0.1.0"
