"""Defaults, symbol aliases and runtime settings for the simulator front ends.

The model never reads anything from here; callers build a
``ReactorParameters``/``ReactorState`` from these defaults and pass them in.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Dict, Iterable, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .model import ReactorParameters, ReactorState

ALLOWED_SPEEDS = (1, 2, 5, 10)

# Reference operating point (MATLAB reference case of the teaching model).
DEFAULT_PARAMETERS = ReactorParameters(
    inlet_flow_rate=1.0,
    feed_concentration=0.5,
    feed_temperature=350.0,
    jacket_inlet_temperature=300.0,
    valve_constant=0.1,
    minimum_volume=0.1,
    pre_exponential_factor=1.0,
    activation_energy=10000.0,
    gas_constant=8.314,
    reaction_order=2.0,
    density=1000.0,
    heat_capacity=4.18,
    heat_of_reaction=1.0,
    heat_transfer_coefficient=100.0,
    heat_transfer_area=1.0,
    jacket_density=1000.0,
    jacket_heat_capacity=4.18,
    jacket_volume=0.1,
    jacket_flow_rate=0.1,
)

DEFAULT_INITIAL_STATE = ReactorState(
    volume=1.0,
    concentration=0.5,
    temperature=350.0,
    jacket_temperature=300.0,
    time=0.0,
)

PARAMETER_SYMBOLS: Dict[str, str] = {
    "F0": "inlet_flow_rate",
    "CA0": "feed_concentration",
    "T0": "feed_temperature",
    "TJ0": "jacket_inlet_temperature",
    "KV": "valve_constant",
    "Vmin": "minimum_volume",
    "alpha": "pre_exponential_factor",
    "E": "activation_energy",
    "R": "gas_constant",
    "n": "reaction_order",
    "rho": "density",
    "Cp": "heat_capacity",
    "lambda": "heat_of_reaction",
    "U": "heat_transfer_coefficient",
    "AH": "heat_transfer_area",
    "rhoJ": "jacket_density",
    "CJ": "jacket_heat_capacity",
    "VJ": "jacket_volume",
    "FJ": "jacket_flow_rate",
}

_FIELD_NAMES = {f.name for f in dataclasses.fields(ReactorParameters)}


@dataclass(frozen=True)
class ParameterRange:
    label: str
    minimum: float
    maximum: float
    step: float
    unit: str = ""


# Slider ranges of the interactive dashboard, keyed by field name.
PARAMETER_RANGES: Dict[str, ParameterRange] = {
    "inlet_flow_rate": ParameterRange("Inlet flow rate (F0)", 0.1, 3.0, 0.1, "m³/s"),
    "feed_concentration": ParameterRange("Feed concentration (CA0)", 0.1, 2.0, 0.1, "mol/m³"),
    "feed_temperature": ParameterRange("Feed temperature (T0)", 300.0, 400.0, 5.0, "K"),
    "jacket_inlet_temperature": ParameterRange("Jacket inlet temp (TJ0)", 280.0, 350.0, 5.0, "K"),
    "valve_constant": ParameterRange("Valve constant (KV)", 0.01, 0.5, 0.01, "1/s"),
    "pre_exponential_factor": ParameterRange("Pre-exponential factor (α)", 0.1, 10.0, 0.1, "1/s"),
    "activation_energy": ParameterRange("Activation energy (E)", 5000.0, 20000.0, 1000.0, "J/mol"),
    "reaction_order": ParameterRange("Reaction order (n)", 1.0, 3.0, 0.1),
    "heat_transfer_coefficient": ParameterRange("Heat transfer coeff (U)", 50.0, 500.0, 10.0, "W/(m²·K)"),
}


def resolve_parameter_name(name: str) -> str:
    """Map an engineering symbol (``F0``) or a field name to the field name."""
    if name in _FIELD_NAMES:
        return name
    if name in PARAMETER_SYMBOLS:
        return PARAMETER_SYMBOLS[name]
    raise ValueError(f"Unknown parameter '{name}'. Use one of: {', '.join(PARAMETER_SYMBOLS)}")


def parse_overrides(items: Iterable[str]) -> Dict[str, float]:
    """Parse ``SYM=VALUE`` strings, e.g. ``["F0=1.5", "n=1"]``."""
    out: Dict[str, float] = {}
    for item in items:
        key, sep, raw = item.partition("=")
        if not sep:
            raise ValueError(f"Override '{item}' must look like NAME=VALUE")
        try:
            value = float(raw)
        except ValueError:
            raise ValueError(f"Override '{item}' has a non-numeric value") from None
        out[resolve_parameter_name(key.strip())] = value
    return out


def parameters_with(overrides: Iterable[str] = ()) -> ReactorParameters:
    return DEFAULT_PARAMETERS.merge(**parse_overrides(overrides))


def symbol_table() -> List[Dict[str, object]]:
    return [
        {"symbol": sym, "field": field, "default": getattr(DEFAULT_PARAMETERS, field)}
        for sym, field in PARAMETER_SYMBOLS.items()
    ]


class SimulationSettings(BaseSettings):
    """Runtime knobs for the CLI and dashboard, read from ``CSTRSIM_*`` env vars."""

    speed: int = 1
    history_size: int = 50
    tick_interval_s: float = 0.1
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="CSTRSIM_")

    @field_validator("speed")
    @classmethod
    def _check_speed(cls, v: int) -> int:
        if v not in ALLOWED_SPEEDS:
            raise ValueError(f"speed must be one of {ALLOWED_SPEEDS}")
        return v

    @field_validator("history_size")
    @classmethod
    def _check_history_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("history_size must be positive")
        return v
