"""Jacketed CSTR with variable volume and one nth-order exothermic reaction.

State x = (V, CA, T, TJ):

    F      = KV * (V - Vmin)
    r      = alpha * exp(-E / (R*T)) * CA**n
    dV/dt  = F0 - F
    dCA/dt = (F0*CA0 - F*CA - V*r) / V
    dT/dt  = (rho*Cp*(F0*T0 - F*T) - lambda*V*r - U*AH*(T - TJ)) / (rho*Cp*V)
    dTJ/dt = (FJ*rhoJ*CJ*(TJ0 - TJ) + U*AH*(T - TJ)) / (rhoJ*CJ*VJ)

Nothing is clamped or validated here. Degenerate inputs (V = 0, negative CA
with a non-integer order, overflowing exponentials) come out as inf/nan.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

import numpy as np

from .kinetics import Arrhenius, power_law_rate
from .solver import rk4_step

logger = logging.getLogger(__name__)

TIME_STEP_S: float = 0.1


@dataclass
class ReactorState:
    volume: float  # m^3
    concentration: float  # mol/m^3
    temperature: float  # K
    jacket_temperature: float  # K
    time: float = 0.0  # s

    def as_vector(self) -> np.ndarray:
        return np.array(
            [self.volume, self.concentration, self.temperature, self.jacket_temperature],
            dtype=np.float64,
        )

    @classmethod
    def from_vector(cls, y: np.ndarray, time: float) -> "ReactorState":
        return cls(
            volume=float(y[0]),
            concentration=float(y[1]),
            temperature=float(y[2]),
            jacket_temperature=float(y[3]),
            time=time,
        )

    def copy(self) -> "ReactorState":
        return dataclasses.replace(self)


@dataclass(frozen=True)
class ReactorParameters:
    inlet_flow_rate: float  # F0, m^3/s
    feed_concentration: float  # CA0, mol/m^3
    feed_temperature: float  # T0, K
    jacket_inlet_temperature: float  # TJ0, K
    valve_constant: float  # KV, 1/s
    minimum_volume: float  # Vmin, m^3
    pre_exponential_factor: float  # alpha
    activation_energy: float  # E, J/mol
    gas_constant: float  # R, J/(mol K)
    reaction_order: float  # n
    density: float  # rho, kg/m^3
    heat_capacity: float  # Cp, J/(kg K)
    heat_of_reaction: float  # lambda, J/mol
    heat_transfer_coefficient: float  # U, W/(m^2 K)
    heat_transfer_area: float  # AH, m^2
    jacket_density: float  # rhoJ, kg/m^3
    jacket_heat_capacity: float  # CJ, J/(kg K)
    jacket_volume: float  # VJ, m^3
    jacket_flow_rate: float  # FJ, m^3/s

    def merge(self, **changes: float) -> "ReactorParameters":
        """Return a copy with the named fields replaced.

        Unknown field names raise TypeError.
        """
        return dataclasses.replace(self, **changes)

    @property
    def kinetics(self) -> Arrhenius:
        return Arrhenius(alpha=self.pre_exponential_factor, E=self.activation_energy, R=self.gas_constant)


Validator = Callable[[ReactorState, ReactorParameters], None]


def outlet_flow_rate(volume: float, p: ReactorParameters) -> np.float64:
    # Valve law, negative below Vmin.
    return p.valve_constant * (np.float64(volume) - p.minimum_volume)


def nth_order_rate(concentration: float, temperature: float, p: ReactorParameters) -> np.float64:
    return power_law_rate(p.kinetics.k(temperature), concentration, p.reaction_order)


def derivatives(y: np.ndarray, p: ReactorParameters) -> np.ndarray:
    """Right-hand side f(x) of the four balances, evaluated at y = (V, CA, T, TJ)."""
    V, CA, T, TJ = (np.float64(v) for v in y)
    with np.errstate(all="ignore"):
        F = outlet_flow_rate(V, p)
        r = nth_order_rate(CA, T, p)
        rho_cp = p.density * p.heat_capacity
        rho_cj = p.jacket_density * p.jacket_heat_capacity
        heat_transfer = p.heat_transfer_coefficient * p.heat_transfer_area * (T - TJ)

        dV = p.inlet_flow_rate - F
        dCA = (p.inlet_flow_rate * p.feed_concentration - F * CA - V * r) / V
        dT = (
            rho_cp * (p.inlet_flow_rate * p.feed_temperature - F * T)
            - p.heat_of_reaction * V * r
            - heat_transfer
        ) / (rho_cp * V)
        dTJ = (
            p.jacket_flow_rate * rho_cj * (p.jacket_inlet_temperature - TJ) + heat_transfer
        ) / (rho_cj * p.jacket_volume)
    return np.array([dV, dCA, dT, dTJ], dtype=np.float64)


class ReactorModel:
    """Owns one reactor state and one parameter snapshot.

    The caller drives it: ``step()`` advances by exactly ``dt`` seconds with
    classical RK4, ``update_parameters()`` may be called between steps, and
    the diagnostic getters are read-only views of the current state.

    An optional ``validator`` is called with the candidate state of every
    step before it is committed. It rejects a step by raising
    :class:`cstrsim.validation.ReactorValidationError`, which leaves the
    model at its previous state. Without one, nothing is checked.
    """

    dt: float = TIME_STEP_S

    def __init__(
        self,
        initial_state: ReactorState,
        parameters: ReactorParameters,
        validator: Optional[Validator] = None,
    ) -> None:
        self._state = initial_state.copy()
        self._params = dataclasses.replace(parameters)
        self._validator = validator

    @property
    def parameters(self) -> ReactorParameters:
        return self._params

    def get_state(self) -> ReactorState:
        return self._state.copy()

    def update_parameters(self, partial: Optional[Mapping[str, float]] = None, **changes: float) -> None:
        fields = dict(partial or {})
        fields.update(changes)
        self._params = self._params.merge(**fields)
        logger.debug("Parameters updated at t=%.3f s: %s", self._state.time, fields)

    def step(self) -> ReactorState:
        params = self._params
        y1 = rk4_step(lambda y: derivatives(y, params), self._state.as_vector(), self.dt)
        candidate = ReactorState.from_vector(y1, self._state.time + self.dt)
        if self._validator is not None:
            try:
                self._validator(candidate, params)
            except ValueError:
                logger.warning("Step rejected at t=%.3f s", self._state.time)
                raise
        self._state = candidate
        return candidate.copy()

    # --- diagnostics ---

    def outlet_flow(self) -> float:
        return float(outlet_flow_rate(self._state.volume, self._params))

    def reaction_rate(self) -> float:
        with np.errstate(all="ignore"):
            return float(nth_order_rate(self._state.concentration, self._state.temperature, self._params))

    def conversion(self) -> float:
        """Percentage of the feed reactant consumed, 0 for a zero-concentration feed."""
        ca0 = self._params.feed_concentration
        if ca0 == 0:
            return 0.0
        return (ca0 - self._state.concentration) / ca0 * 100

    def residence_time(self) -> float:
        F = self.outlet_flow()
        return self._state.volume / F if F > 0 else 0.0

    def heat_removal_rate(self) -> float:
        """Heat flow from reactor to jacket in kW."""
        p = self._params
        return p.heat_transfer_coefficient * p.heat_transfer_area * (
            self._state.temperature - self._state.jacket_temperature
        ) / 1000
