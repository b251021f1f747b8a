from __future__ import annotations

import logging
from collections import deque
from dataclasses import asdict, dataclass
from typing import Deque, Dict, List, Mapping, Optional

import pandas as pd

from .config import ALLOWED_SPEEDS
from .model import ReactorModel, ReactorParameters, ReactorState, Validator
from .safety import SafetyLevel, SafetyThresholds, assess

logger = logging.getLogger(__name__)

HISTORY_COLUMNS: List[str] = [
    "time",
    "volume",
    "concentration",
    "temperature",
    "jacket_temperature",
    "conversion",
    "reaction_rate",
    "outlet_flow",
]


@dataclass(frozen=True)
class HistoryPoint:
    time: float
    volume: float
    concentration: float
    temperature: float
    jacket_temperature: float
    conversion: float
    reaction_rate: float
    outlet_flow: float


def snapshot(model: ReactorModel) -> HistoryPoint:
    s = model.get_state()
    return HistoryPoint(
        time=s.time,
        volume=s.volume,
        concentration=s.concentration,
        temperature=s.temperature,
        jacket_temperature=s.jacket_temperature,
        conversion=model.conversion(),
        reaction_rate=model.reaction_rate(),
        outlet_flow=model.outlet_flow(),
    )


class SimulationSession:
    """Interactive driver around one ReactorModel.

    Each ``tick()`` advances the model ``speed`` steps and keeps the last
    ``history_size`` points for charting. ``reset()`` starts over from the
    initial state but keeps whatever parameters are currently set.
    """

    def __init__(
        self,
        initial_state: ReactorState,
        parameters: ReactorParameters,
        *,
        speed: int = 1,
        history_size: int = 50,
        validator: Optional[Validator] = None,
        thresholds: SafetyThresholds = SafetyThresholds(),
    ) -> None:
        if history_size < 1:
            raise ValueError("history_size must be positive")
        self._initial_state = initial_state.copy()
        self._parameters = parameters
        self._validator = validator
        self.thresholds = thresholds
        self.speed = self._checked_speed(speed)
        self.history: Deque[HistoryPoint] = deque(maxlen=history_size)
        self.model = ReactorModel(self._initial_state, self._parameters, validator=validator)
        self.history.append(snapshot(self.model))

    @staticmethod
    def _checked_speed(speed: int) -> int:
        if speed not in ALLOWED_SPEEDS:
            raise ValueError(f"speed must be one of {ALLOWED_SPEEDS}, got {speed}")
        return speed

    @property
    def state(self) -> ReactorState:
        return self.model.get_state()

    @property
    def parameters(self) -> ReactorParameters:
        return self._parameters

    def set_speed(self, speed: int) -> None:
        self.speed = self._checked_speed(speed)
        logger.info("Simulation speed set to %dx", speed)

    def update_parameters(self, partial: Optional[Mapping[str, float]] = None, **changes: float) -> None:
        self.model.update_parameters(partial, **changes)
        self._parameters = self.model.parameters

    def tick(self) -> ReactorState:
        for _ in range(self.speed):
            self.model.step()
            self.history.append(snapshot(self.model))
        return self.model.get_state()

    def reset(self) -> None:
        self.model = ReactorModel(self._initial_state, self._parameters, validator=self._validator)
        self.history.clear()
        self.history.append(snapshot(self.model))
        logger.info("Simulation reset to t=%.1f s", self._initial_state.time)

    def history_frame(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(p) for p in self.history], columns=HISTORY_COLUMNS)

    def diagnostics(self) -> Dict[str, float]:
        m = self.model
        return {
            "conversion": m.conversion(),
            "residence_time": m.residence_time(),
            "heat_removal_rate": m.heat_removal_rate(),
            "reaction_rate": m.reaction_rate(),
            "outlet_flow": m.outlet_flow(),
        }

    def safety(self) -> Dict[str, SafetyLevel]:
        return assess(self.model.get_state(), self.model.conversion(), self.thresholds)
