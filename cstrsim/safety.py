from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable

from .model import ReactorState


class SafetyLevel(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    DANGER = "danger"


_SEVERITY = {SafetyLevel.NORMAL: 0, SafetyLevel.WARNING: 1, SafetyLevel.DANGER: 2}


@dataclass(frozen=True)
class SafetyThresholds:
    temperature_high_K: float = 400.0  # danger above
    temperature_low_K: float = 280.0  # warning below
    concentration_high: float = 2.0  # mol/m^3, warning above
    volume_low: float = 0.2  # m^3, warning below
    conversion_low_pct: float = 30.0  # warning below


def assess(state: ReactorState, conversion: float, thresholds: SafetyThresholds = SafetyThresholds()) -> Dict[str, SafetyLevel]:
    """Classify the operating point the way the dashboard colours its indicators."""
    if state.temperature > thresholds.temperature_high_K:
        temperature = SafetyLevel.DANGER
    elif state.temperature < thresholds.temperature_low_K:
        temperature = SafetyLevel.WARNING
    else:
        temperature = SafetyLevel.NORMAL
    return {
        "temperature": temperature,
        "concentration": SafetyLevel.WARNING if state.concentration > thresholds.concentration_high else SafetyLevel.NORMAL,
        "volume": SafetyLevel.WARNING if state.volume < thresholds.volume_low else SafetyLevel.NORMAL,
        "conversion": SafetyLevel.WARNING if conversion < thresholds.conversion_low_pct else SafetyLevel.NORMAL,
    }


def worst(levels: Iterable[SafetyLevel]) -> SafetyLevel:
    return max(levels, key=_SEVERITY.__getitem__, default=SafetyLevel.NORMAL)
