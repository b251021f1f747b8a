"""Optional step validators for :class:`cstrsim.model.ReactorModel`.

The model itself never checks physical plausibility. Pass one of these (or
``chain(...)`` of several) as ``validator=`` to make a run fail fast instead
of propagating inf/nan.
"""

from __future__ import annotations

import math
from typing import Callable

from .model import ReactorParameters, ReactorState, Validator


class ReactorValidationError(ValueError):
    """A candidate state was rejected by a validator."""

    def __init__(self, message: str, state: ReactorState) -> None:
        super().__init__(message)
        self.state = state


def require_finite(state: ReactorState, params: ReactorParameters) -> None:
    for name in ("volume", "concentration", "temperature", "jacket_temperature"):
        value = getattr(state, name)
        if not math.isfinite(value):
            raise ReactorValidationError(f"{name} is not finite ({value}) at t={state.time:.3f} s", state)


def require_volume_above_minimum(state: ReactorState, params: ReactorParameters) -> None:
    if not state.volume > params.minimum_volume:
        raise ReactorValidationError(
            f"volume {state.volume:.4g} m^3 fell to or below Vmin={params.minimum_volume:.4g} m^3",
            state,
        )


def require_non_negative_concentration(state: ReactorState, params: ReactorParameters) -> None:
    if state.concentration < 0:
        raise ReactorValidationError(f"concentration {state.concentration:.4g} mol/m^3 is negative", state)


def chain(*validators: Validator) -> Callable[[ReactorState, ReactorParameters], None]:
    """Run validators in order; the first failure wins."""

    def _run(state: ReactorState, params: ReactorParameters) -> None:
        for check in validators:
            check(state, params)

    return _run


STRICT: Validator = chain(require_finite, require_volume_above_minimum, require_non_negative_concentration)
