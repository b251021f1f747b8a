from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Arrhenius:
    alpha: float  # pre-exponential factor (1/s for n = 1)
    E: float  # activation energy (J/mol)
    R: float  # gas constant (J/mol-K)

    def k(self, T: float) -> np.float64:
        with np.errstate(all="ignore"):
            return self.alpha * np.exp(-self.E / (self.R * np.float64(T)))


def power_law_rate(k: float, c: float, order: float) -> np.float64:
    """nth-order rate r = k * c**n with a real-valued exponent.

    Concentrations are not clipped: a negative concentration raised to a
    non-integer order gives nan instead of a complex number, silently.
    """
    with np.errstate(all="ignore"):
        return k * np.power(np.float64(c), np.float64(order))
