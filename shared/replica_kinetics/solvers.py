"""
Residence and hitting times of the fully bonded state.

Residence time: mean sojourn in '11111' once entered, 1/|Q[11111, 11111]|.

Hitting times: expected time to first reach '11111' from each of the other
31 states. With 11111 made absorbing, the vector t solves

    Q_T t = -1

where Q_T is the generator restricted to the transient states. Expected
times cannot be negative, so the system is solved as a non-negative least
squares problem rather than by plain elimination.
"""

import warnings
import numpy as np
from numpy.typing import ArrayLike
from dataclasses import dataclass
from scipy.optimize import nnls

from .generator import MalformedGeneratorError, validate_generator
from .states import FULL_STATE, EMPTY_STATE, N_STATES, Pattern, state_index

# Reference bound on the squared residual of the constrained solve
DEFAULT_TOLERANCE = 1e-10

TRANSIENT_STATES = tuple(i for i in range(N_STATES) if i != FULL_STATE)


class NumericalInstabilityWarning(RuntimeWarning):
    """The non-negative hitting-time solve left a residual above tolerance."""


class NumericalInstabilityError(RuntimeError):
    """Strict-mode counterpart of NumericalInstabilityWarning."""


@dataclass
class HittingTimeResult:
    """Solution of the hitting-time system."""

    times: np.ndarray          # Shape (31,), canonical order without 11111
    residual: float            # Squared 2-norm of Q_T t + 1
    tolerance: float
    stable: bool               # residual <= tolerance

    numpy_version: str = ""
    scipy_version: str = ""

    @property
    def from_empty(self) -> float:
        """Expected time to fill the empty template."""
        return float(self.times[TRANSIENT_STATES.index(EMPTY_STATE)])

    def time_from(self, pattern: Pattern) -> float:
        """Expected hitting time from a given occupancy pattern."""
        i = state_index(pattern)
        if i == FULL_STATE:
            return 0.0
        return float(self.times[TRANSIENT_STATES.index(i)])

    def __repr__(self) -> str:
        return (
            f"HittingTimeResult(\n"
            f"  from_empty={self.from_empty:.6g},\n"
            f"  range=[{self.times.min():.6g}, {self.times.max():.6g}],\n"
            f"  residual={self.residual:.2e}, stable={self.stable}\n"
            f")"
        )


def residence_time(Q: ArrayLike) -> float:
    """
    Mean residence time in the fully bonded state.

    Parameters
    ----------
    Q : array_like
        (32, 32) generator matrix.

    Returns
    -------
    float
        abs(1 / Q[11111, 11111]).

    Raises
    ------
    MalformedGeneratorError
        If the generator is malformed, including a zero exit rate from 11111.
    """
    Q = np.asarray(Q, dtype=float)
    if Q.shape == (N_STATES, N_STATES) and Q[FULL_STATE, FULL_STATE] == 0:
        raise MalformedGeneratorError(
            "Fully bonded state has no outgoing transitions; residence time undefined"
        )
    validate_generator(Q)
    return float(abs(1.0 / Q[FULL_STATE, FULL_STATE]))


def solve_hitting_times(
    Q: ArrayLike,
    tolerance: float = DEFAULT_TOLERANCE,
    strict: bool = False,
) -> HittingTimeResult:
    """
    Expected hitting times of 11111 from every other state.

    Parameters
    ----------
    Q : array_like
        (32, 32) generator matrix.
    tolerance : float
        Upper bound on the squared residual of the solve.
    strict : bool
        Raise NumericalInstabilityError instead of warning when the
        residual exceeds `tolerance`.

    Returns
    -------
    HittingTimeResult
    """
    import scipy

    Q = np.asarray(Q, dtype=float)
    validate_generator(Q)

    transient = list(TRANSIENT_STATES)
    M = Q[np.ix_(transient, transient)]
    b = -np.ones(len(transient))

    times, rnorm = nnls(M, b)
    residual = float(rnorm ** 2)
    stable = residual <= tolerance

    if not stable:
        message = (
            f"Non-negative hitting-time solve residual {residual:.3e} "
            f"exceeds tolerance {tolerance:.1e}"
        )
        if strict:
            raise NumericalInstabilityError(message)
        warnings.warn(message, NumericalInstabilityWarning)

    return HittingTimeResult(
        times=times,
        residual=residual,
        tolerance=tolerance,
        stable=stable,
        numpy_version=np.__version__,
        scipy_version=scipy.__version__,
    )


def hitting_times(
    Q: ArrayLike,
    tolerance: float = DEFAULT_TOLERANCE,
    strict: bool = False,
) -> np.ndarray:
    """
    Convenience function returning only the hitting-time vector.

    Entry 0 is the hitting time from the empty template '00000'.
    """
    return solve_hitting_times(Q, tolerance=tolerance, strict=strict).times
