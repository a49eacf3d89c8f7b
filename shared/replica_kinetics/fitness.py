"""
Fitness factors of a template from its residence and hitting times.

Two competing requirements decide replication success:

- retention: the fully bonded strand must persist long enough for the
  covalent backbone to form, P_c = 1 - exp(-r0 * R)
- growth: monomers must bond to the template faster than they are lost to
  competing processes such as dimerization, P_g = (1/H) / (rg + 1/H)

The reported fitness is the product P_c * P_g.
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class FitnessFactors:
    """Retention and growth probabilities of one parameter point."""
    retention: float
    growth: float

    @property
    def combined(self) -> float:
        return self.retention * self.growth

    def to_dict(self) -> Dict[str, float]:
        return {
            'retention': self.retention,
            'growth': self.growth,
            'combined': self.combined,
        }


def _require_positive(name: str, value: float) -> float:
    value = float(value)
    if not np.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be finite and > 0, got {value}")
    return value


def retention_probability(residence: float, r0: float) -> float:
    """Probability that the covalent bond forms during one residence in 11111."""
    residence = _require_positive("residence", residence)
    r0 = _require_positive("r0", r0)
    return float(-np.expm1(-r0 * residence))


def growth_probability(hitting: float, rg: float) -> float:
    """Advantage of template bonding over bonding with free monomers."""
    hitting = _require_positive("hitting", hitting)
    rg = _require_positive("rg", rg)
    rate = 1.0 / hitting
    return rate / (rg + rate)


def fitness(
    residence: float,
    hitting_from_start: float,
    r0: float,
    rg: float,
) -> Tuple[float, float]:
    """
    Retention and growth probabilities.

    Parameters
    ----------
    residence : float
        Residence time in the fully bonded state.
    hitting_from_start : float
        Hitting time of the fully bonded state from the empty template.
    r0 : float
        Covalent bond formation rate relative to H-bond formation.
    rg : float
        Free-monomer competition rate relative to H-bond formation.

    Returns
    -------
    (retention, growth) : tuple of float
        Both in (0, 1).
    """
    return (
        retention_probability(residence, r0),
        growth_probability(hitting_from_start, rg),
    )


def evaluate_fitness(
    residence: float,
    hitting_from_start: float,
    r0: float,
    rg: float,
) -> FitnessFactors:
    """Same as `fitness`, packed into a FitnessFactors."""
    retention, growth = fitness(residence, hitting_from_start, r0, rg)
    return FitnessFactors(retention=retention, growth=growth)
