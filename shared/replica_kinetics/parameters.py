"""
Rate parameters and experimental conditions.

Rates are expressed in units of the H-bond formation rate, so time is
measured in units of 1/formation_rate throughout the package.
"""

import numpy as np
from dataclasses import dataclass, fields, asdict
from enum import Enum
from typing import Dict, Optional, Tuple


class NeighborContext(Enum):
    """Occupancy of the two neighbours of a site being flipped."""
    ISOLATED = "isolated"          # no occupied neighbour
    RIGHT = "right"                # joins/leaves on the right of an occupied site
    LEFT = "left"                  # joins/leaves on the left of an occupied site
    COOPERATIVE = "cooperative"    # both neighbours occupied


@dataclass(frozen=True)
class RateParameterSet:
    """
    Attachment (p) and detachment (q) rates for the four neighbour contexts.

    p0, q0 : isolated site
    pr, qr : left neighbour occupied (monomer on the right of a bonded one)
    pl, ql : right neighbour occupied (monomer on the left of a bonded one)
    pc, qc : both neighbours occupied
    """
    p0: float
    q0: float
    pr: float
    qr: float
    pl: float
    ql: float
    pc: float
    qc: float

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not np.isfinite(value):
                raise ValueError(f"Rate {f.name} must be finite, got {value}")
            if value < 0:
                raise ValueError(f"Rate {f.name} must be >= 0, got {value}")
            object.__setattr__(self, f.name, float(value))

    @classmethod
    def from_cooperativity(
        cls,
        breakage_rate: float,
        formation_rate: float,
        alpha_left: float = 1.0,
        alpha_right: float = 1.0,
    ) -> "RateParameterSet":
        """
        Derive the eight rates from base H-bond rates and cooperativity factors.

        A bonded neighbour scales both attachment and detachment by the same
        factor, so each context keeps the base equilibrium constant. The
        cooperative context multiplies both factors.

        Parameters
        ----------
        breakage_rate : float
            H-bond breakage rate (per unit time).
        formation_rate : float
            H-bond formation rate (per unit time). Used as the rate unit.
        alpha_left : float
            Factor applied when the right neighbour is occupied.
        alpha_right : float
            Factor applied when the left neighbour is occupied.
        """
        if formation_rate <= 0:
            raise ValueError(f"formation_rate must be > 0, got {formation_rate}")
        if breakage_rate < 0:
            raise ValueError(f"breakage_rate must be >= 0, got {breakage_rate}")
        if alpha_left < 0 or alpha_right < 0:
            raise ValueError(
                f"Cooperativity factors must be >= 0, got "
                f"alpha_left={alpha_left}, alpha_right={alpha_right}"
            )

        p0 = formation_rate / formation_rate
        q0 = breakage_rate / formation_rate
        return cls(
            p0=p0,
            q0=q0,
            pr=p0 * alpha_right,
            qr=q0 * alpha_right,
            pl=p0 * alpha_left,
            ql=q0 * alpha_left,
            pc=p0 * alpha_left * alpha_right,
            qc=q0 * alpha_left * alpha_right,
        )

    @classmethod
    def non_cooperative(cls, attach: float, detach: float) -> "RateParameterSet":
        """All four contexts share the same rate pair."""
        return cls(attach, detach, attach, detach, attach, detach, attach, detach)

    def pair(self, context: NeighborContext) -> Tuple[float, float]:
        """(attachment, detachment) rates for a neighbour context."""
        if context == NeighborContext.ISOLATED:
            return self.p0, self.q0
        elif context == NeighborContext.RIGHT:
            return self.pr, self.qr
        elif context == NeighborContext.LEFT:
            return self.pl, self.ql
        elif context == NeighborContext.COOPERATIVE:
            return self.pc, self.qc
        raise ValueError(f"Unknown neighbour context: {context}")

    def mirrored(self) -> "RateParameterSet":
        """Rates with the left and right contexts exchanged."""
        return RateParameterSet(
            self.p0, self.q0, self.pl, self.ql, self.pr, self.qr, self.pc, self.qc
        )

    def as_tuple(self) -> Tuple[float, ...]:
        """(p0, q0, pr, qr, pl, ql, pc, qc)"""
        return tuple(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ReplicationConditions:
    """
    Kinetic environment of the template.

    Defaults reproduce the published parameter choice: H-bond breakage
    0.5/s, formation 1/s, covalent bond formation 10/s, and competing
    free-monomer bonding at the H-bond formation rate.
    """
    breakage_rate: float = 0.5
    formation_rate: float = 1.0
    covalent_formation_rate: float = 10.0
    free_bonding_rate: Optional[float] = None   # None -> formation_rate

    def __post_init__(self):
        if self.free_bonding_rate is None:
            object.__setattr__(self, 'free_bonding_rate', self.formation_rate)
        for f in fields(self):
            value = getattr(self, f.name)
            if not np.isfinite(value) or value <= 0:
                raise ValueError(f"{f.name} must be finite and > 0, got {value}")

    @property
    def r0(self) -> float:
        """Covalent bond formation relative to H-bond formation."""
        return self.covalent_formation_rate / self.formation_rate

    @property
    def rg(self) -> float:
        """Monomer loss to free bonding relative to H-bond formation."""
        return self.free_bonding_rate / self.formation_rate

    def rates(self, alpha_left: float = 1.0, alpha_right: float = 1.0) -> RateParameterSet:
        """Rate set for a pair of cooperativity factors."""
        return RateParameterSet.from_cooperativity(
            self.breakage_rate, self.formation_rate, alpha_left, alpha_right
        )

    def to_dict(self) -> Dict[str, float]:
        d = asdict(self)
        d['r0'] = self.r0
        d['rg'] = self.rg
        return d
