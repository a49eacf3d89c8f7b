"""
Generator (transition-rate) matrix of the template-bonding Markov chain.

A transition flips the occupancy of exactly one site. Its rate is chosen
by the occupancy of the two neighbours of that site:

    left neighbour  right neighbour   rates
    empty           empty             (p0, q0)
    occupied        empty             (pr, qr)
    empty           occupied          (pl, ql)
    occupied        occupied          (pc, qc)

Attachment (0 -> 1) takes the p-rate, detachment (1 -> 0) the q-rate.
In the circular topology sites 1 and 5 are neighbours; in the linear
topology the strand ends have a single neighbour.
"""

import numpy as np
from numpy.typing import ArrayLike
from enum import Enum

from .parameters import NeighborContext, RateParameterSet
from .states import (
    N_SITES,
    N_STATES,
    STATE_PATTERNS,
    Pattern,
    adjacency_mask,
    normalize_pattern,
    state_pattern,
)


class Topology(Enum):
    """Neighbour structure of the template."""
    CIRCULAR = "circular"    # site 1 and site 5 are adjacent
    LINEAR = "linear"        # open strand ends


class MalformedGeneratorError(ValueError):
    """A generator matrix violates a construction invariant."""


def neighbor_context(
    pattern: Pattern,
    site: int,
    topology: Topology = Topology.CIRCULAR,
) -> NeighborContext:
    """
    Neighbour context of a site (0-based) in an occupancy pattern.

    Only the neighbours are inspected, so the context is the same before
    and after the site itself is flipped.
    """
    pattern = normalize_pattern(pattern)
    if not 0 <= site < N_SITES:
        raise IndexError(f"Site must be in [0, {N_SITES}), got {site}")

    if topology == Topology.CIRCULAR:
        left = pattern[(site - 1) % N_SITES] == '1'
        right = pattern[(site + 1) % N_SITES] == '1'
    elif topology == Topology.LINEAR:
        left = site > 0 and pattern[site - 1] == '1'
        right = site < N_SITES - 1 and pattern[site + 1] == '1'
    else:
        raise ValueError(f"Unknown topology: {topology}")

    if left and right:
        return NeighborContext.COOPERATIVE
    elif left:
        return NeighborContext.RIGHT
    elif right:
        return NeighborContext.LEFT
    return NeighborContext.ISOLATED


class GeneratorBuilder:
    """
    Builds the 32x32 generator for one template topology.

    Examples
    --------
    >>> builder = GeneratorBuilder(Topology.LINEAR)
    >>> rates = RateParameterSet.from_cooperativity(0.5, 1.0, 1.0, 4.0)
    >>> Q = builder.build(rates)
    >>> Q.shape
    (32, 32)
    """

    def __init__(self, topology: Topology = Topology.CIRCULAR, atol: float = 1e-9):
        self.topology = Topology(topology)
        self.atol = atol
        self._transitions = self._enumerate_transitions()

    def _enumerate_transitions(self):
        """(i, j, context, attaching) for every adjacent pair of states."""
        transitions = []
        for i, source in enumerate(STATE_PATTERNS):
            for site in range(N_SITES):
                flipped = '1' if source[site] == '0' else '0'
                target = source[:site] + flipped + source[site + 1:]
                j = STATE_PATTERNS.index(target)
                context = neighbor_context(source, site, self.topology)
                transitions.append((i, j, context, source[site] == '0'))
        return transitions

    def build(self, rates: RateParameterSet) -> np.ndarray:
        """
        Build, validate and freeze the generator for a rate set.

        Raises
        ------
        MalformedGeneratorError
            If any allowed transition ends up with a zero rate.
        """
        if not isinstance(rates, RateParameterSet):
            raise TypeError(
                f"rates must be a RateParameterSet, got {type(rates).__name__}"
            )

        Q = np.zeros((N_STATES, N_STATES))
        for i, j, context, attaching in self._transitions:
            attach, detach = rates.pair(context)
            Q[i, j] = attach if attaching else detach

        # Rows sum to zero: conservation of probability flow
        Q -= np.diag(Q.sum(axis=1))

        validate_generator(Q, atol=self.atol)
        Q.setflags(write=False)
        return Q


def build_generator(
    rates: RateParameterSet,
    topology: Topology = Topology.CIRCULAR,
) -> np.ndarray:
    """
    Convenience function to build a generator matrix.

    Parameters
    ----------
    rates : RateParameterSet
        Attachment/detachment rates per neighbour context.
    topology : Topology
        CIRCULAR or LINEAR template.

    Returns
    -------
    np.ndarray
        Read-only (32, 32) generator in canonical state order.
    """
    return GeneratorBuilder(topology).build(rates)


def validate_generator(Q: ArrayLike, atol: float = 1e-9) -> None:
    """
    Check the structural invariants of a generator matrix.

    - shape (32, 32) with finite entries
    - every row sums to zero within `atol`
    - every Hamming-distance-1 pair has a strictly positive rate
    - every other off-diagonal entry is exactly zero

    Raises
    ------
    MalformedGeneratorError
        On the first violated invariant.
    """
    Q = np.asarray(Q, dtype=float)

    if Q.shape != (N_STATES, N_STATES):
        raise MalformedGeneratorError(
            f"Generator must have shape ({N_STATES}, {N_STATES}), got {Q.shape}"
        )
    if not np.all(np.isfinite(Q)):
        raise MalformedGeneratorError("Generator contains non-finite entries")

    row_sums = Q.sum(axis=1)
    bad_rows = np.flatnonzero(np.abs(row_sums) > atol)
    if len(bad_rows) > 0:
        i = bad_rows[0]
        raise MalformedGeneratorError(
            f"Row {i} ({state_pattern(i)}) sums to {row_sums[i]:.3e}, expected 0"
        )

    adjacent = adjacency_mask()
    missing = np.argwhere(adjacent & ~(Q > 0))
    if len(missing) > 0:
        i, j = missing[0]
        raise MalformedGeneratorError(
            f"Entry not right at {state_pattern(i)} -> {state_pattern(j)}: "
            f"rate {Q[i, j]} must be > 0"
        )

    off_diagonal = ~adjacent & ~np.eye(N_STATES, dtype=bool)
    forbidden = np.argwhere(off_diagonal & (Q != 0))
    if len(forbidden) > 0:
        i, j = forbidden[0]
        raise MalformedGeneratorError(
            f"Transition {state_pattern(i)} -> {state_pattern(j)} flips more "
            f"than one site but has rate {Q[i, j]}"
        )
