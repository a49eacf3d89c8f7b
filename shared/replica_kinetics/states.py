"""
Occupancy states of the 5-site template strand.

Each state is a 5-character string of '0' (empty site) and '1' (monomer
H-bonded to the template). Site 1 is the leftmost character.

The 32 states are enumerated in a fixed order, grouped by the number of
occupied sites. Every generator matrix in this package is indexed in this
order, so consumers must go through `state_index` / `state_pattern`
rather than computing binary indices themselves.
"""

import numpy as np
from typing import List, Sequence, Union

N_SITES = 5
N_STATES = 2 ** N_SITES

STATE_PATTERNS = (
    # weight 0
    '00000',
    # weight 1
    '10000', '01000', '00100', '00010', '00001',
    # weight 2
    '11000', '01100', '00110', '00011', '10001',
    '10100', '01010', '00101', '10010', '01001',
    # weight 3
    '11100', '01110', '00111', '10011', '11001',
    '11010', '01101', '10110', '01011', '10101',
    # weight 4
    '11110', '01111', '10111', '11011', '11101',
    # weight 5
    '11111',
)

_INDEX = {pattern: i for i, pattern in enumerate(STATE_PATTERNS)}

EMPTY_STATE = _INDEX['00000']
FULL_STATE = _INDEX['11111']

Pattern = Union[str, Sequence[int]]


def normalize_pattern(pattern: Pattern) -> str:
    """
    Convert a pattern to its canonical '0'/'1' string.

    Parameters
    ----------
    pattern : str or sequence of int/bool
        Either a string like "10100" or a sequence like [1, 0, 1, 0, 0].

    Returns
    -------
    str
        Canonical 5-character pattern.
    """
    if isinstance(pattern, str):
        text = pattern.strip()
    else:
        bits = list(pattern)
        if any(b not in (0, 1) for b in bits):
            raise ValueError(f"Occupancy flags must be 0 or 1, got {bits}")
        text = ''.join('1' if b else '0' for b in bits)

    if len(text) != N_SITES:
        raise ValueError(
            f"Pattern must have {N_SITES} sites, got {len(text)}: '{text}'"
        )
    if set(text) - {'0', '1'}:
        raise ValueError(f"Pattern may only contain '0' and '1': '{text}'")
    return text


def state_index(pattern: Pattern) -> int:
    """
    Index of an occupancy pattern in the canonical state order.

    >>> state_index('00000')
    0
    >>> state_index('11111')
    31
    """
    return _INDEX[normalize_pattern(pattern)]


def state_pattern(index: int) -> str:
    """Occupancy pattern at a position of the canonical state order."""
    index = int(index)
    if not 0 <= index < N_STATES:
        raise IndexError(f"State index must be in [0, {N_STATES}), got {index}")
    return STATE_PATTERNS[index]


def occupancy(pattern: Pattern) -> int:
    """Number of occupied sites."""
    return normalize_pattern(pattern).count('1')


def hamming_distance(a: Pattern, b: Pattern) -> int:
    """Number of sites at which two patterns differ."""
    a, b = normalize_pattern(a), normalize_pattern(b)
    return sum(x != y for x, y in zip(a, b))


def occupancy_array() -> np.ndarray:
    """
    Occupancy flags of all states, shape (32, 5).

    Row i holds the sites of `state_pattern(i)`.
    """
    return np.array(
        [[int(c) for c in pattern] for pattern in STATE_PATTERNS],
        dtype=int,
    )


def adjacency_mask() -> np.ndarray:
    """Boolean (32, 32) mask of state pairs at Hamming distance 1."""
    occ = occupancy_array()
    distances = np.abs(occ[:, np.newaxis, :] - occ[np.newaxis, :, :]).sum(axis=2)
    return distances == 1


def mirror_permutation() -> np.ndarray:
    """
    Permutation taking each state to its left-right reversed pattern.

    ``perm[i] == state_index(state_pattern(i)[::-1])``. Conjugating a
    generator by this permutation exchanges the roles of left and right
    neighbours.
    """
    return np.array([_INDEX[pattern[::-1]] for pattern in STATE_PATTERNS])


def states_with_occupancy(n_occupied: int) -> List[str]:
    """All patterns with a given number of occupied sites, in canonical order."""
    return [p for p in STATE_PATTERNS if p.count('1') == n_occupied]
