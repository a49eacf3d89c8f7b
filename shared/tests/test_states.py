"""
Tests for the state enumeration.

1. Enumeration is complete and grouped by occupancy
2. state_index / state_pattern are inverse bijections
3. Pattern normalization and rejection of malformed input
4. Adjacency mask and mirror permutation
"""

import numpy as np
import pytest

from replica_kinetics.states import (
    N_SITES,
    N_STATES,
    STATE_PATTERNS,
    EMPTY_STATE,
    FULL_STATE,
    normalize_pattern,
    state_index,
    state_pattern,
    occupancy,
    hamming_distance,
    occupancy_array,
    adjacency_mask,
    mirror_permutation,
    states_with_occupancy,
)


class TestEnumeration:
    """Tests for the canonical state order."""

    def test_complete(self):
        """All 32 five-bit patterns appear exactly once."""
        assert N_STATES == 32
        assert len(STATE_PATTERNS) == 32
        assert len(set(STATE_PATTERNS)) == 32
        all_patterns = {format(k, '05b') for k in range(32)}
        assert set(STATE_PATTERNS) == all_patterns

    def test_grouped_by_occupancy(self):
        """Occupancy never decreases along the order."""
        weights = [p.count('1') for p in STATE_PATTERNS]
        assert weights == sorted(weights)
        assert [weights.count(w) for w in range(6)] == [1, 5, 10, 10, 5, 1]

    def test_endpoints(self):
        assert EMPTY_STATE == 0
        assert FULL_STATE == 31
        assert state_pattern(EMPTY_STATE) == '00000'
        assert state_pattern(FULL_STATE) == '11111'

    def test_single_site_order(self):
        """Weight-1 states follow the lattice order of sites 1..5."""
        assert states_with_occupancy(1) == ['10000', '01000', '00100', '00010', '00001']

    def test_reference_positions(self):
        """Spot checks against the published ordering."""
        assert state_index('11000') == 6
        assert state_index('10001') == 10
        assert state_index('10100') == 11
        assert state_index('01001') == 15
        assert state_index('11010') == 21
        assert state_index('10101') == 25
        assert state_index('11101') == 30


class TestIndexRoundTrip:
    """state_index and state_pattern are mutually inverse."""

    def test_pattern_round_trip(self):
        for p in STATE_PATTERNS:
            assert state_pattern(state_index(p)) == p

    def test_index_round_trip(self):
        for i in range(N_STATES):
            assert state_index(state_pattern(i)) == i

    def test_sequence_input(self):
        assert state_index([1, 0, 1, 0, 0]) == state_index('10100')
        assert state_index((True, True, False, False, False)) == 6
        assert state_index(np.array([1, 1, 1, 1, 1])) == FULL_STATE

    def test_index_out_of_range(self):
        with pytest.raises(IndexError):
            state_pattern(32)
        with pytest.raises(IndexError):
            state_pattern(-1)


class TestNormalization:
    """Malformed patterns are rejected."""

    def test_whitespace_stripped(self):
        assert normalize_pattern(' 10100 ') == '10100'

    def test_wrong_length(self):
        with pytest.raises(ValueError, match="5 sites"):
            normalize_pattern('1010')
        with pytest.raises(ValueError):
            normalize_pattern([1, 0, 1, 0, 0, 0])

    def test_invalid_characters(self):
        with pytest.raises(ValueError, match="only contain"):
            normalize_pattern('10201')

    def test_invalid_flags(self):
        with pytest.raises(ValueError, match="0 or 1"):
            normalize_pattern([1, 0, 2, 0, 0])


class TestAdjacency:
    """Hamming distance, adjacency mask, mirror permutation."""

    def test_hamming_distance(self):
        assert hamming_distance('00000', '11111') == 5
        assert hamming_distance('10100', '10110') == 1
        assert hamming_distance('10100', '10100') == 0

    def test_occupancy(self):
        assert occupancy('10110') == 3
        assert occupancy([0, 0, 0, 0, 0]) == 0

    def test_occupancy_array(self):
        occ = occupancy_array()
        assert occ.shape == (N_STATES, N_SITES)
        assert list(occ[state_index('10011')]) == [1, 0, 0, 1, 1]

    def test_adjacency_mask(self):
        mask = adjacency_mask()
        assert mask.shape == (32, 32)
        assert np.array_equal(mask, mask.T)
        # Each state can flip any of its 5 sites
        assert np.all(mask.sum(axis=1) == 5)
        assert not np.any(np.diag(mask))
        assert mask[state_index('00000'), state_index('00100')]
        assert not mask[state_index('00000'), state_index('00110')]

    def test_mirror_permutation(self):
        perm = mirror_permutation()
        assert sorted(perm) == list(range(N_STATES))
        # Involution
        assert np.array_equal(perm[perm], np.arange(N_STATES))
        assert state_pattern(perm[state_index('11000')]) == '00011'
        assert state_pattern(perm[state_index('10100')]) == '00101'
        # Palindromes are fixed points
        assert perm[state_index('10101')] == state_index('10101')
