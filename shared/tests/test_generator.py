"""
Tests for generator construction.

Tests:
1. Neighbour context rules for both topologies
2. Structural invariants (zero row sums, single-site transitions only)
3. Agreement with the published rate tables
4. Mirror symmetry under left/right exchange
5. Malformed generators are rejected
"""

import os
import numpy as np
import pytest

from replica_kinetics.generator import (
    Topology,
    GeneratorBuilder,
    MalformedGeneratorError,
    build_generator,
    neighbor_context,
    validate_generator,
)
from replica_kinetics.parameters import NeighborContext, RateParameterSet
from replica_kinetics.states import (
    N_STATES,
    STATE_PATTERNS,
    adjacency_mask,
    mirror_permutation,
    state_index,
)

DATA_DIR = os.path.join(os.path.dirname(__file__), 'data')

# Distinct values so each table entry identifies its rate symbol
DISTINCT_RATES = RateParameterSet(
    p0=1.0, q0=2.0, pr=3.0, qr=4.0, pl=5.0, ql=6.0, pc=7.0, qc=8.0
)


def load_rate_table(topology):
    """Read a (source, target) -> rate symbol table."""
    path = os.path.join(DATA_DIR, f"rate_table_{topology.value}.txt")
    table = {}
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            source, target, symbol = line.split()
            table[(source, target)] = symbol
    return table


@pytest.fixture(params=list(Topology), ids=lambda t: t.value)
def topology(request):
    return request.param


class TestNeighborContext:
    """Tests for the neighbour-context rule."""

    def test_isolated(self):
        assert neighbor_context('00000', 2) == NeighborContext.ISOLATED
        assert neighbor_context('00100', 2) == NeighborContext.ISOLATED

    def test_left_occupied(self):
        """An occupied left neighbour selects the right-growth rates."""
        assert neighbor_context('10000', 1) == NeighborContext.RIGHT

    def test_right_occupied(self):
        assert neighbor_context('00100', 1) == NeighborContext.LEFT

    def test_both_occupied(self):
        assert neighbor_context('10100', 1) == NeighborContext.COOPERATIVE
        assert neighbor_context('11111', 3) == NeighborContext.COOPERATIVE

    def test_circular_wraps(self):
        assert neighbor_context('00001', 0, Topology.CIRCULAR) == NeighborContext.RIGHT
        assert neighbor_context('10000', 4, Topology.CIRCULAR) == NeighborContext.LEFT
        assert neighbor_context('01001', 0, Topology.CIRCULAR) == NeighborContext.COOPERATIVE

    def test_linear_ends(self):
        """Strand ends have a single neighbour in the linear topology."""
        assert neighbor_context('00001', 0, Topology.LINEAR) == NeighborContext.ISOLATED
        assert neighbor_context('10000', 4, Topology.LINEAR) == NeighborContext.ISOLATED
        assert neighbor_context('01001', 0, Topology.LINEAR) == NeighborContext.LEFT
        assert neighbor_context('11111', 4, Topology.LINEAR) == NeighborContext.RIGHT

    def test_site_out_of_range(self):
        with pytest.raises(IndexError):
            neighbor_context('00000', 5)


class TestStructure:
    """Structural invariants of built generators."""

    @pytest.mark.parametrize("alpha_left,alpha_right", [
        (1.0, 1.0), (1.0, 4.0), (4.0, 1.0), (2.5, 2.5), (0.3, 3.7),
    ])
    def test_invariants(self, topology, alpha_left, alpha_right):
        rates = RateParameterSet.from_cooperativity(0.5, 1.0, alpha_left, alpha_right)
        Q = build_generator(rates, topology)

        assert Q.shape == (N_STATES, N_STATES)
        np.testing.assert_allclose(Q.sum(axis=1), 0.0, atol=1e-9)

        mask = adjacency_mask()
        assert np.all(Q[mask] > 0)
        off_diagonal = ~mask & ~np.eye(N_STATES, dtype=bool)
        assert np.all(Q[off_diagonal] == 0)
        assert np.all(np.diag(Q) < 0)

    def test_read_only(self, topology):
        Q = build_generator(RateParameterSet.non_cooperative(1.0, 0.5), topology)
        with pytest.raises(ValueError):
            Q[0, 1] = 2.0

    def test_noncooperative_topologies_agree(self):
        """Without cooperativity the neighbour structure is irrelevant."""
        rates = RateParameterSet.from_cooperativity(0.5, 1.0)
        np.testing.assert_array_equal(
            build_generator(rates, Topology.CIRCULAR),
            build_generator(rates, Topology.LINEAR),
        )

    def test_full_state_exit_rate(self):
        """Every site of 11111 detaches with the cooperative rate on a circle."""
        rates = DISTINCT_RATES
        Q = build_generator(rates, Topology.CIRCULAR)
        full = state_index('11111')
        assert Q[full, full] == -5 * rates.qc

    def test_linear_full_state_exit_rate(self):
        rates = DISTINCT_RATES
        Q = build_generator(rates, Topology.LINEAR)
        full = state_index('11111')
        assert Q[full, full] == -(3 * rates.qc + rates.ql + rates.qr)

    def test_builder_reuse(self, topology):
        """One builder produces independent matrices for different rates."""
        builder = GeneratorBuilder(topology)
        Q1 = builder.build(RateParameterSet.from_cooperativity(0.5, 1.0, 1.0, 4.0))
        Q2 = builder.build(RateParameterSet.from_cooperativity(0.5, 1.0, 4.0, 1.0))
        assert not np.array_equal(Q1, Q2)
        np.testing.assert_array_equal(
            Q1, build_generator(RateParameterSet.from_cooperativity(0.5, 1.0, 1.0, 4.0), topology)
        )

    def test_string_topology(self):
        assert GeneratorBuilder('linear').topology == Topology.LINEAR


class TestRateTables:
    """Every allowed transition carries the rate of the reference tables."""

    def test_table_coverage(self, topology):
        table = load_rate_table(topology)
        assert len(table) == 160
        mask = adjacency_mask()
        for (source, target) in table:
            assert mask[state_index(source), state_index(target)]

    def test_matches_table(self, topology):
        table = load_rate_table(topology)
        Q = build_generator(DISTINCT_RATES, topology)
        for (source, target), symbol in table.items():
            expected = getattr(DISTINCT_RATES, symbol)
            actual = Q[state_index(source), state_index(target)]
            assert actual == expected, (
                f"{source} -> {target}: expected {symbol}={expected}, got {actual}"
            )

    def test_topologies_differ_only_at_ends(self):
        """Tables differ only where site 1 or site 5 flips."""
        circular = load_rate_table(Topology.CIRCULAR)
        linear = load_rate_table(Topology.LINEAR)
        for key, symbol in circular.items():
            if linear[key] != symbol:
                source, target = key
                flipped = [k for k in range(5) if source[k] != target[k]]
                assert flipped[0] in (0, 4)


class TestMirrorSymmetry:
    """Reversing the strand exchanges left and right rates."""

    @pytest.mark.parametrize("alpha_left,alpha_right", [
        (1.0, 4.0), (4.0, 1.0), (2.0, 3.0), (1.5, 0.5),
    ])
    def test_mirror_conjugation(self, topology, alpha_left, alpha_right):
        rates = RateParameterSet.from_cooperativity(0.5, 1.0, alpha_left, alpha_right)
        perm = mirror_permutation()
        Q = build_generator(rates, topology)
        Q_mirror = build_generator(rates.mirrored(), topology)
        np.testing.assert_allclose(Q[np.ix_(perm, perm)], Q_mirror, atol=1e-12)

    def test_symmetric_rates_are_invariant(self, topology):
        """With equal left and right rates the generator is reversal-invariant."""
        rates = RateParameterSet.from_cooperativity(0.5, 1.0, 2.0, 2.0)
        perm = mirror_permutation()
        Q = build_generator(rates, topology)
        np.testing.assert_allclose(Q[np.ix_(perm, perm)], Q, atol=1e-12)

    def test_asymmetric_rates_are_not_invariant(self, topology):
        rates = RateParameterSet.from_cooperativity(0.5, 1.0, 1.0, 4.0)
        perm = mirror_permutation()
        Q = build_generator(rates, topology)
        assert not np.allclose(Q[np.ix_(perm, perm)], Q)


class TestValidation:
    """Malformed generators are rejected."""

    def setup_method(self):
        rates = RateParameterSet.from_cooperativity(0.5, 1.0, 2.0, 3.0)
        self.Q = np.array(build_generator(rates))

    def test_valid_passes(self):
        validate_generator(self.Q)

    def test_zero_rate_rejected(self):
        """A zero detachment rate leaves an allowed transition without a rate."""
        rates = RateParameterSet(1.0, 0.0, 1.0, 0.5, 1.0, 0.5, 1.0, 0.5)
        with pytest.raises(MalformedGeneratorError, match="Entry not right"):
            build_generator(rates)

    def test_is_value_error(self):
        assert issubclass(MalformedGeneratorError, ValueError)

    def test_wrong_shape(self):
        with pytest.raises(MalformedGeneratorError, match="shape"):
            validate_generator(np.zeros((31, 31)))

    def test_nonfinite(self):
        self.Q[0, 0] = np.nan
        with pytest.raises(MalformedGeneratorError, match="non-finite"):
            validate_generator(self.Q)

    def test_row_sum(self):
        self.Q[3, 3] += 1e-3
        with pytest.raises(MalformedGeneratorError, match="sums to"):
            validate_generator(self.Q)

    def test_row_sum_within_tolerance(self):
        self.Q[3, 3] += 1e-12
        validate_generator(self.Q)

    def test_forbidden_transition(self):
        i, j = state_index('00000'), state_index('11000')
        self.Q[i, j] = 0.5
        self.Q[i, i] -= 0.5
        with pytest.raises(MalformedGeneratorError, match="more than one site"):
            validate_generator(self.Q)

    def test_negative_rate(self):
        i, j = state_index('00000'), state_index('10000')
        self.Q[i, i] += 2 * self.Q[i, j]
        self.Q[i, j] *= -1
        with pytest.raises(MalformedGeneratorError, match="Entry not right"):
            validate_generator(self.Q)

    def test_wrong_rates_type(self):
        with pytest.raises(TypeError):
            GeneratorBuilder().build((1.0,) * 8)

    def test_all_patterns_have_rows(self):
        for pattern in STATE_PATTERNS:
            i = state_index(pattern)
            assert np.count_nonzero(self.Q[i]) == 6
