"""
Validation of the generator construction and solvers.

Benchmarks:
- Structural invariants for both topologies over a set of rate sets:
  zero row sums, positive rates on single-site flips, zeros elsewhere
- Mirror symmetry: exchanging left/right rates equals reversing the strand
- Non-cooperative reference values (breakage 0.5, formation 1):
  residence time 0.4, hitting time from 00000 equal to 4.35625
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, List, Optional

from .generator import MalformedGeneratorError, Topology, build_generator
from .parameters import RateParameterSet
from .solvers import residence_time, solve_hitting_times
from .states import mirror_permutation

# (name, breakage_rate, formation_rate, alpha_left, alpha_right)
BENCHMARK_RATES = [
    ("Non-cooperative", 0.5, 1.0, 1.0, 1.0),
    ("Right-biased", 0.5, 1.0, 1.0, 4.0),
    ("Left-biased", 0.5, 1.0, 4.0, 1.0),
    ("Symmetric cooperative", 0.5, 1.0, 2.0, 2.0),
    ("Strongly cooperative", 0.5, 1.0, 4.0, 4.0),
    ("Weakly bound", 5.0, 1.0, 1.5, 0.5),
]

NOCOOP_RESIDENCE_TIME = 0.4
NOCOOP_HITTING_TIME = 4.35625


@dataclass
class ValidationResult:
    """Result from a single validation benchmark."""
    name: str
    topology: Topology
    passed: bool
    detail: str = ""

    def __repr__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return f"{self.name} [{self.topology.value}]: {self.detail} [{status}]"


@dataclass
class ValidationReport:
    """Complete validation report."""
    results: List[ValidationResult]
    n_passed: int
    n_failed: int
    n_total: int

    def __repr__(self) -> str:
        lines = ["=" * 60, "VALIDATION REPORT", "=" * 60]
        for r in self.results:
            lines.append(str(r))
        lines.append("-" * 60)
        lines.append(f"Passed: {self.n_passed}/{self.n_total}")
        return "\n".join(lines)

    def to_dict(self) -> Dict:
        return {
            'n_passed': self.n_passed,
            'n_failed': self.n_failed,
            'n_total': self.n_total,
            'results': [
                {
                    'name': r.name,
                    'topology': r.topology.value,
                    'passed': r.passed,
                    'detail': r.detail,
                }
                for r in self.results
            ]
        }


def check_structure(rates: RateParameterSet, topology: Topology) -> str:
    """Build a generator; its construction runs the structural checks."""
    Q = build_generator(rates, topology)
    return f"max |row sum| = {np.abs(Q.sum(axis=1)).max():.1e}"


def check_mirror_symmetry(
    rates: RateParameterSet,
    topology: Topology,
    atol: float = 1e-12,
) -> Optional[str]:
    """
    Compare the generator of the mirrored rates with the reversed strand.

    Returns None on success, otherwise a description of the mismatch.
    """
    Q = build_generator(rates, topology)
    Q_mirror = build_generator(rates.mirrored(), topology)
    perm = mirror_permutation()
    diff = np.abs(Q[np.ix_(perm, perm)] - Q_mirror).max()
    if diff > atol:
        return f"max deviation {diff:.2e}"
    return None


def run_validation(verbose: bool = True) -> ValidationReport:
    """Run full validation suite."""
    results = []

    def record(name, topology, passed, detail):
        result = ValidationResult(name=name, topology=topology, passed=passed, detail=detail)
        results.append(result)
        if verbose:
            print(result)

    for topology in Topology:
        for name, breakage, formation, alpha_left, alpha_right in BENCHMARK_RATES:
            rates = RateParameterSet.from_cooperativity(
                breakage, formation, alpha_left, alpha_right
            )
            try:
                detail = check_structure(rates, topology)
                record(f"{name} structure", topology, True, detail)
            except MalformedGeneratorError as e:
                record(f"{name} structure", topology, False, str(e))
                continue

            mismatch = check_mirror_symmetry(rates, topology)
            record(
                f"{name} mirror symmetry", topology, mismatch is None,
                mismatch or "reversal maps rates onto mirrored rates",
            )

        Q = build_generator(RateParameterSet.from_cooperativity(0.5, 1.0), topology)
        R = residence_time(Q)
        record(
            "Nocoop residence time", topology,
            bool(np.isclose(R, NOCOOP_RESIDENCE_TIME, rtol=1e-12)),
            f"R = {R:.6f} (expected {NOCOOP_RESIDENCE_TIME})",
        )
        hitting = solve_hitting_times(Q)
        H = hitting.from_empty
        record(
            "Nocoop hitting time", topology,
            bool(np.isclose(H, NOCOOP_HITTING_TIME, rtol=1e-9)) and hitting.stable,
            f"H = {H:.6f} (expected {NOCOOP_HITTING_TIME}), residual {hitting.residual:.1e}",
        )

    n_passed = sum(1 for r in results if r.passed)
    report = ValidationReport(results=results, n_passed=n_passed,
                              n_failed=len(results) - n_passed, n_total=len(results))
    if verbose:
        print("-" * 60)
        print(f"Passed: {report.n_passed}/{report.n_total}")
    return report


def print_validation_table(report: ValidationReport) -> str:
    """Format validation report as markdown table."""
    lines = [
        "| Check | Topology | Detail | Status |",
        "|-------|----------|--------|--------|",
    ]
    for r in report.results:
        status = "PASS" if r.passed else "FAIL"
        lines.append(f"| {r.name} | {r.topology.value} | {r.detail} | {status} |")
    lines.append(f"\n**Passed: {report.n_passed}/{report.n_total}**")
    return "\n".join(lines)
