"""
Cooperativity sweep over (alpha_L, alpha_R).

For every grid point the generator is built, the residence and hitting
times are solved, and the fitness factors are compared against the
non-cooperative template (alpha_L = alpha_R = 1).

Grid layout follows the published contour plots: rows index alpha_R,
columns index alpha_L.
"""

import csv
import json
import time
import numpy as np
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from numpy.typing import ArrayLike
from typing import Any, Dict, Optional, Tuple

from .fitness import evaluate_fitness
from .generator import GeneratorBuilder, Topology
from .parameters import ReplicationConditions
from .solvers import DEFAULT_TOLERANCE, residence_time, solve_hitting_times


class ProgressTracker:
    """Simple progress tracker with ETA."""

    def __init__(self, total: int, desc: str = ""):
        self.total = total
        self.desc = desc
        self.current = 0
        self.start_time = time.time()

    def update(self, n: int = 1):
        self.current += n
        elapsed = time.time() - self.start_time
        remaining = (self.total - self.current) * elapsed / self.current
        pct = 100 * self.current / self.total
        print(f"\r  {self.desc}: {self.current}/{self.total} ({pct:.0f}%) "
              f"[{elapsed:.1f}s elapsed, ETA: {remaining:.1f}s]", end="", flush=True)

    def close(self):
        elapsed = time.time() - self.start_time
        print(f"\r  {self.desc}: {self.total}/{self.total} (100%) "
              f"[{elapsed:.1f}s total]" + " " * 20)


@dataclass
class CellResult:
    """Outcome for one (alpha_L, alpha_R) pair."""
    alpha_left: float
    alpha_right: float
    residence_time: float
    hitting_time: float          # from the empty template
    retention: float
    growth: float
    residual: float
    stable: bool

    @property
    def fitness(self) -> float:
        return self.retention * self.growth

    def to_dict(self) -> Dict[str, Any]:
        return {
            'alpha_left': self.alpha_left,
            'alpha_right': self.alpha_right,
            'residence_time': self.residence_time,
            'hitting_time': self.hitting_time,
            'retention': self.retention,
            'growth': self.growth,
            'fitness': self.fitness,
            'residual': self.residual,
            'stable': self.stable,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CellResult":
        return cls(
            alpha_left=d['alpha_left'],
            alpha_right=d['alpha_right'],
            residence_time=d['residence_time'],
            hitting_time=d['hitting_time'],
            retention=d['retention'],
            growth=d['growth'],
            residual=d['residual'],
            stable=d['stable'],
        )


def alpha_grid(start: float = 1.0, stop: float = 4.0, num: int = 30) -> np.ndarray:
    """Evenly spaced cooperativity factors, endpoints included."""
    if num < 1:
        raise ValueError(f"num must be >= 1, got {num}")
    if start < 0 or stop < 0:
        raise ValueError(f"Cooperativity factors must be >= 0, got [{start}, {stop}]")
    return np.linspace(start, stop, num)


def evaluate_cell(
    alpha_left: float,
    alpha_right: float,
    conditions: Optional[ReplicationConditions] = None,
    topology: Topology = Topology.CIRCULAR,
    strict: bool = False,
    tolerance: float = DEFAULT_TOLERANCE,
    builder: Optional[GeneratorBuilder] = None,
) -> CellResult:
    """
    Build the generator for one cooperativity pair and evaluate it.

    Parameters
    ----------
    alpha_left, alpha_right : float
        Cooperativity factors.
    conditions : ReplicationConditions, optional
        Kinetic environment (defaults to the published values).
    topology : Topology
        Template topology; ignored when `builder` is given.
    strict : bool
        Raise on an unstable hitting-time solve instead of warning.
    tolerance : float
        Residual tolerance of the hitting-time solve.
    builder : GeneratorBuilder, optional
        Reused across cells by the sweep.
    """
    if conditions is None:
        conditions = ReplicationConditions()
    if builder is None:
        builder = GeneratorBuilder(topology)

    Q = builder.build(conditions.rates(alpha_left, alpha_right))
    residence = residence_time(Q)
    hitting = solve_hitting_times(Q, tolerance=tolerance, strict=strict)
    factors = evaluate_fitness(residence, hitting.from_empty, conditions.r0, conditions.rg)

    return CellResult(
        alpha_left=float(alpha_left),
        alpha_right=float(alpha_right),
        residence_time=residence,
        hitting_time=hitting.from_empty,
        retention=factors.retention,
        growth=factors.growth,
        residual=hitting.residual,
        stable=hitting.stable,
    )


def nocoop_fitness(
    conditions: Optional[ReplicationConditions] = None,
    topology: Topology = Topology.CIRCULAR,
) -> float:
    """Fitness of the non-cooperative template (all factors equal to 1)."""
    return evaluate_cell(1.0, 1.0, conditions, topology).fitness


@dataclass
class SweepResult:
    """Grids of per-cell quantities, shape (len(alpha_right), len(alpha_left))."""

    alpha_left: np.ndarray
    alpha_right: np.ndarray
    topology: Topology
    conditions: ReplicationConditions

    residence_time: np.ndarray
    hitting_time: np.ndarray
    retention: np.ndarray
    growth: np.ndarray
    residual: np.ndarray
    stable: np.ndarray

    baseline: CellResult

    timestamp: str = ""
    elapsed: float = 0.0
    numpy_version: str = ""
    scipy_version: str = ""

    @property
    def shape(self) -> Tuple[int, int]:
        return self.residence_time.shape

    @property
    def fitness(self) -> np.ndarray:
        return self.retention * self.growth

    @property
    def fitness_ratio(self) -> np.ndarray:
        """P / P_0: combined fitness over the non-cooperative baseline."""
        return self.fitness / self.baseline.fitness

    @property
    def growth_ratio(self) -> np.ndarray:
        """P_g / P_g0"""
        return self.growth / self.baseline.growth

    @property
    def retention_ratio(self) -> np.ndarray:
        """P_c / P_c0"""
        return self.retention / self.baseline.retention

    @property
    def n_unstable(self) -> int:
        return int(np.sum(~self.stable))

    def cell(self, i: int, j: int) -> CellResult:
        """Cell at row i (alpha_R) and column j (alpha_L)."""
        return CellResult(
            alpha_left=float(self.alpha_left[j]),
            alpha_right=float(self.alpha_right[i]),
            residence_time=float(self.residence_time[i, j]),
            hitting_time=float(self.hitting_time[i, j]),
            retention=float(self.retention[i, j]),
            growth=float(self.growth[i, j]),
            residual=float(self.residual[i, j]),
            stable=bool(self.stable[i, j]),
        )

    def best_cell(self) -> CellResult:
        """Cell with the largest combined fitness."""
        i, j = np.unravel_index(np.argmax(self.fitness), self.shape)
        return self.cell(i, j)

    def diagonal(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Fitness ratio along alpha_L = alpha_R.

        Requires both axes to use the same grid.
        """
        if not np.array_equal(self.alpha_left, self.alpha_right):
            raise ValueError("Diagonal requires identical alpha_left and alpha_right grids")
        return self.alpha_left.copy(), np.diag(self.fitness_ratio).copy()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'topology': self.topology.value,
            'conditions': self.conditions.to_dict(),
            'alpha_left': self.alpha_left.tolist(),
            'alpha_right': self.alpha_right.tolist(),
            'residence_time': self.residence_time.tolist(),
            'hitting_time': self.hitting_time.tolist(),
            'retention': self.retention.tolist(),
            'growth': self.growth.tolist(),
            'residual': self.residual.tolist(),
            'stable': self.stable.tolist(),
            'baseline': self.baseline.to_dict(),
            'n_unstable': self.n_unstable,
            'timestamp': self.timestamp,
            'elapsed': self.elapsed,
            'numpy_version': self.numpy_version,
            'scipy_version': self.scipy_version,
        }

    def summary(self) -> str:
        best = self.best_cell()
        ratio = self.fitness_ratio
        return "\n".join([
            f"Cooperativity sweep ({self.topology.value}, "
            f"{self.shape[0]}x{self.shape[1]} cells)",
            f"  Nocoop fitness: {self.baseline.fitness:.6f} "
            f"(P_c={self.baseline.retention:.4f}, P_g={self.baseline.growth:.4f})",
            f"  P/P_0 range: [{ratio.min():.4f}, {ratio.max():.4f}]",
            f"  Best: alpha_L={best.alpha_left:.3f}, alpha_R={best.alpha_right:.3f}, "
            f"P/P_0={best.fitness / self.baseline.fitness:.4f}",
            f"  Unstable cells: {self.n_unstable}",
        ])

    def __repr__(self) -> str:
        return (
            f"SweepResult(\n"
            f"  topology={self.topology.value}, shape={self.shape},\n"
            f"  nocoop_fitness={self.baseline.fitness:.6f},\n"
            f"  max_ratio={self.fitness_ratio.max():.4f}, n_unstable={self.n_unstable}\n"
            f")"
        )


class CooperativitySweep:
    """
    Evaluate fitness over a grid of cooperativity factors.

    Every cell is independent, so `n_workers > 1` spreads them over a
    thread pool; the dense linear algebra releases the GIL.

    Examples
    --------
    >>> sweep = CooperativitySweep(topology=Topology.CIRCULAR)
    >>> result = sweep.run(alpha_grid(num=4), alpha_grid(num=4))
    >>> result.fitness_ratio.shape
    (4, 4)
    """

    def __init__(
        self,
        conditions: Optional[ReplicationConditions] = None,
        topology: Topology = Topology.CIRCULAR,
        n_workers: int = 1,
        strict: bool = False,
        tolerance: float = DEFAULT_TOLERANCE,
        verbose: bool = False,
    ):
        if n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {n_workers}")
        self.conditions = conditions if conditions is not None else ReplicationConditions()
        self.topology = Topology(topology)
        self.n_workers = n_workers
        self.strict = strict
        self.tolerance = tolerance
        self.verbose = verbose
        self.builder = GeneratorBuilder(self.topology)

    def _evaluate(self, alpha_left: float, alpha_right: float) -> CellResult:
        return evaluate_cell(
            alpha_left,
            alpha_right,
            conditions=self.conditions,
            strict=self.strict,
            tolerance=self.tolerance,
            builder=self.builder,
        )

    def run(
        self,
        alpha_left: Optional[ArrayLike] = None,
        alpha_right: Optional[ArrayLike] = None,
    ) -> SweepResult:
        """
        Run the sweep.

        Parameters
        ----------
        alpha_left : array_like, optional
            Grid of alpha_L values (columns). Defaults to `alpha_grid()`.
        alpha_right : array_like, optional
            Grid of alpha_R values (rows). Defaults to `alpha_left`.

        Returns
        -------
        SweepResult
        """
        import scipy

        alpha_left = alpha_grid() if alpha_left is None else np.asarray(alpha_left, dtype=float)
        alpha_right = alpha_left if alpha_right is None else np.asarray(alpha_right, dtype=float)
        if alpha_left.ndim != 1 or alpha_right.ndim != 1:
            raise ValueError("alpha grids must be one-dimensional")

        start = time.time()
        shape = (len(alpha_right), len(alpha_left))
        cells = [(i, j) for i in range(shape[0]) for j in range(shape[1])]

        if self.verbose:
            print(f"Sweeping {shape[0]} x {shape[1]} cooperativity grid "
                  f"({self.topology.value} template, {self.n_workers} worker(s))")

        baseline = self._evaluate(1.0, 1.0)

        def work(cell: Tuple[int, int]) -> CellResult:
            i, j = cell
            return self._evaluate(alpha_left[j], alpha_right[i])

        progress = ProgressTracker(len(cells), desc="Cells") if self.verbose else None
        if self.n_workers == 1:
            outcomes = []
            for cell in cells:
                outcomes.append(work(cell))
                if progress:
                    progress.update()
        else:
            with ThreadPoolExecutor(max_workers=self.n_workers) as executor:
                outcomes = list(executor.map(work, cells))
            if progress:
                progress.update(len(cells))
        if progress:
            progress.close()

        grids = {name: np.zeros(shape) for name in
                 ('residence_time', 'hitting_time', 'retention', 'growth', 'residual')}
        stable = np.ones(shape, dtype=bool)
        for (i, j), outcome in zip(cells, outcomes):
            for name, grid in grids.items():
                grid[i, j] = getattr(outcome, name)
            stable[i, j] = outcome.stable

        result = SweepResult(
            alpha_left=alpha_left,
            alpha_right=alpha_right,
            topology=self.topology,
            conditions=self.conditions,
            stable=stable,
            baseline=baseline,
            timestamp=datetime.now().isoformat(),
            elapsed=time.time() - start,
            numpy_version=np.__version__,
            scipy_version=scipy.__version__,
            **grids,
        )

        if self.verbose:
            print(result.summary())

        return result


def run_sweep(
    alpha_left: Optional[ArrayLike] = None,
    alpha_right: Optional[ArrayLike] = None,
    conditions: Optional[ReplicationConditions] = None,
    topology: Topology = Topology.CIRCULAR,
    **kwargs,
) -> SweepResult:
    """
    Convenience function to run a cooperativity sweep.

    Additional keyword arguments are passed to CooperativitySweep.
    """
    sweep = CooperativitySweep(conditions=conditions, topology=topology, **kwargs)
    return sweep.run(alpha_left, alpha_right)


def save_sweep_json(result: SweepResult, path: str):
    """Save a sweep result to JSON."""
    with open(path, 'w') as f:
        json.dump(result.to_dict(), f, indent=2)


def load_sweep_json(path: str) -> SweepResult:
    """Load a sweep result saved by `save_sweep_json`."""
    with open(path) as f:
        data = json.load(f)

    conditions = data['conditions']
    return SweepResult(
        alpha_left=np.array(data['alpha_left']),
        alpha_right=np.array(data['alpha_right']),
        topology=Topology(data['topology']),
        conditions=ReplicationConditions(
            breakage_rate=conditions['breakage_rate'],
            formation_rate=conditions['formation_rate'],
            covalent_formation_rate=conditions['covalent_formation_rate'],
            free_bonding_rate=conditions['free_bonding_rate'],
        ),
        residence_time=np.array(data['residence_time']),
        hitting_time=np.array(data['hitting_time']),
        retention=np.array(data['retention']),
        growth=np.array(data['growth']),
        residual=np.array(data['residual']),
        stable=np.array(data['stable'], dtype=bool),
        baseline=CellResult.from_dict(data['baseline']),
        timestamp=data.get('timestamp', ""),
        elapsed=data.get('elapsed', 0.0),
        numpy_version=data.get('numpy_version', ""),
        scipy_version=data.get('scipy_version', ""),
    )


def save_sweep_csv(result: SweepResult, path: str):
    """Save one row per grid cell to CSV."""
    fieldnames = [
        'alpha_left', 'alpha_right', 'residence_time', 'hitting_time',
        'retention', 'growth', 'fitness', 'fitness_ratio', 'residual', 'stable',
    ]
    ratio = result.fitness_ratio

    with open(path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for i in range(result.shape[0]):
            for j in range(result.shape[1]):
                row = result.cell(i, j).to_dict()
                row['fitness_ratio'] = ratio[i, j]
                writer.writerow(row)

