"""
Replica Kinetics: Markov chain model of cooperative replica-strand growth.

Computes the residence time of the fully bonded 5-site replica and its
hitting time from the empty template, and from them the evolutionary
advantage of left-right asymmetric cooperativity in H-bond formation.
"""

from .states import (
    N_SITES,
    N_STATES,
    STATE_PATTERNS,
    EMPTY_STATE,
    FULL_STATE,
    state_index,
    state_pattern,
    hamming_distance,
    mirror_permutation,
)

from .parameters import (
    NeighborContext,
    RateParameterSet,
    ReplicationConditions,
)

from .generator import (
    Topology,
    GeneratorBuilder,
    MalformedGeneratorError,
    build_generator,
    neighbor_context,
    validate_generator,
)

from .solvers import (
    HittingTimeResult,
    NumericalInstabilityWarning,
    NumericalInstabilityError,
    residence_time,
    solve_hitting_times,
    hitting_times,
)

from .fitness import (
    FitnessFactors,
    fitness,
    evaluate_fitness,
    retention_probability,
    growth_probability,
)

from .sweep import (
    CellResult,
    SweepResult,
    CooperativitySweep,
    alpha_grid,
    evaluate_cell,
    nocoop_fitness,
    run_sweep,
    save_sweep_json,
    load_sweep_json,
    save_sweep_csv,
)

from .visualization import (
    plot_ratio_contour,
    plot_sweep_panel,
    plot_diagonal_profile,
    plot_topology_comparison,
)

from .validation import (
    ValidationResult,
    ValidationReport,
    run_validation,
    print_validation_table,
)

__version__ = "0.1.0"
__all__ = [
    # State enumeration
    "N_SITES",
    "N_STATES",
    "STATE_PATTERNS",
    "EMPTY_STATE",
    "FULL_STATE",
    "state_index",
    "state_pattern",
    "hamming_distance",
    "mirror_permutation",
    # Parameters
    "NeighborContext",
    "RateParameterSet",
    "ReplicationConditions",
    # Generator
    "Topology",
    "GeneratorBuilder",
    "MalformedGeneratorError",
    "build_generator",
    "neighbor_context",
    "validate_generator",
    # Solvers
    "HittingTimeResult",
    "NumericalInstabilityWarning",
    "NumericalInstabilityError",
    "residence_time",
    "solve_hitting_times",
    "hitting_times",
    # Fitness
    "FitnessFactors",
    "fitness",
    "evaluate_fitness",
    "retention_probability",
    "growth_probability",
    # Sweep
    "CellResult",
    "SweepResult",
    "CooperativitySweep",
    "alpha_grid",
    "evaluate_cell",
    "nocoop_fitness",
    "run_sweep",
    "save_sweep_json",
    "load_sweep_json",
    "save_sweep_csv",
    # Visualization
    "plot_ratio_contour",
    "plot_sweep_panel",
    "plot_diagonal_profile",
    "plot_topology_comparison",
    # Validation
    "ValidationResult",
    "ValidationReport",
    "run_validation",
    "print_validation_table",
]
