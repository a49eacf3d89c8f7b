"""
Cooperativity contour figures: standalone script

Usage:
    python scripts/figure_cooperativity_contours.py --topology circular --n_alpha 30 --workers 4

Sweeps alpha_L, alpha_R over [1, 4], prints the non-cooperative fitness and
saves the P/P_0, P_g/P_g0 and P_c/P_c0 contour maps plus the raw grids
(JSON and CSV).
"""

import matplotlib
matplotlib.use('Agg')

import argparse
import os

import matplotlib.pyplot as plt

from replica_kinetics import (
    CooperativitySweep,
    ReplicationConditions,
    Topology,
    alpha_grid,
    save_sweep_csv,
    save_sweep_json,
)
from replica_kinetics.visualization import plot_ratio_contour, plot_sweep_panel

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_DIR = os.path.dirname(SCRIPT_DIR)


def main():
    parser = argparse.ArgumentParser(
        description="Paper 1: Fitness advantage of asymmetric cooperativity"
    )
    parser.add_argument(
        '--topology', choices=[t.value for t in Topology], default='circular',
        help='Template topology (default: circular)')
    parser.add_argument(
        '--alpha_min', type=float, default=1.0,
        help='Smallest cooperativity factor (default: 1.0)')
    parser.add_argument(
        '--alpha_max', type=float, default=4.0,
        help='Largest cooperativity factor (default: 4.0)')
    parser.add_argument(
        '--n_alpha', type=int, default=30,
        help='Grid points per axis (default: 30)')
    parser.add_argument(
        '--breakage', type=float, default=0.5,
        help='H-bond breakage rate (default: 0.5)')
    parser.add_argument(
        '--formation', type=float, default=1.0,
        help='H-bond formation rate (default: 1.0)')
    parser.add_argument(
        '--covalent', type=float, default=10.0,
        help='Covalent bond formation rate (default: 10.0)')
    parser.add_argument(
        '--free_bonding', type=float, default=None,
        help='Free-monomer bonding rate (default: formation rate)')
    parser.add_argument(
        '--workers', type=int, default=1,
        help='Worker threads (default: 1)')
    parser.add_argument(
        '--strict', action='store_true',
        help='Abort on an unstable hitting-time solve')
    parser.add_argument(
        '--figures_dir', type=str, default=os.path.join(PROJECT_DIR, 'figures'),
        help='Output directory for figures')
    parser.add_argument(
        '--data_dir', type=str, default=os.path.join(PROJECT_DIR, 'data'),
        help='Output directory for JSON/CSV results')

    args = parser.parse_args()

    os.makedirs(args.figures_dir, exist_ok=True)
    os.makedirs(args.data_dir, exist_ok=True)

    conditions = ReplicationConditions(
        breakage_rate=args.breakage,
        formation_rate=args.formation,
        covalent_formation_rate=args.covalent,
        free_bonding_rate=args.free_bonding,
    )
    sweep = CooperativitySweep(
        conditions=conditions,
        topology=Topology(args.topology),
        n_workers=args.workers,
        strict=args.strict,
        verbose=True,
    )
    result = sweep.run(alpha_grid(args.alpha_min, args.alpha_max, args.n_alpha))

    print(f"\n5-bond Nocoop fitness is {result.baseline.fitness:.6f}")

    # One figure per ratio
    stem = f"cooperativity_{args.topology}"
    for quantity in ('fitness', 'growth', 'retention'):
        fig, ax = plt.subplots(figsize=(5, 4.5))
        plot_ratio_contour(result, quantity=quantity, ax=ax)
        path = os.path.join(args.figures_dir, f"{stem}_{quantity}.png")
        fig.savefig(path)
        plt.close(fig)
        print(f"Saved {path}")

    panel_path = os.path.join(args.figures_dir, f"{stem}_panel.png")
    plt.close(plot_sweep_panel(result, save_path=panel_path))
    print(f"Saved {panel_path}")

    json_path = os.path.join(args.data_dir, f"{stem}.json")
    csv_path = os.path.join(args.data_dir, f"{stem}.csv")
    save_sweep_json(result, json_path)
    save_sweep_csv(result, csv_path)
    print(f"\nResults saved to {json_path} and {csv_path}")

    if result.n_unstable:
        print(f"WARNING: {result.n_unstable} cells exceeded the residual tolerance")


if __name__ == '__main__':
    main()
