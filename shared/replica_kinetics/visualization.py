"""
Visualization of cooperativity sweeps.

Produces the contour maps of the fitness advantage over the
non-cooperative template:
- P/P_0      combined fitness ratio
- P_g/P_g0   growth-advantage ratio
- P_c/P_c0   covalent-retention ratio
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.axes import Axes
from typing import Optional, Sequence

from .sweep import SweepResult


plt.rcParams.update({
    'font.size': 10,
    'axes.labelsize': 11,
    'axes.titlesize': 11,
    'xtick.labelsize': 9,
    'ytick.labelsize': 9,
    'legend.fontsize': 9,
    'figure.dpi': 150,
    'savefig.dpi': 300,
    'savefig.bbox': 'tight',
})

RATIO_QUANTITIES = {
    'fitness': ('fitness_ratio', 'P/P$_0$'),
    'growth': ('growth_ratio', 'P$_g$/P$_{g0}$'),
    'retention': ('retention_ratio', 'P$_c$/P$_{c0}$'),
}


def _ratio_grid(sweep: SweepResult, quantity: str) -> np.ndarray:
    if quantity not in RATIO_QUANTITIES:
        raise ValueError(
            f"Unknown quantity: {quantity}. Choose from {list(RATIO_QUANTITIES)}"
        )
    attr, _ = RATIO_QUANTITIES[quantity]
    return getattr(sweep, attr)


def plot_ratio_contour(
    sweep: SweepResult,
    quantity: str = 'fitness',
    ax: Optional[Axes] = None,
    n_levels: int = 30,
    cmap: str = 'viridis',
    title: Optional[str] = None,
) -> Axes:
    """
    Filled contour map of an advantage ratio over (alpha_L, alpha_R).

    Parameters
    ----------
    sweep : SweepResult
        Sweep output.
    quantity : str
        'fitness', 'growth', or 'retention'.
    ax : Axes, optional
        Matplotlib axes (creates new if None).
    n_levels : int
        Number of contour levels.
    cmap : str
        Colormap name.
    title : str, optional
        Plot title.

    Returns
    -------
    Axes
    """
    Z = _ratio_grid(sweep, quantity)
    _, label = RATIO_QUANTITIES[quantity]

    if ax is None:
        fig, ax = plt.subplots(figsize=(5, 4.5))

    cs = ax.contourf(sweep.alpha_left, sweep.alpha_right, Z, n_levels, cmap=cmap)
    cbar = ax.figure.colorbar(cs, ax=ax)
    cbar.ax.set_xlabel(label)

    ax.set_xlabel(r'Rate modulating factor $\alpha_L$')
    ax.set_ylabel(r'Rate modulating factor $\alpha_R$')
    ax.set_aspect('equal', adjustable='box')

    if title:
        ax.set_title(title)

    return ax


def plot_sweep_panel(
    sweep: SweepResult,
    save_path: Optional[str] = None,
    title: Optional[str] = None,
) -> Figure:
    """
    Three contour maps side by side: combined, growth and retention ratios.

    Parameters
    ----------
    sweep : SweepResult
        Sweep output.
    save_path : str, optional
        Path to save figure.
    title : str, optional
        Overall title.

    Returns
    -------
    Figure
    """
    fig, axes = plt.subplots(1, 3, figsize=(15, 4.5))

    for ax, quantity in zip(axes, ('fitness', 'growth', 'retention')):
        plot_ratio_contour(sweep, quantity=quantity, ax=ax)

    if title is None:
        title = (f"{sweep.topology.value.capitalize()} template, "
                 f"nocoop fitness {sweep.baseline.fitness:.4f}")
    fig.suptitle(title, fontsize=12, y=1.02)

    plt.tight_layout()

    if save_path:
        fig.savefig(save_path)

    return fig


def plot_diagonal_profile(
    sweeps: Sequence[SweepResult],
    ax: Optional[Axes] = None,
    title: Optional[str] = None,
) -> Axes:
    """
    Fitness ratio along alpha_L = alpha_R for one or more sweeps.

    Each sweep must use identical alpha_L and alpha_R grids.
    """
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 4))

    for sweep in sweeps:
        alphas, ratio = sweep.diagonal()
        ax.plot(alphas, ratio, 'o-', markersize=3, label=sweep.topology.value)

    ax.axhline(1.0, color='gray', linestyle='--', alpha=0.5)
    ax.set_xlabel(r'$\alpha_L = \alpha_R$')
    ax.set_ylabel('P/P$_0$')
    ax.legend(loc='best')

    if title:
        ax.set_title(title)

    return ax


def plot_topology_comparison(
    circular: SweepResult,
    linear: SweepResult,
    save_path: Optional[str] = None,
) -> Figure:
    """
    Combined fitness ratio for circular and linear templates on a shared scale.

    Parameters
    ----------
    circular, linear : SweepResult
        Sweeps of the two topologies.
    save_path : str, optional
        Path to save figure.

    Returns
    -------
    Figure
    """
    fig, axes = plt.subplots(1, 2, figsize=(10, 4.5))

    vmin = min(circular.fitness_ratio.min(), linear.fitness_ratio.min())
    vmax = max(circular.fitness_ratio.max(), linear.fitness_ratio.max())
    levels = np.linspace(vmin, vmax, 31)

    for ax, sweep in zip(axes, (circular, linear)):
        cs = ax.contourf(sweep.alpha_left, sweep.alpha_right, sweep.fitness_ratio, levels)
        ax.set_xlabel(r'Rate modulating factor $\alpha_L$')
        ax.set_ylabel(r'Rate modulating factor $\alpha_R$')
        ax.set_aspect('equal', adjustable='box')
        ax.set_title(f"{sweep.topology.value.capitalize()} template")

    cbar = fig.colorbar(cs, ax=axes.tolist())
    cbar.ax.set_xlabel('P/P$_0$')

    if save_path:
        fig.savefig(save_path)

    return fig
