"""
Visualization functions for proposal recall results.
"""

from pathlib import Path
from typing import Dict, Optional

import matplotlib
import matplotlib.pyplot as plt
import numpy as np

from .config import EvalConfig

# (x values attribute, x label, x scale, legend location, file prefix)
_PLOT_TYPES = {
    'count': ('cnts', '# of proposals', 'log', 'upper left', 'Cnt'),
    'iou': ('thrs', 'IoU', 'linear', 'upper right', 'IoU'),
}


def plot_path(config: EvalConfig, prefix: str) -> Path:
    return Path(config.res_dir) / "plots" / f"{prefix}-{config.split}-{config.fname}.png"


def plot_recall_curve(
    recall: np.ndarray,
    config: EvalConfig,
    plot_type: str = 'count',
    output_path: Optional[str] = None
):
    """
    Plot detection rate against #proposals or against IoU threshold.

    'count': one curve per method per threshold, log x-axis
    'iou':   one curve per method per count, linear x-axis

    Each method keeps the color of its index in config.col.

    Args:
        recall: (counts, thresholds, methods) array from evaluate_all()
        config: Configuration used to produce it
        plot_type: 'count' or 'iou'
        output_path: Path to save figure (optional)

    Returns:
        The matplotlib Figure
    """
    if plot_type not in _PLOT_TYPES:
        raise ValueError(f"Unknown plot type: {plot_type} (valid: {list(_PLOT_TYPES)})")
    attr, xlabel, xscale, legend_loc, _ = _PLOT_TYPES[plot_type]

    xs = np.asarray(getattr(config, attr), dtype=float)
    # Curves along axis 0
    R = recall if plot_type == 'count' else np.transpose(recall, (1, 0, 2))

    fig, ax = plt.subplots(figsize=(8, 6))

    handles = []
    for i in range(R.shape[1]):
        for k, name in enumerate(config.names):
            line, = ax.plot(xs, R[:, i, k], color=config.color(k), linewidth=3)
            if i == 0:
                handles.append(line)

    ax.set_xscale(xscale)
    ax.set_xlabel(xlabel, fontsize=12)
    ax.set_ylabel('Detection Rate', fontsize=12)
    ax.set_yticks(np.arange(0, 1.01, 0.2))
    ax.set_xlim([xs.min(), xs.max()])
    ax.set_ylim([0, 1])
    ax.minorticks_off()
    ax.grid(True)
    ax.tick_params(labelsize=12)
    ax.legend(handles, config.names, loc=legend_loc, fontsize=11)

    fig.tight_layout()

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=150, bbox_inches='tight')
        print(f"✓ Saved {plot_type} plot: {output_path}")

    return fig


# Backends that only render to files
_FILE_BACKENDS = {'agg', 'cairo', 'pdf', 'pgf', 'ps', 'svg', 'template'}


def is_interactive_backend() -> bool:
    return matplotlib.get_backend().lower() not in _FILE_BACKENDS


def plot_recall_curves(recall: np.ndarray, config: EvalConfig) -> Dict[str, plt.Figure]:
    """
    Generate the recall vs #proposals and recall vs IoU plots.

    A plot is skipped when its x-axis has a single value. Plots are saved
    to <res_dir>/plots/{Cnt|IoU}-<split>-<fname>.png when config.fname is set.
    Figures are left open so they can be shown.

    Returns:
        {'count': Figure, 'iou': Figure} for the plots that were drawn
    """
    figures = {}
    for plot_type, (attr, _, _, _, prefix) in _PLOT_TYPES.items():
        if len(getattr(config, attr)) == 1:
            continue
        output_path = plot_path(config, prefix) if config.fname else None
        figures[plot_type] = plot_recall_curve(recall, config, plot_type, output_path)
    return figures
