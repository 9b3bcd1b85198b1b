"""
End-to-end proposal evaluation: evaluate, summarize, save, plot.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from .config import EvalConfig
from .evaluator import evaluate_all
from .io import save_recall_table
from .metrics import print_summary, summarize_recall
from .plots import is_interactive_backend, plot_recall_curves


def table_path(config: EvalConfig) -> Path:
    return Path(config.res_dir) / "plots" / f"{config.fname}-{config.split}.txt"


def run_evaluation(config: EvalConfig, workers: int = 1, progress: bool = True) -> np.ndarray:
    """
    Evaluate every method and report the results.

    Steps:
    1. Compute recall for every count/threshold/method (cached on disk)
    2. Print one summary line per threshold/method (if >1 count)
    3. Save the recall table to <res_dir>/plots/<fname>-<split>.txt (if fname)
    4. Plot recall curves (if show), shown in a window on interactive backends

    Reporting starts only after every task has finished; a failing task
    aborts the run before anything is printed or plotted.

    Returns:
        (counts, thresholds, methods) recall array
    """
    recall, stats = evaluate_all(config, workers=workers, progress=progress)
    print(f"✓ Evaluated {stats.total} tasks ({stats.cached} cached, {stats.computed} computed)")

    print_summary(summarize_recall(recall, config))

    if config.fname:
        save_recall_table(recall, table_path(config))

    if config.show:
        figures = plot_recall_curves(recall, config)
        if figures and is_interactive_backend():
            plt.show()

    return recall
