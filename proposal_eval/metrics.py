"""
Summary statistics for recall vs #proposals curves.

For every (IoU threshold, method) pair:
1. recall_auc: area under recall vs normalized log(#proposals)
2. proposals_needed: #proposals needed to reach a target recall (default 0.75)
3. max recall over the curve
"""

import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from .cache import round_half_away
from .config import EvalConfig

TARGET_RECALL = 0.75


def recall_auc(cnts: Sequence[int], recall: Sequence[float]) -> float:
    """
    Area under the recall curve with log(#proposals) normalized by its last value.

    With counts starting at 1 the x-axis spans [0, 1], so the AUC lies in
    [0, 1] whenever the recall values do.

    Args:
        cnts: Increasing proposal counts (at least two, last one > 1)
        recall: Recall at each count

    Example:
        >>> recall_auc([1, 10, 100], [0.0, 0.5, 1.0])
        0.5
    """
    xs = np.log(np.asarray(cnts, dtype=float))
    xs = xs / xs[-1]
    r = np.asarray(recall, dtype=float)
    return float(np.sum(np.diff(xs) * (r[:-1] + r[1:]) / 2))


def proposals_needed(
    cnts: Sequence[int],
    recall: Sequence[float],
    target: float = TARGET_RECALL
) -> float:
    """
    Number of proposals needed to reach `target` recall.

    Interpolates linearly in log(#proposals) between the last count below
    the target and the first count reaching it.

    Returns:
        Rounded count (as float), cnts[0] if the first point already reaches
        the target, math.inf if the target is never reached
    """
    r = np.asarray(recall, dtype=float)
    xs = np.log(np.asarray(cnts, dtype=float))

    reached = np.nonzero(r >= target)[0]
    if len(reached) == 0:
        return math.inf

    a = reached[0]
    if a == 0:
        return float(cnts[0])

    b = a - 1
    x = (target - r[b]) / (r[a] - r[b]) * (xs[a] - xs[b]) + xs[b]
    return float(round_half_away(math.exp(x)))


def summarize_recall(recall: np.ndarray, config: EvalConfig) -> List[Dict]:
    """
    Summary statistics for every (threshold, method) pair.

    Args:
        recall: (counts, thresholds, methods) array from evaluate_all()
        config: Configuration used to produce it

    Returns:
        List of rows (methods outer, thresholds inner):
        [
            {"method": "edgeBoxes70", "threshold": 0.7, "auc": 0.46,
             "proposals_needed": 745.0, "max_recall": 0.87},
            ...
        ]
        Empty when there is only one proposal count (no curve).
    """
    if len(config.cnts) == 1:
        return []

    rows = []
    for k, name in enumerate(config.names):
        for t, thr in enumerate(config.thrs):
            r = recall[:, t, k]
            rows.append({
                'method': name,
                'threshold': thr,
                'auc': recall_auc(config.cnts, r),
                'proposals_needed': proposals_needed(config.cnts, r),
                'max_recall': float(np.max(r)),
            })
    return rows


def format_summary_line(row: Dict) -> str:
    """
    Format one summary row.

    Example:
        >>> format_summary_line({'method': 'edgeBoxes70', 'threshold': 0.7, 'auc': 0.4612,
        ...                      'proposals_needed': 745.0, 'max_recall': 0.8731})
        '    edgeBoxes70  T=0.70  A=0.46  M= 745  R=0.87'
    """
    m = row['proposals_needed']
    m_str = f"{int(m):4d}" if math.isfinite(m) else f"{'inf':>4}"
    return (
        f"{row['method']:>15}  T={row['threshold']:.2f}  A={row['auc']:.2f}  "
        f"M={m_str}  R={row['max_recall']:.2f}"
    )


def print_summary(rows: List[Dict], title: Optional[str] = None):
    if not rows:
        return
    if title:
        print(title)
    for row in rows:
        print(format_summary_line(row))
