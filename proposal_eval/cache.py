"""
Cache paths for per-task recall results.

Every (method, split, image count, proposal count, IoU threshold) maps to one
text file under <res_dir>/eval/. The mapping is deterministic so the cache can
be shared between runs and between worker processes.
"""

import math
from pathlib import Path
from typing import Union


def round_half_away(x: float) -> int:
    """Round to the nearest integer, ties away from zero (the built-in round() rounds ties to even)."""
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def threshold_percent(threshold: float) -> int:
    """Round an IoU threshold to an integer percent."""
    return round_half_away(threshold * 100)


def cache_path(
    res_dir: Union[str, Path],
    method: str,
    split: str,
    n_images: int,
    n_proposals: int,
    threshold: float
) -> Path:
    """
    Build the cache file path for one evaluation task.

    Args:
        res_dir: Results root directory
        method: Proposal method name (e.g., "edgeBoxes70")
        split: Dataset split (e.g., "val")
        n_images: Number of images evaluated
        n_proposals: Max proposals per image
        threshold: IoU threshold

    Returns:
        Path like <res_dir>/eval/edgeBoxes70/val/N00100-W01000-T70.txt

    Example:
        >>> cache_path("boxes", "edgeBoxes", "val", 100, 1000, 0.7).name
        'N00100-W01000-T70.txt'
    """
    fname = f"N{n_images:05d}-W{n_proposals:05d}-T{threshold_percent(threshold):02d}.txt"
    return Path(res_dir) / "eval" / method / split / fname
