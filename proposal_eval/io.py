"""
I/O utilities for proposal files, cached recall values and result tables.
"""

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import List, Tuple, Union

import numpy as np


def proposals_path(res_dir: Union[str, Path], method: str, split: str) -> Path:
    """Proposal file for a method on a split: <res_dir>/<method>-<split>.json"""
    return Path(res_dir) / f"{method}-{split}.json"


def load_proposals(path: Union[str, Path]) -> List[np.ndarray]:
    """
    Load per-image proposal boxes from a JSON file.

    Args:
        path: Path to proposals JSON file

    Returns:
        List with one (k, 5) array per image, rows [x, y, w, h, score],
        in file order. Boxes are expected sorted by score (descending); the
        order is kept as is, truncation to the top-k relies on it.

    File format:
        {
            "bbs": [
                [[x, y, w, h, score], ...],   # image 0
                [[x, y, w, h, score], ...],   # image 1
                ...
            ]
        }

    Raises:
        FileNotFoundError: If proposals file doesn't exist
        ValueError: If 'bbs' is missing or a row doesn't have 5 values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Proposals file not found: {path}")

    with open(path, 'r') as f:
        data = json.load(f)

    if not isinstance(data, dict) or 'bbs' not in data:
        raise ValueError(f"No 'bbs' array found in {path}")

    bbs = []
    for i, boxes in enumerate(data['bbs']):
        arr = np.asarray(boxes, dtype=float)
        if arr.size == 0:
            arr = np.zeros((0, 5))
        if arr.ndim != 2 or arr.shape[1] != 5:
            raise ValueError(
                f"Image {i} in {path}: proposals must be rows of [x, y, w, h, score], "
                f"got shape {arr.shape}"
            )
        bbs.append(arr)

    return bbs


@lru_cache(maxsize=1)
def _load_proposals_cached(path: str, mtime_ns: int) -> Tuple[np.ndarray, ...]:
    return tuple(load_proposals(path))


def load_proposals_once(path: Union[str, Path]) -> Tuple[np.ndarray, ...]:
    """
    load_proposals() memoized per process, keyed by path and modification time.

    Only the most recently loaded file is kept. Tasks are ordered method by
    method (see evaluator.enumerate_tasks), so each process reads a method's
    proposal file about once per run while holding a single proposal set.
    Returned arrays are shared; callers must not modify them in place.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Proposals file not found: {path}")
    return _load_proposals_cached(str(path.resolve()), path.stat().st_mtime_ns)


def clear_proposal_cache():
    """Release the proposal set held by load_proposals_once()."""
    _load_proposals_cached.cache_clear()


def save_proposals(bbs: List, output_path: Union[str, Path]):
    """
    Save per-image proposals in the format read by load_proposals().

    Args:
        bbs: One sequence of [x, y, w, h, score] rows per image
        output_path: Path to save JSON file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        json.dump({'bbs': [np.asarray(b, dtype=float).reshape(-1, 5).tolist() for b in bbs]}, f)

    print(f"✓ Saved proposals to: {output_path}")


def read_recall(path: Union[str, Path]) -> float:
    """Read a cached recall value (single ASCII float)."""
    with open(path, 'r') as f:
        return float(f.read().strip())


def write_recall(value: float, path: Union[str, Path]):
    """
    Write a recall value to the cache.

    repr() keeps every digit, so read_recall() returns exactly `value`. The
    file is written under a temporary name and renamed, so concurrent readers
    never see a partial value.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path = path.with_name(f"{path.name}.{os.getpid()}.tmp")
    tmp_path.write_text(repr(float(value)) + "\n")
    os.replace(tmp_path, path)


def recall_table(recall: np.ndarray) -> np.ndarray:
    """
    Flatten a (counts, thresholds, methods) tensor to a 2D table.

    With a single method the table is counts x thresholds, even when either
    has one entry. Otherwise singleton dimensions are dropped first (a lone
    vector becomes a column); a remaining 3D tensor becomes
    counts x (thresholds * methods), thresholds varying fastest.
    """
    recall = np.asarray(recall, dtype=float)
    if recall.ndim == 3 and recall.shape[2] == 1:
        return recall[:, :, 0]
    table = np.squeeze(recall)
    if table.ndim == 0:
        return table.reshape(1, 1)
    if table.ndim == 1:
        return table.reshape(-1, 1)
    if table.ndim == 3:
        return table.reshape(table.shape[0], -1, order='F')
    return table


def save_recall_table(recall: np.ndarray, output_path: Union[str, Path]):
    """
    Save the recall tensor as a comma-delimited text table.

    Args:
        recall: (counts, thresholds, methods) recall tensor
        output_path: Path to save text file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    np.savetxt(output_path, recall_table(recall), delimiter=',', fmt='%.4f')

    print(f"✓ Saved recall table to: {output_path}")
