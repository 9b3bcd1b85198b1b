"""
Cached evaluation of proposal methods.

Each (proposal count, IoU threshold, method) combination is an independent
task whose recall is cached on disk (see cache.cache_path). Tasks only read
shared inputs and write their own cache file, so they can run in any order
and in parallel worker processes with identical results.
"""

import functools
import multiprocessing
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import numpy as np
from tqdm import tqdm

from .cache import cache_path
from .config import EvalConfig
from .io import clear_proposal_cache, load_proposals_once, proposals_path, read_recall, write_recall
from .matching import detection_rate_curve, match_boxes


@dataclass(frozen=True)
class EvalTask:
    """
    One evaluation: recall of `method` with at most `n_proposals` boxes per
    image at IoU `threshold`, over the first `n_images` images.

    `index` is the (count, threshold, method) position in the result tensor.
    """
    method: str
    n_images: int
    n_proposals: int
    threshold: float
    index: Tuple[int, int, int]


@dataclass
class EvalStats:
    cached: int = 0
    computed: int = 0

    @property
    def total(self) -> int:
        return self.cached + self.computed


def enumerate_tasks(
    cnts: Sequence[int],
    thrs: Sequence[float],
    names: Sequence[str],
    n_images: int
) -> List[EvalTask]:
    """
    All count x threshold x method combinations, each exactly once.

    Tasks are grouped by method, so consecutive tasks share a proposal file.
    """
    return [
        EvalTask(name, n_images, int(cnt), float(thr), (m, t, k))
        for k, name in enumerate(names)
        for m, cnt in enumerate(cnts)
        for t, thr in enumerate(thrs)
    ]


def truncate_proposals(bbs: Sequence[np.ndarray], n_proposals: int) -> List[np.ndarray]:
    """Keep the first n_proposals boxes of every image (file order, no re-sorting)."""
    return [np.asarray(b)[:n_proposals] for b in bbs]


def compute_recall(
    gt: Sequence[np.ndarray],
    bbs: Sequence[np.ndarray],
    n_proposals: int,
    threshold: float
) -> float:
    """
    Recall of the top-n_proposals boxes per image at an IoU threshold.

    Returns:
        Max of the detection rate curve, 0.0 if there are no proposals
    """
    bbs = truncate_proposals(bbs, n_proposals)
    matched_gt, matched_dt = match_boxes(gt, bbs, threshold)
    curve = detection_rate_curve(matched_gt, matched_dt)
    return float(np.max(curve)) if len(curve) else 0.0


def evaluate_task(
    task: EvalTask,
    gt: Sequence[np.ndarray],
    res_dir: Union[str, Path],
    split: str
) -> Tuple[EvalTask, float, bool]:
    """
    Resolve one task, from the cache if possible.

    Cached values are trusted as is; delete the file to force recomputation.

    Returns:
        (task, recall, cache_hit)

    Raises:
        FileNotFoundError: If the result is not cached and the method's
                           proposal file doesn't exist
    """
    path = cache_path(res_dir, task.method, split, task.n_images, task.n_proposals, task.threshold)
    if path.exists():
        return task, read_recall(path), True

    bbs = load_proposals_once(proposals_path(res_dir, task.method, split))
    recall = compute_recall(gt[:task.n_images], bbs[:task.n_images], task.n_proposals, task.threshold)
    write_recall(recall, path)

    return task, recall, False


# Ground truth of the current run, set once per worker process
_worker_gt = None


def _init_worker(gt):
    global _worker_gt
    _worker_gt = gt


def _evaluate_in_worker(task: EvalTask, res_dir: Union[str, Path], split: str) -> Tuple[EvalTask, float, bool]:
    return evaluate_task(task, _worker_gt, res_dir, split)


def evaluate_all(
    config: EvalConfig,
    workers: int = 1,
    progress: bool = True
) -> Tuple[np.ndarray, EvalStats]:
    """
    Compute (or load from cache) recall for every count/threshold/method.

    Args:
        config: Evaluation configuration
        workers: Number of worker processes (<= 1 runs in this process)
        progress: Show a tqdm progress bar

    Returns:
        recall: (counts, thresholds, methods) array
        stats: Number of cached and computed tasks

    Example:
        >>> recall, stats = evaluate_all(config, workers=4)
        >>> recall[:, 0, 0]   # recall vs #proposals, first threshold, first method
    """
    config.validate()

    n_images = config.n_images
    gt = config.data.first(n_images)
    tasks = enumerate_tasks(config.cnts, config.thrs, config.names, n_images)

    recall = np.zeros((len(config.cnts), len(config.thrs), len(config.names)))
    stats = EvalStats()

    def collect(results):
        for task, value, hit in tqdm(results, total=len(tasks), desc="Evaluating proposals",
                                     disable=not progress):
            recall[task.index] = value
            if hit:
                stats.cached += 1
            else:
                stats.computed += 1

    try:
        if workers > 1 and len(tasks) > 1:
            n_procs = min(workers, len(tasks))
            worker_func = functools.partial(_evaluate_in_worker, res_dir=config.res_dir, split=config.split)
            chunksize = max(1, len(tasks) // (n_procs * 4))
            with multiprocessing.Pool(processes=n_procs, initializer=_init_worker, initargs=(gt,)) as pool:
                collect(pool.imap_unordered(worker_func, tasks, chunksize=chunksize))
        else:
            worker_func = functools.partial(evaluate_task, gt=gt, res_dir=config.res_dir, split=config.split)
            collect(map(worker_func, tasks))
    finally:
        clear_proposal_cache()

    return recall, stats
