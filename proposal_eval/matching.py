"""
IoU computation, greedy box matching and detection rate curves.

Boxes are [x, y, w, h] rows. Ground truth rows carry a 5th column with an
ignore flag, proposals a 5th column with a score.

Matched output encoding (one extra status column):
- ground truth [x, y, w, h, status]: 1 matched, 0 missed, -1 ignore
- proposals [x, y, w, h, score, status]: 1 true positive, 0 false positive,
  -1 matched an ignore region (excluded from the curve)
"""

from typing import List, Sequence, Tuple
import numpy as np


def compute_overlaps(dt: np.ndarray, gt: np.ndarray, ignore: np.ndarray = None) -> np.ndarray:
    """
    Compute overlaps between every proposal and every ground truth box.

    For regular ground truth the overlap is IoU. For ignore regions it is
    the fraction of the proposal covered by the region (intersection over
    proposal area), so proposals inside a crowd region are not penalized.

    Args:
        dt: (n, >=4) proposals [x, y, w, h, ...]
        gt: (m, >=4) ground truth [x, y, w, h, ...]
        ignore: (m,) bool mask of ignore regions (optional)

    Returns:
        (n, m) overlap matrix
    """
    if len(dt) == 0 or len(gt) == 0:
        return np.zeros((len(dt), len(gt)))

    dt = np.asarray(dt, dtype=float)
    gt = np.asarray(gt, dtype=float)

    # Intersection
    inter_w = (np.minimum(dt[:, 0:1] + dt[:, 2:3], (gt[:, 0] + gt[:, 2])[np.newaxis, :])
               - np.maximum(dt[:, 0:1], gt[np.newaxis, :, 0]))
    inter_h = (np.minimum(dt[:, 1:2] + dt[:, 3:4], (gt[:, 1] + gt[:, 3])[np.newaxis, :])
               - np.maximum(dt[:, 1:2], gt[np.newaxis, :, 1]))
    inter = np.maximum(0, inter_w) * np.maximum(0, inter_h)

    # Union (or proposal area for ignore regions)
    dt_area = (dt[:, 2] * dt[:, 3])[:, np.newaxis]
    gt_area = (gt[:, 2] * gt[:, 3])[np.newaxis, :]
    denom = dt_area + gt_area - inter
    if ignore is not None:
        denom = np.where(np.asarray(ignore, dtype=bool)[np.newaxis, :], dt_area, denom)

    # Avoid division by zero
    with np.errstate(divide='ignore', invalid='ignore'):
        overlaps = np.where(denom > 0, inter / denom, 0.0)

    return overlaps


def match_image(gt: np.ndarray, dt: np.ndarray, threshold: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Greedy matching of proposals to ground truth for a single image.

    Matching strategy:
    - Proposals are visited by score descending (stable, so ties keep file order)
    - Each proposal takes the unmatched ground truth box with the highest
      overlap >= threshold; regular boxes are preferred over ignore regions
    - Regular boxes are matched at most once; ignore regions absorb any
      number of proposals

    Args:
        gt: (m, 5) ground truth [x, y, w, h, ignore]
        dt: (n, 5) proposals [x, y, w, h, score]
        threshold: Minimum overlap for a valid match

    Returns:
        gt: (m, 5) ground truth [x, y, w, h, status], regular boxes first
        dt: (n, 6) proposals [x, y, w, h, score, status], sorted by score
    """
    gt = np.asarray(gt, dtype=float).reshape(-1, 5)
    dt = np.asarray(dt, dtype=float).reshape(-1, 5)

    order = np.argsort(-dt[:, 4], kind='stable')
    dt = np.hstack([dt[order], np.zeros((len(dt), 1))])

    # Status: 0 unmatched, -1 ignore; regular boxes first
    gt = gt.copy()
    gt[:, 4] = np.where(gt[:, 4] != 0, -1.0, 0.0)
    gt = gt[np.argsort(-gt[:, 4], kind='stable')]

    if len(dt) == 0 or len(gt) == 0:
        return gt, dt

    ignore = gt[:, 4] == -1
    overlaps = compute_overlaps(dt, gt, ignore)

    for d in range(len(dt)):
        best_overlap = threshold
        best_g = -1
        best_status = 0
        for g in range(len(gt)):
            status = gt[g, 4]
            if status == 1:
                continue
            # Already found a regular match, ignore regions come after
            if best_status != 0 and status == -1:
                break
            if overlaps[d, g] < best_overlap:
                continue
            best_overlap = overlaps[d, g]
            best_g = g
            best_status = 1 if status == 0 else -1

        if best_status == -1:
            dt[d, 5] = -1
        elif best_status == 1:
            gt[best_g, 4] = 1
            dt[d, 5] = 1

    return gt, dt


def match_boxes(
    gt: Sequence[np.ndarray],
    dt: Sequence[np.ndarray],
    threshold: float
) -> Tuple[List[np.ndarray], List[np.ndarray]]:
    """
    Match proposals to ground truth across all images.

    Matching is done per image (see match_image). Images missing from `dt`
    are treated as having no proposals.

    Args:
        gt: Per-image ground truth arrays [x, y, w, h, ignore]
        dt: Per-image proposal arrays [x, y, w, h, score]
        threshold: Minimum IoU for a valid match

    Returns:
        (matched_gt, matched_dt) per-image lists, see module docstring
    """
    matched_gt = []
    matched_dt = []
    for i, gt_img in enumerate(gt):
        dt_img = dt[i] if i < len(dt) else np.zeros((0, 5))
        g, d = match_image(gt_img, dt_img, threshold)
        matched_gt.append(g)
        matched_dt.append(d)
    return matched_gt, matched_dt


def detection_rate_curve(
    matched_gt: Sequence[np.ndarray],
    matched_dt: Sequence[np.ndarray]
) -> np.ndarray:
    """
    Detection rate (recall) as a function of the number of accepted proposals.

    All non-ignored proposals are pooled over images and sorted by score
    descending; entry i is the fraction of regular ground truth boxes
    matched by the top i+1 proposals.

    Returns:
        1D array, non-decreasing, empty when there are no proposals. All
        zeros when there is no regular ground truth.
    """
    gt = np.vstack([np.asarray(g).reshape(-1, 5) for g in matched_gt]) if matched_gt else np.zeros((0, 5))
    dt = np.vstack([np.asarray(d).reshape(-1, 6) for d in matched_dt]) if matched_dt else np.zeros((0, 6))

    n_pos = int(np.sum(gt[:, 4] != -1))

    dt = dt[dt[:, 5] != -1]
    dt = dt[np.argsort(-dt[:, 4], kind='stable')]
    tp = np.cumsum(dt[:, 5] == 1)

    if n_pos == 0:
        return np.zeros(len(tp))
    return tp / n_pos
