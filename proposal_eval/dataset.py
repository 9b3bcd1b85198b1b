"""
Ground truth access for proposal evaluation.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class BoxDataset:
    """
    Ground truth boxes for one dataset split.

    Attributes:
        gt: One (m, 5) array per image, rows are [x, y, w, h, ignore]
        split: Split name ("train", "val", "test")
        image_ids: Optional image identifiers, aligned with gt
    """
    gt: List[np.ndarray]
    split: str
    image_ids: Optional[List[str]] = None

    @property
    def n(self) -> int:
        return len(self.gt)

    def first(self, n: int) -> List[np.ndarray]:
        return self.gt[:n]


def gt_array(boxes: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Convert a list of [x, y, w, h] or [x, y, w, h, ignore] rows to an (m, 5) array.

    Raises:
        ValueError: If a row has the wrong number of columns
    """
    out = np.zeros((len(boxes), 5), dtype=float)
    for i, box in enumerate(boxes):
        if len(box) not in (4, 5):
            raise ValueError(f"Ground truth box must have 4 or 5 values, got {len(box)}: {box}")
        out[i, :len(box)] = box
    return out


def _box_row(obj: Dict) -> List[float]:
    if 'bbox' in obj:
        x, y, w, h = obj['bbox']
    elif 'bbox_xyxy' in obj:
        x1, y1, x2, y2 = obj['bbox_xyxy']
        x, y, w, h = x1, y1, x2 - x1, y2 - y1
    else:
        raise ValueError(f"Ground truth object has neither 'bbox' nor 'bbox_xyxy': {obj}")
    return [x, y, w, h, 1.0 if obj.get('ignore', False) else 0.0]


def load_ground_truth(index_path: str, split: Optional[str] = None) -> BoxDataset:
    """
    Load ground truth boxes from an index JSON file.

    Args:
        index_path: Path to *_index.json (e.g., val_index.json)
        split: Expected split name. Checked against metadata when both are
               present, used as the split when metadata has none.

    Index format:
        {
            "metadata": {"split": "val"},
            "images": [
                {
                    "image_id": str,
                    "ground_truth": [
                        {"bbox": [x, y, w, h], "ignore": 0},
                        {"bbox_xyxy": [x1, y1, x2, y2]},  # also accepted
                        ...
                    ]
                },
                ...
            ]
        }

    Returns:
        BoxDataset with one (m, 5) array per image, in file order

    Raises:
        FileNotFoundError: If index file doesn't exist
        ValueError: If split doesn't match, no split is known, or the file has no images
    """
    index_path = Path(index_path)
    if not index_path.exists():
        raise FileNotFoundError(f"Ground truth index not found: {index_path}")

    with open(index_path, 'r') as f:
        data = json.load(f)

    metadata = data.get('metadata', {})

    # Validate split if specified
    if split and 'split' in metadata:
        if metadata['split'] != split:
            raise ValueError(
                f"Expected split '{split}', but index file has split '{metadata['split']}'"
            )
    split = split or metadata.get('split')
    if not split:
        raise ValueError(f"No split given and none found in metadata of {index_path}")

    images = data.get('images', [])

    if not images:
        raise ValueError(f"No images found in {index_path}")

    gt = [gt_array([_box_row(obj) for obj in img.get('ground_truth', [])]) for img in images]
    image_ids = [str(img.get('image_id', i)) for i, img in enumerate(images)]

    return BoxDataset(gt=gt, split=split, image_ids=image_ids)
