import json
import sys
from pathlib import Path

import matplotlib
import numpy as np
import pytest

matplotlib.use('Agg')

import matplotlib.pyplot as plt  # noqa: E402
from proposal_eval.dataset import BoxDataset, gt_array  # noqa: E402
from proposal_eval.io import save_proposals, proposals_path  # noqa: E402

# Make scripts/ importable (evaluate_proposals CLI)
sys.path.insert(0, str(Path(__file__).parent.parent / "scripts"))


def write_index(path, images, split="val"):
    """Write a ground truth index JSON: `images` is a list of [x, y, w, h(, ignore)] lists."""
    payload = {
        'metadata': {'split': split},
        'images': [
            {
                'image_id': f"{i:06d}",
                'ground_truth': [
                    {'bbox': list(box[:4]), 'ignore': int(box[4]) if len(box) > 4 else 0}
                    for box in boxes
                ],
            }
            for i, boxes in enumerate(images)
        ],
    }
    path.write_text(json.dumps(payload))
    return path


@pytest.fixture
def two_box_dataset():
    """One image with two ground truth boxes."""
    return BoxDataset(gt=[gt_array([[0, 0, 10, 10], [20, 20, 10, 10]])], split="val")


@pytest.fixture
def res_dir(tmp_path):
    d = tmp_path / "boxes"
    d.mkdir()
    return d


@pytest.fixture
def exact_proposals(res_dir):
    """'edgeBoxes' proposals equal to the two ground truth boxes of two_box_dataset."""
    save_proposals([[[0, 0, 10, 10, 0.9], [20, 20, 10, 10, 0.8]]],
                   proposals_path(res_dir, "edgeBoxes", "val"))
    return res_dir


@pytest.fixture
def grid_dataset():
    """
    Six images with well separated ground truth boxes and two methods.

    'jitter' proposals are noisy copies of the ground truth (noise grows
    with rank), 'random' proposals are uniformly placed boxes. Both are
    sorted by score. Returns (dataset, {method: bbs}).
    """
    rng = np.random.default_rng(0)
    gt, jitter, random = [], [], []
    for _ in range(6):
        n_obj = rng.integers(1, 5)
        cells = rng.choice(16, size=n_obj, replace=False)
        boxes = np.array([[100 * (c % 4) + 10, 100 * (c // 4) + 10, 40, 40] for c in cells], dtype=float)
        gt.append(gt_array(boxes))

        props = []
        for rank in range(30):
            src = boxes[rank % n_obj]
            noise = rng.uniform(-1, 1, size=4) * min(3 * (1 + rank // n_obj), 15)
            props.append(list(src + noise) + [1.0 - rank / 30])
        jitter.append(np.array(props))

        xy = rng.uniform(0, 360, size=(30, 2))
        wh = rng.uniform(10, 60, size=(30, 2))
        random.append(np.hstack([xy, wh, np.linspace(1, 0, 30)[:, None]]))

    return BoxDataset(gt=gt, split="val"), {'jitter': jitter, 'random': random}


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close('all')
