"""
Evaluation configuration.

Defaults live on EvalConfig instead of module-level state, so every run (and
every test) builds its own configuration.
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .cache import threshold_percent
from .dataset import BoxDataset, load_ground_truth

DEFAULT_COUNTS = [1, 2, 5, 10, 20, 50, 100, 200, 500, 1000, 2000, 5000]
DEFAULT_THRESHOLDS = [0.7]

Color = Tuple[float, float, float]


def method_color(index: int) -> Color:
    """
    Deterministic RGB color for the method at position `index` (0-based).

    Colors depend only on the index, never on the method name, so a method
    keeps its color across runs as long as its position does not change.
    """
    i = index + 1
    return tuple(max(0.3, math.fmod(c * (i + 1), 1.0)) for c in (0.3, 0.47, 0.16))


def default_colors(n: int = 100) -> List[Color]:
    return [method_color(i) for i in range(n)]


@dataclass
class EvalConfig:
    """
    Parameters for one evaluation run.

    Attributes:
        data: Ground truth (see dataset.load_ground_truth)
        names: Proposal method names; proposals are read from
               <res_dir>/<name>-<split>.json
        res_dir: Location for proposal files, cached results and plots
        thrs: IoU threshold(s)
        cnts: Proposal count(s)
        maxn: Max number of images to evaluate (None = all)
        show: Render plots
        fname: Base name for saved table/plots ("" = don't save)
        col: Per-method colors, indexed by method position
    """
    data: Optional[BoxDataset] = None
    names: List[str] = field(default_factory=list)
    res_dir: str = "boxes/"
    thrs: List[float] = field(default_factory=lambda: list(DEFAULT_THRESHOLDS))
    cnts: List[int] = field(default_factory=lambda: list(DEFAULT_COUNTS))
    maxn: Optional[int] = None
    show: bool = True
    fname: str = ""
    col: List[Color] = field(default_factory=default_colors)

    def __post_init__(self):
        if isinstance(self.names, str):
            self.names = [self.names]
        if isinstance(self.thrs, (int, float)):
            self.thrs = [self.thrs]
        if isinstance(self.cnts, int):
            self.cnts = [self.cnts]

    @property
    def split(self) -> str:
        return self.data.split

    @property
    def n_images(self) -> int:
        """Number of images actually evaluated."""
        if self.maxn is None:
            return self.data.n
        return min(self.maxn, self.data.n)

    def color(self, k: int) -> Color:
        return self.col[k % len(self.col)]

    def validate(self):
        """
        Check the configuration before any evaluation starts.

        Raises:
            ValueError: On missing data/names or invalid thresholds/counts
        """
        if self.data is None:
            raise ValueError("Missing required parameter 'data'")
        if not self.names:
            raise ValueError("Missing required parameter 'names'")
        if not self.thrs:
            raise ValueError("At least one IoU threshold is required")
        if not self.cnts:
            raise ValueError("At least one proposal count is required")
        if not self.col:
            raise ValueError("At least one color is required")
        if self.maxn is not None and self.maxn < 1:
            raise ValueError(f"maxn must be >= 1, got {self.maxn}")

        for thr in self.thrs:
            if not 0 <= thr <= 1:
                raise ValueError(f"IoU threshold must be in [0,1], got {thr}")
        for cnt in self.cnts:
            if int(cnt) != cnt or cnt < 1:
                raise ValueError(f"Proposal count must be a positive integer, got {cnt}")

        # Cache files are keyed by integer percent
        seen = {}
        for thr in self.thrs:
            pct = threshold_percent(thr)
            if pct in seen:
                raise ValueError(
                    f"IoU thresholds {seen[pct]} and {thr} share the cache key T{pct:02d}; "
                    f"use thresholds that differ by at least 0.01"
                )
            seen[pct] = thr

        if any(b <= a for a, b in zip(self.cnts, self.cnts[1:])):
            raise ValueError(f"Proposal counts must be strictly increasing, got {self.cnts}")
        if len(set(self.names)) != len(self.names):
            raise ValueError(f"Duplicate method names: {self.names}")

        return self


def _as_list(value: Union[str, List], cast) -> List:
    if isinstance(value, str):
        return [cast(x.strip()) for x in value.split(',') if x.strip()]
    if isinstance(value, (list, tuple)):
        return [cast(x) for x in value]
    return [cast(value)]


# YAML keys accepted for each EvalConfig field
_KEY_ALIASES = {
    'names': 'names',
    'res_dir': 'res_dir',
    'resDir': 'res_dir',
    'thrs': 'thrs',
    'cnts': 'cnts',
    'maxn': 'maxn',
    'show': 'show',
    'fname': 'fname',
    'fName': 'fname',
    'col': 'col',
}


def config_from_dict(params: Dict[str, Any], data: Optional[BoxDataset] = None) -> EvalConfig:
    """
    Build an EvalConfig from a plain dict (e.g., parsed YAML).

    The 'data' key may hold a path to a ground truth index JSON; it is
    loaded with the optional 'split' key. An explicit `data` argument wins.

    Raises:
        ValueError: On unknown keys
    """
    kwargs = {}
    for key, value in params.items():
        if key in ('data', 'split'):
            continue
        if key not in _KEY_ALIASES:
            raise ValueError(f"Unknown config key '{key}' (valid: {sorted(_KEY_ALIASES)})")
        kwargs[_KEY_ALIASES[key]] = value

    if 'names' in kwargs:
        kwargs['names'] = _as_list(kwargs['names'], str)
    if 'thrs' in kwargs:
        kwargs['thrs'] = _as_list(kwargs['thrs'], float)
    if 'cnts' in kwargs:
        kwargs['cnts'] = _as_list(kwargs['cnts'], int)
    if 'col' in kwargs:
        kwargs['col'] = [tuple(float(c) for c in rgb) for rgb in kwargs['col']]
    if kwargs.get('maxn') is not None:
        maxn = float(kwargs['maxn'])
        kwargs['maxn'] = None if math.isinf(maxn) else int(maxn)
    if kwargs.get('fname') is None:
        kwargs.pop('fname', None)

    if data is None and params.get('data') is not None:
        data = load_ground_truth(params['data'], split=params.get('split'))

    return EvalConfig(data=data, **kwargs)


def load_config(config_path: str, data: Optional[BoxDataset] = None) -> EvalConfig:
    """
    Load an EvalConfig from a YAML file.

    Example config:
        data: data/processed/evaluation/val_index.json
        split: val
        names: [edgeBoxes70, selectiveSearch]
        res_dir: boxes/
        thrs: [0.5, 0.7, 0.9]
        cnts: [1, 10, 100, 1000]
        fname: val-comparison

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        params = yaml.safe_load(f) or {}

    if not isinstance(params, dict):
        raise ValueError(f"Config file must hold a mapping, got {type(params).__name__}: {config_path}")

    return config_from_dict(params, data=data)
