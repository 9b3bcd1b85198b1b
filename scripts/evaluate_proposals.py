"""
Evaluate Proposals - Recall of Object Proposal Methods
=======================================================
Compare bounding box proposal methods by detection recall.

This script:
1. Loads ground truth from an index JSON file
2. Evaluates every method at every (proposal count, IoU threshold) pair,
   caching each result under <res_dir>/eval/
3. Prints summary statistics (AUC, #proposals for 75% recall, max recall)
4. Optionally saves a recall table and plots under <res_dir>/plots/

Proposals for method NAME on split SPLIT are read from
<res_dir>/NAME-SPLIT.json (see proposal_eval.io.load_proposals).

Usage:
    # Compare two methods at IoU 0.7 over the default proposal counts
    python scripts/evaluate_proposals.py \\
        --data data/processed/evaluation/val_index.json \\
        --names edgeBoxes70,selectiveSearch \\
        --fname val-comparison

    # Recall vs IoU at fixed proposal counts
    python scripts/evaluate_proposals.py \\
        --data data/processed/evaluation/val_index.json \\
        --names edgeBoxes70 \\
        --thrs 0.5,0.6,0.7,0.8,0.9 \\
        --cnts 100,1000 \\
        --workers 8

    # From a YAML config (command-line options override it)
    python scripts/evaluate_proposals.py --config configs/val.yaml
"""

import argparse
import os
from pathlib import Path
import sys

import matplotlib

# Add parent directory to path to import proposal_eval
sys.path.insert(0, str(Path(__file__).parent.parent))

from proposal_eval.config import EvalConfig, config_from_dict, load_config  # noqa: E402
from proposal_eval.dataset import load_ground_truth  # noqa: E402
from proposal_eval.pipeline import run_evaluation  # noqa: E402


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Evaluate object proposal methods by detection recall"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML config file (keys: data, split, names, res_dir, thrs, cnts, maxn, show, fname)"
    )
    parser.add_argument(
        "--data",
        type=str,
        default=None,
        help="Path to ground truth index JSON file (e.g., val_index.json)"
    )
    parser.add_argument(
        "--split",
        type=str,
        default=None,
        help="Split name (default: read from the index metadata)"
    )
    parser.add_argument(
        "--names",
        type=str,
        default=None,
        help="Comma-separated proposal method names"
    )
    parser.add_argument(
        "--res_dir",
        type=str,
        default=None,
        help="Location of proposal files, cached results and plots (default: boxes/)"
    )
    parser.add_argument(
        "--thrs",
        type=str,
        default=None,
        help="Comma-separated IoU thresholds (default: 0.7)"
    )
    parser.add_argument(
        "--cnts",
        type=str,
        default=None,
        help="Comma-separated proposal counts (default: 1,2,5,...,5000)"
    )
    parser.add_argument(
        "--maxn",
        type=int,
        default=None,
        help="Maximum number of images to evaluate (default: all)"
    )
    parser.add_argument(
        "--fname",
        type=str,
        default=None,
        help="Base name for saving the recall table and plots (default: don't save)"
    )
    parser.add_argument(
        "--no_show",
        action="store_true",
        help="Skip plotting"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=os.cpu_count() or 1,
        help="Number of worker processes (default: all CPUs)"
    )

    return parser.parse_args(argv)


def build_config(args) -> EvalConfig:
    """Merge the YAML config (if any) with command-line overrides."""
    params = {}
    if args.config:
        config = load_config(args.config)
        params = {
            'names': config.names,
            'res_dir': config.res_dir,
            'thrs': config.thrs,
            'cnts': config.cnts,
            'maxn': config.maxn,
            'show': config.show,
            'fname': config.fname,
            'col': config.col,
        }
        data = config.data
    else:
        data = None

    overrides = {
        'names': args.names,
        'res_dir': args.res_dir,
        'thrs': args.thrs,
        'cnts': args.cnts,
        'maxn': args.maxn,
        'fname': args.fname,
    }
    params.update({k: v for k, v in overrides.items() if v is not None})
    if args.no_show:
        params['show'] = False

    if args.data:
        data = load_ground_truth(args.data, split=args.split)

    return config_from_dict(params, data=data).validate()


def main(argv=None):
    args = parse_args(argv)
    config = build_config(args)

    if not config.show:
        # Plots are only saved, never displayed
        matplotlib.use('Agg')

    print("=" * 70)
    print("EVALUATE PROPOSALS")
    print("=" * 70)
    print(f"Methods:       {', '.join(config.names)}")
    print(f"Split:         {config.split}")
    print(f"Images:        {config.n_images} / {config.data.n}")
    print(f"Results Dir:   {config.res_dir}")
    print(f"IoU:           {config.thrs}")
    print(f"Counts:        {config.cnts}")
    print("=" * 70)

    recall = run_evaluation(config, workers=args.workers)

    print("\n✓ All done!")
    return recall


if __name__ == "__main__":
    main()
