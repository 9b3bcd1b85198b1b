"""
Object Proposal Recall Evaluation

This module evaluates bounding box proposals (EdgeBoxes, Selective Search, ...)
against ground truth and compares proposal methods by detection recall.

Main Components:
- config: EvalConfig (method names, thresholds, proposal counts, colors)
- dataset: Load ground truth boxes from index JSON files
- io: Load proposal files, read/write cached recall values
- cache: Deterministic cache paths for per-task results
- matching: IoU computation, greedy matching, detection rate curves
- evaluator: Task enumeration and cached (parallel) evaluation
- metrics: Summary statistics (AUC, proposals needed, max recall)
- plots: Recall vs #proposals and recall vs IoU charts
- pipeline: run_evaluation (evaluate, summarize, save, plot)

Usage:
    from proposal_eval.config import EvalConfig
    from proposal_eval.dataset import load_ground_truth
    from proposal_eval.pipeline import run_evaluation

    data = load_ground_truth("path/to/val_index.json")
    config = EvalConfig(data=data, names=["edgeBoxes70"], res_dir="boxes/")

    recall = run_evaluation(config)   # shape (counts, thresholds, methods)
"""

__version__ = "1.0.0"
