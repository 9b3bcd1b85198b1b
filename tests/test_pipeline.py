import importlib
import re

import matplotlib.pyplot as plt
import numpy as np
import pytest

import proposal_eval
from proposal_eval import pipeline
from proposal_eval.config import EvalConfig
from proposal_eval.pipeline import run_evaluation

from conftest import write_index

import evaluate_proposals


def test_run_evaluation_end_to_end(two_box_dataset, exact_proposals, capsys):
    config = EvalConfig(data=two_box_dataset, names=["edgeBoxes"], res_dir=str(exact_proposals),
                        thrs=[0.5], cnts=[1, 2], fname="demo")

    recall = run_evaluation(config, progress=False)

    np.testing.assert_array_equal(recall[:, 0, 0], [0.5, 1.0])
    out = capsys.readouterr().out
    assert "      edgeBoxes  T=0.50  A=0.75  M=   1  R=1.00" in out
    assert "2 computed" in out

    plots = exact_proposals / "plots"
    assert (plots / "demo-val.txt").read_text().split() == ["0.5000", "1.0000"]
    assert (plots / "Cnt-val-demo.png").exists()
    assert not (plots / "IoU-val-demo.png").exists()


def test_run_evaluation_show_without_fname_draws_figures(two_box_dataset, exact_proposals):
    config = EvalConfig(data=two_box_dataset, names=["edgeBoxes"], res_dir=str(exact_proposals),
                        thrs=[0.5, 0.7], cnts=[1, 2], show=True, fname="")

    run_evaluation(config, progress=False)

    assert len(plt.get_fignums()) == 2
    assert not (exact_proposals / "plots").exists()


def test_run_evaluation_shows_figures_on_interactive_backend(two_box_dataset, exact_proposals, monkeypatch):
    shown = []
    monkeypatch.setattr(pipeline, "is_interactive_backend", lambda: True)
    monkeypatch.setattr(plt, "show", lambda: shown.append(len(plt.get_fignums())))
    config = EvalConfig(data=two_box_dataset, names=["edgeBoxes"], res_dir=str(exact_proposals),
                        thrs=[0.5, 0.7], cnts=[1, 2])

    run_evaluation(config, progress=False)

    assert shown == [2]

def test_run_evaluation_single_count_prints_no_summary(two_box_dataset, exact_proposals, capsys):
    config = EvalConfig(data=two_box_dataset, names=["edgeBoxes"], res_dir=str(exact_proposals),
                        thrs=[0.5, 0.9], cnts=[2], show=False)

    run_evaluation(config, progress=False)

    assert "T=0.50" not in capsys.readouterr().out


def test_run_evaluation_aborts_without_partial_output(two_box_dataset, exact_proposals, capsys):
    config = EvalConfig(data=two_box_dataset, names=["edgeBoxes", "missing"], res_dir=str(exact_proposals),
                        thrs=[0.5], cnts=[1, 2], fname="demo")

    with pytest.raises(FileNotFoundError):
        run_evaluation(config, progress=False)

    assert "T=0.50" not in capsys.readouterr().out
    assert not (exact_proposals / "plots").exists()


def test_cli(tmp_path, capsys):
    index = write_index(tmp_path / "val_index.json", [[[0, 0, 10, 10], [20, 20, 10, 10]]])
    res_dir = tmp_path / "boxes"
    (res_dir).mkdir()
    (res_dir / "edgeBoxes-val.json").write_text('{"bbs": [[[0, 0, 10, 10, 0.9], [20, 20, 10, 10, 0.8]]]}')

    recall = evaluate_proposals.main([
        "--data", str(index),
        "--names", "edgeBoxes",
        "--res_dir", str(res_dir),
        "--thrs", "0.5",
        "--cnts", "1,2",
        "--no_show",
        "--workers", "1",
    ])

    np.testing.assert_array_equal(recall[:, 0, 0], [0.5, 1.0])
    out = capsys.readouterr().out
    assert "R=1.00" in out
    assert (res_dir / "eval" / "edgeBoxes" / "val" / "N00001-W00001-T50.txt").exists()


def test_cli_yaml_config_with_overrides(tmp_path):
    index = write_index(tmp_path / "val_index.json", [[[0, 0, 10, 10], [20, 20, 10, 10]]])
    res_dir = tmp_path / "boxes"
    res_dir.mkdir()
    (res_dir / "edgeBoxes-val.json").write_text('{"bbs": [[[0, 0, 10, 10, 0.9], [20, 20, 10, 10, 0.8]]]}')
    config_path = tmp_path / "eval.yaml"
    config_path.write_text(
        f"data: {index}\n"
        "names: edgeBoxes\n"
        f"res_dir: {res_dir}\n"
        "thrs: [0.5, 0.7]\n"
        "cnts: [1, 2]\n"
        "show: false\n"
    )

    recall = evaluate_proposals.main(["--config", str(config_path), "--thrs", "0.5", "--workers", "1"])

    assert recall.shape == (2, 1, 1)


def test_cli_requires_names(tmp_path):
    index = write_index(tmp_path / "val_index.json", [[[0, 0, 10, 10]]])
    with pytest.raises(ValueError, match="names"):
        evaluate_proposals.main(["--data", str(index), "--no_show"])


def test_package_usage_imports_resolve():
    imports = re.findall(r"from (\S+) import (\w+)", proposal_eval.__doc__)

    assert ("proposal_eval.pipeline", "run_evaluation") in imports
    for module, name in imports:
        assert hasattr(importlib.import_module(module), name)
