import matplotlib.pyplot as plt
import numpy as np
import pytest

from proposal_eval.config import EvalConfig
from proposal_eval.plots import is_interactive_backend, plot_recall_curve, plot_recall_curves


@pytest.fixture
def config(two_box_dataset, tmp_path):
    return EvalConfig(data=two_box_dataset, names=["a", "b"], res_dir=str(tmp_path),
                      thrs=[0.5, 0.7, 0.9], cnts=[1, 10, 100, 1000], fname="run")


@pytest.fixture
def recall():
    r = np.linspace(0.1, 0.9, 4)[:, None, None] * np.array([1.0, 0.8, 0.5])[None, :, None]
    return np.concatenate([r, r * 0.9], axis=2)


def test_count_plot_axes(config, recall):
    fig = plot_recall_curve(recall, config, 'count')
    ax = fig.axes[0]

    assert ax.get_xscale() == 'log'
    assert ax.get_xlabel() == '# of proposals'
    assert ax.get_ylabel() == 'Detection Rate'
    assert ax.get_ylim() == (0, 1)
    np.testing.assert_allclose(ax.get_yticks(), [0, 0.2, 0.4, 0.6, 0.8, 1.0])
    # One curve per method per threshold
    assert len(ax.get_lines()) == 2 * 3
    assert [t.get_text() for t in ax.get_legend().get_texts()] == ["a", "b"]


def test_iou_plot_axes(config, recall):
    ax = plot_recall_curve(recall, config, 'iou').axes[0]

    assert ax.get_xscale() == 'linear'
    assert ax.get_xlabel() == 'IoU'
    assert ax.get_xlim() == (0.5, 0.9)
    # One curve per method per count
    assert len(ax.get_lines()) == 2 * 4
    np.testing.assert_allclose(ax.get_lines()[0].get_ydata(), recall[0, :, 0])


def test_colors_follow_method_index(config, recall):
    lines = plot_recall_curve(recall, config, 'count').axes[0].get_lines()
    for i, line in enumerate(lines):
        assert line.get_color() == config.col[i % 2]


def test_unknown_plot_type(config, recall):
    with pytest.raises(ValueError):
        plot_recall_curve(recall, config, 'precision')


def test_plot_recall_curves_saves_both(config, recall, tmp_path):
    figures = plot_recall_curves(recall, config)

    assert list(figures) == ['count', 'iou']
    assert (tmp_path / "plots" / "Cnt-val-run.png").exists()
    assert (tmp_path / "plots" / "IoU-val-run.png").exists()


def test_plot_recall_curves_skips_single_value_axes(config, recall, tmp_path):
    config.thrs = [0.7]
    assert list(plot_recall_curves(recall[:, 1:2, :], config)) == ['count']
    assert [p.name for p in (tmp_path / "plots").iterdir()] == ["Cnt-val-run.png"]

    config.cnts = [100]
    assert plot_recall_curves(recall[1:2, 1:2, :], config) == {}


def test_plot_recall_curves_without_fname_keeps_figures_open(config, recall, tmp_path):
    config.fname = ""
    figures = plot_recall_curves(recall, config)

    assert sorted(plt.get_fignums()) == sorted(f.number for f in figures.values())
    assert len(figures['count'].axes[0].get_lines()) == 2 * 3
    assert not (tmp_path / "plots").exists()


def test_file_backend_is_not_interactive():
    assert not is_interactive_backend()
