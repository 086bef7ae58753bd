import numpy as np
import pytest

from icvi.indices import DB


def _stream(cvi, X, labels):
    for x, label in zip(X, labels):
        cvi.param_inc(x, label)
    return cvi.evaluate()


def test_worked_scenario_incremental_and_batch(worked_stream):
    X, labels = worked_stream
    # S_A = (8/3)/3, S_B = 2/2, D_AB = (11 - 2/3)^2  ->  R = 17/961
    expected = 17.0 / 961.0

    inc = _stream(DB(), X, labels)
    batch = DB().get_cvi_batch(X, labels)

    assert inc == pytest.approx(expected, rel=1e-12)
    assert batch == pytest.approx(expected, rel=1e-12)


def test_exposes_scatter_and_ratio_matrix(worked_stream):
    X, labels = worked_stream
    cvi = DB()
    cvi.get_cvi_batch(X, labels)
    assert np.allclose(cvi.S, [8.0 / 9.0, 1.0])
    assert np.allclose(cvi.R, cvi.R.T)
    assert cvi.R[0, 1] == pytest.approx(17.0 / 961.0)


def test_lower_for_tighter_clusters():
    rng = np.random.default_rng(0)
    centers = np.repeat([[0.0, 0.0], [10.0, 10.0]], 50, axis=0)
    labels = np.repeat([0, 1], 50)
    tight = DB().get_cvi_batch(centers + rng.normal(0, 0.5, centers.shape), labels)
    loose = DB().get_cvi_batch(centers + rng.normal(0, 3.0, centers.shape), labels)
    assert tight < loose


def test_get_cvi_returns_running_value(worked_stream):
    X, labels = worked_stream
    cvi = DB()
    values = [cvi.get_cvi(x, label) for x, label in zip(X, labels)]
    assert values[0] == 0.0  # single cluster
    assert values[-1] == pytest.approx(17.0 / 961.0)
    assert cvi.criterion_value == values[-1]
