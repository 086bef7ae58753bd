import numpy as np
import pytest

from icvi.indices import PS


def test_worked_scenario(worked_stream):
    X, labels = worked_stream
    # v = [2/3, 11], beta_t = (31/6)^2, min D / beta_t = 4
    expected = 5.0 / 3.0 - 2.0 * np.exp(-4.0)

    cvi = PS()
    for x, label in zip(X, labels):
        cvi.param_inc(x, label)
    assert cvi.evaluate() == pytest.approx(expected, rel=1e-12)
    assert cvi.beta_t == pytest.approx(961.0 / 36.0)
    assert np.allclose(cvi.v_bar, [35.0 / 6.0])
    assert cvi.PS_i.shape == (2,)

    assert PS().get_cvi_batch(X, labels) == pytest.approx(expected, rel=1e-12)


def test_does_not_track_compactness(worked_stream):
    X, labels = worked_stream
    cvi = PS()
    cvi.get_cvi_batch(X, labels)
    assert cvi.params.CP.size == 0
