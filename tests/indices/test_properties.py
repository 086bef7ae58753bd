"""Behavior shared by every index: batch/incremental agreement and stream invariants."""
import logging

import numpy as np
import pytest

from icvi.errors import DimensionMismatchError
from icvi.indices import CSIL, DB, PS, XB, GraphCVI
from icvi.indices.base import DEGENERATE_VALUE, coincident
from icvi.params.elastic import centroid_update

ALL = [DB, XB, PS, CSIL]


def _stream(cvi, X, labels):
    for x, label in zip(X, labels):
        cvi.param_inc(x, label)
    return cvi


def _pairwise(cvi):
    return cvi.S.values if isinstance(cvi, CSIL) else cvi.D.values


@pytest.mark.parametrize("cls", ALL)
def test_incremental_equals_batch(cls, blobs):
    X, labels = blobs
    inc = _stream(cls(), X, labels).evaluate()
    batch = cls().get_cvi_batch(X, labels)
    assert inc == pytest.approx(batch, rel=1e-9)


@pytest.mark.parametrize("cls", ALL)
def test_order_invariance(cls, blobs):
    X, labels = blobs
    perm = np.random.default_rng(7).permutation(len(X))

    a = _stream(cls(), X, labels)
    b = _stream(cls(), X[perm], labels[perm])
    assert a.evaluate() == pytest.approx(b.evaluate(), rel=1e-9)

    # internal ids follow first appearance, so compare per external label
    order_b = [b.label_map.peek(lbl) for lbl in a.label_map.labels]
    assert np.allclose(a.params.v, b.params.v[order_b])
    assert np.allclose(a.params.n, b.params.n[order_b])
    if a.params.compactness:
        assert np.allclose(a.params.CP, b.params.CP[order_b], rtol=1e-9)
    assert np.allclose(_pairwise(a), _pairwise(b)[np.ix_(order_b, order_b)], rtol=1e-9)


@pytest.mark.parametrize("cls", ALL)
def test_cluster_count_grows_with_distinct_labels(cls):
    cvi = cls()
    seen = set()
    counts = []
    for i, label in enumerate([4, 4, 9, 4, 2, 9, 2, 11]):
        cvi.param_inc([float(i), float(i % 3)], label)
        seen.add(label)
        assert cvi.n_clusters == len(seen)
        counts.append(cvi.n_clusters)
    assert counts == sorted(counts)
    assert cvi.n_samples == 8


@pytest.mark.parametrize("cls", ALL)
def test_centroids_are_exact_means(cls, blobs):
    X, labels = blobs
    cvi = _stream(cls(), X, labels)
    for label in np.unique(labels):
        k = cvi.label_map.peek(label)
        assert np.allclose(cvi.params.v[k], X[labels == label].mean(axis=0), rtol=1e-12)
        assert cvi.params.n[k] == np.sum(labels == label)
    assert np.allclose(cvi.mu, X.mean(axis=0))


@pytest.mark.parametrize("cls", ALL)
def test_single_cluster_is_zero_not_nan(cls):
    X = np.random.default_rng(0).normal(size=(10, 3))
    labels = np.full(10, 5)

    inc = _stream(cls(), X, labels)
    assert inc.evaluate() == 0.0
    assert not inc.degenerate
    assert cls().get_cvi_batch(X, labels) == 0.0


@pytest.mark.parametrize("cls", ALL)
def test_empty_instance_evaluates_to_zero(cls):
    assert cls().evaluate() == 0.0


@pytest.mark.parametrize("cls", ALL)
def test_sparse_labels_equal_dense_labels(cls):
    X = np.array([[0.0, 1.0], [0.5, 1.5], [8.0, 8.0], [9.0, 7.5], [1.0, 0.0]])
    sparse = _stream(cls(), X, [5, 5, 100, 100, 5])
    dense = _stream(cls(), X, [1, 1, 2, 2, 1])

    assert np.array_equal(sparse.params.n, dense.params.n)
    assert np.allclose(sparse.params.v, dense.params.v)
    assert np.allclose(sparse.params.CP, dense.params.CP)
    assert np.allclose(_pairwise(sparse), _pairwise(dense))
    assert sparse.evaluate() == dense.evaluate()


@pytest.mark.parametrize("cls", ALL)
def test_dimension_mismatch_leaves_state_unchanged(cls, worked_stream):
    X, labels = worked_stream
    cvi = _stream(cls(), X[:3], labels[:3])
    value = cvi.evaluate()
    snapshot = (
        cvi.n_samples,
        cvi.n_clusters,
        cvi.params.n.copy(),
        cvi.params.v.copy(),
        cvi.params.CP.copy(),
        _pairwise(cvi).copy(),
        cvi.mu.copy(),
    )

    with pytest.raises(DimensionMismatchError):
        cvi.param_inc([1.0, 2.0], 1)
    with pytest.raises(DimensionMismatchError):
        cvi.param_inc([1.0, 2.0], "brand new label")

    assert "brand new label" not in cvi.label_map
    after = (
        cvi.n_samples,
        cvi.n_clusters,
        cvi.params.n,
        cvi.params.v,
        cvi.params.CP,
        _pairwise(cvi),
        cvi.mu,
    )
    for old, now in zip(snapshot, after):
        assert np.array_equal(old, now)
    assert cvi.evaluate() == value


@pytest.mark.parametrize("cls", ALL)
def test_malformed_inputs_rejected(cls):
    cvi = cls()
    with pytest.raises(ValueError):
        cvi.param_inc([[1.0, 2.0]], 0)
    with pytest.raises(ValueError):
        cvi.param_inc([], 0)
    with pytest.raises(ValueError):
        cvi.param_batch(np.zeros((4, 2)), [0, 1, 0])
    with pytest.raises(ValueError):
        cvi.param_batch(np.zeros(4), [0, 1, 0, 1])
    assert cvi.n_samples == 0


@pytest.mark.parametrize("cls", ALL)
def test_batch_discards_previous_stream(cls, worked_stream, blobs):
    X, labels = blobs
    cvi = _stream(cls(), *worked_stream)
    value = cvi.get_cvi_batch(X, labels)

    assert cvi.dim == 3
    assert cvi.n_samples == len(X)
    assert cvi.n_clusters == 4
    assert value == pytest.approx(cls().get_cvi_batch(X, labels))


@pytest.mark.parametrize("cls", ALL)
def test_stream_can_continue_after_batch(cls, blobs):
    X, labels = blobs
    cvi = cls()
    cvi.param_batch(X[:60], labels[:60])
    _stream(cvi, X[60:], labels[60:])
    assert cvi.evaluate() == pytest.approx(cls().get_cvi_batch(X, labels), rel=1e-9)


@pytest.mark.parametrize("cls", [DB, XB, PS])
def test_coincident_centroids_are_degenerate_in_both_modes(cls, caplog):
    # cluster 0 = {-1, 1} and cluster 1 = {0} share the centroid 0
    X = np.array([[-1.0], [0.0], [1.0]])
    labels = np.array([0, 1, 0])

    with caplog.at_level(logging.WARNING):
        inc = _stream(cls(), X, labels)
        assert inc.evaluate() == 0.0
    assert inc.degenerate
    assert "degenerate" in caplog.text

    batch = cls()
    assert batch.get_cvi_batch(X, labels) == 0.0
    assert batch.degenerate


def test_degenerate_flag_clears_when_geometry_recovers():
    cvi = _stream(DB(), np.array([[-1.0], [0.0], [1.0]]), [0, 1, 0])
    cvi.evaluate()
    assert cvi.degenerate
    cvi.get_cvi([5.0], 1)
    assert not cvi.degenerate
    assert cvi.criterion_value > 0.0


def _running_mean(values):
    v = np.zeros(1)
    for n, x in enumerate(values):
        v = centroid_update(v, n, np.array([x]))
    return v


def _near_coincident():
    # the running mean of these members differs from their direct mean in the last bit
    members = [0.6, 0.3, 0.0]
    X = np.array([[x] for x in members] + [_running_mean(members).tolist()])
    return X, [0, 0, 0, 1]


@pytest.mark.parametrize("cls", [DB, XB, PS])
def test_near_coincident_centroids_classified_alike_in_both_modes(cls):
    X, labels = _near_coincident()
    inc = _stream(cls(), X, labels)
    inc_value = inc.evaluate()

    batch = cls()
    batch_value = batch.get_cvi_batch(X, labels)

    assert inc.degenerate
    assert batch.degenerate
    assert inc_value == batch_value == DEGENERATE_VALUE


def test_near_coincident_centroids_graph_cvi_modes_agree():
    X, labels = _near_coincident()
    names = ("db", "xb", "ps")
    inc = _stream(GraphCVI(names), X, labels)
    inc_values = inc.evaluate()

    batch = GraphCVI(names)
    batch_values = batch.get_cvi_batch(X, labels)

    assert inc.degenerate == batch.degenerate == {name: True for name in names}
    assert inc_values == batch_values


@pytest.mark.parametrize("cls", [DB, XB, PS])
def test_close_but_distinct_centroids_are_not_degenerate(cls):
    cvi = cls()
    cvi.get_cvi_batch(np.array([[0.0], [1e-6]]), [0, 1])
    assert not cvi.degenerate


def test_coincident_is_relative_to_centroid_scale():
    assert coincident(0.0, 0.0)
    assert coincident(1e-33, 0.09)
    assert not coincident(1e-12, 1e-12)
    assert not coincident(1e-20, 0.0)


@pytest.mark.parametrize("shared", [("db", "xb", "ps", "csil"), ("csil",), ("xb", "db")])
def test_graph_cvi_matches_individual_indices(shared, blobs):
    X, labels = blobs
    graph = GraphCVI(shared)
    for x, label in zip(X, labels):
        graph.param_inc(x, label)
    values = graph.evaluate()

    batch_values = GraphCVI(shared).get_cvi_batch(X, labels)
    for name in shared:
        cls = {c.name: c for c in ALL}[name]
        expected = cls().get_cvi_batch(X, labels)
        assert values[name] == pytest.approx(expected, rel=1e-9)
        assert batch_values[name] == pytest.approx(expected, rel=1e-12)


def test_graph_cvi_dimension_mismatch(worked_stream):
    cvi = _stream(GraphCVI(["db"]), *worked_stream)
    before = cvi.params["v"].copy()
    with pytest.raises(DimensionMismatchError):
        cvi.param_inc([1.0, 2.0], 1)
    assert np.array_equal(cvi.params["v"], before)
    assert cvi.n_samples == 5
