"""
Default declarations of the shared parameters used by the built-in indices.

    n      cluster sizes
    v      centroids                      deps: n
    G      deviation sums                 deps: n, v
    CP     compactness                    deps: n, v, G
    D      squared centroid distances     deps: v
    S_sil  centroid-silhouette matrix     deps: n, CP, D
    mu     global data mean
"""

import numpy as np

from .elastic import (
    centroid_update,
    cluster_compactness,
    cluster_means,
    compactness_increment,
    deviation_sum_update,
)
from .graph import ParamGraph, ParamSpec
from .pairwise import (
    pairwise_squared_distances,
    silhouette_cross,
    silhouette_matrix,
    squared_distances,
)


# ---- n -------------------------------------------------------------------------
def n_inc(ctx):
    return 1 if ctx.is_new else int(ctx.old("n")[ctx.k]) + 1


def n_batch(ctx):
    return np.bincount(ctx.internal, minlength=ctx.n_clusters)


# ---- v -------------------------------------------------------------------------
def v_inc(ctx):
    if ctx.is_new:
        return ctx.sample.copy()
    return centroid_update(ctx.old("v")[ctx.k], int(ctx.old("n")[ctx.k]), ctx.sample)


def v_batch(ctx):
    return cluster_means(ctx.data, ctx.internal, ctx.n_clusters)[1]


# ---- G / CP ----------------------------------------------------------------------
def _deltas(ctx):
    delta_v = ctx.old("v")[ctx.k] - ctx.new("v")
    diff_x_v = ctx.sample - ctx.new("v")
    return delta_v, diff_x_v


def G_inc(ctx):
    if ctx.is_new:
        return np.zeros(ctx.dim)
    delta_v, diff_x_v = _deltas(ctx)
    return deviation_sum_update(ctx.old("G")[ctx.k], delta_v, diff_x_v, int(ctx.old("n")[ctx.k]))


def G_batch(ctx):
    return np.zeros((ctx.n_clusters, ctx.dim))


def CP_inc(ctx):
    if ctx.is_new:
        return 0.0
    delta_v, diff_x_v = _deltas(ctx)
    k = ctx.k
    return compactness_increment(
        ctx.old("CP")[k], ctx.old("G")[k], delta_v, diff_x_v, int(ctx.old("n")[k])
    )


def CP_batch(ctx):
    return cluster_compactness(ctx.data, ctx.internal, ctx.get("v"))


# ---- D ---------------------------------------------------------------------------
def D_inc(ctx):
    v = ctx.old("v")
    if ctx.is_new:
        return np.append(squared_distances(ctx.sample, v), 0.0)
    row = squared_distances(ctx.new("v"), v)
    row[ctx.k] = 0.0
    return row


def D_batch(ctx):
    return pairwise_squared_distances(ctx.get("v"))


# ---- S_sil -----------------------------------------------------------------------
def S_sil_inc(ctx):
    CP, n = ctx.old("CP"), ctx.old("n")
    if ctx.is_new:
        scatter = np.append(CP / n, 0.0)
    else:
        scatter = CP / n
        scatter[ctx.k] = ctx.new("CP") / ctx.new("n")
    return silhouette_cross(ctx.k, scatter, ctx.new("D"))


def S_sil_batch(ctx):
    return silhouette_matrix(ctx.data, ctx.internal, ctx.get("v"), ctx.get("n"))


# ---- mu --------------------------------------------------------------------------
def mu_inc(ctx):
    mu = ctx.old("mu")
    return mu + (ctx.sample - mu) / (ctx.n_samples + 1)


def mu_batch(ctx):
    return ctx.data.mean(axis=0)


DEFAULT_SPECS = (
    ParamSpec("n", n_inc, n_batch, shape="vector", dtype=int),
    ParamSpec("v", v_inc, v_batch, deps=("n",), shape="matrix"),
    ParamSpec("G", G_inc, G_batch, deps=("n", "v"), shape="matrix"),
    ParamSpec("CP", CP_inc, CP_batch, deps=("n", "v", "G"), shape="vector"),
    ParamSpec("D", D_inc, D_batch, deps=("v",), shape="pairwise"),
    ParamSpec(
        "S_sil", S_sil_inc, S_sil_batch, deps=("n", "CP", "D"), shape="pairwise", symmetric=False
    ),
    ParamSpec("mu", mu_inc, mu_batch, shape="vector", growth="replace"),
)


def default_graph() -> ParamGraph:
    return ParamGraph(DEFAULT_SPECS)
