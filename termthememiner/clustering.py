"""
clustering.py

Agglomerative hierarchical clustering of terms into themes.

Each term is represented by its row of the correlation matrix; two terms are
as far apart as the Euclidean distance between those rows, so terms that
correlate with the *same* other terms end up close together.

The merge loop is implemented here rather than delegated to
``scipy.cluster.hierarchy.linkage`` because exact ties must be resolved
deterministically: among equidistant cluster pairs, the pair whose smallest
member term indices are lexicographically smallest merges first. The output
is a linkage matrix in SciPy's format, so it plugs straight into
``scipy.cluster.hierarchy.dendrogram`` and friends.

Pipeline
--------
    corr ──► correlation_distance ──► agglomerate ──► cut_tree(k)
                                          │
                                          └─► linkage (dendrogram)
"""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Integral
from typing import Callable, Dict, Iterable, List, Literal, Optional, Union

import numpy as np
import pandas as pd
from scipy.spatial.distance import pdist, squareform

from .correlation import CorrelationResult
from .errors import InvalidParameterError

LinkageMethod = Literal["complete", "single", "average"]
LINKAGE_METHODS = ("complete", "single", "average")


# ---------------------------------------------------------------------
# Result container
# ---------------------------------------------------------------------


@dataclass
class ClusterResult:
    """
    Output of :meth:`HierarchicalClusterer.fit`.

    Attributes
    ----------
    assignment:
        Series term → cluster id in ``1..n_clusters`` (vocabulary order).
        Cluster ids are numbered by the first vocabulary term they contain;
        they carry no meaning until labelled.
    linkage:
        (n_terms - 1) × 4 linkage matrix in SciPy's format:
        ``[id_a, id_b, height, size]``; merged clusters get ids n, n+1, ...
    distance:
        Term × term Euclidean distance between correlation rows.
    n_clusters:
        Number of clusters the tree was cut into.
    method:
        Linkage rule used for merging.
    """

    assignment: pd.Series
    linkage: np.ndarray
    distance: pd.DataFrame
    n_clusters: int
    method: str

    @property
    def terms(self) -> List[str]:
        return self.assignment.index.tolist()

    def members(self, cluster_id: int) -> List[str]:
        """Terms assigned to `cluster_id`, in vocabulary order."""
        if cluster_id not in set(self.assignment.tolist()):
            raise KeyError(f"Unknown cluster id: {cluster_id}")
        return self.assignment.index[self.assignment == cluster_id].tolist()

    def clusters(self) -> Dict[int, List[str]]:
        """Cluster id → member terms, ids ascending."""
        return {cid: self.members(cid) for cid in range(1, self.n_clusters + 1)}


# ---------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------


def correlation_distance(corr: Union[pd.DataFrame, CorrelationResult]) -> pd.DataFrame:
    """
    Euclidean distance between the correlation rows of every term pair.

    Returns a symmetric term × term DataFrame with a zero diagonal.
    """
    if isinstance(corr, CorrelationResult):
        corr = corr.matrix

    values = corr.to_numpy(dtype=float)
    if not np.isfinite(values).all():
        raise ValueError("Correlation matrix contains NaN or infinite values.")

    n = values.shape[0]
    if n <= 1:
        dist = np.zeros((n, n), dtype=float)
    else:
        dist = squareform(pdist(values, metric="euclidean"))

    return pd.DataFrame(dist, index=corr.index.copy(), columns=corr.index.copy())


def agglomerate(
    distance: Union[pd.DataFrame, np.ndarray],
    method: LinkageMethod = "complete",
) -> np.ndarray:
    """
    Agglomerative clustering over a square distance matrix.

    Algorithm
    ---------
    1. Every item starts as a singleton cluster.
    2. The two clusters at minimum inter-cluster distance are merged. Ties
       go to the pair whose smallest member indices are lexicographically
       smallest.
    3. Distances from the merged cluster to the others are updated with the
       Lance–Williams rule for `method`:
         - complete : max(d_ak, d_bk)
         - single   : min(d_ak, d_bk)
         - average  : (n_a·d_ak + n_b·d_bk) / (n_a + n_b)
    4. Repeat until one cluster remains (n - 1 merges).

    Returns
    -------
    np.ndarray
        (n - 1) × 4 linkage matrix in SciPy's format. Empty (0 × 4) when
        there are fewer than two items.
    """
    if method not in LINKAGE_METHODS:
        raise InvalidParameterError(f"method must be one of {LINKAGE_METHODS}, got {method!r}.")

    D = np.asarray(distance, dtype=float)
    if D.ndim != 2 or D.shape[0] != D.shape[1]:
        raise ValueError(f"distance must be a square matrix, got shape {D.shape}.")
    if not np.isfinite(D).all():
        raise ValueError("distance contains NaN or infinite values.")

    n = D.shape[0]
    linkage = np.zeros((max(n - 1, 0), 4), dtype=float)
    if n <= 1:
        return linkage

    # Slot i holds the cluster whose smallest member is i.
    work = D.copy()
    np.fill_diagonal(work, np.inf)
    active = np.ones(n, dtype=bool)
    size = np.ones(n, dtype=np.int64)
    node_id = np.arange(n, dtype=np.int64)

    for step in range(n - 1):
        idx = np.flatnonzero(active)
        rows, cols = np.triu_indices(len(idx), k=1)
        candidates = work[idx[rows], idx[cols]]

        # argmin returns the first minimum in row-major order, i.e. the
        # lexicographically smallest (a, b) slot pair.
        best = int(np.argmin(candidates))
        a, b = int(idx[rows[best]]), int(idx[cols[best]])
        height = float(candidates[best])

        if method == "complete":
            merged = np.maximum(work[a], work[b])
        elif method == "single":
            merged = np.minimum(work[a], work[b])
        else:
            merged = (size[a] * work[a] + size[b] * work[b]) / (size[a] + size[b])

        id_a, id_b = sorted((int(node_id[a]), int(node_id[b])))
        linkage[step] = (id_a, id_b, height, size[a] + size[b])

        work[a, :] = merged
        work[:, a] = merged
        work[a, a] = np.inf
        work[b, :] = np.inf
        work[:, b] = np.inf

        active[b] = False
        size[a] += size[b]
        node_id[a] = n + step

    return linkage


def cut_tree(linkage: np.ndarray, n_leaves: int, k: int) -> np.ndarray:
    """
    Cut a linkage tree into exactly `k` clusters.

    Replays the first ``n_leaves - k`` merges. Returns an int array of
    cluster ids in ``1..k`` per leaf, where clusters are numbered by the
    smallest leaf index they contain (leaf 0 is always in cluster 1).

    Raises
    ------
    InvalidParameterError
        ``k < 1`` or ``k > n_leaves``.
    """
    if k < 1 or k > n_leaves:
        raise InvalidParameterError(
            f"Number of clusters must be in [1, {n_leaves}], got {k}."
        )
    if linkage.shape[0] != n_leaves - 1:
        raise ValueError(
            f"linkage has {linkage.shape[0]} merges; expected {n_leaves - 1} "
            f"for {n_leaves} leaves."
        )

    groups: Dict[int, List[int]] = {i: [i] for i in range(n_leaves)}
    for step in range(n_leaves - k):
        a, b = int(linkage[step, 0]), int(linkage[step, 1])
        groups[n_leaves + step] = groups.pop(a) + groups.pop(b)

    labels = np.zeros(n_leaves, dtype=np.int64)
    for cid, members in enumerate(sorted(groups.values(), key=min), start=1):
        labels[members] = cid
    return labels


def silhouette_by_k(
    distance: pd.DataFrame,
    k_values: Optional[Iterable[int]] = None,
    method: LinkageMethod = "complete",
) -> pd.Series:
    """
    Silhouette score of the tree cut at each candidate k.

    Useful to pick the number of themes: ``silhouette_by_k(d).idxmax()``.
    Only k in ``[2, n - 1]`` can be scored; other values are skipped.
    Uses scikit-learn's ``silhouette_score`` on the precomputed distances.
    """
    from sklearn.metrics import silhouette_score

    n = distance.shape[0]
    if k_values is None:
        k_values = range(2, n)

    linkage = agglomerate(distance, method=method)
    D = distance.to_numpy(dtype=float)

    scores: Dict[int, float] = {}
    for k in k_values:
        if not 2 <= k <= n - 1:
            continue
        labels = cut_tree(linkage, n, k)
        scores[int(k)] = float(silhouette_score(D, labels, metric="precomputed"))

    return pd.Series(scores, name="silhouette", dtype=float).rename_axis("k")


# ---------------------------------------------------------------------
# HierarchicalClusterer – term → theme assignment
# ---------------------------------------------------------------------


def check_n_clusters(n_clusters) -> int:
    """Return `n_clusters` as an int; non-integral values are rejected."""
    if isinstance(n_clusters, (bool, np.bool_)):
        raise InvalidParameterError(f"n_clusters must be an integer, got {n_clusters!r}.")
    if isinstance(n_clusters, (Integral, np.integer)):
        return int(n_clusters)
    if isinstance(n_clusters, float) and n_clusters.is_integer():
        return int(n_clusters)
    raise InvalidParameterError(f"n_clusters must be an integer, got {n_clusters!r}.")


class HierarchicalClusterer:
    """
    Group terms into a fixed number of themes by hierarchical clustering of
    their correlation profiles.

    This class is purely statistical: cluster ids are arbitrary integers.
    Naming them ("Historic", "Countryside", ...) is a separate, manual step,
    see :func:`label_themes`.
    """

    def __init__(
        self,
        n_clusters: int = 4,
        method: LinkageMethod = "complete",
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        Parameters
        ----------
        n_clusters:
            Number of themes ``k`` to cut the tree into. Must lie in
            ``[1, n_terms]``; checked in :meth:`fit` once n_terms is known.
        method:
            Linkage rule: ``"complete"`` (default), ``"single"`` or
            ``"average"``.
        logger:
            Optional logging callback used when ``verbose=True``.
        """
        if method not in LINKAGE_METHODS:
            raise InvalidParameterError(f"method must be one of {LINKAGE_METHODS}, got {method!r}.")
        self.n_clusters = check_n_clusters(n_clusters)
        self.method = method
        self.logger = logger

    def _log(self, message: str, verbose: bool = True) -> None:
        if not verbose:
            return
        if self.logger is not None:
            self.logger(message)
        else:
            print(message)

    def fit(
        self,
        corr: Union[pd.DataFrame, CorrelationResult],
        *,
        verbose: bool = False,
    ) -> ClusterResult:
        """
        Cluster the terms of a correlation matrix into ``n_clusters`` themes.

        Raises
        ------
        InvalidParameterError
            ``n_clusters`` is below 1 or above the number of terms.
        """
        if isinstance(corr, CorrelationResult):
            corr = corr.matrix

        n_terms = corr.shape[0]
        k = self.n_clusters
        if k < 1 or k > n_terms:
            raise InvalidParameterError(
                f"n_clusters must be in [1, {n_terms}] for {n_terms} terms, got {k}."
            )

        distance = correlation_distance(corr)
        self._log(
            f"[HierarchicalClusterer] distance matrix over {n_terms} terms.", verbose
        )

        linkage = agglomerate(distance, method=self.method)
        labels = cut_tree(linkage, n_terms, k)
        self._log(
            f"[HierarchicalClusterer] {self.method}-linkage tree cut into {k} clusters.",
            verbose,
        )

        assignment = pd.Series(
            labels,
            index=corr.index.copy(),
            name="cluster_id",
            dtype=np.int64,
        )
        return ClusterResult(
            assignment=assignment,
            linkage=linkage,
            distance=distance,
            n_clusters=k,
            method=self.method,
        )
