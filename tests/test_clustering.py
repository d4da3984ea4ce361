"""Tests for agglomerative clustering, tree cutting and the term clusterer."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
from scipy.cluster.hierarchy import is_valid_linkage, linkage as scipy_linkage
from scipy.spatial.distance import pdist, squareform

from termthememiner import (
    HierarchicalClusterer,
    InvalidParameterError,
    agglomerate,
    correlation_distance,
    cut_tree,
    silhouette_by_k,
    term_correlation,
)


def _line_distance(positions) -> np.ndarray:
    pts = np.asarray(positions, dtype=float)
    return np.abs(pts[:, None] - pts[None, :])


def test_complete_linkage_on_points_with_a_tie() -> None:
    Z = agglomerate(_line_distance([0, 1, 5, 6, 20]), method="complete")

    # (0, 1) and (2, 3) tie at height 1; the lower indices merge first.
    assert Z.tolist() == [
        [0.0, 1.0, 1.0, 2.0],
        [2.0, 3.0, 1.0, 2.0],
        [5.0, 6.0, 6.0, 4.0],
        [4.0, 7.0, 20.0, 5.0],
    ]
    assert is_valid_linkage(Z)


@pytest.mark.parametrize(
    "method, expected_height",
    [("single", 2.0), ("complete", 3.0), ("average", 2.5)],
)
def test_linkage_rules(method, expected_height) -> None:
    Z = agglomerate(_line_distance([0, 1, 3]), method=method)

    assert Z[0].tolist() == [0.0, 1.0, 1.0, 2.0]
    assert Z[1].tolist() == [2.0, 3.0, expected_height, 3.0]


def test_equidistant_ties_follow_smallest_indices() -> None:
    D = np.ones((4, 4)) - np.eye(4)
    Z = agglomerate(D)

    assert Z[:, :2].tolist() == [[0.0, 1.0], [2.0, 4.0], [3.0, 5.0]]
    assert np.array_equal(Z, agglomerate(D.copy()))


def test_heights_match_scipy_on_tie_free_data() -> None:
    rng = np.random.default_rng(3)
    X = rng.normal(size=(9, 4))
    D = squareform(pdist(X))

    for method in ("complete", "single", "average"):
        ours = agglomerate(D, method=method)
        ref = scipy_linkage(pdist(X), method=method)
        np.testing.assert_allclose(ours[:, 2], ref[:, 2])
        np.testing.assert_array_equal(ours[:, 3], ref[:, 3])


def test_agglomerate_small_and_invalid_inputs() -> None:
    assert agglomerate(np.zeros((1, 1))).shape == (0, 4)
    with pytest.raises(ValueError):
        agglomerate(np.zeros((2, 3)))
    with pytest.raises(ValueError):
        agglomerate(np.array([[0.0, np.nan], [np.nan, 0.0]]))
    with pytest.raises(InvalidParameterError):
        agglomerate(np.zeros((2, 2)), method="ward")


def test_cut_tree_gives_exactly_k_clusters() -> None:
    Z = agglomerate(_line_distance([0, 1, 5, 6, 20]))

    assert cut_tree(Z, 5, 1).tolist() == [1, 1, 1, 1, 1]
    assert cut_tree(Z, 5, 2).tolist() == [1, 1, 1, 1, 2]
    assert cut_tree(Z, 5, 3).tolist() == [1, 1, 2, 2, 3]
    assert cut_tree(Z, 5, 5).tolist() == [1, 2, 3, 4, 5]

    for bad_k in (0, 6):
        with pytest.raises(InvalidParameterError):
            cut_tree(Z, 5, bad_k)


def test_correlation_distance_is_euclidean_between_rows(animal_freq) -> None:
    corr = term_correlation(animal_freq)
    dist = correlation_distance(corr)

    assert dist.loc["cat", "lion"] == pytest.approx(0.0)
    assert dist.loc["cat", "dog"] == pytest.approx(4.0)
    assert np.allclose(np.diag(dist.to_numpy()), 0.0)
    assert dist.index.tolist() == ["cat", "dog", "lion", "wolf"]


def test_clusterer_separates_correlated_groups(animal_freq) -> None:
    result = HierarchicalClusterer(n_clusters=2).fit(term_correlation(animal_freq))

    assert result.assignment.to_dict() == {"cat": 1, "dog": 2, "lion": 1, "wolf": 2}
    assert result.clusters() == {1: ["cat", "lion"], 2: ["dog", "wolf"]}
    assert result.members(2) == ["dog", "wolf"]
    assert result.linkage.shape == (3, 4)
    with pytest.raises(KeyError):
        result.members(3)


def test_assignment_partitions_the_vocabulary() -> None:
    rng = np.random.default_rng(11)
    freq = pd.DataFrame(rng.integers(0, 6, size=(12, 25)), columns=[f"t{i:02d}" for i in range(25)])
    corr = term_correlation(freq)

    result = HierarchicalClusterer(n_clusters=4).fit(corr)
    members = result.clusters()

    assert set(result.assignment.unique()) == {1, 2, 3, 4}
    flat = [t for terms in members.values() for t in terms]
    assert sorted(flat) == sorted(freq.columns)
    assert len(flat) == len(set(flat))
    assert result.assignment.index.tolist() == freq.columns.tolist()

    again = HierarchicalClusterer(n_clusters=4).fit(corr)
    pd.testing.assert_series_equal(result.assignment, again.assignment)


def test_cluster_count_boundaries(animal_freq) -> None:
    corr = term_correlation(animal_freq)

    for bad_k in (0, 5):
        with pytest.raises(InvalidParameterError):
            HierarchicalClusterer(n_clusters=bad_k).fit(corr)

    singletons = HierarchicalClusterer(n_clusters=4).fit(corr)
    assert singletons.assignment.tolist() == [1, 2, 3, 4]


@pytest.mark.parametrize("bad_k", [2.7, "2", True, None])
def test_non_integral_cluster_count_is_rejected(bad_k) -> None:
    with pytest.raises(InvalidParameterError):
        HierarchicalClusterer(n_clusters=bad_k)


def test_integral_cluster_counts_are_accepted(animal_freq) -> None:
    corr = term_correlation(animal_freq)

    assert HierarchicalClusterer(n_clusters=np.int64(2)).fit(corr).n_clusters == 2
    assert HierarchicalClusterer(n_clusters=2.0).n_clusters == 2


def test_silhouette_by_k(animal_freq) -> None:
    dist = correlation_distance(term_correlation(animal_freq))
    scores = silhouette_by_k(dist)

    assert scores.index.tolist() == [2, 3]
    assert scores.idxmax() == 2
    assert scores[2] == pytest.approx(1.0)
    assert silhouette_by_k(dist, [1, 2, 4]).index.tolist() == [2]
