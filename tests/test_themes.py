"""Tests for theme aggregation and per-document ranking."""

from __future__ import annotations

import pandas as pd
import pytest

from termthememiner import (
    HierarchicalClusterer,
    aggregate_themes,
    build_frequency_matrix,
    rank_themes,
    term_correlation,
    theme_terms,
)


@pytest.fixture
def freq() -> pd.DataFrame:
    return build_frequency_matrix(
        {
            "Kent": {"castle": 3, "abbey": 1, "beach": 1},
            "Dorset": {"castle": 1, "beach": 4, "cliff": 2},
            "Nowhere": {},
        },
        vocabulary=["castle", "abbey", "beach", "cliff"],
    )


@pytest.fixture
def assignment() -> pd.Series:
    return pd.Series({"castle": 1, "abbey": 1, "beach": 2, "cliff": 2}, name="cluster_id")


def test_aggregate_sums_member_terms(freq, assignment) -> None:
    theme_doc = aggregate_themes(freq, assignment)

    assert theme_doc.index.tolist() == [1, 2]
    assert theme_doc.index.name == "theme"
    assert theme_doc.columns.tolist() == ["Kent", "Dorset", "Nowhere"]
    assert theme_doc.to_dict() == {
        "Kent": {1: 4, 2: 1},
        "Dorset": {1: 1, 2: 6},
        "Nowhere": {1: 0, 2: 0},
    }


def test_aggregate_conserves_document_totals(freq, assignment) -> None:
    theme_doc = aggregate_themes(freq, assignment)

    assert theme_doc.sum(axis=0).tolist() == freq.sum(axis=1).tolist()


def test_aggregate_requires_every_term_assigned(freq) -> None:
    partial = pd.Series({"castle": 1, "abbey": 1, "beach": 2})

    with pytest.raises(ValueError, match="cliff"):
        aggregate_themes(freq, partial)


def test_aggregate_ignores_assignments_for_unknown_terms(freq, assignment) -> None:
    extended = pd.concat([assignment, pd.Series({"pier": 2})])

    pd.testing.assert_frame_equal(
        aggregate_themes(freq, extended), aggregate_themes(freq, assignment)
    )


def test_aggregate_accepts_cluster_result(animal_freq) -> None:
    clusters = HierarchicalClusterer(n_clusters=2).fit(term_correlation(animal_freq))
    theme_doc = aggregate_themes(animal_freq, clusters)

    assert theme_doc.to_dict() == {
        "north": {1: 6, 2: 0},
        "middle": {1: 3, 2: 3},
        "south": {1: 0, 2: 6},
    }


def test_rank_themes_reports_zero_total_documents(freq, assignment) -> None:
    ranking = rank_themes(aggregate_themes(freq, assignment))

    assert ranking.no_data == ["Nowhere"]
    assert "Nowhere" not in ranking.shares.index
    assert "Nowhere" not in ranking.rankings
    assert ranking.dominant_theme("Nowhere") is None
    with pytest.raises(KeyError):
        ranking.dominant_theme("Atlantis")


def test_rank_themes_shares_and_order(freq, assignment) -> None:
    ranking = rank_themes(aggregate_themes(freq, assignment))

    assert ranking.rankings["Kent"] == [(1, pytest.approx(0.8)), (2, pytest.approx(0.2))]
    assert ranking.rankings["Dorset"][0][0] == 2
    assert ranking.dominant_theme("Dorset") == 2
    assert ranking.shares.sum(axis=1).tolist() == pytest.approx([1.0, 1.0])
    assert ranking.dominant_documents(1) == ["Kent", "Dorset"]


def test_rank_ties_go_to_lower_theme_id() -> None:
    theme_doc = pd.DataFrame({"Even": [2, 2, 1]}, index=pd.Index([1, 2, 3], name="theme"))
    ranking = rank_themes(theme_doc)

    assert [theme for theme, _ in ranking.rankings["Even"]] == [1, 2, 3]


def test_ranking_to_frame(freq, assignment) -> None:
    frame = rank_themes(aggregate_themes(freq, assignment)).to_frame()

    assert frame.columns.tolist() == ["document", "rank", "theme", "share"]
    assert len(frame) == 4
    assert frame.loc[frame["document"] == "Kent", "theme"].tolist() == [1, 2]


def test_theme_terms(assignment) -> None:
    assert theme_terms(assignment) == {1: ["castle", "abbey"], 2: ["beach", "cliff"]}
