"""Tests for the term correlation engine and its zero-variance policies."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from termthememiner import (
    DegenerateInputError,
    InvalidParameterError,
    build_frequency_matrix,
    find_associations,
    term_correlation,
)


def test_cat_dog_correlation_is_exactly_minus_one(cat_dog_terms) -> None:
    freq = build_frequency_matrix(cat_dog_terms, vocabulary=["cat", "dog"])
    corr = term_correlation(freq).matrix

    assert corr.loc["cat", "dog"] == -1.0
    assert corr.loc["dog", "cat"] == -1.0
    assert corr.loc["cat", "cat"] == 1.0


def test_matches_pandas_pearson_on_non_degenerate_data() -> None:
    freq = pd.DataFrame(
        [[3, 0, 1, 7], [1, 2, 0, 4], [0, 5, 2, 1], [4, 1, 1, 6], [2, 2, 3, 0]],
        index=list("abcde"),
        columns=["walk", "beach", "castle", "pub"],
    )
    result = term_correlation(freq)

    np.testing.assert_allclose(result.matrix.to_numpy(), freq.corr().to_numpy(), atol=1e-12)
    assert result.zero_variance_terms == []


def test_matrix_is_symmetric_bounded_and_unit_diagonal() -> None:
    rng = np.random.default_rng(7)
    values = rng.integers(0, 9, size=(12, 15))
    values[:, 3] = 2  # one constant term
    freq = pd.DataFrame(values, columns=[f"t{i}" for i in range(15)])

    corr = term_correlation(freq).matrix.to_numpy()

    assert np.array_equal(corr, corr.T)
    assert np.all(np.diag(corr) == 1.0)
    assert np.all(corr <= 1.0) and np.all(corr >= -1.0)
    assert not np.isnan(corr).any()


@pytest.fixture
def freq_with_constant() -> pd.DataFrame:
    return build_frequency_matrix(
        {
            "d1": {"cat": 2, "dog": 0, "bird": 1},
            "d2": {"cat": 1, "dog": 1, "bird": 1},
            "d3": {"cat": 0, "dog": 2, "bird": 1},
        },
        vocabulary=["cat", "dog", "bird", "ghost"],
    )


def test_zero_policy_gives_consistent_fallback(freq_with_constant) -> None:
    result = term_correlation(freq_with_constant, zero_variance="zero")
    corr = result.matrix

    assert result.zero_variance_terms == ["bird", "ghost"]
    assert result.dropped_terms == []
    assert corr.shape == (4, 4)
    for term in ("bird", "ghost"):
        others = corr.loc[term].drop(term)
        assert (others == 0.0).all()
        assert (corr[term].drop(term) == 0.0).all()
        assert corr.loc[term, term] == 1.0
    assert corr.loc["cat", "dog"] == -1.0


def test_drop_policy_removes_constant_terms(freq_with_constant) -> None:
    result = term_correlation(freq_with_constant, zero_variance="drop")

    assert result.terms == ["cat", "dog"]
    assert result.dropped_terms == ["bird", "ghost"]
    assert result.policy == "drop"


def test_raise_policy(freq_with_constant) -> None:
    with pytest.raises(DegenerateInputError) as excinfo:
        term_correlation(freq_with_constant, zero_variance="raise")

    assert excinfo.value.terms == ["bird", "ghost"]
    assert isinstance(excinfo.value, ValueError)


def test_unknown_policy() -> None:
    freq = build_frequency_matrix({"a": {"x": 1}, "b": {"x": 2}})
    with pytest.raises(InvalidParameterError):
        term_correlation(freq, zero_variance="nan")


def test_single_document_is_all_fallback() -> None:
    freq = build_frequency_matrix({"only": {"x": 1, "y": 3}})
    result = term_correlation(freq)

    assert result.zero_variance_terms == ["x", "y"]
    assert result.matrix.to_numpy().tolist() == [[1.0, 0.0], [0.0, 1.0]]


def test_find_associations(animal_freq) -> None:
    result = term_correlation(animal_freq)

    assoc = find_associations(result, "cat", min_corr=0.5)
    assert assoc.index.tolist() == ["lion"]
    assert assoc["lion"] == pytest.approx(1.0)

    everything = find_associations(result.matrix, "cat", min_corr=-1.0)
    assert everything.index.tolist() == ["lion", "dog", "wolf"]

    with pytest.raises(KeyError):
        find_associations(result, "unicorn")
