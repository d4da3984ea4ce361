"""
correlation.py

Term × term Pearson correlation over the document axis of a frequency
matrix, with an explicit policy for zero-variance (constant) terms.

A constant column has no defined Pearson correlation (0 / 0). Instead of
letting NaN leak into the clustering distances, `term_correlation` applies
one of three policies:

- ``"zero"``  : correlation 0.0 with every other term, 1.0 with itself.
- ``"drop"``  : the constant terms are removed from the matrix.
- ``"raise"`` : :class:`DegenerateInputError` naming the constant terms.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal

import numpy as np
import pandas as pd

from .errors import DegenerateInputError, InvalidParameterError

ZeroVariancePolicy = Literal["zero", "drop", "raise"]
ZERO_VARIANCE_POLICIES = ("zero", "drop", "raise")


@dataclass
class CorrelationResult:
    """
    Output of :func:`term_correlation`.

    Attributes
    ----------
    matrix:
        Symmetric term × term DataFrame, values in [-1, 1], diagonal 1.0,
        never NaN.
    zero_variance_terms:
        Terms whose counts were identical in every document.
    dropped_terms:
        Terms removed from `matrix` (only non-empty with policy ``"drop"``).
    policy:
        The zero-variance policy that was applied.
    """

    matrix: pd.DataFrame
    zero_variance_terms: List[str] = field(default_factory=list)
    dropped_terms: List[str] = field(default_factory=list)
    policy: str = "zero"

    @property
    def terms(self) -> List[str]:
        return self.matrix.index.tolist()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "policy": self.policy,
            "num_terms": len(self.matrix),
            "zero_variance_terms": list(self.zero_variance_terms),
            "dropped_terms": list(self.dropped_terms),
        }


def term_correlation(
    freq: pd.DataFrame,
    zero_variance: ZeroVariancePolicy = "zero",
) -> CorrelationResult:
    """
    Pearson correlation between every pair of term columns of `freq`.

    For columns x, y (one entry per document):

        r = Σ (x - x̄)(y - ȳ) / sqrt( Σ (x - x̄)² · Σ (y - ȳ)² )

    which equals cov(x, y) / (sd(x) · sd(y)). Taking a single square root of
    the product keeps perfectly (anti-)correlated columns at exactly ±1.0.

    Parameters
    ----------
    freq:
        Document × term frequency matrix.
    zero_variance:
        Policy for constant columns, see the module docstring.

    Returns
    -------
    CorrelationResult
    """
    if zero_variance not in ZERO_VARIANCE_POLICIES:
        raise InvalidParameterError(
            f"zero_variance must be one of {ZERO_VARIANCE_POLICIES}, got {zero_variance!r}."
        )

    terms = [str(t) for t in freq.columns]
    X = freq.to_numpy(dtype=float)

    centered = X - X.mean(axis=0, keepdims=True) if X.shape[0] else X
    sum_sq = (centered ** 2).sum(axis=0)
    constant = sum_sq <= 0.0
    constant_terms = [t for t, c in zip(terms, constant) if c]

    if constant_terms and zero_variance == "raise":
        raise DegenerateInputError(
            f"{len(constant_terms)} term(s) have zero variance across documents: "
            f"{constant_terms[:10]}",
            terms=constant_terms,
        )

    dropped: List[str] = []
    if constant_terms and zero_variance == "drop":
        keep = ~constant
        dropped = constant_terms
        terms = [t for t, k in zip(terms, keep) if k]
        centered = centered[:, keep]
        sum_sq = sum_sq[keep]

    n = len(terms)
    cov = centered.T @ centered
    denom = np.sqrt(np.outer(sum_sq, sum_sq))

    corr = np.zeros((n, n), dtype=float)
    defined = denom > 0.0
    np.divide(cov, denom, out=corr, where=defined)

    corr = np.clip((corr + corr.T) / 2.0, -1.0, 1.0)
    np.fill_diagonal(corr, 1.0)

    matrix = pd.DataFrame(
        corr,
        index=pd.Index(terms, name="term", dtype=object),
        columns=pd.Index(terms, name="term", dtype=object),
    )
    return CorrelationResult(
        matrix=matrix,
        zero_variance_terms=constant_terms,
        dropped_terms=dropped,
        policy=zero_variance,
    )


def find_associations(
    corr: pd.DataFrame,
    term: str,
    min_corr: float = 0.5,
) -> pd.Series:
    """
    Terms correlated with `term` at or above `min_corr`.

    Returns a Series term → correlation (excluding `term` itself), sorted by
    correlation descending and alphabetically on ties.

    Raises
    ------
    KeyError
        `term` is not in the correlation matrix.
    """
    if isinstance(corr, CorrelationResult):
        corr = corr.matrix
    if term not in corr.index:
        raise KeyError(f"Unknown term: {term!r}")

    row = corr.loc[term].drop(labels=[term])
    row = row[row >= min_corr]
    order = sorted(row.index, key=lambda t: (-float(row[t]), t))
    return row.loc[order].rename(term)
