"""
term_matrix.py

Document × term frequency matrix construction and term filtering.

The frequency matrix is a pandas DataFrame:

- index   : document names (name ``"document"``), in input order
- columns : vocabulary terms (name ``"term"``)
- values  : non-negative int64 occurrence counts; a missing occurrence is 0

All filters return a new DataFrame and leave their input untouched.
"""

from __future__ import annotations

from collections import Counter
from numbers import Integral
from typing import Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from .errors import InvalidParameterError

TermBag = Union[Mapping[str, int], Iterable[str]]


# ---------------------------------------------------------------------
# Matrix construction
# ---------------------------------------------------------------------


def build_frequency_matrix(
    doc_terms: Mapping[str, TermBag],
    vocabulary: Optional[Iterable[str]] = None,
) -> pd.DataFrame:
    """
    Build the document × term frequency matrix.

    Parameters
    ----------
    doc_terms:
        Mapping document name → term multiset. Each multiset may be a
        ``Counter`` / mapping of term → count, or an iterable of tokens.
    vocabulary:
        Optional explicit allow-list of terms. When given, the columns are
        exactly these terms in this order (duplicates collapsed); counts for
        any other term are dropped silently, and vocabulary terms that occur
        nowhere get an all-zero column. When ``None``, the vocabulary is
        every term with a positive count somewhere, sorted alphabetically.

    Returns
    -------
    pd.DataFrame
        Frequency matrix; documents without retained terms are all-zero rows.

    Raises
    ------
    ValueError
        Empty `doc_terms`, or a negative / non-integer count.
    """
    if not doc_terms:
        raise ValueError("doc_terms cannot be empty.")

    names = [str(name) for name in doc_terms.keys()]
    bags = [_as_counter(name, bag) for name, bag in zip(names, doc_terms.values())]

    if vocabulary is None:
        vocab = sorted({term for bag in bags for term, n in bag.items() if n > 0})
    else:
        vocab = list(dict.fromkeys(str(t) for t in vocabulary))

    col_index = {term: j for j, term in enumerate(vocab)}
    values = np.zeros((len(names), len(vocab)), dtype=np.int64)

    for i, bag in enumerate(bags):
        for term, n in bag.items():
            j = col_index.get(term)
            if j is not None:
                values[i, j] = n

    return pd.DataFrame(
        values,
        index=pd.Index(names, name="document"),
        columns=pd.Index(vocab, name="term", dtype=object),
    )


def _as_counter(name: str, bag: TermBag) -> Counter:
    if isinstance(bag, Mapping):
        counter: Counter = Counter()
        for term, n in bag.items():
            if isinstance(n, (bool, np.bool_)) or not isinstance(n, (Integral, np.integer)):
                if isinstance(n, float) and float(n).is_integer():
                    n = int(n)
                else:
                    raise ValueError(
                        f"Document '{name}': count for '{term}' must be an integer, got {n!r}."
                    )
            if n < 0:
                raise ValueError(
                    f"Document '{name}': count for '{term}' is negative ({n})."
                )
            counter[str(term)] += int(n)
        return counter

    if isinstance(bag, str):
        # A bare string is almost certainly a mistake for a token list.
        raise ValueError(
            f"Document '{name}': expected a term mapping or token list, got a string."
        )
    return Counter(str(tok) for tok in bag)


# ---------------------------------------------------------------------
# Term statistics
# ---------------------------------------------------------------------


def term_totals(freq: pd.DataFrame) -> pd.Series:
    """Corpus-wide count per term, descending; ties alphabetical."""
    totals = freq.sum(axis=0)
    order = sorted(totals.index, key=lambda t: (-int(totals[t]), t))
    return totals.loc[order].astype(np.int64).rename("count")


def frequent_terms(freq: pd.DataFrame, low: int, high: Optional[int] = None) -> List[str]:
    """
    Terms whose corpus total lies in ``[low, high]`` (``high=None`` means
    unbounded), ordered like :func:`term_totals`.
    """
    totals = term_totals(freq)
    mask = totals >= low
    if high is not None:
        mask &= totals <= high
    return totals[mask].index.tolist()


# ---------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------


def remove_sparse_terms(freq: pd.DataFrame, max_sparsity: float) -> pd.DataFrame:
    """
    Drop terms that are absent from too many documents.

    The sparsity of a term is the fraction of documents in which its count
    is zero. Terms with sparsity greater than `max_sparsity` are removed;
    e.g. ``max_sparsity=0.25`` over twelve documents keeps terms present in
    at least nine of them.
    """
    if not 0.0 <= max_sparsity < 1.0:
        raise InvalidParameterError("max_sparsity must be in [0, 1).")
    if freq.shape[0] == 0:
        return freq.copy()

    sparsity = (freq == 0).sum(axis=0) / freq.shape[0]
    return freq.loc[:, sparsity <= max_sparsity].copy()


def filter_min_frequency(freq: pd.DataFrame, min_count: int) -> pd.DataFrame:
    """Keep terms whose corpus total is at least `min_count`."""
    if min_count < 0:
        raise InvalidParameterError("min_count must be >= 0.")
    totals = freq.sum(axis=0)
    return freq.loc[:, totals >= min_count].copy()


def top_terms(freq: pd.DataFrame, n: int) -> pd.DataFrame:
    """
    Keep the `n` most frequent terms (ties broken alphabetically), with
    columns reordered from most to least frequent.
    """
    if n < 1:
        raise InvalidParameterError("n must be >= 1.")
    keep = term_totals(freq).index[:n].tolist()
    return freq.loc[:, keep].copy()
