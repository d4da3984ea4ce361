"""
themes.py

Theme aggregation and per-document theme ranking.

- aggregate_themes : frequency matrix + cluster assignment → theme × document
                     totals (conserves every document's total count).
- rank_themes      : theme × document totals → per-document theme shares,
                     ranked; documents with no counts are reported, not
                     divided by zero.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from .clustering import ClusterResult


# ---------------------------------------------------------------------
# Theme aggregation
# ---------------------------------------------------------------------


def theme_terms(assignment: pd.Series) -> Dict[int, List[str]]:
    """Cluster id → member terms (ids ascending, terms in assignment order)."""
    if isinstance(assignment, ClusterResult):
        assignment = assignment.assignment
    return {
        int(cid): assignment.index[assignment == cid].tolist()
        for cid in sorted(pd.unique(assignment))
    }


def aggregate_themes(freq: pd.DataFrame, assignment: pd.Series) -> pd.DataFrame:
    """
    Sum term counts per theme and document.

    Parameters
    ----------
    freq:
        Document × term frequency matrix.
    assignment:
        Series term → cluster id (or a :class:`ClusterResult`). Every term
        of `freq` must be assigned; assigned terms absent from `freq` are
        ignored.

    Returns
    -------
    pd.DataFrame
        Theme × document matrix: index = cluster ids ascending (name
        ``"theme"``), columns = documents in `freq` order.

    Raises
    ------
    ValueError
        Some term of `freq` has no cluster assignment.
    """
    if isinstance(assignment, ClusterResult):
        assignment = assignment.assignment

    missing = [t for t in freq.columns if t not in assignment.index]
    if missing:
        raise ValueError(
            f"{len(missing)} term(s) have no cluster assignment: {missing[:10]}"
        )

    labels = assignment.reindex(freq.columns)
    themes = sorted(int(c) for c in pd.unique(assignment))

    # (documents × terms) summed over columns grouped by cluster id
    grouped = freq.T.groupby(labels.to_numpy()).sum()
    theme_doc = grouped.reindex(themes, fill_value=0).astype(np.int64)
    theme_doc.index = pd.Index(themes, name="theme")
    theme_doc.columns = freq.index.copy()

    if not np.array_equal(
        theme_doc.sum(axis=0).to_numpy(), freq.sum(axis=1).to_numpy()
    ):
        raise RuntimeError("Theme aggregation lost or double-counted term occurrences.")

    return theme_doc


# ---------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------


@dataclass
class ThemeRanking:
    """
    Per-document theme distribution.

    Attributes
    ----------
    shares:
        Documents × themes DataFrame of ``count / document total``; each row
        sums to 1. Only documents with a positive total appear.
    rankings:
        Document → ``[(theme, share), ...]`` by share descending, ties by
        theme id ascending.
    no_data:
        Documents whose total theme count is zero; they have no defined
        distribution and are absent from `shares` and `rankings`.
    """

    shares: pd.DataFrame
    rankings: Dict[str, List[Tuple[int, float]]]
    no_data: List[str] = field(default_factory=list)

    def dominant_theme(self, document: str) -> Optional[int]:
        """Top theme of `document`; ``None`` if it has no data."""
        if document in self.rankings:
            return self.rankings[document][0][0]
        if document in self.no_data:
            return None
        raise KeyError(f"Unknown document: {document!r}")

    def dominant_documents(self, theme: int) -> List[str]:
        """Documents ordered by their share of `theme` (descending, then by name)."""
        if theme not in self.shares.columns:
            raise KeyError(f"Unknown theme: {theme!r}")
        col = self.shares[theme]
        return sorted(col.index, key=lambda d: (-float(col[d]), str(d)))

    def to_frame(self) -> pd.DataFrame:
        """Long format: one row per (document, rank)."""
        rows = [
            {"document": doc, "rank": rank, "theme": theme, "share": share}
            for doc, ranked in self.rankings.items()
            for rank, (theme, share) in enumerate(ranked, start=1)
        ]
        return pd.DataFrame(rows, columns=["document", "rank", "theme", "share"])


def rank_themes(theme_doc: pd.DataFrame) -> ThemeRanking:
    """
    Rank themes within each document by their share of the document's terms.

    Parameters
    ----------
    theme_doc:
        Theme × document matrix from :func:`aggregate_themes`.
    """
    doc_theme = theme_doc.T
    totals = doc_theme.sum(axis=1)

    no_data = totals.index[totals <= 0].tolist()
    valid = doc_theme.loc[totals > 0]

    shares = valid.div(totals[totals > 0], axis=0).astype(float)
    shares.columns.name = "theme"

    rankings: Dict[str, List[Tuple[int, float]]] = {}
    for doc, row in shares.iterrows():
        ranked = sorted(
            ((int(theme), float(share)) for theme, share in row.items()),
            key=lambda pair: (-pair[1], pair[0]),
        )
        rankings[doc] = ranked

    return ThemeRanking(shares=shares, rankings=rankings, no_data=no_data)
