"""
theme_modeler.py

Core theme modeling for TermThemeMiner:
- Takes per-document term bags (usually from TextCleaner.clean_corpus).
- Builds the document × term frequency matrix and filters the vocabulary
  (sparsity, minimum frequency, top-N).
- Computes term × term Pearson correlations with an explicit
  zero-variance policy.
- Clusters terms hierarchically on their correlation profiles and cuts the
  tree into k themes.
- Aggregates term counts into a theme × document matrix and ranks themes
  within each document.
- Produces a structured ThemeCoreResult with every intermediate matrix and
  a config dict of all run-time parameters.

Every step is a pure function of its input: fitting twice on the same data
gives identical assignments and matrices.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

import pandas as pd

from .clustering import (
    LINKAGE_METHODS,
    ClusterResult,
    HierarchicalClusterer,
    LinkageMethod,
    check_n_clusters,
)
from .correlation import (
    ZERO_VARIANCE_POLICIES,
    CorrelationResult,
    ZeroVariancePolicy,
    term_correlation,
)
from .errors import InvalidParameterError
from .term_matrix import (
    TermBag,
    build_frequency_matrix,
    filter_min_frequency,
    remove_sparse_terms,
    top_terms,
)
from .text_cleaner import TextCleaner
from .themes import ThemeRanking, aggregate_themes, rank_themes


# ---------------------------------------------------------------------
# Dataclass for core results
# ---------------------------------------------------------------------


@dataclass
class ThemeCoreResult:
    """
    Core output of the ThemeModeler pipeline.

    Attributes
    ----------
    frequency:
        Document × term frequency matrix actually clustered (after
        filtering, and after dropping constant terms under the ``"drop"``
        policy).
    correlation:
        CorrelationResult holding the term × term matrix and the
        zero-variance bookkeeping.
    clusters:
        ClusterResult: term → cluster id, linkage tree, distances.
    theme_document:
        Theme × document matrix of summed term counts.
    ranking:
        ThemeRanking: per-document theme shares, rankings, no-data list.
    config:
        Run-time parameters and corpus statistics, for reproducibility.
    """

    frequency: pd.DataFrame
    correlation: CorrelationResult
    clusters: ClusterResult
    theme_document: pd.DataFrame
    ranking: ThemeRanking
    config: Dict[str, Any]

    @property
    def assignment(self) -> pd.Series:
        return self.clusters.assignment


# ---------------------------------------------------------------------
# ThemeModeler – pipeline orchestration
# ---------------------------------------------------------------------


class ThemeModeler:
    """
    Term-theme modeling over a small document collection.

    Responsibilities
    ----------------
    - Build and filter the frequency matrix.
    - Correlate terms, cluster them into ``n_clusters`` themes.
    - Aggregate and rank themes per document.

    This class is purely statistical. Turning text into term bags is the
    job of :class:`TextCleaner`; naming themes is the job of
    :func:`label_themes`; drawing is the job of the ``theme_viz`` helpers.
    """

    def __init__(
        self,
        n_clusters: int = 4,
        linkage: LinkageMethod = "complete",
        zero_variance: ZeroVariancePolicy = "zero",
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        Parameters
        ----------
        n_clusters:
            Number of themes k (must not exceed the filtered vocabulary).
        linkage:
            Hierarchical linkage rule: ``"complete"``, ``"single"`` or
            ``"average"``.
        zero_variance:
            What to do with terms whose counts are identical in every
            document: ``"zero"`` (correlate 0 with everything else),
            ``"drop"`` (exclude from clustering and aggregation) or
            ``"raise"``.
        logger:
            Optional logging callback used when ``verbose=True``. If None,
            messages go to ``print``.
        """
        if linkage not in LINKAGE_METHODS:
            raise InvalidParameterError(f"linkage must be one of {LINKAGE_METHODS}, got {linkage!r}.")
        if zero_variance not in ZERO_VARIANCE_POLICIES:
            raise InvalidParameterError(
                f"zero_variance must be one of {ZERO_VARIANCE_POLICIES}, got {zero_variance!r}."
            )

        self.n_clusters = check_n_clusters(n_clusters)
        self.linkage = linkage
        self.zero_variance = zero_variance
        self.logger = logger

    # ------------------------------------------------------------------
    # Internal helper – unified logging
    # ------------------------------------------------------------------
    def _log(self, message: str, verbose: bool = True) -> None:
        """
        Log a message if `verbose` is True, through `self.logger` or
        ``print``.
        """
        if not verbose:
            return
        if self.logger is not None:
            self.logger(message)
        else:
            print(message)

    # ------------------------------------------------------------------
    # Public core API
    # ------------------------------------------------------------------

    def fit_core(
        self,
        doc_terms: Mapping[str, TermBag],
        *,
        vocabulary: Optional[Iterable[str]] = None,
        max_sparsity: Optional[float] = None,
        min_term_frequency: int = 1,
        max_terms: Optional[int] = None,
        verbose: bool = False,
    ) -> ThemeCoreResult:
        """
        Execute the theme modeling pipeline:

        1. Build the document × term frequency matrix.
        2. Filter terms (sparsity, minimum corpus frequency, top-N).
        3. Correlate terms (Pearson, zero-variance policy).
        4. Restrict the matrix to correlated terms (``"drop"`` policy).
        5. Cluster terms and cut the tree into ``n_clusters`` themes.
        6. Aggregate counts into a theme × document matrix.
        7. Rank themes per document.
        8. Assemble the config dict and ThemeCoreResult.

        Parameters
        ----------
        doc_terms:
            Document name → term bag (Counter or token list).
        vocabulary:
            Optional explicit allow-list of terms, applied before filters.
        max_sparsity:
            If set, drop terms missing from more than this fraction of
            documents (see :func:`remove_sparse_terms`).
        min_term_frequency:
            Drop terms whose corpus total is below this value. With the
            default of 1, vocabulary terms that never occur are removed.
        max_terms:
            If set, keep only the most frequent `max_terms` terms.

        Returns
        -------
        ThemeCoreResult

        Raises
        ------
        ValueError
            No terms survive filtering.
        InvalidParameterError
            ``n_clusters`` outside ``[1, n_terms]``.
        """
        self._log("[ThemeModeler] Step 1/8 – building frequency matrix...", verbose)
        freq = build_frequency_matrix(doc_terms, vocabulary=vocabulary)
        n_raw_terms = freq.shape[1]
        self._log(
            f"[ThemeModeler]   → {freq.shape[0]} documents × {n_raw_terms} terms.",
            verbose,
        )

        self._log("[ThemeModeler] Step 2/8 – filtering terms...", verbose)
        if max_sparsity is not None:
            freq = remove_sparse_terms(freq, max_sparsity)
        if min_term_frequency:
            freq = filter_min_frequency(freq, min_term_frequency)
        if max_terms is not None:
            freq = top_terms(freq, max_terms)

        if freq.shape[1] == 0:
            raise ValueError(
                "No terms left after filtering. Relax max_sparsity / "
                "min_term_frequency or check the cleaned corpus."
            )
        self._log(f"[ThemeModeler]   → kept {freq.shape[1]} of {n_raw_terms} terms.", verbose)

        self._log(
            f"[ThemeModeler] Step 3/8 – correlating terms (zero_variance='{self.zero_variance}')...",
            verbose,
        )
        correlation = term_correlation(freq, zero_variance=self.zero_variance)
        if correlation.zero_variance_terms:
            self._log(
                f"[ThemeModeler]   → {len(correlation.zero_variance_terms)} zero-variance "
                f"term(s): {correlation.zero_variance_terms[:10]}",
                verbose,
            )

        if correlation.dropped_terms:
            self._log(
                f"[ThemeModeler] Step 4/8 – dropping {len(correlation.dropped_terms)} "
                "constant term(s) from the frequency matrix.",
                verbose,
            )
            freq = freq.loc[:, correlation.terms].copy()
            if freq.shape[1] == 0:
                raise ValueError("Every remaining term has zero variance; nothing to cluster.")
        else:
            self._log("[ThemeModeler] Step 4/8 – no terms dropped.", verbose)

        self._log(
            f"[ThemeModeler] Step 5/8 – {self.linkage}-linkage clustering into "
            f"{self.n_clusters} themes...",
            verbose,
        )
        clusterer = HierarchicalClusterer(
            n_clusters=self.n_clusters,
            method=self.linkage,
            logger=self.logger,
        )
        clusters = clusterer.fit(correlation, verbose=verbose)

        self._log("[ThemeModeler] Step 6/8 – aggregating theme × document matrix.", verbose)
        theme_document = aggregate_themes(freq, clusters.assignment)

        self._log("[ThemeModeler] Step 7/8 – ranking themes per document.", verbose)
        ranking = rank_themes(theme_document)
        if ranking.no_data:
            self._log(
                f"[ThemeModeler]   → no theme data for: {ranking.no_data}", verbose
            )

        config = {
            "n_clusters": self.n_clusters,
            "linkage": self.linkage,
            "zero_variance": self.zero_variance,
            "vocabulary_given": vocabulary is not None,
            "max_sparsity": max_sparsity,
            "min_term_frequency": min_term_frequency,
            "max_terms": max_terms,
            "num_documents": int(freq.shape[0]),
            "num_terms_raw": int(n_raw_terms),
            "num_terms": int(freq.shape[1]),
            "zero_variance_terms": list(correlation.zero_variance_terms),
            "dropped_terms": list(correlation.dropped_terms),
            "no_data_documents": list(ranking.no_data),
        }

        self._log("[ThemeModeler] Step 8/8 – assembling ThemeCoreResult.", verbose)

        return ThemeCoreResult(
            frequency=freq,
            correlation=correlation,
            clusters=clusters,
            theme_document=theme_document,
            ranking=ranking,
            config=config,
        )

    def fit_corpus(
        self,
        corpus: Mapping[str, str],
        cleaner: Optional[TextCleaner] = None,
        **fit_kwargs: Any,
    ) -> ThemeCoreResult:
        """
        Clean a raw region → text corpus with `cleaner` (default
        ``TextCleaner()``) and run :meth:`fit_core` on the result.
        """
        cleaner = cleaner or TextCleaner(logger=self.logger)
        doc_terms = cleaner.clean_corpus(corpus, verbose=fit_kwargs.get("verbose", False))
        result = self.fit_core(doc_terms, **fit_kwargs)
        result.config["cleaner"] = {
            "strip_sections": list(cleaner.strip_sections),
            "clean_markdown": cleaner.clean_markdown,
            "stemmer": cleaner.stemmer_name,
            "min_token_length": cleaner.min_token_length,
            "num_stopwords": len(cleaner.stopwords),
            "num_synonym_entries": len(cleaner.synonyms),
        }
        return result
