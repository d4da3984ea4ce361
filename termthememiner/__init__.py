"""
TermThemeMiner

Bag-of-words theme discovery for small document collections:
term frequencies → term correlations → hierarchical term clusters →
per-document theme shares.

High-level API
--------------
- TextCleaner          → raw text to per-document term bags
- build_frequency_matrix / filters → document × term counts
- term_correlation     → term × term Pearson correlation (zero-variance policy)
- HierarchicalClusterer → terms clustered into k themes
- aggregate_themes / rank_themes → theme × document totals and rankings
- ThemeModeler         → the whole pipeline in one call
- label_themes         → manual, post-hoc theme names
- Visualization helpers:
    * plot_theme_heatmap, plot_term_dendrogram, plot_theme_pies
    * plot_correlation_heatmap, plot_term_frequencies
"""

from importlib.metadata import PackageNotFoundError, version


# Core APIs
from .errors import DegenerateInputError, InvalidParameterError, TermThemeMinerError
from .text_cleaner import (
    TextCleaner,
    fold_synonyms,
    markdown_to_text,
    strip_sections,
)
from .corpus import load_corpus, load_synonyms
from .term_matrix import (
    build_frequency_matrix,
    filter_min_frequency,
    frequent_terms,
    remove_sparse_terms,
    term_totals,
    top_terms,
)
from .correlation import CorrelationResult, find_associations, term_correlation
from .clustering import (
    ClusterResult,
    HierarchicalClusterer,
    agglomerate,
    correlation_distance,
    cut_tree,
    silhouette_by_k,
)
from .themes import ThemeRanking, aggregate_themes, rank_themes, theme_terms
from .theme_modeler import ThemeCoreResult, ThemeModeler
from .theme_labeler import ThemeLabelModel, ThemeLabelingResult, label_themes

# Visualization APIs
from .theme_viz import (
    plot_correlation_heatmap,
    plot_term_dendrogram,
    plot_term_frequencies,
    plot_theme_heatmap,
    plot_theme_pies,
)


# ---------------------------------------------------------------------
# Runtime version (single source of truth = pyproject.toml)
# ---------------------------------------------------------------------
try:
    __version__ = version("termthememiner")
except PackageNotFoundError:
    # Fallback when running directly from a clone without installation
    __version__ = "0.0.0"

__all__ = [
    "TermThemeMinerError",
    "InvalidParameterError",
    "DegenerateInputError",
    "TextCleaner",
    "fold_synonyms",
    "markdown_to_text",
    "strip_sections",
    "load_corpus",
    "load_synonyms",
    "build_frequency_matrix",
    "filter_min_frequency",
    "frequent_terms",
    "remove_sparse_terms",
    "term_totals",
    "top_terms",
    "CorrelationResult",
    "term_correlation",
    "find_associations",
    "ClusterResult",
    "HierarchicalClusterer",
    "agglomerate",
    "correlation_distance",
    "cut_tree",
    "silhouette_by_k",
    "ThemeRanking",
    "aggregate_themes",
    "rank_themes",
    "theme_terms",
    "ThemeCoreResult",
    "ThemeModeler",
    "ThemeLabelModel",
    "ThemeLabelingResult",
    "label_themes",
    "plot_theme_heatmap",
    "plot_term_dendrogram",
    "plot_theme_pies",
    "plot_correlation_heatmap",
    "plot_term_frequencies",
    "__version__",
]
