"""
corpus.py

Loading helpers for the inputs that live outside the core pipeline:

- the corpus itself (region name → raw guide text), and
- the synonym dictionary (canonical term → synonyms).

Both keep the order found in the file; document order becomes the row
order of every matrix downstream.
"""

from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import pandas as pd

from .errors import InvalidParameterError

PathLike = Union[str, Path]


def load_corpus(
    path: PathLike,
    *,
    name_column: str = "region",
    text_column: str = "text",
) -> Dict[str, str]:
    """
    Load a region → text mapping from disk.

    Supported formats
    -----------------
    - ``.json``:           an object ``{"Region": "text", ...}``.
    - ``.csv``:            one row per region, columns `name_column` and
                           `text_column`.
    - ``.pkl``/``.pickle``: a pickled dict or DataFrame (same columns as CSV).

    Raises
    ------
    InvalidParameterError
        Unsupported file suffix or missing columns.
    ValueError
        The file holds no documents or repeats a region name.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh, object_pairs_hook=_reject_duplicate_keys)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object of region -> text.")
        corpus = {str(k): "" if v is None else str(v) for k, v in data.items()}
    elif suffix == ".csv":
        corpus = _frame_to_corpus(pd.read_csv(path), name_column, text_column)
    elif suffix in {".pkl", ".pickle"}:
        data = pd.read_pickle(path)
        if isinstance(data, pd.DataFrame):
            corpus = _frame_to_corpus(data, name_column, text_column)
        elif isinstance(data, dict):
            corpus = {str(k): "" if v is None else str(v) for k, v in data.items()}
        else:
            raise ValueError(f"{path}: pickled object must be a dict or DataFrame.")
    else:
        raise InvalidParameterError(
            f"Unsupported corpus format '{suffix}'. Use .json, .csv or .pkl."
        )

    if not corpus:
        raise ValueError(f"{path}: corpus is empty.")
    return corpus


def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    counts = Counter(key for key, _ in pairs)
    dupes = sorted(key for key, n in counts.items() if n > 1)
    if dupes:
        raise ValueError(f"Duplicate keys in JSON object: {dupes}")
    return dict(pairs)


def _frame_to_corpus(df: pd.DataFrame, name_column: str, text_column: str) -> Dict[str, str]:
    missing = [c for c in (name_column, text_column) if c not in df.columns]
    if missing:
        raise InvalidParameterError(f"Corpus table is missing column(s): {missing}")

    names = df[name_column].astype(str)
    if names.duplicated().any():
        dupes = sorted(names[names.duplicated()].unique().tolist())
        raise ValueError(f"Duplicate region names in corpus: {dupes}")

    texts = df[text_column].fillna("").astype(str)
    return dict(zip(names.tolist(), texts.tolist()))


def load_synonyms(path: PathLike) -> List[Tuple[str, List[str]]]:
    """
    Load a synonym dictionary from a JSON object ``{canonical: [synonyms]}``.

    Returns an ordered list of ``(canonical, [synonym, ...])`` pairs, ready
    for :func:`fold_synonyms` / ``TextCleaner(synonyms=...)``.
    """
    with Path(path).open(encoding="utf-8") as fh:
        data = json.load(fh, object_pairs_hook=_reject_duplicate_keys)

    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object of canonical -> [synonyms].")

    entries: List[Tuple[str, List[str]]] = []
    for canonical, variants in data.items():
        if isinstance(variants, str):
            variants = [variants]
        entries.append((str(canonical), [str(v) for v in variants]))
    return entries
