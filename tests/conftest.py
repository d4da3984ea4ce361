from __future__ import annotations

from collections import Counter

import pandas as pd
import pytest

from termthememiner import build_frequency_matrix

# Small explicit stopword list so no test needs to download NLTK data.
STOPWORDS = [
    "a", "an", "and", "are", "as", "at", "be", "between", "by", "each", "for",
    "from", "has", "have", "in", "is", "it", "its", "of", "on", "or", "over",
    "the", "them", "then", "to", "two", "with", "worth", "some", "rest", "end",
    "day", "main", "must", "add", "take", "lie", "line", "go", "get", "find",
]


@pytest.fixture
def stopwords():
    return list(STOPWORDS)


@pytest.fixture
def cat_dog_terms():
    return {
        "doc1": {"cat": 2, "dog": 0},
        "doc2": {"cat": 1, "dog": 1},
        "doc3": {"cat": 0, "dog": 2},
    }


@pytest.fixture
def animal_terms():
    """Two perfectly separated term groups: {cat, lion} vs {dog, wolf}."""
    return {
        "north": Counter({"cat": 2, "lion": 4, "wolf": 0, "dog": 0}),
        "middle": Counter({"cat": 1, "lion": 2, "wolf": 2, "dog": 1}),
        "south": Counter({"cat": 0, "lion": 0, "wolf": 4, "dog": 2}),
    }


@pytest.fixture
def animal_freq(animal_terms) -> pd.DataFrame:
    return build_frequency_matrix(animal_terms, vocabulary=["cat", "dog", "lion", "wolf"])
