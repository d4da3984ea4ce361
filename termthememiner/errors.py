"""
errors.py

Exception types raised by TermThemeMiner.

Both concrete errors subclass ``ValueError`` so callers that already guard
against bad input with ``except ValueError`` keep working.
"""

from __future__ import annotations

from typing import List, Optional, Sequence


class TermThemeMinerError(Exception):
    """Base class for all TermThemeMiner errors."""


class InvalidParameterError(TermThemeMinerError, ValueError):
    """A parameter is outside its valid range (e.g. cluster count ``k``)."""


class DegenerateInputError(TermThemeMinerError, ValueError):
    """
    Input that would make a statistic undefined.

    Raised by the correlation engine when one or more term columns have
    zero variance across documents and the caller asked for
    ``zero_variance="raise"``.
    """

    def __init__(self, message: str, terms: Optional[Sequence[str]] = None) -> None:
        super().__init__(message)
        self.terms: List[str] = list(terms or [])
