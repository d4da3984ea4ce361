"""
text_cleaner.py

TextCleaner: turns raw (Markdown / wiki-ish) travel-guide text into
per-document bags of stemmed terms for term-theme analysis.

Cleaning stages (always in this order)
--------------------------------------
1. Section stripping   – drop whole sections by heading ("Get in", "Sleep", ...)
                         and flatten Markdown to plain text.
2. Lowercasing
3. Punctuation removal – optionally numbers too.
4. Stopword removal    – NLTK English list by default.
5. Region-name removal – document names never count as terms.
6. Whitespace normalization
7. Stemming            – NLTK Porter (default) or Snowball stemmer.
8. Synonym folding     – map synonyms onto a canonical term.

Every stage is a plain function of its input string, so each one can be
tested on its own and no stage mutates shared state.

Quick usage
-----------
    from termthememiner import TextCleaner

    cleaner = TextCleaner(
        strip_sections=["Get in", "Sleep"],
        synonyms=[("castle", ["fortress", "citadel"])],
    )
    doc_terms = cleaner.clean_corpus({"Kent": "...", "Devon": "..."})
"""

from __future__ import annotations

import re
from collections import Counter
from typing import (
    Callable,
    Dict,
    Iterable,
    List,
    Literal,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
)

import markdown as _markdown
from bs4 import BeautifulSoup

from .errors import InvalidParameterError

SynonymEntries = Sequence[Tuple[str, Sequence[str]]]

# Markdown ("## Sleep") and MediaWiki ("== Sleep ==") headings.
_MD_HEADING_RE = re.compile(r"^\s*(#{1,6})\s*(.*?)\s*#*\s*$")
_WIKI_HEADING_RE = re.compile(r"^\s*(={1,6})\s*(.*?)\s*\1\s*$")

# Inline markers like [^1], [1], [note-id]; "[text](url)" links are left alone.
_MD_FOOTNOTE_REF_RE = re.compile(r"\[\^?[0-9a-zA-Z_-]+\](?!\()")
_MD_FOOTNOTE_DEF_RE = re.compile(r"^\[\^?[0-9a-zA-Z_-]+\]:\s+.*$", re.MULTILINE)
_MD_REFERENCE_DEF_RE = re.compile(r"^\[[^\]]+\]:\s+.*$", re.MULTILINE)

_PUNCT_RE = re.compile(r"[^\w\s]|_")
_NUMBER_RE = re.compile(r"\d+")
_WHITESPACE_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------
# Pure stage functions
# ---------------------------------------------------------------------


def _heading(line: str) -> Optional[Tuple[int, str]]:
    """Return (level, title) if `line` is a Markdown or wiki heading."""
    m = _WIKI_HEADING_RE.match(line) or _MD_HEADING_RE.match(line)
    if m is None:
        return None
    return len(m.group(1)), m.group(2).strip()


def strip_sections(text: str, sections: Iterable[str]) -> str:
    """
    Remove whole sections whose heading matches one of `sections`.

    A section runs from its heading line up to (not including) the next
    heading of the same or a higher level, so nested sub-sections are
    removed with their parent. Heading matching is case-insensitive.

    Example
    -------
    >>> strip_sections("## See\\nabbey\\n## Sleep\\ninn\\n## Eat\\npie", ["sleep"])
    '## See\\nabbey\\n## Eat\\npie'
    """
    wanted = {s.strip().lower() for s in sections if s and s.strip()}
    if not wanted:
        return text

    kept: List[str] = []
    skip_level: Optional[int] = None

    for line in text.splitlines():
        heading = _heading(line)
        if heading is not None:
            level, title = heading
            if skip_level is not None and level <= skip_level:
                skip_level = None
            if skip_level is None and title.lower() in wanted:
                skip_level = level
                continue
        if skip_level is None:
            kept.append(line)

    return "\n".join(kept)


def markdown_to_text(text: str) -> str:
    """
    Convert Markdown-ish text to plain text.

    - Strips reference-style link and footnote definition lines.
    - Removes inline footnote markers: [^1], [1], [note-id].
    - Renders Markdown to HTML and extracts text with BeautifulSoup,
      dropping code/pre blocks.

    Block boundaries are kept as newlines.
    """
    without_defs = _MD_REFERENCE_DEF_RE.sub("", text)
    without_defs = _MD_FOOTNOTE_DEF_RE.sub("", without_defs)
    without_defs = _MD_FOOTNOTE_REF_RE.sub("", without_defs)

    html = _markdown.markdown(without_defs, extensions=[], output_format="html5")
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup.find_all(["code", "pre"]):
        tag.decompose()

    text_out = soup.get_text(separator="\n")
    text_out = re.sub(r"[ \t]+", " ", text_out)
    text_out = re.sub(r"\n{3,}", "\n\n", text_out)
    return text_out.strip()


def remove_punctuation(text: str, *, remove_numbers: bool = True) -> str:
    """Replace punctuation (and optionally digits) with spaces."""
    text = _PUNCT_RE.sub(" ", text)
    if remove_numbers:
        text = _NUMBER_RE.sub(" ", text)
    return text


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def remove_words(text: str, words: Iterable[str]) -> str:
    """
    Remove whole words or multi-word phrases from whitespace-delimited text.

    Longer phrases are removed first so "new forest" wins over "forest".
    """
    phrases = sorted(
        {normalize_whitespace(w) for w in words if w and w.strip()},
        key=lambda p: (-len(p.split()), p),
    )
    for phrase in phrases:
        text = re.sub(rf"(?<!\S){re.escape(phrase)}(?!\S)", " ", text)
    return text


def fold_synonyms(text: str, synonyms: SynonymEntries) -> str:
    """
    Replace each synonym with its canonical term.

    Parameters
    ----------
    text:
        Whitespace-delimited text (usually already cleaned).
    synonyms:
        Ordered sequence of ``(canonical, [synonym, ...])`` pairs. Entries
        are applied in order; inside one entry, longer synonyms are applied
        first. Only whole words / whole phrases are replaced.

    Returns
    -------
    str
        A new string; `text` itself is never modified.

    Example
    -------
    >>> fold_synonyms("old castle and fortress", [("castle", ["fortress"])])
    'old castle and castle'
    """
    for canonical, variants in synonyms:
        ordered = sorted(
            {normalize_whitespace(v) for v in variants if v and v.strip()},
            key=lambda v: (-len(v), v),
        )
        for variant in ordered:
            if variant == canonical:
                continue
            text = re.sub(
                rf"(?<!\S){re.escape(variant)}(?!\S)",
                canonical,
                text,
            )
    return text


# ---------------------------------------------------------------------------
# ---------- TextCleaner – fixed, documented cleaning pipeline ----------
# ---------------------------------------------------------------------------


class TextCleaner:
    """
    Fixed-order text cleaning for term-theme analysis.

    The output of :meth:`clean_corpus` is a mapping document → ``Counter``
    of terms which can be fed directly into :func:`build_frequency_matrix`
    or :meth:`ThemeModeler.fit_core`.
    """

    def __init__(
        self,
        *,
        strip_sections: Sequence[str] = (),
        clean_markdown: bool = True,
        stopwords: Optional[Iterable[str]] = None,
        stopwords_language: str = "english",
        extra_stopwords: Iterable[str] = (),
        remove_numbers: bool = True,
        region_names: Iterable[str] = (),
        stemmer: Optional[Literal["porter", "snowball"]] = "porter",
        synonyms: Optional[SynonymEntries] = None,
        min_token_length: int = 3,
        logger: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        Parameters
        ----------
        strip_sections:
            Headings whose whole section is removed before anything else
            (e.g. practical sections such as "Get in" or "Sleep").
        clean_markdown:
            If ``True``, Markdown is flattened to plain text after section
            stripping.
        stopwords:
            Explicit stopword list. If ``None``, NLTK's stopword corpus for
            `stopwords_language` is used (downloaded quietly on first use).
        extra_stopwords:
            Additional words removed together with the stopwords.
        remove_numbers:
            Drop digit runs together with punctuation.
        region_names:
            Extra region names to remove; :meth:`clean_corpus` always adds
            the corpus' own document names.
        stemmer:
            ``"porter"`` (default), ``"snowball"``, or ``None`` to skip
            stemming.
        synonyms:
            Ordered ``(canonical, [synonym, ...])`` pairs applied last.
        min_token_length:
            Tokens shorter than this are dropped from the final term list.
        logger:
            Optional logging callback (falls back to ``print`` when
            ``verbose=True``).
        """
        if stemmer not in {"porter", "snowball", None}:
            raise InvalidParameterError("stemmer must be 'porter', 'snowball' or None.")
        if min_token_length < 1:
            raise InvalidParameterError("min_token_length must be >= 1.")

        self.strip_sections = list(strip_sections)
        self.clean_markdown = clean_markdown
        self.stopwords_language = stopwords_language
        self.remove_numbers = remove_numbers
        self.region_names = list(region_names)
        self.stemmer_name = stemmer
        self.min_token_length = int(min_token_length)
        self.logger = logger

        if stopwords is None:
            stopwords = self._load_nltk_stopwords(stopwords_language)
        self.stopwords: Set[str] = {w.lower() for w in stopwords} | {
            w.lower() for w in extra_stopwords
        }

        self._stemmer = self._load_stemmer(stemmer, stopwords_language)

        # Dictionary entries are cleaned (stopwords removed, stemmed) exactly
        # like the text they are applied to, otherwise they would never match.
        self.synonyms: List[Tuple[str, List[str]]] = []
        for canonical, variants in synonyms or []:
            target = self._normalize_term(canonical)
            sources = [v for v in (self._normalize_term(v) for v in variants) if v]
            if target and sources:
                self.synonyms.append((target, sources))

    # ------------------------------------------------------------------
    # Internal helper – unified logging
    # ------------------------------------------------------------------
    def _log(self, message: str, verbose: bool = True) -> None:
        if not verbose:
            return
        if self.logger is not None:
            self.logger(message)
        else:
            print(message)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def clean_text(self, text: str, region_names: Iterable[str] = ()) -> List[str]:
        """
        Run the full cleaning pipeline over one document.

        Parameters
        ----------
        text:
            Raw document text.
        region_names:
            Region names to remove in addition to ``self.region_names``.

        Returns
        -------
        List[str]
            Cleaned terms in document order.
        """
        names = [*self.region_names, *region_names]

        text = strip_sections(text, self.strip_sections)
        if self.clean_markdown:
            text = markdown_to_text(text)
        text = text.lower()
        text = remove_punctuation(text, remove_numbers=self.remove_numbers)
        text = self._remove_stopwords(text)
        text = remove_words(
            normalize_whitespace(text),
            [self._remove_stopwords(self._flatten(name)) for name in names],
        )
        text = normalize_whitespace(text)
        text = self._stem(text)
        if self.synonyms:
            text = fold_synonyms(text, self.synonyms)

        return [tok for tok in text.split() if len(tok) >= self.min_token_length]

    def clean_corpus(
        self,
        corpus: Mapping[str, str],
        *,
        verbose: bool = False,
    ) -> Dict[str, Counter]:
        """
        Clean every document of `corpus` and count its terms.

        Every document name in the corpus is treated as a region name and
        removed from all documents. Output order follows `corpus` order.
        """
        if not corpus:
            raise ValueError("corpus cannot be empty.")

        names = list(corpus.keys())
        doc_terms: Dict[str, Counter] = {}

        for doc_index, (name, raw) in enumerate(corpus.items()):
            tokens = self.clean_text(raw or "", region_names=names)
            doc_terms[name] = Counter(tokens)
            self._log(
                f"[TextCleaner] {doc_index + 1}/{len(names)} '{name}': "
                f"{len(tokens)} tokens, {len(doc_terms[name])} distinct terms.",
                verbose,
            )

        return doc_terms

    # ------------------------------------------------------------------
    # Internal stages
    # ------------------------------------------------------------------

    def _flatten(self, text: str) -> str:
        """Lowercase + punctuation + whitespace, as applied to documents."""
        return normalize_whitespace(
            remove_punctuation(text.lower(), remove_numbers=self.remove_numbers)
        )

    def _remove_stopwords(self, text: str) -> str:
        return " ".join(tok for tok in text.split() if tok not in self.stopwords)

    def _stem(self, text: str) -> str:
        if self._stemmer is None:
            return text
        return " ".join(self._stemmer.stem(tok) for tok in text.split())

    def _normalize_term(self, term: str) -> str:
        return self._stem(self._remove_stopwords(self._flatten(term)))

    # ---------------------------------------------------------------------
    # Lazy NLTK loaders
    # ---------------------------------------------------------------------
    @staticmethod
    def _load_nltk_stopwords(language: str) -> List[str]:
        """
        Load NLTK's stopword list, downloading the corpus quietly if it is
        not installed yet.
        """
        import nltk
        from nltk.corpus import stopwords

        try:
            return stopwords.words(language)
        except LookupError:
            nltk.download("stopwords", quiet=True)
            return stopwords.words(language)

    @staticmethod
    def _load_stemmer(name: Optional[str], language: str):
        if name is None:
            return None
        if name == "porter":
            from nltk.stem import PorterStemmer

            return PorterStemmer()
        from nltk.stem import SnowballStemmer

        return SnowballStemmer(language)
