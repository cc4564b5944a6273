"""Query normalization: turn free text into an ordered sequence of index terms.

Analyzers are composed from a tokenizer and a chain of token filters, the same
shape the index builder uses. The query side must normalize exactly like the
builder did, otherwise terms route to partitions that do not contain them; the
analyzer is therefore selected by name from configuration.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
import re
from typing import Protocol

import Stemmer


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int


class Analyzer(Protocol):
    def __call__(self, text: str) -> list[Token]:  # pragma: no cover - interface definition
        ...


class Tokenizer(Protocol):
    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class RegexTokenizer:
    """Yields every match of ``pattern`` as a token."""

    def __init__(self, pattern: str = r"[A-Za-z0-9]+") -> None:
        self.pattern = re.compile(pattern)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self.pattern.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class LowercaseFilter:
    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            yield token if token.text.islower() else replace(token, text=token.text.lower())


# Builder-side stopwords most likely to appear in queries; the full list lives with the crawler.
DEFAULT_STOPWORDS = (
    "a",
    "about",
    "an",
    "and",
    "are",
    "as",
    "at",
    "be",
    "by",
    "for",
    "from",
    "how",
    "in",
    "is",
    "it",
    "of",
    "on",
    "or",
    "that",
    "the",
    "this",
    "to",
    "was",
    "what",
    "when",
    "where",
    "who",
    "will",
    "with",
)


class StopFilter:
    """Removes stopwords from the stream."""

    def __init__(self, stopwords: Sequence[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self.stopwords = frozenset(word.lower() for word in vocab)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.lower() not in self.stopwords:
                yield token


class PorterStemFilter:
    """Applies the Porter stemmer, matching the stemmer used at index time."""

    def __init__(self, algorithm: str = "porter") -> None:
        self._stemmer = Stemmer.Stemmer(algorithm)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            yield replace(token, text=self._stemmer.stemWord(token.text))


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


def alphanumeric_analyzer() -> AnalyzerPipeline:
    return AnalyzerPipeline(RegexTokenizer(), [LowercaseFilter()])


def porter_analyzer() -> AnalyzerPipeline:
    return AnalyzerPipeline(RegexTokenizer(), [LowercaseFilter(), PorterStemFilter()])


def english_analyzer(stopwords: Sequence[str] | None = None) -> AnalyzerPipeline:
    return AnalyzerPipeline(RegexTokenizer(), [LowercaseFilter(), StopFilter(stopwords), PorterStemFilter()])


_ANALYZER_FACTORIES: dict[str, Callable[[], Analyzer]] = {
    "alphanumeric": alphanumeric_analyzer,
    "porter": porter_analyzer,
    "english": english_analyzer,
}


def get_analyzer(name: str | None) -> Analyzer:
    """Return analyzer by name, defaulting to the alphanumeric analyzer."""

    if name is None:
        return _ANALYZER_FACTORIES["alphanumeric"]()
    normalized = name.lower()
    if normalized not in _ANALYZER_FACTORIES:
        msg = f"Unknown analyzer '{name}'. Available: {sorted(_ANALYZER_FACTORIES)}"
        raise ValueError(msg)
    return _ANALYZER_FACTORIES[normalized]()


def available_analyzers() -> list[str]:
    return sorted(_ANALYZER_FACTORIES)


def normalize_terms(analyzer: Analyzer, text: str) -> list[str]:
    """Return the ordered (possibly repeating) term sequence for ``text``."""

    return [token.text for token in analyzer(text) if token.text]
