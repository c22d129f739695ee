"""
Matchers used to find tags in job descriptions.

Two matchers share the same interface (``find_all(text)``):

- ``LiteralMatcher`` recognises exact, case-insensitive, whole-word
  occurrences of vocabulary entries. All tags are compiled into one
  alternation so a description is scanned once regardless of vocabulary size.
- ``TokenMatcher`` recognises every word token and is usually combined with a
  vocabulary filter in the extractor.

Known limitation of the default ``"word"`` boundary: ``\\b`` only exists
between a word and a non-word character, so a tag that starts or ends with a
non-word character (``C++``, ``.NET``) needs a word character on the other
side of that edge. ``C++`` therefore does not match in ``"Needs C++
experience"`` but does match in ``"C++11"``. ``boundary="token"`` uses
lookarounds instead and matches the former.
"""
from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Protocol

from .exceptions import EmptyVocabulary

TOKEN_PATTERN = re.compile(r"\w+")

_BOUNDARIES = {
    "word": (r"\b", r"\b"),
    "token": (r"(?<!\w)", r"(?!\w)"),
}

BOUNDARY_MODES = tuple(_BOUNDARIES)


class Matcher(Protocol):
    def find_all(self, text: str) -> Iterator[str]:
        ...


@dataclass(frozen=True)
class LiteralMatcher:
    """Compiled alternation of escaped, boundary-wrapped vocabulary tags."""

    pattern: re.Pattern[str]
    tag_count: int

    def find_all(self, text: str) -> Iterator[str]:
        """Yield matched slices of ``text`` in order, keeping their original case."""
        for match in self.pattern.finditer(text):
            yield match.group(0)


@dataclass(frozen=True)
class TokenMatcher:
    """Matcher returning every word token of a text."""

    def find_all(self, text: str) -> Iterator[str]:
        return tokenize(text)


def tokenize(text: str) -> Iterator[str]:
    """
    Split text into runs of word characters.

    Letters, digits and underscore (Unicode aware) form tokens; everything
    else is discarded. Every call returns a fresh generator.
    """
    return (match.group(0) for match in TOKEN_PATTERN.finditer(text))


def build_literal_pattern(tags: Sequence[str], boundary: str = "word") -> str:
    """
    Return the regular expression source for a list of literal tags.

    Args:
        tags: Non-empty tag strings, in the order alternatives should be tried.
        boundary: ``"word"`` for ``\\b`` assertions, ``"token"`` for
            ``(?<!\\w)``/``(?!\\w)`` lookarounds.

    Raises:
        EmptyVocabulary: If ``tags`` is empty.
        ValueError: If a tag is empty or not a string, or the boundary mode is
            unknown.
    """
    if boundary not in _BOUNDARIES:
        raise ValueError(
            f"Unknown boundary mode {boundary!r}; expected one of {BOUNDARY_MODES}"
        )
    if not tags:
        raise EmptyVocabulary("Cannot build a tag matcher from an empty vocabulary")

    left, right = _BOUNDARIES[boundary]
    alternatives = []
    for tag in tags:
        if not isinstance(tag, str) or not tag:
            raise ValueError(f"Tags must be non-empty strings, got {tag!r}")
        alternatives.append(f"{left}{re.escape(tag)}{right}")
    return "(" + "|".join(alternatives) + ")"


def build_literal_matcher(tags: Sequence[str], boundary: str = "word") -> LiteralMatcher:
    """
    Compile a case-insensitive matcher for a list of literal tags.

    Example:
        >>> matcher = build_literal_matcher(["Python", "SQL"])
        >>> list(matcher.find_all("python and sql"))
        ['python', 'sql']
    """
    tags = list(tags)
    source = build_literal_pattern(tags, boundary=boundary)
    return LiteralMatcher(pattern=re.compile(source, re.IGNORECASE), tag_count=len(tags))
