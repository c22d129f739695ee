"""
Tag vocabulary loading.

The vocabulary is a JSON array of tag strings, for example::

    ["Python", "SQL", "C++", "Apache Airflow"]

Load order is preserved because the literal matcher tries alternatives in
that order.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import VocabularyLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagVocabulary:
    """Ordered, duplicate-free collection of tags."""

    tags: tuple[str, ...]
    tag_set: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tag_set", frozenset(self.tags))

    @classmethod
    def from_iterable(cls, values: Iterable[str]) -> "TagVocabulary":
        """
        Build a vocabulary, dropping empty strings and repeated entries.

        Args:
            values: Tag strings in load order.

        Returns:
            TagVocabulary keeping the first occurrence of every tag.
        """
        seen: set[str] = set()
        tags: list[str] = []
        dropped_empty = 0
        for value in values:
            if not value:
                dropped_empty += 1
                continue
            if value in seen:
                continue
            seen.add(value)
            tags.append(value)

        if dropped_empty:
            logger.warning("Dropped %s empty tag(s) from vocabulary", dropped_empty)
        return cls(tags=tuple(tags))

    def __len__(self) -> int:
        return len(self.tags)

    def __iter__(self):
        return iter(self.tags)

    def __contains__(self, tag: object) -> bool:
        return tag in self.tag_set


def load_vocabulary(path: Path | str) -> TagVocabulary:
    """
    Load the tag vocabulary from a JSON array of strings.

    Args:
        path: Location of the vocabulary file.

    Returns:
        TagVocabulary in file order.

    Raises:
        VocabularyLoadError: If the file is missing, unreadable, not valid
            JSON, not an array, or contains non-string entries.
    """
    resolved_path = Path(path)
    logger.info("Loading tag vocabulary from %s", resolved_path)

    try:
        with resolved_path.open("r", encoding="utf-8") as handle:
            loaded = json.load(handle)
    except FileNotFoundError as exc:
        raise VocabularyLoadError(
            f"Vocabulary file not found: {resolved_path}"
        ) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise VocabularyLoadError(
            f"Failed to read vocabulary file {resolved_path}: {exc}"
        ) from exc
    except json.JSONDecodeError as exc:
        raise VocabularyLoadError(
            f"Invalid JSON in vocabulary file {resolved_path}: {exc}"
        ) from exc

    if not isinstance(loaded, list):
        raise VocabularyLoadError(
            f"Vocabulary must be a JSON array of strings, got {type(loaded).__name__}"
        )

    for position, value in enumerate(loaded):
        if not isinstance(value, str):
            raise VocabularyLoadError(
                f"Vocabulary entry {position} is {type(value).__name__}, expected string"
            )

    vocabulary = TagVocabulary.from_iterable(loaded)
    logger.info(
        "Loaded %s tag(s) (%s entries in file)",
        len(vocabulary),
        len(loaded),
        extra={"vocabulary_path": str(resolved_path)},
    )
    return vocabulary
