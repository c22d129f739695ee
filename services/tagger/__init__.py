"""
Tagger service package.

This package scans job descriptions for known skill and technology tags and
maps every listing ID to the tags found in its description.
"""

from .extractor import extract_tags, extract_tags_with_stats
from .patterns import TokenMatcher, build_literal_matcher, tokenize
from .vocabulary import TagVocabulary, load_vocabulary

__all__ = [
    "TagVocabulary",
    "TokenMatcher",
    "build_literal_matcher",
    "extract_tags",
    "extract_tags_with_stats",
    "load_vocabulary",
    "tokenize",
]
