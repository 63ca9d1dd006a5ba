"""Keyword and pattern tables for identifying ad segments."""

from .patterns import TieredKeywordMatcher, title_matcher, url_matcher

__all__ = ["TieredKeywordMatcher", "title_matcher", "url_matcher"]
