"""Transaction categorization.

Rule-based and local: no network calls. ``resolve`` is the single entry point
used by sync and re-categorization; ``KeywordIndex`` backs the confidence-scored
suggestions shown in the correction workflow.
"""

from .resolver import CategoryRuleSet, build_search_text, resolve
from .rules import CANONICAL_CATEGORIES, INCOME, OTHER, is_valid_category, normalize_category
from .suggestions import CategorySuggestion, KeywordIndex, KeywordIndexRegistry, keyword_indexes

__all__ = [
    "resolve",
    "build_search_text",
    "CategoryRuleSet",
    "CANONICAL_CATEGORIES",
    "INCOME",
    "OTHER",
    "is_valid_category",
    "normalize_category",
    "CategorySuggestion",
    "KeywordIndex",
    "KeywordIndexRegistry",
    "keyword_indexes",
]
