"""Optional category-suggestion collaborators."""

from __future__ import annotations

from rate_ledger.suggestion.category import (
    CategorySuggester,
    CategorySuggestionError,
    HTTPCategorySuggester,
)

__all__ = ["CategorySuggester", "CategorySuggestionError", "HTTPCategorySuggester"]
