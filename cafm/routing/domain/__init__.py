"""
Routing Domain Layer
====================

Domain layer for keyword routing.

Contains:
- Taxonomy: Category profiles (role + keywords) and the default table
- Matching: Tokenization and relevance scoring
- Value Objects: KeywordSuggestion, RoutingDecision

This layer is framework-agnostic and contains pure business logic.
"""

from cafm.routing.domain.entities import KeywordSuggestion, RoutingDecision
from cafm.routing.domain.matching import KeywordMatcher
from cafm.routing.domain.taxonomy import (
    DEFAULT_ROLE,
    CategoryProfile,
    CategoryTaxonomy,
    build_default_taxonomy,
)

__all__ = [
    "KeywordSuggestion",
    "RoutingDecision",
    "KeywordMatcher",
    "DEFAULT_ROLE",
    "CategoryProfile",
    "CategoryTaxonomy",
    "build_default_taxonomy",
]
