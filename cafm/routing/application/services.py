"""
Routing Application Services
=============================

Keyword routing: classify ticket text into a category, extract matched
keywords, suggest keywords for autocomplete and resolve the responsible role.

Every operation is a pure, synchronous function of its input and the
injected taxonomy, so one service instance can be shared by all requests.
"""

from abc import ABC, abstractmethod
from typing import List

from cafm.config import TicketCategory
from cafm.routing.domain import (
    CategoryTaxonomy,
    KeywordMatcher,
    KeywordSuggestion,
    RoutingDecision,
)

MAX_SUGGESTIONS = 10
MIN_SUGGESTION_INPUT_LENGTH = 2


class IKeywordRoutingService(ABC):
    """Interface consumed by the ticket workflow."""

    @property
    @abstractmethod
    def taxonomy(self) -> CategoryTaxonomy:
        """Taxonomy the service routes against."""

    @abstractmethod
    def determine_category(self, title: str, description: str) -> TicketCategory:
        """Pick the best matching category."""

    @abstractmethod
    def extract_keywords(self, title: str, description: str) -> List[str]:
        """List every known keyword found in the text."""

    @abstractmethod
    def get_suggestions(self, user_input: str) -> List[KeywordSuggestion]:
        """Rank keywords against partial input."""

    @abstractmethod
    def get_role_for_category(self, category: TicketCategory) -> str:
        """Role responsible for a category."""

    @abstractmethod
    def route(self, title: str, description: str) -> RoutingDecision:
        """Classify, extract keywords and resolve the role in one call."""


class KeywordRoutingService(IKeywordRoutingService):
    """
    Rule-based router over a static keyword taxonomy.

    Holds no mutable state; safe for concurrent use.
    """

    def __init__(self, taxonomy: CategoryTaxonomy):
        self._taxonomy = taxonomy

    @property
    def taxonomy(self) -> CategoryTaxonomy:
        return self._taxonomy

    def determine_category(self, title: str, description: str) -> TicketCategory:
        """
        Classify ticket text.

        Each category scores the number of its distinct keywords present in
        the text. The highest score wins; on a tie the category declared
        first in the taxonomy wins. Text with no known keyword is General.

        Args:
            title: Ticket title
            description: Ticket description

        Returns:
            The winning TicketCategory
        """
        words = self._words(title, description)

        best_category = TicketCategory.GENERAL
        best_score = 0
        for category, profile in self._taxonomy:
            score = sum(1 for keyword in profile.keywords if keyword in words)
            if score > best_score:
                best_category, best_score = category, score

        return best_category

    def extract_keywords(self, title: str, description: str) -> List[str]:
        """
        Collect matched keywords across all categories.

        Order follows the taxonomy, then keyword declaration; a keyword
        shared by two categories is listed once.
        """
        words = self._words(title, description)

        extracted: List[str] = []
        seen = set()
        for _, profile in self._taxonomy:
            for keyword in profile.keywords:
                if keyword in words and keyword not in seen:
                    seen.add(keyword)
                    extracted.append(keyword)

        return extracted

    def get_suggestions(self, user_input: str) -> List[KeywordSuggestion]:
        """
        Autocomplete keywords for partial input.

        Args:
            user_input: Text typed so far

        Returns:
            At most 10 suggestions, highest relevance first, then by keyword.
            Empty when the input is blank or shorter than two characters.
        """
        if not user_input or not user_input.strip() or len(user_input) < MIN_SUGGESTION_INPUT_LENGTH:
            return []

        input_lower = user_input.lower()
        suggestions: List[KeywordSuggestion] = []

        for category, profile in self._taxonomy:
            for keyword in profile.keywords:
                relevance = KeywordMatcher.relevance(input_lower, keyword)
                if relevance > 0:
                    suggestions.append(KeywordSuggestion(
                        keyword=keyword,
                        category=category,
                        relevance=relevance
                    ))

        # sorted() is stable: equal keywords keep taxonomy order
        suggestions = sorted(suggestions, key=lambda s: (-s.relevance, s.keyword))
        return suggestions[:MAX_SUGGESTIONS]

    def get_role_for_category(self, category: TicketCategory) -> str:
        """Role for the category, or the default role when it has no profile."""
        return self._taxonomy.role_for(category)

    def route(self, title: str, description: str) -> RoutingDecision:
        category = self.determine_category(title, description)
        return RoutingDecision(
            category=category,
            keywords=tuple(self.extract_keywords(title, description)),
            role=self.get_role_for_category(category)
        )

    @staticmethod
    def _words(title: str, description: str) -> frozenset:
        return frozenset(KeywordMatcher.tokenize(f"{title or ''} {description or ''}"))
