"""
Keyword Matching
================

Pure text functions shared by classification and suggestions.
"""

import re
from typing import List

_NON_WORD = re.compile(r"[^\w\s]")

MIN_TOKEN_LENGTH = 3


class KeywordMatcher:
    """
    Stateless tokenizer and relevance scorer.

    Kept as static methods so every routing operation uses the same rules.
    """

    @staticmethod
    def tokenize(text: str) -> List[str]:
        """
        Split text into lowercase word tokens.

        Punctuation becomes whitespace and tokens shorter than three
        characters are dropped. Duplicates are preserved.
        """
        cleaned = _NON_WORD.sub(" ", text.lower())
        return [word for word in cleaned.split() if len(word) >= MIN_TOKEN_LENGTH]

    @staticmethod
    def relevance(user_input: str, keyword: str) -> int:
        """
        Score how well ``keyword`` matches partial user input.

        First matching rule wins:
        exact 100, keyword prefix 80, keyword substring 60,
        keyword inside input 40, otherwise 0.
        """
        user_input = user_input.lower()
        keyword = keyword.lower()

        if keyword == user_input:
            return 100
        if keyword.startswith(user_input):
            return 80
        if user_input in keyword:
            return 60
        if keyword in user_input:
            return 40
        return 0
