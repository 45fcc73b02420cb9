"""
Response Parser.

Maps a free-text or button reply to one of the UserResponse intents.
"""

from typing import Optional, Sequence

from ..data.keyword_rules import DEFAULT_RESPONSE, RESPONSE_RULES
from ..state.models import UserResponse
from ..domain.rules import KeywordRule, first_match


class ResponseParser:
    def __init__(
        self,
        rules: Sequence[KeywordRule] = RESPONSE_RULES,
        default: UserResponse = DEFAULT_RESPONSE,
    ):
        self.rules = rules
        self.default = default

    def match(self, message: str) -> Optional[UserResponse]:
        """Returns the matched intent, or None when no rule applies."""
        return first_match(self.rules, message)

    def parse(self, message: str) -> UserResponse:
        """
        Returns the matched intent, falling back to the default
        (still_not_working) so an unreadable reply never resolves or
        abandons a session.
        """
        response = self.match(message)
        return response if response is not None else self.default
