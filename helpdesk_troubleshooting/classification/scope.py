"""
Scope Classifier.

Decides whether an opening message is an end-user hardware problem the
helpdesk guides can cover. A plain keyword heuristic: misses are an
accepted product tradeoff.
"""

from typing import Sequence

from ..data.keyword_rules import SCOPE_RULES
from ..domain.rules import KeywordRule, first_match


class ScopeClassifier:
    def __init__(self, rules: Sequence[KeywordRule] = SCOPE_RULES):
        self.rules = rules

    def is_in_scope(self, message: str) -> bool:
        # No rule matched means no hardware vocabulary at all.
        return bool(first_match(self.rules, message))
