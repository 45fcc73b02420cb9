"""
Keyword Rules - Ordered Phrase Tables

A KeywordRule pairs a set of phrases with the result it produces. Rule
tables are evaluated top to bottom and the first matching rule wins, so
the classification policy lives in data (see data/keyword_rules.py) and
can be tested, reordered or replaced without touching the state machine.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal, Optional, Sequence

MatchMode = Literal["prefix", "word"]


def normalize(text: str) -> str:
    """Lower-case, trim and fold typographic apostrophes."""
    return (text or "").lower().strip().replace("’", "'")


@dataclass(frozen=True)
class KeywordRule:
    """
    One row of a rule table.

    Attributes:
        result: Value returned when the rule matches.
        phrases: Phrases that trigger the rule.
        mode: "prefix" matches a phrase starting at a word boundary
            ("ticket" matches "tickets" but "hr" does not match "three").
            "word" requires the phrase to be a whole word ("no" does not
            match "none" or "now").
    """
    result: Any
    phrases: Sequence[str]
    mode: MatchMode = "prefix"
    _pattern: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        alternatives = "|".join(
            re.escape(p) for p in sorted(self.phrases, key=len, reverse=True)
        )
        suffix = r"(?!\w)" if self.mode == "word" else ""
        object.__setattr__(
            self, "_pattern", re.compile(rf"(?<!\w)(?:{alternatives}){suffix}")
        )

    def matches(self, normalized_text: str) -> bool:
        return bool(self._pattern.search(normalized_text))


def first_match(rules: Iterable[KeywordRule], text: str) -> Optional[Any]:
    """Returns the result of the first rule matching `text`, or None."""
    normalized = normalize(text)
    for rule in rules:
        if rule.matches(normalized):
            return rule.result
    return None
