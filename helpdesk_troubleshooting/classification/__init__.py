"""
Classification Layer - Keyword Heuristics

Scope and reply-intent classification driven by ordered keyword rule
tables (see data/keyword_rules.py).
"""

from helpdesk_troubleshooting.classification.scope import ScopeClassifier
from helpdesk_troubleshooting.classification.responses import ResponseParser

__all__ = [
    "ScopeClassifier",
    "ResponseParser",
]
