"""
Reply rendering for the assistant's chat messages.

Guide confirmations, alternative lists, step prompts and the checklist
form are Jinja2 files under `templates/`. Every reply name declared on
`Template` must have a file; a missing one fails the import.
"""

from functools import lru_cache
from pathlib import Path
from typing import List

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from .templates import Template

TEMPLATES_DIR = Path(__file__).parent / "templates"
TEMPLATE_SUFFIX = ".jinja2"


def _reply_file(reply_name: str) -> str:
    return f"{reply_name}{TEMPLATE_SUFFIX}"


def missing_replies() -> List[str]:
    """Reply names declared on Template with no file in TEMPLATES_DIR."""
    return [
        reply_name
        for reply_name in Template.names()
        if not (TEMPLATES_DIR / _reply_file(reply_name)).exists()
    ]


_missing = missing_replies()
if _missing:
    raise FileNotFoundError(
        f"Reply templates missing from {TEMPLATES_DIR}: {', '.join(_missing)}"
    )


@lru_cache(maxsize=1)
def _reply_environment() -> Environment:
    # Plain-text chat replies: no HTML escaping, undefined variables are errors
    return Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=select_autoescape(default=False),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render(reply_name: str, **values) -> str:
    """
    Render one chat reply.

    Args:
        reply_name: A `Template` constant naming the reply
        **values: Guide, step and wording values the reply refers to

    Returns:
        Reply text without leading or trailing blank lines
    """
    reply = _reply_environment().get_template(_reply_file(reply_name))
    return reply.render(**values).strip()
