"""
Guide Search Adapter.

Wraps the retrieval backend and turns raw retrieved passages into
structured GuideMatch candidates (title + ordered steps). Backend
failures and timeouts never reach the conversation: they are logged and
reported as "no guides found".
"""

import asyncio
import logging
import re
from typing import Dict, List, Optional

from ..config import settings
from ..domain.models import GuideMatch
from ..retrieval.interface import RetrievalBackend, RetrievedSource

logger = logging.getLogger(__name__)

DEFAULT_GUIDE_TITLE = "Troubleshooting Guide"

STEP_MARKER = re.compile(r"^step\s*\d+\s*[:.)-]\s*", re.IGNORECASE)
# Metadata header lines of indexed documents, e.g. "CATEGORY: Hardware"
HEADER_LINE = re.compile(r"^[A-Z][A-Z_ ]*:")
MIN_STEP_LENGTH = 10


def extract_steps(content: str, title: str) -> List[str]:
    """
    Segments a passage into ordered steps.

    Lines with a "Step N:" marker are unwrapped in order. Without markers,
    every substantial line that is not a header and does not repeat the
    title becomes a step. If nothing qualifies, the whole passage is one step.
    """
    lines = [line.strip() for line in content.splitlines() if line.strip()]

    marked = [STEP_MARKER.sub("", line) for line in lines if STEP_MARKER.match(line)]
    marked = [step for step in marked if step]
    if marked:
        return marked

    substantial = [
        line for line in lines
        if len(line) > MIN_STEP_LENGTH
        and not HEADER_LINE.match(line)
        and line not in title
    ]
    if substantial:
        return substantial

    passage = content.strip()
    return [passage] if passage else []


def to_guide_match(source: RetrievedSource) -> GuideMatch:
    title = (source.metadata.title or DEFAULT_GUIDE_TITLE).strip()
    return GuideMatch(
        title=title,
        steps=extract_steps(source.content, title),
        relevance_score=source.score,
        category=source.metadata.category,
    )


class GuideSearchAdapter:
    def __init__(
        self,
        backend: RetrievalBackend,
        top_k: int = settings.SEARCH_TOP_K,
        timeout: float = settings.SEARCH_TIMEOUT_SECONDS,
    ):
        self.backend = backend
        self.top_k = top_k
        self.timeout = timeout

    async def search(
        self, query: str, filter: Optional[Dict[str, str]] = None
    ) -> List[GuideMatch]:
        """
        Returns guide candidates in the backend's relevance order (no
        re-ranking). The first attempt is unfiltered: broad recall wins
        over precision. Returns [] on no results, failure or timeout.
        """
        try:
            result = await asyncio.wait_for(
                self.backend.query(query, top_k=self.top_k, filter=filter or {}),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error(f"Guide search timed out after {self.timeout}s for query '{query}'")
            return []
        except Exception as e:
            logger.error(f"Guide search failed for query '{query}': {e}")
            return []

        if not result.sources:
            logger.info(f"No guide sources found for query '{query}'")
            return []

        guides = [to_guide_match(source) for source in result.sources]
        # A passage with no text yields no steps and cannot be walked through
        guides = [guide for guide in guides if guide.steps]
        logger.info(f"Guide search for '{query}' returned {[g.title for g in guides]}")
        return guides
