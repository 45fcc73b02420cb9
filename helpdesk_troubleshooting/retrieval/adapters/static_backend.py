import re
from typing import Dict, Optional

from ...data.hardcoded_guides import HARDCODED_GUIDES
from ...domain.models import GuideDocument
from ..interface import RetrievalBackend, RetrievalResult, RetrievedSource, SourceMetadata

STOP_WORDS = frozenset({
    "the", "and", "for", "with", "my", "our", "its", "it's", "not", "does",
    "doesn't", "won't", "can't", "what", "when", "how", "this", "that",
    "have", "has", "was", "are", "any", "all", "but",
})


def _tokens(text: str) -> set:
    words = re.findall(r"[a-z0-9'-]+", text.lower())
    return {w for w in words if len(w) > 2 and w not in STOP_WORDS}


class StaticGuideBackend(RetrievalBackend):
    """
    Searches the built-in guide corpus by keyword overlap.
    Used for local development and tests: no embeddings, no database.
    """

    def __init__(self, guides: Optional[Dict[str, GuideDocument]] = None):
        self._guides = guides if guides is not None else HARDCODED_GUIDES

    async def query(self, query_text, top_k, filter=None) -> RetrievalResult:
        query_tokens = _tokens(query_text)
        category = (filter or {}).get("category")

        scored = []
        for guide in self._guides.values():
            if category and guide.category != category:
                continue
            # Title and description hits count double
            score = 2 * len(query_tokens & _tokens(f"{guide.title} {guide.description}"))
            score += len(query_tokens & _tokens(" ".join(guide.steps)))
            if score > 0:
                scored.append((score, guide))

        scored.sort(key=lambda pair: pair[0], reverse=True)
        return RetrievalResult(
            sources=[
                RetrievedSource(
                    document=guide.to_text(),
                    metadata=SourceMetadata(title=guide.title, category=guide.category),
                    score=float(score),
                )
                for score, guide in scored[:top_k]
            ]
        )
