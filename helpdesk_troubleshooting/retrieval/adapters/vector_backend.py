import asyncio
import logging
import math
from typing import List, Optional

from openai import OpenAIError
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ...infrastructure.database.connection import engine
from ...infrastructure.database.tables import GuideDocumentDBModel
from ...llm.interface import EmbeddingProvider
from ...services.exceptions import RetrievalBackendError
from ..interface import RetrievalBackend, RetrievalResult, RetrievedSource, SourceMetadata

logger = logging.getLogger(__name__)


def cosine_similarity(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class VectorGuideBackend(RetrievalBackend):
    """
    Ranks indexed guide passages ('guide_documents' table) by cosine
    similarity to the embedded query.
    """

    def __init__(self, embedder: EmbeddingProvider, bind: Engine = engine):
        self.embedder = embedder
        self.bind = bind

    def _load_rows(self, category: Optional[str]) -> List[GuideDocumentDBModel]:
        statement = select(GuideDocumentDBModel)
        if category:
            statement = statement.where(GuideDocumentDBModel.category == category)
        with Session(self.bind) as db:
            return list(db.exec(statement).all())

    async def query(self, query_text, top_k, filter=None) -> RetrievalResult:
        try:
            [query_vector] = await self.embedder.embed([query_text])
            # Blocking database read runs in a worker thread
            rows = await asyncio.to_thread(self._load_rows, (filter or {}).get("category"))
        except (OpenAIError, SQLAlchemyError) as e:
            raise RetrievalBackendError(f"Guide query failed: {e}") from e

        ranked = sorted(
            ((cosine_similarity(query_vector, row.embedding), row) for row in rows),
            key=lambda pair: pair[0],
            reverse=True,
        )
        logger.debug(f"Ranked {len(ranked)} guide documents for query '{query_text}'")

        return RetrievalResult(
            sources=[
                RetrievedSource(
                    document=row.content,
                    metadata=SourceMetadata(title=row.title, category=row.category),
                    score=score,
                )
                for score, row in ranked[:top_k]
            ]
        )
