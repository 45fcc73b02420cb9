"""
Retrieval Backend Interface.

Defines the contract for the document store the guide search queries,
and the raw result shape it returns. An empty `sources` list is a valid,
non-error answer.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SourceMetadata(BaseModel):
    title: Optional[str] = None
    category: Optional[str] = None


class RetrievedSource(BaseModel):
    """One retrieved passage. Backends fill either `document` or `text`."""
    document: Optional[str] = None
    text: Optional[str] = None
    metadata: SourceMetadata = Field(default_factory=SourceMetadata)
    score: Optional[float] = None

    @property
    def content(self) -> str:
        return self.document or self.text or ""


class RetrievalResult(BaseModel):
    sources: List[RetrievedSource] = Field(default_factory=list)


class RetrievalBackend(ABC):
    @abstractmethod
    async def query(
        self,
        query_text: str,
        top_k: int,
        filter: Optional[Dict[str, str]] = None,
    ) -> RetrievalResult:
        """
        Returns up to `top_k` passages most similar to `query_text`, best first.
        `filter` restricts results by metadata (e.g. {"category": "Network"}).

        Raises RetrievalBackendError on transport or query failure.
        """
        pass
