from abc import ABC, abstractmethod
from typing import List


class EmbeddingProvider(ABC):
    """
    Abstract Base Class interface that defines the contract for any embedding
    provider (OpenAI, a local sentence-transformer, etc.)
    """

    @abstractmethod
    async def embed(self, texts: List[str]) -> List[List[float]]:
        """
        Returns one embedding vector per input text, in input order.
        """
        pass
