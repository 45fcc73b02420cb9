from typing import List
from openai import AsyncOpenAI

from ..interface import EmbeddingProvider
from ...config import settings


class OpenAIEmbeddingAdapter(EmbeddingProvider):
    def __init__(self, api_key: str | None, model_name: str = settings.OPENAI_EMBEDDING_MODEL):
        self.client = AsyncOpenAI(api_key=api_key)
        self.model_name = model_name

    async def embed(self, texts: List[str]) -> List[List[float]]:
        # This is where the specific OpenAI implementation lives.
        # If OpenAI changes their API tomorrow, we ONLY change this file.
        response = await self.client.embeddings.create(
            model=self.model_name,
            input=texts,
        )

        # The API may return items out of order; 'index' maps them back.
        ordered = sorted(response.data, key=lambda item: item.index)
        return [item.embedding for item in ordered]
