"""
Database Seeder.

Run this script to populate the 'guide_documents' table with the
built-in guides defined in data/hardcoded_guides.py, embedding each one
for the vector guide backend.

Usage:
    python -m helpdesk_troubleshooting.scripts.db_seed_guides

Requires OPENAI_API_KEY and DATABASE_URL (see config.py).
"""

import asyncio
from typing import List

from sqlmodel import Session

from helpdesk_troubleshooting.config import settings
from helpdesk_troubleshooting.data.hardcoded_guides import HARDCODED_GUIDES
from helpdesk_troubleshooting.domain.models import utc_now
from helpdesk_troubleshooting.infrastructure.database.connection import engine, init_db
from helpdesk_troubleshooting.infrastructure.database.tables import GuideDocumentDBModel
from helpdesk_troubleshooting.llm.adapters.openai_adapter import OpenAIEmbeddingAdapter


async def embed_guides(texts: List[str]) -> List[List[float]]:
    embedder = OpenAIEmbeddingAdapter(
        api_key=settings.OPENAI_API_KEY,
        model_name=settings.OPENAI_EMBEDDING_MODEL,
    )
    return await embedder.embed(texts)


def seed_guides():
    print("Initializing Database Connection...")

    init_db()

    guides = list(HARDCODED_GUIDES.values())
    print(f"Found {len(guides)} guides to seed.")

    contents = [guide.to_text() for guide in guides]
    print(f"Embedding with '{settings.OPENAI_EMBEDDING_MODEL}'...")
    embeddings = asyncio.run(embed_guides(contents))

    with Session(engine) as session:
        for guide, content, embedding in zip(guides, contents, embeddings):
            print(f"Processing guide: {guide.title}")

            # Upsert logic: update existing records or insert new ones.
            existing = session.get(GuideDocumentDBModel, guide.title)

            if existing:
                print("--> Updating existing record.")
                existing.category = guide.category
                existing.content = content
                existing.embedding = embedding
                existing.updated_at = utc_now()
                session.add(existing)
            else:
                print("--> Creating new record.")
                session.add(
                    GuideDocumentDBModel(
                        title=guide.title,
                        category=guide.category,
                        content=content,
                        embedding=embedding,
                    )
                )

        session.commit()
        print("Guide seeding complete.")


if __name__ == "__main__":
    seed_guides()
