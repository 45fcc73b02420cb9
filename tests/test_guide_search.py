"""
Tests for the Guide Search Adapter and step segmentation
"""

import asyncio
import threading
import time

from unittest.mock import AsyncMock

from sqlmodel import Session

from helpdesk_troubleshooting.infrastructure.database.tables import GuideDocumentDBModel
from helpdesk_troubleshooting.llm.interface import EmbeddingProvider
from helpdesk_troubleshooting.retrieval.adapters.static_backend import StaticGuideBackend
from helpdesk_troubleshooting.retrieval.adapters.vector_backend import VectorGuideBackend
from helpdesk_troubleshooting.retrieval.interface import (
    RetrievalBackend,
    RetrievalResult,
    RetrievedSource,
    SourceMetadata,
)
from helpdesk_troubleshooting.services.exceptions import RetrievalBackendError
from helpdesk_troubleshooting.services.guide_search import (
    DEFAULT_GUIDE_TITLE,
    GuideSearchAdapter,
    extract_steps,
    to_guide_match,
)

from tests.factories import make_source, result_of


class TestExtractSteps:
    def test_step_markers_are_unwrapped_in_order(self):
        content = (
            "TITLE: Printer Not Printing\n"
            "Step 1: Check the printer is on.\n"
            "step 2) Clear the print queue.\n"
            "Step 3 - Restart the printer."
        )

        assert extract_steps(content, "Printer Not Printing") == [
            "Check the printer is on.",
            "Clear the print queue.",
            "Restart the printer.",
        ]

    def test_substantial_lines_without_markers(self):
        content = (
            "Printer Not Printing\n"
            "Make sure the printer has paper.\n"
            "ok\n"
            "Turn the printer off and on again."
        )

        assert extract_steps(content, "Printer Not Printing") == [
            "Make sure the printer has paper.",
            "Turn the printer off and on again.",
        ]

    def test_unparseable_passage_becomes_single_step(self):
        assert extract_steps("Reboot.", "Some Guide") == ["Reboot."]

    def test_empty_passage_has_no_steps(self):
        assert extract_steps("   \n ", "Some Guide") == []


class TestToGuideMatch:
    def test_missing_title_gets_default(self):
        source = RetrievedSource(text="Step 1: Reseat the cable.", score=0.4)

        guide = to_guide_match(source)

        assert guide.title == DEFAULT_GUIDE_TITLE
        assert guide.steps == ["Reseat the cable."]
        assert guide.relevance_score == 0.4


class TestGuideSearchAdapter:
    async def test_preserves_backend_order(self):
        backend = AsyncMock(spec=RetrievalBackend)
        backend.query.return_value = result_of(
            make_source("Low Score First", ["Do the first thing."], score=0.1),
            make_source("High Score Second", ["Do the second thing."], score=0.9),
        )

        guides = await GuideSearchAdapter(backend, top_k=5, timeout=1.0).search("monitor")

        assert [g.title for g in guides] == ["Low Score First", "High Score Second"]

    async def test_drops_candidates_without_steps(self):
        backend = AsyncMock(spec=RetrievalBackend)
        backend.query.return_value = RetrievalResult(sources=[
            RetrievedSource(document="", metadata=SourceMetadata(title="Empty")),
            make_source("Monitor No Power", ["Check the power cable."]),
        ])

        guides = await GuideSearchAdapter(backend, top_k=5, timeout=1.0).search("monitor")

        assert [g.title for g in guides] == ["Monitor No Power"]

    async def test_backend_error_returns_empty(self):
        backend = AsyncMock(spec=RetrievalBackend)
        backend.query.side_effect = RetrievalBackendError("boom")

        assert await GuideSearchAdapter(backend, top_k=5, timeout=1.0).search("monitor") == []

    async def test_stalled_backend_times_out(self):
        async def stall(*args, **kwargs):
            await asyncio.sleep(5)

        backend = AsyncMock(spec=RetrievalBackend)
        backend.query.side_effect = stall

        assert await GuideSearchAdapter(backend, top_k=5, timeout=0.05).search("monitor") == []

    async def test_passes_filter_and_top_k(self):
        backend = AsyncMock(spec=RetrievalBackend)
        backend.query.return_value = result_of()

        await GuideSearchAdapter(backend, top_k=3, timeout=1.0).search(
            "printer", filter={"category": "Peripherals"}
        )

        backend.query.assert_awaited_once_with(
            "printer", top_k=3, filter={"category": "Peripherals"}
        )


class TestStaticGuideBackend:
    async def test_ranks_built_in_guides_by_keyword_overlap(self):
        result = await StaticGuideBackend().query("My monitor won't turn on", top_k=3)

        assert result.sources[0].metadata.title == "Monitor No Power"
        assert len(result.sources) <= 3

    async def test_category_filter(self):
        result = await StaticGuideBackend().query(
            "network cable", top_k=5, filter={"category": "Network"}
        )

        assert {s.metadata.category for s in result.sources} == {"Network"}

    async def test_built_in_guides_parse_into_steps(self):
        adapter = GuideSearchAdapter(StaticGuideBackend(), top_k=5, timeout=1.0)

        [guide, *_] = await adapter.search("printer not printing")

        assert guide.title == "Printer Not Printing"
        assert len(guide.steps) == 4
        assert not any(step.startswith("Step") for step in guide.steps)


def vector_backend(sql_engine, query_vector):
    embedder = AsyncMock(spec=EmbeddingProvider)
    embedder.embed.return_value = [query_vector]
    return VectorGuideBackend(embedder=embedder, bind=sql_engine)


class TestVectorGuideBackend:
    async def test_ranks_rows_by_similarity_within_category(self, sql_engine):
        with Session(sql_engine) as db:
            db.add(GuideDocumentDBModel(
                title="Monitor No Power", category="Display",
                content="Step 1: Check the cable.", embedding=[1.0, 0.0],
            ))
            db.add(GuideDocumentDBModel(
                title="Flickering Screen", category="Display",
                content="Step 1: Reseat the cable.", embedding=[0.6, 0.8],
            ))
            db.add(GuideDocumentDBModel(
                title="No Network", category="Network",
                content="Step 1: Check the link light.", embedding=[1.0, 0.0],
            ))
            db.commit()

        result = await vector_backend(sql_engine, [1.0, 0.0]).query(
            "monitor", top_k=5, filter={"category": "Display"}
        )

        assert [s.metadata.title for s in result.sources] == ["Monitor No Power", "Flickering Screen"]
        assert result.sources[0].score == 1.0

    async def test_blocked_database_read_still_times_out(self, sql_engine, monkeypatch):
        backend = vector_backend(sql_engine, [1.0, 0.0])
        unblock = threading.Event()

        def blocked_read(category):
            unblock.wait(timeout=2)
            return []

        monkeypatch.setattr(backend, "_load_rows", blocked_read)
        adapter = GuideSearchAdapter(backend, top_k=5, timeout=0.05)

        started = time.monotonic()
        try:
            guides = await adapter.search("monitor")
            elapsed = time.monotonic() - started
        finally:
            unblock.set()

        assert guides == []
        assert elapsed < 0.5
