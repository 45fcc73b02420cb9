"""
Pytest Configuration and Fixtures

Provides fixtures for:
- Session stores (in-memory and SQLite in memory)
- A mocked retrieval backend
- The flow manager and chat service wired on top of them
"""

import pytest
from unittest.mock import AsyncMock
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

from helpdesk_troubleshooting.infrastructure.database.connection import init_db
from helpdesk_troubleshooting.repositories.context import InMemoryContextRepository
from helpdesk_troubleshooting.repositories.session import InMemorySessionStore, SQLSessionStore
from helpdesk_troubleshooting.retrieval.interface import RetrievalBackend
from helpdesk_troubleshooting.services.chat import ChatService
from helpdesk_troubleshooting.services.checklist import ChecklistService
from helpdesk_troubleshooting.services.flow import ConversationFlowManager
from helpdesk_troubleshooting.services.guide_search import GuideSearchAdapter
from tests.factories import MONITOR_NO_POWER_STEPS, make_source, result_of


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def sql_engine():
    """SQLite in memory, shared across threads and sessions"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(sql_engine):
    return SQLSessionStore(bind=sql_engine)


@pytest.fixture
def backend():
    """Retrieval backend returning a single 'Monitor No Power' guide"""
    mock = AsyncMock(spec=RetrievalBackend)
    mock.query.return_value = result_of(make_source("Monitor No Power", MONITOR_NO_POWER_STEPS))
    return mock


@pytest.fixture
def guide_search(backend):
    return GuideSearchAdapter(backend=backend, top_k=5, timeout=1.0)


@pytest.fixture
def flow(store, guide_search):
    return ConversationFlowManager(store=store, guide_search=guide_search)


@pytest.fixture
def checklist_service(store):
    return ChecklistService(store=store)


@pytest.fixture
def context_repository():
    return InMemoryContextRepository()


@pytest.fixture
def chat_service(store, context_repository, flow, checklist_service):
    return ChatService(
        store=store,
        context_repository=context_repository,
        flow_manager=flow,
        checklist_service=checklist_service,
    )
