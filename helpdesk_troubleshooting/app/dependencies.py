"""
Dependency Injection Wiring (Composition Root).

This module acts as the central "container" for the application's services.
It is responsible for:
1. Instantiating the core Singleton services (Stores, Backends, Flow Manager).
2. Wiring them together (e.g., injecting the SessionStore and Guide Search
   into the ConversationFlowManager).
3. Managing the lifecycle of these objects using @lru_cache to ensure
   they are created only once per application process.

Implementations are picked from settings (SESSION_STORE, GUIDE_BACKEND), and
tests swap any of them through `app.dependency_overrides`.
"""


from functools import lru_cache
from fastapi import Depends

from ..config import settings
from ..llm.interface import EmbeddingProvider
from ..llm.adapters.openai_adapter import OpenAIEmbeddingAdapter
from ..retrieval.interface import RetrievalBackend
from ..retrieval.adapters.static_backend import StaticGuideBackend
from ..retrieval.adapters.vector_backend import VectorGuideBackend
from ..repositories.session import SessionStore, InMemorySessionStore, SQLSessionStore
from ..repositories.context import (
    ConversationContextRepository,
    InMemoryContextRepository,
    SQLContextRepository,
)
from ..services.checklist import ChecklistService
from ..services.flow import ConversationFlowManager
from ..services.guide_search import GuideSearchAdapter
from ..services.chat import ChatService

from ..infrastructure.database.connection import init_db


@lru_cache()
def _init_sql_storage() -> bool:
    init_db()
    return True


# Embedding Provider (Singleton)
@lru_cache()
def get_embedding_provider() -> EmbeddingProvider:
    return OpenAIEmbeddingAdapter(
        api_key=settings.OPENAI_API_KEY,
        model_name=settings.OPENAI_EMBEDDING_MODEL
    )


# Retrieval Backend (Singleton)
@lru_cache()
def get_retrieval_backend() -> RetrievalBackend:
    if settings.GUIDE_BACKEND == "vector":
        _init_sql_storage()
        return VectorGuideBackend(embedder=get_embedding_provider())
    return StaticGuideBackend()


# Session Store (Singleton)
# Note: In-memory storage must be a singleton so data persists across requests!
@lru_cache()
def get_session_store() -> SessionStore:
    if settings.SESSION_STORE == "sql":
        _init_sql_storage()
        return SQLSessionStore()
    return InMemorySessionStore()


# Conversation Context Repository (Singleton)
@lru_cache()
def get_context_repository() -> ConversationContextRepository:
    if settings.SESSION_STORE == "sql":
        _init_sql_storage()
        return SQLContextRepository()
    return InMemoryContextRepository()


@lru_cache()
def get_guide_search(
    backend: RetrievalBackend = Depends(get_retrieval_backend)
) -> GuideSearchAdapter:
    return GuideSearchAdapter(
        backend=backend,
        top_k=settings.SEARCH_TOP_K,
        timeout=settings.SEARCH_TIMEOUT_SECONDS,
    )


# The Flow Manager (Singleton Service)
@lru_cache()
def get_flow_manager(
    store: SessionStore = Depends(get_session_store),
    guide_search: GuideSearchAdapter = Depends(get_guide_search)
) -> ConversationFlowManager:
    return ConversationFlowManager(store=store, guide_search=guide_search)


@lru_cache()
def get_checklist_service(
    store: SessionStore = Depends(get_session_store)
) -> ChecklistService:
    return ChecklistService(store=store)


# The Chat Service (Singleton Service)
@lru_cache()
def get_chat_service(
    store: SessionStore = Depends(get_session_store),
    context_repo: ConversationContextRepository = Depends(get_context_repository),
    flow_manager: ConversationFlowManager = Depends(get_flow_manager),
    checklist_service: ChecklistService = Depends(get_checklist_service)
) -> ChatService:
    """
    Injects all necessary components into the ChatService.
    """
    return ChatService(
        store=store,
        context_repository=context_repo,
        flow_manager=flow_manager,
        checklist_service=checklist_service
    )
