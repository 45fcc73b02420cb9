import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..state.models import ConversationContext
from ..infrastructure.database.tables import ContextDBModel
from ..infrastructure.database.connection import engine
from ..services.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class ConversationContextRepository(ABC):
    """
    Keeps the latest ConversationContext for each user between requests.
    The flow manager never sees this: it receives and returns contexts
    as plain values.
    """

    @abstractmethod
    def get(self, user_id: str) -> Optional[ConversationContext]:
        pass

    @abstractmethod
    def save(self, user_id: str, context: ConversationContext):
        pass

    @abstractmethod
    def delete(self, user_id: str) -> bool:
        """Deletes a stored context. Returns True if found and deleted."""
        pass


class InMemoryContextRepository(ConversationContextRepository):
    """
    Uses in-memory dictionary for context storage for testing/dev purposes.
    """

    def __init__(self):
        self._store: Dict[str, ConversationContext] = {}

    def get(self, user_id: str) -> Optional[ConversationContext]:
        return self._store.get(user_id)

    def save(self, user_id: str, context: ConversationContext):
        self._store[user_id] = context

    def delete(self, user_id: str) -> bool:
        if user_id in self._store:
            del self._store[user_id]
            return True
        return False


class SQLContextRepository(ConversationContextRepository):
    """
    JSON(B) document storage for conversation contexts.
    """

    def __init__(self, bind: Engine = engine):
        self.bind = bind

    def get(self, user_id: str) -> Optional[ConversationContext]:
        try:
            with Session(self.bind) as db:
                row = db.get(ContextDBModel, user_id)
                if not row:
                    return None
                # Deserialize JSON back into the Pydantic context
                return ConversationContext.model_validate(row.context)
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e

    def save(self, user_id: str, context: ConversationContext):
        document = context.model_dump(mode="json")
        try:
            with Session(self.bind) as db:
                row = db.get(ContextDBModel, user_id)
                if row:
                    row.context = document
                    row.updated_at = datetime.now(timezone.utc)
                else:
                    row = ContextDBModel(user_id=user_id, context=document)
                db.add(row)
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Saving context for user {user_id} failed: {e}")
            raise PersistenceError(str(e)) from e

    def delete(self, user_id: str) -> bool:
        try:
            with Session(self.bind) as db:
                row = db.get(ContextDBModel, user_id)
                if not row:
                    return False
                db.delete(row)
                db.commit()
                return True
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e
