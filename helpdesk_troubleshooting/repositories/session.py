import logging
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

# Domain & Infra Imports
from ..domain.models import (
    SessionCreate,
    SessionStats,
    SessionUpdate,
    StepCreate,
    Ticket,
    TicketCreate,
    TroubleshootingSession,
    TroubleshootingStep,
    User,
)
from ..infrastructure.database.tables import (
    SessionDBModel,
    StepDBModel,
    TicketDBModel,
    UserDBModel,
)
from ..infrastructure.database.connection import engine
from ..services.exceptions import PersistenceError, SessionNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "Helpdesk User"


def _new_id() -> str:
    return str(uuid.uuid4())


class SessionStore(ABC):
    """
    Defines how the application stores users, sessions, steps and tickets.
    The flow manager only talks to this interface, so storage can move
    (Memory -> SQL -> API) without changing the conversation logic.
    """

    # --- Users ---

    @abstractmethod
    def create_user(
        self,
        name: str,
        phone_number: str = "",
        email: str = "",
        user_id: Optional[str] = None,
    ) -> User:
        """Creates a user. Generates an id unless one is given."""
        pass

    @abstractmethod
    def get_user(self, user_id: str) -> Optional[User]:
        pass

    # --- Sessions ---

    @abstractmethod
    def create_session(self, data: SessionCreate) -> TroubleshootingSession:
        """Creates a session, creating the user first if it does not exist yet."""
        pass

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[TroubleshootingSession]:
        pass

    @abstractmethod
    def update_session(
        self, session_id: str, update: SessionUpdate
    ) -> TroubleshootingSession:
        """
        Merges the explicitly set fields of `update` into the session.
        Raises SessionNotFoundError if the session does not exist.
        """
        pass

    @abstractmethod
    def get_active_session_for_user(
        self, user_id: str
    ) -> Optional[TroubleshootingSession]:
        """Returns the user's open session, if any (at most one exists)."""
        pass

    @abstractmethod
    def list_sessions(self) -> List[TroubleshootingSession]:
        pass

    # --- Steps ---

    @abstractmethod
    def create_step(self, data: StepCreate) -> TroubleshootingStep:
        pass

    @abstractmethod
    def create_steps(
        self, session_id: str, steps: Iterable[StepCreate]
    ) -> List[TroubleshootingStep]:
        """Bulk insert. Returns all steps of the session ordered by step number."""
        pass

    @abstractmethod
    def list_steps(self, session_id: str) -> List[TroubleshootingStep]:
        pass

    # --- Tickets ---

    @abstractmethod
    def create_ticket(self, data: TicketCreate) -> Ticket:
        """
        Opens a ticket for the session. If the session already has one,
        the existing ticket is returned instead.
        """
        pass

    @abstractmethod
    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        pass

    @abstractmethod
    def get_ticket_for_session(self, session_id: str) -> Optional[Ticket]:
        pass

    # --- Reporting ---

    def get_session_stats(self) -> SessionStats:
        sessions = self.list_sessions()
        return compute_session_stats(
            sessions,
            ticketed_session_ids=self._ticketed_session_ids(),
            step_counts={
                s.id: len(self.list_steps(s.id)) for s in sessions if s.resolved
            },
        )

    def list_unresolved_sessions(self) -> List[TroubleshootingSession]:
        """Sessions that were closed without a resolution, newest first."""
        unresolved = [
            s for s in self.list_sessions()
            if s.completed_at is not None and not s.resolved
        ]
        return sorted(unresolved, key=lambda s: s.started_at, reverse=True)

    @abstractmethod
    def _ticketed_session_ids(self) -> Set[str]:
        pass


def compute_session_stats(
    sessions: List[TroubleshootingSession],
    ticketed_session_ids: Set[str],
    step_counts: Dict[str, int],
) -> SessionStats:
    total = len(sessions)
    resolved = [s for s in sessions if s.resolved]
    success_rate = round(len(resolved) / total * 100, 1) if total else 0.0
    average_steps = (
        round(sum(step_counts.get(s.id, 0) for s in resolved) / len(resolved), 1)
        if resolved
        else 0.0
    )
    return SessionStats(
        total=total,
        resolved=len(resolved),
        escalated=sum(1 for s in sessions if s.id in ticketed_session_ids),
        abandoned=sum(1 for s in sessions if s.abandoned),
        misclassified=sum(1 for s in sessions if s.misclassified),
        success_rate=success_rate,
        average_steps_to_resolution=average_steps,
    )


class InMemorySessionStore(SessionStore):
    """
    Uses in-memory dictionaries for storage for testing/dev purposes.
    Process-local: it cannot keep the one-active-session-per-user rule
    across several server instances.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._users: Dict[str, User] = {}
        self._sessions: Dict[str, TroubleshootingSession] = {}
        self._steps: Dict[str, List[TroubleshootingStep]] = {}
        self._tickets: Dict[str, Ticket] = {}

    def create_user(self, name, phone_number="", email="", user_id=None) -> User:
        user = User(
            id=user_id or _new_id(), name=name, phone_number=phone_number, email=email
        )
        with self._lock:
            self._users[user.id] = user
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    def create_session(self, data: SessionCreate) -> TroubleshootingSession:
        if not self.get_user(data.user_id):
            self.create_user(DEFAULT_USER_NAME, user_id=data.user_id)
        session = TroubleshootingSession(id=_new_id(), **data.model_dump())
        with self._lock:
            self._sessions[session.id] = session
        return session

    def get_session(self, session_id: str) -> Optional[TroubleshootingSession]:
        return self._sessions.get(session_id)

    def update_session(self, session_id, update) -> TroubleshootingSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if not session:
                raise SessionNotFoundError(session_id)
            updated = session.model_copy(update=update.changes())
            self._sessions[session_id] = updated
            return updated

    def get_active_session_for_user(self, user_id):
        active = [
            s for s in self._sessions.values() if s.user_id == user_id and s.is_active
        ]
        if not active:
            return None
        return max(active, key=lambda s: s.started_at)

    def list_sessions(self) -> List[TroubleshootingSession]:
        return list(self._sessions.values())

    def create_step(self, data: StepCreate) -> TroubleshootingStep:
        step = TroubleshootingStep(id=_new_id(), **data.model_dump())
        with self._lock:
            self._steps.setdefault(data.session_id, []).append(step)
        return step

    def create_steps(self, session_id, steps) -> List[TroubleshootingStep]:
        for data in steps:
            self.create_step(data.model_copy(update={"session_id": session_id}))
        return self.list_steps(session_id)

    def list_steps(self, session_id: str) -> List[TroubleshootingStep]:
        return sorted(self._steps.get(session_id, []), key=lambda s: s.step_number)

    def create_ticket(self, data: TicketCreate) -> Ticket:
        with self._lock:
            existing = self._find_ticket_for_session(data.session_id)
            if existing:
                return existing
            ticket = Ticket(id=_new_id(), **data.model_dump())
            self._tickets[ticket.id] = ticket
            return ticket

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        return self._tickets.get(ticket_id)

    def get_ticket_for_session(self, session_id: str) -> Optional[Ticket]:
        return self._find_ticket_for_session(session_id)

    def _find_ticket_for_session(self, session_id: str) -> Optional[Ticket]:
        return next(
            (t for t in self._tickets.values() if t.session_id == session_id), None
        )

    def _ticketed_session_ids(self) -> Set[str]:
        return {t.session_id for t in self._tickets.values()}


class SQLSessionStore(SessionStore):
    """
    SQL storage (PostgreSQL in production) through SQLModel.
    Every operation runs in its own database session; SQLAlchemy errors
    surface as PersistenceError.
    """

    def __init__(self, bind: Engine = engine):
        self.bind = bind

    @contextmanager
    def _db(self) -> Iterator[Session]:
        try:
            with Session(self.bind) as db:
                yield db
        except SQLAlchemyError as e:
            logger.error(f"Database operation failed: {e}")
            raise PersistenceError(str(e)) from e

    # --- Users ---

    def create_user(self, name, phone_number="", email="", user_id=None) -> User:
        row = UserDBModel(
            id=user_id or _new_id(), name=name, phone_number=phone_number, email=email
        )
        with self._db() as db:
            db.add(row)
            db.commit()
            db.refresh(row)
            return User(**row.model_dump())

    def get_user(self, user_id: str) -> Optional[User]:
        with self._db() as db:
            row = db.get(UserDBModel, user_id)
            return User(**row.model_dump()) if row else None

    # --- Sessions ---

    def create_session(self, data: SessionCreate) -> TroubleshootingSession:
        with self._db() as db:
            if not db.get(UserDBModel, data.user_id):
                db.add(UserDBModel(id=data.user_id, name=DEFAULT_USER_NAME))
            row = SessionDBModel(id=_new_id(), **data.model_dump())
            db.add(row)
            db.commit()
            db.refresh(row)
            return TroubleshootingSession(**row.model_dump())

    def get_session(self, session_id: str) -> Optional[TroubleshootingSession]:
        with self._db() as db:
            row = db.get(SessionDBModel, session_id)
            return TroubleshootingSession(**row.model_dump()) if row else None

    def update_session(self, session_id, update) -> TroubleshootingSession:
        with self._db() as db:
            row = db.get(SessionDBModel, session_id)
            if not row:
                raise SessionNotFoundError(session_id)
            for field_name, value in update.changes().items():
                setattr(row, field_name, value)
            db.add(row)
            db.commit()
            db.refresh(row)
            return TroubleshootingSession(**row.model_dump())

    def get_active_session_for_user(self, user_id):
        statement = (
            select(SessionDBModel)
            .where(SessionDBModel.user_id == user_id)
            .where(SessionDBModel.resolved == False)  # noqa: E712
            .where(SessionDBModel.abandoned == False)  # noqa: E712
            .where(SessionDBModel.early_exit == False)  # noqa: E712
            .where(col(SessionDBModel.completed_at).is_(None))
            .order_by(col(SessionDBModel.started_at).desc())
        )
        with self._db() as db:
            row = db.exec(statement).first()
            return TroubleshootingSession(**row.model_dump()) if row else None

    def list_sessions(self) -> List[TroubleshootingSession]:
        with self._db() as db:
            rows = db.exec(select(SessionDBModel)).all()
            return [TroubleshootingSession(**row.model_dump()) for row in rows]

    # --- Steps ---

    def create_step(self, data: StepCreate) -> TroubleshootingStep:
        row = StepDBModel(id=_new_id(), **data.model_dump())
        with self._db() as db:
            db.add(row)
            db.commit()
            db.refresh(row)
            return TroubleshootingStep(**row.model_dump())

    def create_steps(self, session_id, steps) -> List[TroubleshootingStep]:
        rows = [
            StepDBModel(id=_new_id(), **{**data.model_dump(), "session_id": session_id})
            for data in steps
        ]
        with self._db() as db:
            db.add_all(rows)
            db.commit()
        return self.list_steps(session_id)

    def list_steps(self, session_id: str) -> List[TroubleshootingStep]:
        statement = (
            select(StepDBModel)
            .where(StepDBModel.session_id == session_id)
            .order_by(col(StepDBModel.step_number), col(StepDBModel.responded_at))
        )
        with self._db() as db:
            return [TroubleshootingStep(**row.model_dump()) for row in db.exec(statement)]

    # --- Tickets ---

    def create_ticket(self, data: TicketCreate) -> Ticket:
        existing = self.get_ticket_for_session(data.session_id)
        if existing:
            return existing

        row = TicketDBModel(id=_new_id(), **data.model_dump())
        try:
            with Session(self.bind) as db:
                db.add(row)
                db.commit()
                db.refresh(row)
                return Ticket(**row.model_dump())
        except IntegrityError:
            # Lost a race with a concurrent insert for the same session
            existing = self.get_ticket_for_session(data.session_id)
            if existing:
                return existing
            raise PersistenceError(f"Could not create ticket for session {data.session_id}")
        except SQLAlchemyError as e:
            logger.error(f"Ticket creation failed for session {data.session_id}: {e}")
            raise PersistenceError(str(e)) from e

    def get_ticket(self, ticket_id: str) -> Optional[Ticket]:
        with self._db() as db:
            row = db.get(TicketDBModel, ticket_id)
            return Ticket(**row.model_dump()) if row else None

    def get_ticket_for_session(self, session_id: str) -> Optional[Ticket]:
        statement = select(TicketDBModel).where(TicketDBModel.session_id == session_id)
        with self._db() as db:
            row = db.exec(statement).first()
            return Ticket(**row.model_dump()) if row else None

    # --- Reporting ---

    def get_session_stats(self) -> SessionStats:
        step_count_statement = (
            select(StepDBModel.session_id, func.count())
            .join(SessionDBModel, SessionDBModel.id == StepDBModel.session_id)
            .where(SessionDBModel.resolved == True)  # noqa: E712
            .group_by(StepDBModel.session_id)
        )
        with self._db() as db:
            step_counts = {sid: count for sid, count in db.exec(step_count_statement)}
        return compute_session_stats(
            self.list_sessions(),
            ticketed_session_ids=self._ticketed_session_ids(),
            step_counts=step_counts,
        )

    def _ticketed_session_ids(self) -> Set[str]:
        with self._db() as db:
            return set(db.exec(select(TicketDBModel.session_id)).all())
