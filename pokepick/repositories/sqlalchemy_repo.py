from typing import List, Optional
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from ..dto import ContactMessage
from ..models.sql_models import Base, ContactMessageRow, TeamMemberRow


def _default_db_url() -> str:
    db_path = os.path.join(os.path.dirname(__file__), '..', 'data', 'pokepick.db')
    os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
    return f'sqlite:///{os.path.abspath(db_path)}'


def create_db_engine(db_url: Optional[str] = None):
    """Create an engine and make sure the schema exists.

    SQLite file URLs are opened with check_same_thread disabled because
    Flask serves requests from several threads; an in-memory SQLite URL
    shares one connection so every session sees the same database.
    """
    db_url = db_url or _default_db_url()
    if db_url in ('sqlite://', 'sqlite:///:memory:'):
        engine = create_engine(db_url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    elif db_url.startswith('sqlite:'):
        engine = create_engine(db_url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(db_url)
    Base.metadata.create_all(engine)
    return engine


class SQLAlchemyTeamRepository:
    """Durable team storage. Members keep the order they were added in."""

    def __init__(self, db_url: Optional[str] = None, engine=None):
        self.engine = engine if engine is not None else create_db_engine(db_url)
        self.Session = sessionmaker(bind=self.engine)

    def _session(self) -> Session:
        return self.Session()

    def list_members(self) -> List[dict]:
        with self._session() as s:
            rows = s.query(TeamMemberRow).order_by(TeamMemberRow.position).all()
            return [dict(r.payload) for r in rows]

    def add_member(self, member: dict) -> None:
        with self._session() as s:
            s.add(TeamMemberRow(pokemon_id=int(member['id']), payload=dict(member)))
            s.commit()

    def remove_member(self, poke_id) -> bool:
        # ids are stored as ints; anything else matches no row, as in the memory store
        if not isinstance(poke_id, int) or isinstance(poke_id, bool):
            return False
        with self._session() as s:
            deleted = s.query(TeamMemberRow).filter(TeamMemberRow.pokemon_id == poke_id).delete()
            s.commit()
            return bool(deleted)

    def clear_members(self) -> None:
        with self._session() as s:
            s.query(TeamMemberRow).delete()
            s.commit()


class SQLAlchemyContactRepository:
    def __init__(self, db_url: Optional[str] = None, engine=None):
        self.engine = engine if engine is not None else create_db_engine(db_url)
        self.Session = sessionmaker(bind=self.engine)

    def _session(self) -> Session:
        return self.Session()

    @staticmethod
    def _to_dto(row: ContactMessageRow) -> ContactMessage:
        return ContactMessage(id=row.id, name=row.name, email=row.email, subject=row.subject,
                              message=row.message, timestamp=row.timestamp, status=row.status)

    def list_messages(self) -> List[ContactMessage]:
        with self._session() as s:
            return [self._to_dto(r) for r in s.query(ContactMessageRow).order_by(ContactMessageRow.id).all()]

    def add_message(self, msg: ContactMessage) -> None:
        with self._session() as s:
            s.add(ContactMessageRow(id=msg.id, name=msg.name, email=msg.email, subject=msg.subject,
                                    message=msg.message, timestamp=msg.timestamp, status=msg.status))
            s.commit()

    def get_message(self, message_id: int) -> Optional[ContactMessage]:
        with self._session() as s:
            row = s.get(ContactMessageRow, message_id)
            return self._to_dto(row) if row is not None else None

    def update_message(self, msg: ContactMessage) -> None:
        with self._session() as s:
            row = s.get(ContactMessageRow, msg.id)
            if row is None:
                return
            row.status = msg.status
            s.commit()

    def delete_message(self, message_id: int) -> bool:
        with self._session() as s:
            row = s.get(ContactMessageRow, message_id)
            if row is None:
                return False
            s.delete(row)
            s.commit()
            return True
