import re
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Union

from .dto import ContactMessage, TeamMember
from .errors import NotFoundError, RemoteConflictError, ValidationError
from .logging_setup import get_logger

LOGGER = get_logger(__name__)

_EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


class TeamService:
    """Business rules around the team: at most `max_size` members, unique by id.

    The repository only stores; the check-then-write sequences run under
    this service's lock so two concurrent adds cannot both pass the checks.
    """

    def __init__(self, repo: Any, max_size: int = 6):
        self.repo = repo
        self.max_size = max_size
        self._lock = threading.Lock()

    def get_team(self) -> List[dict]:
        return self.repo.list_members()

    def add(self, pokemon: Union[TeamMember, Dict[str, Any]]) -> List[dict]:
        payload = pokemon.to_dict() if isinstance(pokemon, TeamMember) else pokemon
        if not isinstance(payload, dict) or not payload.get('id'):
            raise ValidationError('Missing pokemon data or id')
        if isinstance(payload['id'], bool) or not isinstance(payload['id'], int):
            raise ValidationError('Pokemon id must be an integer')
        with self._lock:
            team = self.repo.list_members()
            if any(p.get('id') == payload['id'] for p in team):
                raise RemoteConflictError('Pokemon already in team')
            if len(team) >= self.max_size:
                raise RemoteConflictError(f'Team cannot have more than {self.max_size} Pokémon')
            self.repo.add_member(payload)
            return self.repo.list_members()

    def remove(self, poke_id) -> List[dict]:
        if not poke_id:
            raise ValidationError('Missing pokemon id')
        with self._lock:
            self.repo.remove_member(poke_id)
            return self.repo.list_members()

    def clear(self) -> List[dict]:
        with self._lock:
            self.repo.clear_members()
            return self.repo.list_members()


class ContactService:
    def __init__(self, repo: Any, clock=time.time):
        self.repo = repo
        self._clock = clock
        self._lock = threading.Lock()
        self._last_id = 0

    def _next_id(self) -> int:
        # millisecond timestamp, bumped when two messages land in the same ms
        candidate = int(self._clock() * 1000)
        self._last_id = max(candidate, self._last_id + 1)
        return self._last_id

    def submit(self, name, email, subject, message) -> ContactMessage:
        fields = [name, email, subject, message]
        if not all(isinstance(f, str) and f.strip() for f in fields):
            raise ValidationError('All fields are required')
        if not _EMAIL_RE.match(email.strip()):
            raise ValidationError('Please enter a valid email address')
        with self._lock:
            msg = ContactMessage(
                id=self._next_id(),
                name=name.strip(),
                email=email.strip(),
                subject=subject.strip(),
                message=message.strip(),
                timestamp=datetime.now(timezone.utc).isoformat(),
            )
            self.repo.add_message(msg)
        preview = msg.message if len(msg.message) <= 100 else msg.message[:100] + '...'
        LOGGER.info('new contact message %d from %s <%s>: %s | %s',
                    msg.id, msg.name, msg.email, msg.subject, preview)
        return msg

    def list_messages(self) -> List[dict]:
        return [m.to_dict() for m in self.repo.list_messages()]

    def mark_read(self, message_id: int) -> dict:
        msg = self.repo.get_message(message_id)
        if msg is None:
            raise NotFoundError('Message not found')
        msg.status = 'read'
        self.repo.update_message(msg)
        return msg.to_dict()

    def delete(self, message_id: int) -> None:
        if not self.repo.delete_message(message_id):
            raise NotFoundError('Message not found')
