import copy
import threading
from typing import Dict, List, Optional

from ..dto import ContactMessage


class InMemoryTeamRepository:
    """Team members kept as plain dicts in insertion order.

    Callers get deep copies so nothing outside the repository can mutate
    the stored team.
    """

    def __init__(self):
        self._members: List[dict] = []
        self._lock = threading.Lock()

    def list_members(self) -> List[dict]:
        with self._lock:
            return copy.deepcopy(self._members)

    def add_member(self, member: dict) -> None:
        with self._lock:
            self._members.append(copy.deepcopy(member))

    def remove_member(self, poke_id) -> bool:
        if not isinstance(poke_id, int) or isinstance(poke_id, bool):
            return False
        with self._lock:
            before = len(self._members)
            self._members = [m for m in self._members if m.get('id') != poke_id]
            return len(self._members) != before

    def clear_members(self) -> None:
        with self._lock:
            self._members = []


class InMemoryContactRepository:
    def __init__(self):
        self._messages: Dict[int, ContactMessage] = {}
        self._lock = threading.Lock()

    def list_messages(self) -> List[ContactMessage]:
        with self._lock:
            return [copy.copy(m) for m in self._messages.values()]

    def add_message(self, msg: ContactMessage) -> None:
        with self._lock:
            self._messages[msg.id] = copy.copy(msg)

    def get_message(self, message_id: int) -> Optional[ContactMessage]:
        with self._lock:
            msg = self._messages.get(message_id)
            return copy.copy(msg) if msg is not None else None

    def update_message(self, msg: ContactMessage) -> None:
        with self._lock:
            if msg.id in self._messages:
                self._messages[msg.id] = copy.copy(msg)

    def delete_message(self, message_id: int) -> bool:
        with self._lock:
            return self._messages.pop(message_id, None) is not None
