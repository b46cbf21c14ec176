"""HTTP client for a Team Store running in another process.

Exposes the same `add`/`get_team`/`remove`/`clear` surface as TeamService
so the TeamComposer can target either one.
"""
from typing import Any, Dict, List, Optional, Union

import requests

from .dto import TeamMember
from .errors import NetworkError, RemoteConflictError


class TeamStoreClient:
    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[Any] = None):
        # base_url points at the team resource, e.g. http://localhost:5000/api/team
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _call(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> List[dict]:
        url = f'{self.base_url}{path}'
        try:
            resp = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f'Request to {url} failed: {e}', url=url)
        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        if resp.status_code == 400:
            # business-rule rejection; surface the store's message as-is
            raise RemoteConflictError(data.get('error') or 'Team store rejected the request')
        if not 200 <= resp.status_code < 300:
            raise NetworkError(data.get('error') or f'{url} answered HTTP {resp.status_code}',
                               url=url, status=resp.status_code)
        return list(data.get('team') or [])

    def get_team(self) -> List[dict]:
        return self._call('GET', '')

    def add(self, pokemon: Union[TeamMember, Dict[str, Any]]) -> List[dict]:
        payload = pokemon.to_dict() if isinstance(pokemon, TeamMember) else pokemon
        return self._call('POST', '/add', {'pokemon': payload})

    def remove(self, poke_id) -> List[dict]:
        return self._call('POST', '/remove', {'id': poke_id})

    def clear(self) -> List[dict]:
        return self._call('POST', '/clear')
