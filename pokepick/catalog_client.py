"""Thin client for the public Pokémon catalog service (PokeAPI).

Every call accepts an optional `CancelToken`. A cancelled token makes the
call raise `RequestCancelled` instead of returning, both before the request
is sent and after the response comes back, so a superseded caller never
sees a stale result.
"""
import threading
from typing import Any, Dict, List, Optional, Tuple

import requests

from .dto import CatalogEntry
from .errors import NetworkError, RequestCancelled
from .logging_setup import get_logger

LOGGER = get_logger(__name__)


class CancelToken:
    """One-shot cancellation flag shared between a caller and its requests."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled('Request superseded')


class CatalogClient:
    def __init__(self, base_url: str = 'https://pokeapi.co/api/v2', timeout: float = 10.0,
                 catalog_limit: int = 100000, session: Optional[Any] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.catalog_limit = catalog_limit
        # anything with a requests-compatible `get` works (tests pass a fake)
        self.session = session if session is not None else requests.Session()
        self._all_entries: Optional[List[CatalogEntry]] = None
        self._types: Optional[List[str]] = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, cfg, session: Optional[Any] = None) -> 'CatalogClient':
        return cls(base_url=cfg.POKEAPI_BASE_URL, timeout=cfg.HTTP_TIMEOUT,
                   catalog_limit=cfg.CATALOG_LIMIT, session=session)

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None,
                  cancel: Optional[CancelToken] = None) -> Any:
        if cancel is not None:
            cancel.raise_if_cancelled()
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f'Request to {url} failed: {e}', url=url)
        if cancel is not None:
            cancel.raise_if_cancelled()
        if not 200 <= resp.status_code < 300:
            raise NetworkError(f'{url} answered HTTP {resp.status_code}', url=url, status=resp.status_code)
        try:
            return resp.json()
        except ValueError:
            raise NetworkError(f'{url} returned a non-JSON body', url=url, status=resp.status_code)

    @staticmethod
    def _entries(payload: Any) -> List[CatalogEntry]:
        results = payload.get('results') if isinstance(payload, dict) else None
        return [CatalogEntry.from_dict(r) for r in (results or []) if isinstance(r, dict)]

    def list_page(self, limit: int, offset: int,
                  cancel: Optional[CancelToken] = None) -> Tuple[List[CatalogEntry], bool]:
        """Return one page of the listing and whether the service has more."""
        payload = self._get_json(f'{self.base_url}/pokemon', params={'limit': limit, 'offset': offset},
                                 cancel=cancel)
        has_next = bool(payload.get('next')) if isinstance(payload, dict) else False
        return self._entries(payload), has_next

    def list_all_entries(self, cancel: Optional[CancelToken] = None) -> List[CatalogEntry]:
        """Fetch the whole catalog once; later calls reuse the cached list."""
        with self._lock:
            if self._all_entries is None:
                payload = self._get_json(f'{self.base_url}/pokemon',
                                         params={'limit': self.catalog_limit, 'offset': 0}, cancel=cancel)
                self._all_entries = self._entries(payload)
                LOGGER.info('catalog universe loaded: %d entries', len(self._all_entries))
            return list(self._all_entries)

    def fetch_detail(self, url: str, cancel: Optional[CancelToken] = None) -> Dict[str, Any]:
        return self._get_json(url, cancel=cancel)

    def fetch_detail_by_id(self, poke_id, cancel: Optional[CancelToken] = None) -> Dict[str, Any]:
        return self._get_json(f'{self.base_url}/pokemon/{poke_id}', cancel=cancel)

    def fetch_species(self, url: str, cancel: Optional[CancelToken] = None) -> Dict[str, Any]:
        return self._get_json(url, cancel=cancel)

    def list_types(self, cancel: Optional[CancelToken] = None) -> List[str]:
        """Names of every type tag the service knows, in service order."""
        with self._lock:
            if self._types is None:
                payload = self._get_json(f'{self.base_url}/type', cancel=cancel)
                self._types = [e.name for e in self._entries(payload) if e.name]
            return list(self._types)
