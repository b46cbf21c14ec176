"""Browse sessions: incremental search/filter/sort over the remote catalog.

A `BrowseSession` holds one client's filters and the window of results
loaded so far. The active acquisition mode is derived from the filters
with the precedence search > global sort > global type filter > default
paging.

Every filter change bumps the session generation, cancels the token of
the previous generation and empties the window. `load_more` captures the
generation it started under and only applies its result if that
generation is still current, so a response that arrives after the user
moved on is dropped even if the request itself could not be aborted.
"""
import threading
import uuid
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple

from .catalog_client import CancelToken, CatalogClient
from .config import Config, get_config
from .dto import STAT_KEYS, AcquisitionMode, CatalogEntry, CreatureDetail, SortOrder
from .errors import MalformedRecordError, NetworkError, NotFoundError, RequestCancelled, ValidationError
from .logging_setup import get_logger
from .normalizer import normalize

LOGGER = get_logger(__name__)

_UNSET = object()


@dataclass(frozen=True)
class BrowseFilters:
    search_text: str = ''
    selected_type: Optional[str] = None
    sort_key: Optional[str] = None
    sort_order: SortOrder = SortOrder.DESC

    def mode(self, min_search_length: int = 2) -> AcquisitionMode:
        if len(self.search_text) >= min_search_length:
            return AcquisitionMode.SEARCH
        if self.sort_key:
            return AcquisitionMode.GLOBAL_SORT
        if self.selected_type:
            return AcquisitionMode.GLOBAL_TYPE_FILTER
        return AcquisitionMode.DEFAULT_PAGINATED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search": self.search_text,
            "type": self.selected_type,
            "sort": self.sort_key,
            "order": self.sort_order.value,
        }


def coerce_sort_order(value: Any) -> SortOrder:
    if isinstance(value, SortOrder):
        return value
    try:
        return SortOrder(str(value).lower())
    except ValueError:
        raise ValidationError(f"sort order must be 'asc' or 'desc', got {value!r}")


def coerce_sort_key(value: Any) -> Optional[str]:
    if not value:
        return None
    if value not in STAT_KEYS:
        raise ValidationError(f"Unknown stat {value!r}; expected one of {', '.join(STAT_KEYS)}")
    return value


def sort_by_stat(details: Sequence[CreatureDetail], key: str, order: SortOrder) -> List[CreatureDetail]:
    """Stable sort: creatures with equal stats keep their incoming order in both directions."""
    return sorted(details, key=lambda d: d.stat(key), reverse=order is SortOrder.DESC)


def filter_by_type(details: Sequence[CreatureDetail], type_name: str) -> List[CreatureDetail]:
    return [d for d in details if d.has_type(type_name)]


class Debouncer:
    """Run `fn` only after calls have stopped arriving for `delay` seconds."""

    def __init__(self, delay: float, fn: Callable[..., Any],
                 timer_factory: Callable[..., Any] = threading.Timer):
        self.delay = delay
        self.fn = fn
        self._timer_factory = timer_factory
        self._timer = None
        self._lock = threading.Lock()

    def __call__(self, *args: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = self._timer_factory(self.delay, self.fn, args)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class UniverseCache:
    """Normalized details of the whole catalog.

    Filled once by the first caller; read-only afterwards and safe to share
    between sessions. `loader` returns the details it got and whether every
    catalog entry made it. A fill that is cancelled, fails or comes back
    incomplete leaves the cache empty so the next caller starts over; an
    incomplete result is still handed to the caller that asked for it.
    """

    def __init__(self):
        self._details: Optional[Tuple[CreatureDetail, ...]] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._details is not None

    def get(self, loader: Callable[[CancelToken], Tuple[List[CreatureDetail], bool]],
            token: CancelToken) -> Tuple[Tuple[CreatureDetail, ...], bool]:
        """Return `(details, complete)`; only complete fills are kept."""
        with self._lock:
            if self._details is not None:
                return self._details, True
            token.raise_if_cancelled()
            details, complete = loader(token)
            details = tuple(details)
            if complete:
                self._details = details
                LOGGER.info('universe cache filled with %d creatures', len(details))
            else:
                LOGGER.warning('universe fill incomplete (%d creatures); not cached', len(details))
            return details, complete

    def clear(self) -> None:
        with self._lock:
            self._details = None


class BrowseSession:
    def __init__(self, client: CatalogClient, cfg: Optional[Config] = None,
                 executor: Optional[ThreadPoolExecutor] = None, universe: Optional[UniverseCache] = None,
                 timer_factory: Callable[..., Any] = threading.Timer, session_id: Optional[str] = None):
        self.client = client
        self.cfg = cfg or get_config()
        self.session_id = session_id or uuid.uuid4().hex
        self.universe = universe or UniverseCache()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=self.cfg.FETCH_WORKERS)
        self._debouncer = Debouncer(self.cfg.SEARCH_DEBOUNCE_SECONDS, self.set_search, timer_factory)

        self._lock = threading.Lock()
        self._filters = BrowseFilters()
        self._generation = 0
        self._token = CancelToken()
        self._items: List[CreatureDetail] = []
        self._seen: Set[int] = set()
        self._offset = 0
        self._has_more = True
        self._loading = False
        self._error: Optional[str] = None
        # sorted / type-filtered views of the universe, keyed by their parameters
        self._derived: Dict[Tuple[Any, ...], List[CreatureDetail]] = {}

    # -- filter inputs -------------------------------------------------

    @property
    def filters(self) -> BrowseFilters:
        return self._filters

    @property
    def mode(self) -> AcquisitionMode:
        return self._filters.mode(self.cfg.SEARCH_MIN_LENGTH)

    def set_filters(self, search_text=_UNSET, selected_type=_UNSET, sort_key=_UNSET,
                    sort_order=_UNSET) -> bool:
        """Apply filter changes. Returns True when the window was reset."""
        changes: Dict[str, Any] = {}
        if search_text is not _UNSET:
            changes['search_text'] = (search_text or '').strip()
        if selected_type is not _UNSET:
            changes['selected_type'] = selected_type or None
        if sort_key is not _UNSET:
            changes['sort_key'] = coerce_sort_key(sort_key)
        if sort_order is not _UNSET:
            changes['sort_order'] = coerce_sort_order(sort_order)

        with self._lock:
            new = replace(self._filters, **changes)
            if new == self._filters:
                return False
            old = self._filters
            self._filters = new
            if (old.sort_key, old.sort_order, old.selected_type) != (new.sort_key, new.sort_order, new.selected_type):
                self._derived.clear()
            self._reset_window_locked()
        LOGGER.debug('session %s filters -> %s (%s)', self.session_id, new.to_dict(), self.mode.value)
        return True

    def set_search(self, text: str) -> bool:
        return self.set_filters(search_text=text)

    def type_search(self, text: str) -> None:
        """Keystroke entry point: long enough queries wait for the quiet period."""
        text = (text or '').strip()
        if len(text) < self.cfg.SEARCH_MIN_LENGTH:
            self._debouncer.cancel()
            self.set_search(text)
            return
        self._debouncer(text)

    def toggle_sort_order(self) -> bool:
        return self.set_filters(sort_order=self._filters.sort_order.flipped())

    def clear_filters(self) -> bool:
        self._debouncer.cancel()
        return self.set_filters(search_text='', selected_type=None, sort_key=None, sort_order=SortOrder.DESC)

    def _reset_window_locked(self) -> None:
        self._token.cancel()
        self._token = CancelToken()
        self._generation += 1
        self._items = []
        self._seen = set()
        self._offset = 0
        self._has_more = True
        self._loading = False
        self._error = None

    # -- loading -------------------------------------------------------

    def load_more(self) -> bool:
        """Fetch and append the next window.

        Returns False without doing anything when the window is exhausted or
        another load of the same generation is already running.
        """
        with self._lock:
            if self._loading or not self._has_more:
                return False
            self._loading = True
            self._error = None
            generation = self._generation
            token = self._token
            filters = self._filters
            offset = self._offset

        outcome = None
        error = None
        applied = False
        try:
            outcome = self._fetch_window(filters, offset, token)
        except RequestCancelled:
            LOGGER.debug('session %s: window at offset %d superseded', self.session_id, offset)
        except (NetworkError, MalformedRecordError) as e:
            LOGGER.warning('session %s: window at offset %d failed: %s', self.session_id, offset, e)
            error = str(e)
        finally:
            with self._lock:
                if generation == self._generation and not token.cancelled:
                    self._loading = False
                    if outcome is not None:
                        self._apply_window_locked(*outcome)
                        applied = True
                    elif error is not None:
                        self._error = error
        return applied

    def retry(self) -> bool:
        with self._lock:
            self._error = None
        return self.load_more()

    def _apply_window_locked(self, batch: List[CreatureDetail], has_more: bool) -> None:
        for d in batch:
            if d.id in self._seen:
                continue
            self._seen.add(d.id)
            self._items.append(d)
        self._offset += self.cfg.PAGE_SIZE
        self._has_more = has_more

    def _fetch_window(self, filters: BrowseFilters, offset: int,
                      token: CancelToken) -> Tuple[List[CreatureDetail], bool]:
        page = self.cfg.PAGE_SIZE
        mode = filters.mode(self.cfg.SEARCH_MIN_LENGTH)

        if mode is AcquisitionMode.SEARCH:
            matches = self._search_candidates(filters.search_text, token)
            window = matches[offset:offset + page]
            if not window:
                return [], False
            batch = self._refine(self._fetch_details(window, token, page)[0], filters)
            return batch, offset + page < len(matches) and len(batch) >= page

        if mode in (AcquisitionMode.GLOBAL_SORT, AcquisitionMode.GLOBAL_TYPE_FILTER):
            ranked = self._global_view(filters, token)
            return list(ranked[offset:offset + page]), offset + page < len(ranked)

        entries, has_next = self.client.list_page(page, offset, cancel=token)
        batch = self._refine(self._fetch_details(entries, token, page)[0], filters)
        return batch, has_next and len(entries) >= page

    def _search_candidates(self, text: str, token: CancelToken) -> List[CatalogEntry]:
        needle = text.lower()
        matches = [e for e in self.client.list_all_entries(cancel=token) if needle in e.name.lower()]
        return matches[:self.cfg.SEARCH_MATCH_CAP]

    def _refine(self, batch: List[CreatureDetail], filters: BrowseFilters) -> List[CreatureDetail]:
        # local type filter / sort over a single fetched batch
        if filters.selected_type:
            batch = filter_by_type(batch, filters.selected_type)
        if filters.sort_key:
            batch = sort_by_stat(batch, filters.sort_key, filters.sort_order)
        return batch

    def _global_view(self, filters: BrowseFilters, token: CancelToken) -> List[CreatureDetail]:
        key = (filters.sort_key, filters.sort_order, filters.selected_type)
        with self._lock:
            cached = self._derived.get(key)
        if cached is not None:
            return cached
        universe, complete = self.universe.get(self._load_universe, token)
        view: List[CreatureDetail] = list(universe)
        if filters.sort_key:
            view = sort_by_stat(view, filters.sort_key, filters.sort_order)
        if filters.selected_type:
            # filter the sorted list; relative order is preserved
            view = filter_by_type(view, filters.selected_type)
        with self._lock:
            if complete and not token.cancelled:
                self._derived[key] = view
        return view

    def _load_universe(self, token: CancelToken) -> Tuple[List[CreatureDetail], bool]:
        entries = self.client.list_all_entries(cancel=token)
        details, failed = self._fetch_details(entries, token, self.cfg.UNIVERSE_BATCH_SIZE)
        if failed and not details:
            raise NetworkError(f'Could not fetch any of {len(entries)} creatures')
        return details, not failed

    def _fetch_details(self, entries: Sequence[CatalogEntry], token: CancelToken,
                       batch_size: int) -> Tuple[List[CreatureDetail], int]:
        """Fetch and normalize `entries` batch by batch, keeping catalog order.

        Items of one batch are fetched concurrently and the next batch starts
        once they are all in. Returns the details and the number of items
        dropped because their fetch failed; malformed records are skipped
        without counting. A cancelled token aborts the whole run.
        """
        details: List[CreatureDetail] = []
        failed = 0
        for start in range(0, len(entries), batch_size):
            token.raise_if_cancelled()
            batch = entries[start:start + batch_size]
            for detail, lost in self._executor.map(lambda entry: self._fetch_one(entry, token), batch):
                if detail is not None:
                    details.append(detail)
                failed += lost
        return details, failed

    def _fetch_one(self, entry: CatalogEntry, token: CancelToken) -> Tuple[Optional[CreatureDetail], bool]:
        try:
            return normalize(self.client.fetch_detail(entry.url, cancel=token)), False
        except MalformedRecordError as e:
            LOGGER.warning('skipping malformed record %s: %s', entry.name, e)
            return None, False
        except NetworkError as e:
            LOGGER.warning('dropping %s from batch: %s', entry.name, e)
            return None, True

    # -- state ---------------------------------------------------------

    @property
    def items(self) -> List[CreatureDetail]:
        with self._lock:
            return list(self._items)

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        return self._error

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "session_id": self.session_id,
                "mode": self._filters.mode(self.cfg.SEARCH_MIN_LENGTH).value,
                "filters": self._filters.to_dict(),
                "items": [d.to_dict() for d in self._items],
                "count": len(self._items),
                "offset": self._offset,
                "has_more": self._has_more,
                "loading": self._loading,
                "error": self._error,
            }

    def close(self) -> None:
        self._debouncer.cancel()
        with self._lock:
            self._token.cancel()
            self._generation += 1
            self._loading = False
        if self._owns_executor:
            self._executor.shutdown(wait=False)


class BrowseSessionRegistry:
    """Owns the browse sessions of every connected client.

    Sessions share one fetch pool and one universe cache. When more than
    `max_sessions` are open the least recently used one is closed.
    """

    def __init__(self, client: CatalogClient, cfg: Optional[Config] = None,
                 timer_factory: Callable[..., Any] = threading.Timer):
        self.client = client
        self.cfg = cfg or get_config()
        self.universe = UniverseCache()
        self._executor = ThreadPoolExecutor(max_workers=self.cfg.FETCH_WORKERS)
        self._timer_factory = timer_factory
        self._sessions: 'OrderedDict[str, BrowseSession]' = OrderedDict()
        self._lock = threading.Lock()

    def create(self) -> BrowseSession:
        session = BrowseSession(self.client, self.cfg, executor=self._executor, universe=self.universe,
                                timer_factory=self._timer_factory)
        evicted = []
        with self._lock:
            self._sessions[session.session_id] = session
            while len(self._sessions) > self.cfg.MAX_BROWSE_SESSIONS:
                _, old = self._sessions.popitem(last=False)
                evicted.append(old)
        for old in evicted:
            LOGGER.info('evicting browse session %s', old.session_id)
            old.close()
        return session

    def get(self, session_id: str) -> BrowseSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise NotFoundError('Browse session not found')
            self._sessions.move_to_end(session_id)
            return session

    def close(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise NotFoundError('Browse session not found')
        session.close()

    def __len__(self) -> int:
        return len(self._sessions)

    def shutdown(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for s in sessions:
            s.close()
        self._executor.shutdown(wait=False)
