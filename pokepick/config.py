import os
from typing import Any


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f'{name} must be an integer, got {raw!r}')


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f'{name} must be a number, got {raw!r}')


class Config:
    # Remote catalog service (PokeAPI)
    POKEAPI_BASE_URL = os.getenv('POKEAPI_BASE_URL', 'https://pokeapi.co/api/v2').rstrip('/')
    HTTP_TIMEOUT = _env_float('HTTP_TIMEOUT', 10.0)
    # Threads used to fetch the details of one batch concurrently
    FETCH_WORKERS = _env_int('FETCH_WORKERS', 8)
    # Limit passed to the single "list everything" call
    CATALOG_LIMIT = _env_int('CATALOG_LIMIT', 100000)

    # Browsing windows
    PAGE_SIZE = _env_int('PAGE_SIZE', 20)
    UNIVERSE_BATCH_SIZE = _env_int('UNIVERSE_BATCH_SIZE', 40)
    SEARCH_MIN_LENGTH = _env_int('SEARCH_MIN_LENGTH', 2)
    SEARCH_MATCH_CAP = _env_int('SEARCH_MATCH_CAP', 20)
    SEARCH_DEBOUNCE_SECONDS = _env_float('SEARCH_DEBOUNCE_SECONDS', 0.4)
    MAX_BROWSE_SESSIONS = _env_int('MAX_BROWSE_SESSIONS', 256)

    MAX_TEAM_SIZE = _env_int('MAX_TEAM_SIZE', 6)

    # Choose repository implementation: 'memory' or 'sqlalchemy'.
    # Team and contact state live in process memory unless told otherwise.
    REPOSITORY_IMPL = os.getenv('BACKEND_REPO', 'memory')
    DATABASE_URL = os.getenv('DATABASE_URL')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    def __init__(self, **overrides: Any):
        for key, value in overrides.items():
            if not hasattr(type(self), key):
                raise AttributeError(f'Unknown config option: {key}')
            setattr(self, key, value)


def get_config(**overrides: Any) -> Config:
    return Config(**overrides)
