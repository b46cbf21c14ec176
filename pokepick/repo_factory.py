from typing import Any, Tuple

from .config import Config


def get_repositories(cfg: Config) -> Tuple[Any, Any]:
    """Return (team_repo, contact_repo) for the configured implementation."""
    impl = (cfg.REPOSITORY_IMPL or 'memory').lower()
    if impl in ('memory', 'inmemory', 'in-memory'):
        from .repositories.memory_repo import InMemoryContactRepository, InMemoryTeamRepository
        return InMemoryTeamRepository(), InMemoryContactRepository()
    if impl in ('sql', 'sqlalchemy', 'db'):
        # Lazy import to avoid importing SQLAlchemy when not needed
        from .repositories.sqlalchemy_repo import (
            SQLAlchemyContactRepository,
            SQLAlchemyTeamRepository,
            create_db_engine,
        )
        engine = create_db_engine(cfg.DATABASE_URL)
        return SQLAlchemyTeamRepository(engine=engine), SQLAlchemyContactRepository(engine=engine)
    raise NotImplementedError(f"Unknown repository implementation {cfg.REPOSITORY_IMPL!r}; use 'memory' or 'sqlalchemy'.")
