"""
Dependency container / composition root for the Pokepick service.
Provides a single place to instantiate Config, repositories, services, the
catalog client and the browse session registry.
This helps keep wiring in one module and improves testability.
"""
from typing import Any, Optional

from .catalog_client import CatalogClient
from .config import Config, get_config
from .pipeline import BrowseSessionRegistry
from .repo_factory import get_repositories
from .services import ContactService, TeamService


class Container:
    def __init__(self, cfg: Optional[Config] = None, http_session: Optional[Any] = None):
        self.cfg = cfg or get_config()
        # repository factory uses cfg to decide implementation
        self.team_repo, self.contact_repo = get_repositories(self.cfg)
        self.team_service = TeamService(self.team_repo, max_size=self.cfg.MAX_TEAM_SIZE)
        self.contact_service = ContactService(self.contact_repo)
        # http_session lets tests swap the network for a fake
        self.catalog = CatalogClient.from_config(self.cfg, session=http_session)
        self.browse = BrowseSessionRegistry(self.catalog, self.cfg)

    def shutdown(self) -> None:
        self.browse.shutdown()


def build_container(cfg: Optional[Config] = None, http_session: Optional[Any] = None) -> Container:
    """Create and return a Container instance wired for the current app.

    Keep instantiation here rather than spread across modules so tests can
    create lightweight containers with test doubles.
    """
    return Container(cfg, http_session=http_session)
