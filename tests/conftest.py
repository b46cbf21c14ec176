from typing import List

import pytest

from fakes import BASE, FakePokeAPI, FakeTimer
from pokepick.catalog_client import CatalogClient
from pokepick.config import Config


@pytest.fixture
def cfg():
    return Config(POKEAPI_BASE_URL=BASE, FETCH_WORKERS=4, PAGE_SIZE=20, UNIVERSE_BATCH_SIZE=40,
                  SEARCH_MATCH_CAP=20, SEARCH_MIN_LENGTH=2, MAX_BROWSE_SESSIONS=8)


@pytest.fixture
def client_for(cfg):
    def build(api: FakePokeAPI) -> CatalogClient:
        return CatalogClient.from_config(cfg, session=api)
    return build


@pytest.fixture
def timers():
    created: List[FakeTimer] = []

    def factory(delay, fn, args):
        t = FakeTimer(delay, fn, args)
        created.append(t)
        return t

    factory.created = created
    return factory
