import pytest
import requests

from fakes import make_raw
from pokepick.PokeApp import create_app
from pokepick.composer import TeamComposer
from pokepick.config import Config
from pokepick.di import build_container
from pokepick.errors import NetworkError, RemoteConflictError
from pokepick.normalizer import normalize_profile
from pokepick.team_client import TeamStoreClient


class FlaskSession:
    """requests-like session that forwards calls to a Flask test client."""

    def __init__(self, test_client):
        self.test_client = test_client

    def request(self, method, url, json=None, timeout=None):
        path = url.split('://', 1)[-1]
        path = path[path.index('/'):]
        resp = self.test_client.open(path, method=method, json=json)
        return _Resp(resp.status_code, resp.get_json(silent=True))


class _Resp:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError('no JSON')
        return self._payload


@pytest.fixture
def store():
    container = build_container(Config(REPOSITORY_IMPL='memory'))
    app = create_app(container=container)
    yield TeamStoreClient('http://pokepick.test/api/team', session=FlaskSession(app.test_client()))
    container.shutdown()


def test_roundtrip_against_app(store):
    assert store.get_team() == []
    team = store.add({'id': 1, 'name': 'bulbasaur', 'moves': ['a', 'b', 'c', 'd']})
    assert [p['id'] for p in team] == [1]
    assert store.remove(1) == []
    store.add({'id': 2, 'name': 'ivysaur'})
    assert store.clear() == []


def test_conflict_message_is_passed_through(store):
    store.add({'id': 1, 'name': 'bulbasaur'})
    with pytest.raises(RemoteConflictError) as exc:
        store.add({'id': 1, 'name': 'bulbasaur'})
    assert str(exc.value) == 'Pokemon already in team'


def test_composer_against_remote_store(store):
    profile = normalize_profile(make_raw(6, 'charizard', moves=('ember', 'fly', 'slash', 'roar', 'flamethrower')))
    composer = TeamComposer(profile, store)
    team = composer.submit(['ember', 'fly', 'slash', 'roar'])
    assert team[0]['name'] == 'charizard'
    assert team[0]['moves'] == ['ember', 'fly', 'slash', 'roar']

    again = TeamComposer(profile, store)
    with pytest.raises(RemoteConflictError):
        again.submit(['ember', 'fly', 'slash', 'flamethrower'])
    assert again.team is None


def test_transport_failure_is_network_error():
    class Down:
        def request(self, method, url, json=None, timeout=None):
            raise requests.ConnectionError('refused')

    with pytest.raises(NetworkError):
        TeamStoreClient('http://nowhere.test/api/team', session=Down()).get_team()


def test_server_error_is_network_error():
    class Failing:
        def request(self, method, url, json=None, timeout=None):
            return _Resp(500, {'error': 'kaput'})

    with pytest.raises(NetworkError, match='kaput'):
        TeamStoreClient('http://nowhere.test/api/team', session=Failing()).get_team()


def test_non_object_body_is_handled():
    class Listy:
        def __init__(self, status):
            self.status = status

        def request(self, method, url, json=None, timeout=None):
            return _Resp(self.status, ['unexpected'])

    assert TeamStoreClient('http://nowhere.test/api/team', session=Listy(200)).get_team() == []
    with pytest.raises(RemoteConflictError, match='rejected'):
        TeamStoreClient('http://nowhere.test/api/team', session=Listy(400)).get_team()
    with pytest.raises(NetworkError, match='HTTP 503'):
        TeamStoreClient('http://nowhere.test/api/team', session=Listy(503)).get_team()
