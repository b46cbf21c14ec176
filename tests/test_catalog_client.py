import pytest
import requests

from fakes import BASE, FakePokeAPI, FakeResponse, numbered_catalog
from pokepick.catalog_client import CancelToken, CatalogClient
from pokepick.errors import NetworkError, RequestCancelled


def test_list_page_returns_entries_and_next_flag(client_for):
    api = FakePokeAPI(numbered_catalog(45))
    client = client_for(api)
    entries, has_next = client.list_page(20, 0)
    assert [e.name for e in entries][:2] == ['mon-1', 'mon-2']
    assert len(entries) == 20
    assert has_next is True
    last, has_next = client.list_page(20, 40)
    assert len(last) == 5
    assert has_next is False


def test_list_all_entries_is_cached(client_for):
    api = FakePokeAPI(numbered_catalog(30))
    client = client_for(api)
    first = client.list_all_entries()
    second = client.list_all_entries()
    assert len(first) == 30
    assert first == second
    assert api.calls.count(f'{BASE}/pokemon') == 1


def test_non_success_status_raises_network_error(client_for):
    api = FakePokeAPI(numbered_catalog(3))
    client = client_for(api)
    with pytest.raises(NetworkError) as exc:
        client.fetch_detail(f'{BASE}/pokemon/999/')
    assert exc.value.status == 404


def test_transport_failure_raises_network_error():
    class Broken:
        def get(self, url, params=None, timeout=None):
            raise requests.ConnectionError('connection refused')

    client = CatalogClient(base_url=BASE, session=Broken())
    with pytest.raises(NetworkError):
        client.list_page(20, 0)


def test_non_json_body_raises_network_error():
    class Html:
        def get(self, url, params=None, timeout=None):
            return FakeResponse(200, None)

    with pytest.raises(NetworkError):
        CatalogClient(base_url=BASE, session=Html()).fetch_detail(f'{BASE}/pokemon/1/')


def test_cancelled_token_blocks_request(client_for):
    api = FakePokeAPI(numbered_catalog(3))
    client = client_for(api)
    token = CancelToken()
    token.cancel()
    with pytest.raises(RequestCancelled):
        client.fetch_detail(api.detail_url(1), cancel=token)
    assert api.calls == []


def test_token_cancelled_while_in_flight_discards_response(client_for):
    api = FakePokeAPI(numbered_catalog(3))
    client = client_for(api)
    token = CancelToken()
    api.before_get = lambda url: token.cancel()
    with pytest.raises(RequestCancelled):
        client.fetch_detail(api.detail_url(1), cancel=token)


def test_list_types(client_for):
    api = FakePokeAPI(numbered_catalog(1))
    client = client_for(api)
    assert client.list_types() == ['fire', 'water', 'grass', 'electric', 'normal']
    client.list_types()
    assert api.calls.count(f'{BASE}/type') == 1
