import pytest

from pokepick.errors import NotFoundError, RemoteConflictError, ValidationError
from pokepick.repositories.memory_repo import InMemoryContactRepository, InMemoryTeamRepository
from pokepick.repositories.sqlalchemy_repo import (
    SQLAlchemyContactRepository,
    SQLAlchemyTeamRepository,
    create_db_engine,
)
from pokepick.services import ContactService, TeamService


@pytest.fixture(params=['memory', 'sqlalchemy'])
def repos(request):
    if request.param == 'memory':
        return InMemoryTeamRepository(), InMemoryContactRepository()
    engine = create_db_engine('sqlite:///:memory:')
    return SQLAlchemyTeamRepository(engine=engine), SQLAlchemyContactRepository(engine=engine)


def member(poke_id, name='mon'):
    return {'id': poke_id, 'name': f'{name}-{poke_id}', 'image': None, 'types': ['fire'],
            'stats': {'hp': 10}, 'moves': ['a', 'b', 'c', 'd']}


def test_team_add_remove_clear(repos):
    team = TeamService(repos[0])
    assert team.get_team() == []
    team.add(member(1))
    result = team.add(member(4))
    assert [p['id'] for p in result] == [1, 4]
    assert result[1]['moves'] == ['a', 'b', 'c', 'd']
    assert [p['id'] for p in team.remove(1)] == [4]
    assert team.clear() == []


def test_team_rejects_duplicates(repos):
    team = TeamService(repos[0])
    team.add(member(1))
    with pytest.raises(RemoteConflictError, match='already in team'):
        team.add(member(1))
    assert len(team.get_team()) == 1


def test_team_size_limit(repos):
    team = TeamService(repos[0], max_size=6)
    for i in range(1, 7):
        team.add(member(i))
    with pytest.raises(RemoteConflictError, match='more than 6'):
        team.add(member(7))


@pytest.mark.parametrize('payload', [None, {}, {'name': 'x'}, {'id': 'one'}, {'id': True}])
def test_team_rejects_bad_payload(payload):
    with pytest.raises(ValidationError):
        TeamService(InMemoryTeamRepository()).add(payload)


def test_team_remove_requires_id():
    with pytest.raises(ValidationError):
        TeamService(InMemoryTeamRepository()).remove(None)


def test_memory_team_returns_copies():
    repo = InMemoryTeamRepository()
    team = TeamService(repo)
    team.add(member(1))
    team.get_team()[0]['moves'].append('e')
    assert team.get_team()[0]['moves'] == ['a', 'b', 'c', 'd']


def test_contact_submit_and_manage(repos):
    ticks = iter([1000.0, 1000.0, 1001.5])
    contact = ContactService(repos[1], clock=lambda: next(ticks))
    first = contact.submit(' Ash ', 'ash@pallet.town', 'Hello', ' Gotta catch them all ')
    second = contact.submit('Misty', 'misty@cerulean.city', 'Hi', 'Water types rule')
    third = contact.submit('Brock', 'brock@pewter.city', 'Rocks', 'Onix')
    assert first.id == 1000000
    # same millisecond: id is bumped to stay unique
    assert second.id == 1000001
    assert third.id == 1001500
    assert first.name == 'Ash'
    assert first.message == 'Gotta catch them all'
    assert first.status == 'unread'

    msgs = contact.list_messages()
    assert [m['id'] for m in msgs] == [1000000, 1000001, 1001500]

    read = contact.mark_read(second.id)
    assert read['status'] == 'read'
    assert [m['status'] for m in contact.list_messages()] == ['unread', 'read', 'unread']

    contact.delete(first.id)
    assert [m['id'] for m in contact.list_messages()] == [1000001, 1001500]


def test_contact_unknown_ids(repos):
    contact = ContactService(repos[1])
    with pytest.raises(NotFoundError):
        contact.mark_read(42)
    with pytest.raises(NotFoundError):
        contact.delete(42)


@pytest.mark.parametrize('fields, message', [
    (('', 'a@b.co', 's', 'm'), 'All fields are required'),
    (('n', 'a@b.co', '   ', 'm'), 'All fields are required'),
    (('n', None, 's', 'm'), 'All fields are required'),
    (('n', 'not-an-email', 's', 'm'), 'Please enter a valid email address'),
    (('n', 'a @b.co', 's', 'm'), 'Please enter a valid email address'),
])
def test_contact_validation(fields, message):
    with pytest.raises(ValidationError) as exc:
        ContactService(InMemoryContactRepository()).submit(*fields)
    assert str(exc.value) == message


@pytest.mark.parametrize('poke_id', ['one', '1', 1.5, True])
def test_team_remove_ignores_non_integer_ids(repos, poke_id):
    team = TeamService(repos[0])
    team.add(member(1))
    assert [p['id'] for p in team.remove(poke_id)] == [1]
