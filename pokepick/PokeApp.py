from flask import Blueprint, Flask, current_app, jsonify, request
from flask_cors import CORS

from .composer import TeamComposer, load_profile
from .config import get_config
from .di import build_container
from .errors import NetworkError, NotFoundError, PokepickError, RemoteConflictError, ValidationError
from .logging_setup import configure_logging, get_logger

LOGGER = get_logger(__name__)

api = Blueprint('pokepick', __name__)


def create_app(config=None, container=None):
    """Build the Flask app.

    `container` lets tests hand in a Container wired with fakes; otherwise
    one is built from `config` (or the environment).
    """
    cfg = config or (container.cfg if container is not None else get_config())
    configure_logging(cfg.LOG_LEVEL)
    app = Flask(__name__)
    CORS(app, origins=cfg.CORS_ORIGINS)
    app.extensions['pokepick'] = container or build_container(cfg)
    app.register_blueprint(api)
    return app


def _container():
    return current_app.extensions['pokepick']


def _error(e: PokepickError):
    return jsonify(error=e.message), e.http_status


def _json_body():
    payload = request.get_json(force=True, silent=True)
    return payload if isinstance(payload, dict) else {}


@api.route('/')
def index():
    return jsonify(message="Pokepick backend running")


@api.route('/ping')
def ping():
    return jsonify(message="pong")


# --- Team store ---

@api.route('/api/team', methods=['GET'])
def get_team():
    return jsonify(team=_container().team_service.get_team())


@api.route('/api/team/add', methods=['POST'])
def add_to_team():
    pokemon = _json_body().get('pokemon')
    try:
        team = _container().team_service.add(pokemon)
        return jsonify(team=team)
    except (ValidationError, RemoteConflictError) as e:
        return _error(e)
    except Exception as e:
        LOGGER.exception('team add failed')
        return jsonify(error=str(e)), 500


@api.route('/api/team/remove', methods=['POST'])
def remove_from_team():
    try:
        team = _container().team_service.remove(_json_body().get('id'))
        return jsonify(team=team)
    except ValidationError as e:
        return _error(e)
    except Exception as e:
        LOGGER.exception('team remove failed')
        return jsonify(error=str(e)), 500


@api.route('/api/team/clear', methods=['POST'])
def clear_team():
    return jsonify(team=_container().team_service.clear())


@api.route('/api/v1/team/compose', methods=['POST'])
def compose_team_member():
    """Add a creature with four chosen moves.

    Body: { "id": 25, "moves": ["thunderbolt", ...] }
    The creature's move list is fetched from the catalog so only moves it
    can actually learn are accepted.
    """
    payload = _json_body()
    poke_id = payload.get('id')
    if not poke_id:
        return jsonify(error='Missing pokemon id'), 400
    c = _container()
    try:
        composer = TeamComposer(load_profile(c.catalog, poke_id), c.team_service)
        team = composer.submit(list(payload.get('moves') or []))
        return jsonify(team=team)
    except PokepickError as e:
        return _error(e)


# --- Contact store ---

@api.route('/api/contact/submit', methods=['POST'])
def submit_contact():
    payload = _json_body()
    try:
        msg = _container().contact_service.submit(payload.get('name'), payload.get('email'),
                                                  payload.get('subject'), payload.get('message'))
    except ValidationError as e:
        return _error(e)
    return jsonify(success=True,
                   message="Thank you for your message! We'll get back to you soon.",
                   messageId=msg.id)


@api.route('/api/contact/messages', methods=['GET'])
def list_contact_messages():
    return jsonify(messages=_container().contact_service.list_messages())


@api.route('/api/contact/messages/<int:message_id>/read', methods=['PUT'])
def mark_contact_message_read(message_id):
    try:
        msg = _container().contact_service.mark_read(message_id)
        return jsonify(success=True, message=msg)
    except NotFoundError as e:
        return _error(e)


@api.route('/api/contact/messages/<int:message_id>', methods=['DELETE'])
def delete_contact_message(message_id):
    try:
        _container().contact_service.delete(message_id)
        return jsonify(success=True, message='Message deleted')
    except NotFoundError as e:
        return _error(e)


# --- Catalog passthrough ---

@api.route('/api/v1/types')
def list_types():
    try:
        return jsonify(types=_container().catalog.list_types())
    except NetworkError as e:
        return _error(e)


@api.route('/api/v1/pokemon/<int:poke_id>')
def get_pokemon(poke_id):
    try:
        profile = load_profile(_container().catalog, poke_id)
        return jsonify(pokemon=profile.to_dict())
    except PokepickError as e:
        return _error(e)


# --- Browse sessions ---

_FILTER_FIELDS = {'search': 'search_text', 'type': 'selected_type', 'sort': 'sort_key', 'order': 'sort_order'}


@api.route('/api/v1/browse', methods=['POST'])
def create_browse_session():
    """Open a browse session and load its first window."""
    session = _container().browse.create()
    changes = {_FILTER_FIELDS[k]: v for k, v in _json_body().items() if k in _FILTER_FIELDS}
    try:
        if changes:
            session.set_filters(**changes)
    except ValidationError as e:
        _container().browse.close(session.session_id)
        return _error(e)
    session.load_more()
    return jsonify(session_id=session.session_id, window=session.snapshot()), 201


@api.route('/api/v1/browse/<session_id>', methods=['GET'])
def get_browse_session(session_id):
    try:
        return jsonify(window=_container().browse.get(session_id).snapshot())
    except NotFoundError as e:
        return _error(e)


@api.route('/api/v1/browse/<session_id>', methods=['DELETE'])
def close_browse_session(session_id):
    try:
        _container().browse.close(session_id)
        return jsonify(closed=True)
    except NotFoundError as e:
        return _error(e)


@api.route('/api/v1/browse/<session_id>/filters', methods=['PUT'])
def update_browse_filters(session_id):
    """Change any of search/type/sort/order; the window restarts from scratch.

    The first window of the new configuration is loaded before answering
    unless `?load=0` is passed.
    """
    changes = {_FILTER_FIELDS[k]: v for k, v in _json_body().items() if k in _FILTER_FIELDS}
    try:
        session = _container().browse.get(session_id)
        session.set_filters(**changes)
    except (NotFoundError, ValidationError) as e:
        return _error(e)
    if request.args.get('load', '1') not in ('0', 'false', 'no'):
        session.load_more()
    return jsonify(window=session.snapshot())


@api.route('/api/v1/browse/<session_id>/keystroke', methods=['POST'])
def browse_keystroke(session_id):
    """Raw search-box input; applied once typing pauses."""
    try:
        session = _container().browse.get(session_id)
    except NotFoundError as e:
        return _error(e)
    session.type_search(str(_json_body().get('search') or ''))
    return jsonify(accepted=True), 202


@api.route('/api/v1/browse/<session_id>/more', methods=['POST'])
def browse_load_more(session_id):
    try:
        session = _container().browse.get(session_id)
    except NotFoundError as e:
        return _error(e)
    loaded = session.load_more()
    return jsonify(loaded=loaded, window=session.snapshot())


@api.route('/api/v1/browse/<session_id>/retry', methods=['POST'])
def browse_retry(session_id):
    try:
        session = _container().browse.get(session_id)
    except NotFoundError as e:
        return _error(e)
    loaded = session.retry()
    return jsonify(loaded=loaded, window=session.snapshot())


if __name__ == '__main__':
    create_app().run(debug=True)
