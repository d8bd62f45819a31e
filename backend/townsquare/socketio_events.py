from flask import current_app, request
from townsquare import socketio, get_coordinator
from townsquare.rooms import GameState


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _is_name(value) -> bool:
    return isinstance(value, str) and bool(value)


def _drop(event: str, data) -> None:
    """Log a structurally invalid payload; the caller gets no reply."""
    current_app.logger.warning(f"[{event}-invalid] sid={_get_sid()} payload={data!r}")


def handle_connect(auth=None):
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    current_app.logger.info(f"[disconnect] sid={_get_sid()} reason={reason}")
    get_coordinator().disconnect(_get_sid())


def handle_join_room(data):
    data = data if isinstance(data, dict) else {}
    room = data.get('room')
    client_id = data.get('clientId')
    if not _is_name(room) or not _is_name(client_id):
        _drop('joinRoom', data)
        return
    get_coordinator().join_room(_get_sid(), room, client_id)


def handle_take_seat(data):
    data = data if isinstance(data, dict) else {}
    room = data.get('room')
    player_name = data.get('playerName')
    if not _is_name(room) or not _is_name(player_name):
        _drop('takeSeat', data)
        return
    get_coordinator().take_seat(_get_sid(), room, player_name)


def handle_pass_roles(data):
    if not data:
        current_app.logger.warning(f"[passRoles-invalid] sid={_get_sid()} no data received")
        return
    room = data.get('room') if isinstance(data, dict) else None
    private_players = data.get('privatePlayers') if isinstance(data, dict) else None
    if not _is_name(room) or not isinstance(private_players, list):
        _drop('passRoles', data)
        return
    get_coordinator().pass_roles(_get_sid(), room, private_players)


def handle_start_game(data):
    state = GameState.from_payload(data)
    if state is None:
        _drop('startGame', data)
        return
    get_coordinator().start_game(_get_sid(), state)


def handle_update_game_state(data):
    state = GameState.from_payload(data)
    if state is None:
        _drop('updateGameState', data)
        return
    get_coordinator().update_game_state(_get_sid(), state)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Bind every inbound room event on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('joinRoom', handle_join_room, namespace=namespace)
    socketio.on_event('takeSeat', handle_take_seat, namespace=namespace)
    socketio.on_event('passRoles', handle_pass_roles, namespace=namespace)
    socketio.on_event('startGame', handle_start_game, namespace=namespace)
    socketio.on_event('updateGameState', handle_update_game_state, namespace=namespace)
