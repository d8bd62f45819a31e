"""In-memory room registry and the event logic that mutates it.

The coordinator owns every room and client binding for the process. Each
operation runs to completion under a single lock, so one inbound event is
fully applied before the next one touches shared state, whichever thread
the Socket.IO server dispatches it on.

Outbound events go through Flask-SocketIO's context helpers, so the
operations must be called from inside a Socket.IO event handler.
"""
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from flask import current_app
from flask_socketio import emit, join_room as sio_join_room

STORY_TELLER = 'story-teller'
SPECTATOR = 'spectator'

HOST_CANNOT_SIT = 'You are the host and cannot take a seat.'
HOST_ONLY_ROLES = 'Only the host can pass out roles'
HOST_ONLY_STATE = 'Only the host can update the game state'


@dataclass
class Player:
    name: str
    connection_id: str
    role: str = ''

    def to_dict(self):
        return {
            'name': self.name,
            'connectionId': self.connection_id,
            'role': self.role,
        }


@dataclass
class HostRef:
    client_id: str
    connection_id: str


@dataclass
class GameState:
    """Host-authoritative snapshot, stored and rebroadcast as received."""
    room: str
    script: Any = ''
    is_started: Any = False
    game_started_on: Any = ''
    players: List[Any] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data) -> Optional['GameState']:
        """Build a snapshot from a startGame/updateGameState payload.

        Returns None when the payload is structurally unusable.
        """
        if not isinstance(data, dict):
            return None
        room = data.get('room')
        players = data.get('players', [])
        if not isinstance(room, str) or not room or not isinstance(players, list):
            return None
        return cls(
            room=room,
            script=data.get('script', ''),
            is_started=data.get('isStarted', False),
            game_started_on=data.get('gameStartedOn', ''),
            players=list(players),
        )

    def to_dict(self):
        return {
            'room': self.room,
            'script': self.script,
            'isStarted': self.is_started,
            'gameStartedOn': self.game_started_on,
            'players': list(self.players),
        }


@dataclass
class Room:
    name: str
    host: Optional[HostRef] = None
    game_state: Optional[GameState] = None
    # connection id -> seated player, insertion order is seating order
    players: Dict[str, Player] = field(default_factory=dict)

    def __post_init__(self):
        if self.game_state is None:
            self.game_state = GameState(room=self.name)

    @property
    def host_connection_id(self) -> Optional[str]:
        return self.host.connection_id if self.host else None

    def find_player(self, name: str) -> Optional[Player]:
        return next((p for p in self.players.values() if p.name == name), None)

    def to_dict(self):
        # Roles are private to each player and stay out of the public summary
        return {
            'room': self.name,
            'hasHost': self.host is not None,
            'players': [{'name': p.name} for p in self.players.values()],
            'gameState': self.game_state.to_dict(),
        }


@dataclass
class ClientBinding:
    connection_id: str
    room: str
    client_id: str


def _log():
    return current_app.logger


def _parse_role_entry(entry):
    """Return (player name, character) for a passRoles entry, or (None, None)."""
    if not isinstance(entry, dict):
        return None, None
    player = entry.get('player')
    character = entry.get('assignedCharacter')
    if not isinstance(player, dict) or not character:
        return None, None
    name = player.get('name')
    if not isinstance(name, str) or not name:
        return None, None
    return name, character


class RoomCoordinator:
    """Authoritative state of every room, keyed by room name."""

    def __init__(self):
        self.rooms: Dict[str, Room] = {}
        # client id -> current connection binding
        self.client_sockets: Dict[str, ClientBinding] = {}
        self._lock = threading.RLock()

    # ---- inbound events ----

    def join_room(self, sid: str, room: str, client_id: str) -> str:
        """Bind the caller to ``room`` and tell it which role it holds."""
        with self._lock:
            room_data = self.rooms.get(room)
            if room_data is None:
                room_data = Room(name=room)
                self.rooms[room] = room_data
                _log().info(f"[room-create] room={room}")

            self.client_sockets[client_id] = ClientBinding(
                connection_id=sid, room=room, client_id=client_id
            )
            sio_join_room(room, sid=sid)

            if room_data.host is None:
                room_data.host = HostRef(client_id=client_id, connection_id=sid)
                role = STORY_TELLER
                _log().info(f"[join] room={room} client={client_id} assigned story teller")
            elif room_data.host.client_id == client_id:
                room_data.host = HostRef(client_id=client_id, connection_id=sid)
                role = STORY_TELLER
                _log().info(f"[join] room={room} client={client_id} rejoined as story teller")
            else:
                role = SPECTATOR
                _log().info(f"[join] room={room} client={client_id} assigned spectator")

            emit('role', {'role': role}, to=sid)
            if room_data.game_state is not None:
                emit('updateGameState', room_data.game_state.to_dict(), to=sid)

            _log().info(f"[room-clients] room={room} clients={self._clients_in(room)}")
            return role

    def take_seat(self, sid: str, room: str, player_name: str) -> None:
        with self._lock:
            room_data = self.rooms.get(room)
            if room_data is None:
                _log().warning(f"[seat-reject] room={room} does not exist")
                return

            if sid == room_data.host_connection_id:
                _log().warning(f"[seat-reject] room={room} host {player_name} cannot take a seat")
                emit('error', {'message': HOST_CANNOT_SIT}, to=sid)
                return

            if room_data.find_player(player_name) is not None:
                _log().warning(f"[seat-reject] room={room} name {player_name} already seated")
                return

            if sid in room_data.players:
                _log().info(
                    f"[seat-reject] room={room} sid={sid} already seated as {room_data.players[sid].name}"
                )
                return

            emit('tookSeat', player_name, to=room)
            room_data.players[sid] = Player(name=player_name, connection_id=sid)
            _log().info(
                f"[seat] room={room} player={player_name} seats={[p.name for p in room_data.players.values()]}"
            )

    def pass_roles(self, sid: str, room: str, private_players: List[Any]) -> None:
        with self._lock:
            room_data = self.rooms.get(room)
            if room_data is None:
                _log().warning(f"[roles-reject] room={room} does not exist")
                return

            if sid != room_data.host_connection_id:
                _log().warning(f"[roles-reject] room={room} sid={sid} is not the host")
                emit('error', {'message': HOST_ONLY_ROLES}, to=sid)
                return

            _log().info(f"[roles] room={room} passing out {len(private_players)} roles")
            for entry in private_players:
                name, character = _parse_role_entry(entry)
                if name is None:
                    _log().warning(f"[roles-skip] room={room} invalid entry {entry!r}")
                    continue
                player = room_data.find_player(name)
                if player is None:
                    _log().warning(f"[roles-skip] room={room} player {name} not found")
                    continue
                player.role = character
                emit('assignedRole', {'name': player.name, 'role': character}, to=player.connection_id)
                _log().info(f"[role] room={room} player={player.name} role={character}")

    def start_game(self, sid: str, state: GameState) -> None:
        """Store ``state`` for its room; any joined connection may do this."""
        with self._lock:
            room_data = self.rooms.get(state.room)
            if room_data is None:
                _log().warning(f"[start-reject] room={state.room} does not exist")
                return
            _log().info(f"[start] room={state.room} started on {state.game_started_on}")
            self._store_and_broadcast(room_data, state)

    def update_game_state(self, sid: str, state: GameState) -> None:
        with self._lock:
            room_data = self.rooms.get(state.room)
            host_sid = room_data.host_connection_id if room_data else None
            if sid != host_sid:
                _log().warning(f"[state-reject] room={state.room} sid={sid} is not the host")
                emit('error', {'message': HOST_ONLY_STATE}, to=sid)
                return
            _log().info(f"[state] room={state.room} game state changed")
            self._store_and_broadcast(room_data, state)

    def disconnect(self, sid: str) -> None:
        with self._lock:
            binding = next(
                (b for b in self.client_sockets.values() if b.connection_id == sid), None
            )
            if binding is None:
                return

            room_data = self.rooms.get(binding.room)
            if room_data is not None and sid in room_data.players:
                player = room_data.players.pop(sid)
                emit('stoodUpFromSeat', player.name, to=binding.room)
                _log().info(f"[stand] room={binding.room} player={player.name}")

            del self.client_sockets[binding.client_id]
            _log().info(
                f"[room-clients] room={binding.room} clients={self._clients_in(binding.room)} after disconnect"
            )

    # ---- read-only views ----

    def get_room(self, room: str) -> Optional[Room]:
        with self._lock:
            return self.rooms.get(room)

    def room_summary(self, room: str) -> Optional[dict]:
        with self._lock:
            room_data = self.rooms.get(room)
            return room_data.to_dict() if room_data else None

    def room_names(self) -> List[dict]:
        with self._lock:
            return [
                {'room': r.name, 'hasHost': r.host is not None, 'seats': len(r.players)}
                for r in self.rooms.values()
            ]

    # ---- helpers ----

    def _store_and_broadcast(self, room_data: Room, state: GameState) -> None:
        room_data.game_state = state
        emit('updateGameState', state.to_dict(), to=room_data.name, include_self=False)

    def _clients_in(self, room: str) -> List[str]:
        return [b.client_id for b in self.client_sockets.values() if b.room == room]
