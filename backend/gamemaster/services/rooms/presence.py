import logging
import threading
from dataclasses import dataclass, replace
from typing import Dict, Optional

from gamemaster.errors import PresenceConflict
from .broadcast import BroadcastRouter, utc_timestamp

UNAFFILIATED = 'unaffiliated'
CONSOLE = 'console'
DISPLAY = 'display'


@dataclass
class ConnectionPresence:
    connection_id: str
    role: str = UNAFFILIATED
    room_id: Optional[int] = None
    # Only meaningful for displays; an open display window is not casting yet
    is_casting: bool = False
    cast_detection_method: Optional[str] = None
    last_cast_update_at: Optional[str] = None


class PresenceTracker:
    """Live connection roles and the per-room "display is casting" aggregate.

    A connection holds one role at a time. The room's casting state is the
    OR of ``is_casting`` over its display connections; changes to it are
    pushed as ``chromecast-status-change`` to that room.
    """

    def __init__(self, router: BroadcastRouter, logger: Optional[logging.Logger] = None):
        self.router = router
        self.logger = logger or logging.getLogger(__name__)
        self._connections: Dict[str, ConnectionPresence] = {}
        self._lock = threading.Lock()

    def _room_casting(self, room_id) -> bool:
        return any(
            p.is_casting for p in self._connections.values()
            if p.role == DISPLAY and p.room_id == room_id
        )

    def connect(self, connection_id: str) -> None:
        with self._lock:
            self._connections.setdefault(connection_id, ConnectionPresence(connection_id))

    def get(self, connection_id: str) -> Optional[ConnectionPresence]:
        with self._lock:
            presence = self._connections.get(connection_id)
            return replace(presence) if presence else None

    def _assign(self, connection_id: str, role: str, room_id: int) -> Optional[int]:
        """Move a connection to a new role; returns the room it previously belonged to."""
        change = None
        with self._lock:
            presence = self._connections.setdefault(connection_id, ConnectionPresence(connection_id))
            previous_room = presence.room_id
            casting_room = previous_room if presence.role == DISPLAY and presence.is_casting else None
            before = self._room_casting(casting_room) if casting_room is not None else None
            presence.role = role
            presence.room_id = room_id
            presence.is_casting = False
            presence.cast_detection_method = None
            presence.last_cast_update_at = None
            if casting_room is not None:
                after = self._room_casting(casting_room)
                if after != before:
                    change = (casting_room, after)
        if change:
            self.router.cast_status_change(*change)
        self.logger.info(f"[presence] sid={connection_id} role={role} room={room_id} previous={previous_room}")
        return previous_room

    def join_as_console(self, connection_id: str, room_id: int) -> Optional[int]:
        return self._assign(connection_id, CONSOLE, room_id)

    def join_as_display(self, connection_id: str, room_id: int) -> Optional[int]:
        return self._assign(connection_id, DISPLAY, room_id)

    def set_cast_status(self, connection_id: str, is_casting: bool,
                        detection_method: Optional[str] = None, timestamp: Optional[str] = None) -> dict:
        timestamp = timestamp or utc_timestamp()
        with self._lock:
            presence = self._connections.get(connection_id)
            if presence is None or presence.role != DISPLAY:
                raise PresenceConflict(f'Connection {connection_id} is not a display')
            presence.is_casting = bool(is_casting)
            presence.cast_detection_method = detection_method
            presence.last_cast_update_at = timestamp
            room_id = presence.room_id
            aggregate = self._room_casting(room_id)
        self.logger.info(
            f"[presence] cast sid={connection_id} room={room_id} casting={bool(is_casting)} "
            f"method={detection_method} aggregate={aggregate}"
        )
        self.router.cast_status_change(room_id, aggregate, timestamp)
        return {'roomId': room_id, 'connected': aggregate, 'timestamp': timestamp}

    def disconnect(self, connection_id: str) -> Optional[ConnectionPresence]:
        change = None
        with self._lock:
            presence = self._connections.pop(connection_id, None)
            if presence and presence.role == DISPLAY and presence.is_casting:
                # The removed display was casting, so the room was casting before
                after = self._room_casting(presence.room_id)
                if not after:
                    change = (presence.room_id, after)
        if presence:
            self.logger.info(f"[presence] disconnect sid={connection_id} role={presence.role} room={presence.room_id}")
        if change:
            self.router.cast_status_change(*change)
        return presence

    def get_aggregate_status(self, room_id: int) -> dict:
        with self._lock:
            displays = [p for p in self._connections.values() if p.role == DISPLAY and p.room_id == room_id]
            casting = sum(1 for p in displays if p.is_casting)
        return {
            'connected': casting > 0,
            'castingClients': casting,
            'displayWindows': len(displays),
        }
