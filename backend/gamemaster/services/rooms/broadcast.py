import logging
from datetime import datetime, timezone
from typing import Optional

from .session import RoomSession

GLOBAL = 'global'
ROOM = 'room'

# Timer and identity changes go to every console/display; hint and message
# content only reaches connections joined to that room.
TOPIC_SCOPES = {
    'room-changed': GLOBAL,
    'time-sync': GLOBAL,
    'room-reset': GLOBAL,
    'hint-broadcast': ROOM,
    'message-broadcast': ROOM,
    'chromecast-status-change': ROOM,
}


def room_channel(room_id: int) -> str:
    return f"room:{room_id}"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class BroadcastRouter:
    """Map session events to Socket.IO emits with the right fan-out scope.

    ``emitter`` is anything with the ``SocketIO.emit`` signature. Delivery is
    best effort: a failed emit is logged and dropped.
    """

    def __init__(self, emitter, namespace: str = '/ws', logger: Optional[logging.Logger] = None):
        self.emitter = emitter
        self.namespace = namespace
        self.logger = logger or logging.getLogger(__name__)

    def publish(self, topic: str, payload, room_id: Optional[int] = None) -> None:
        scope = TOPIC_SCOPES.get(topic)
        if scope is None:
            raise ValueError(f'Unknown topic {topic!r}')
        if scope == ROOM and room_id is None:
            raise ValueError(f'Topic {topic!r} is room-scoped and needs a room id')
        try:
            if scope == ROOM:
                self.emitter.emit(topic, payload, to=room_channel(room_id), namespace=self.namespace)
            else:
                self.emitter.emit(topic, payload, namespace=self.namespace)
        except Exception:
            self.logger.exception(f"[broadcast-error] topic={topic} room={room_id}")

    def room_changed(self, session: RoomSession) -> None:
        self.publish('room-changed', session.to_dict())

    def time_sync(self, session: RoomSession) -> None:
        self.publish('time-sync', {
            'roomId': session.id,
            'timeRemaining': session.time_remaining,
            'isRunning': session.is_running,
        })

    def room_reset(self, room_id: int) -> None:
        self.publish('room-reset', {'roomId': room_id})

    def hint_broadcast(self, room_id: int, hint_id, hint: str, language: str, penalty_applied: bool) -> None:
        self.publish('hint-broadcast', {
            'roomId': room_id,
            'hintId': hint_id,
            'hint': hint,
            'language': language,
            'timePenaltyApplied': penalty_applied,
        }, room_id=room_id)

    def message_broadcast(self, room_id: int, message: str, language: str) -> None:
        self.publish('message-broadcast', {
            'roomId': room_id,
            'message': message,
            'language': language,
        }, room_id=room_id)

    def cast_status_change(self, room_id: int, connected: bool, timestamp: Optional[str] = None) -> None:
        self.publish('chromecast-status-change', {
            'roomId': room_id,
            'connected': connected,
            'timestamp': timestamp or utc_timestamp(),
        }, room_id=room_id)
