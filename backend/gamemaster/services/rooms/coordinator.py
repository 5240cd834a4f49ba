import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Dict, Iterator, List, Optional

from gamemaster.errors import NotFoundError, ValidationError
from . import rules
from .broadcast import BroadcastRouter
from .presence import PresenceTracker
from .session import RoomSession, default_session
from .store import RoomStore


def parse_payload(value) -> dict:
    """Command payloads must be JSON objects; a missing body counts as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError('Payload must be an object')
    return value


def parse_room_id(value) -> int:
    """Accept a bare id or a ``{"roomId": ...}`` payload."""
    if isinstance(value, dict):
        value = value.get('roomId', value.get('id'))
    if isinstance(value, bool) or value is None:
        raise ValidationError('roomId is required')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid roomId {value!r}')


def parse_hint_ref(value):
    """Missing ids and the legacy 'custom' marker both mean an ad hoc hint."""
    if value in (None, '', 'custom'):
        return None
    return str(value)


def _require_text(value, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'{field} is required')
    return value.strip()


def _non_negative_int(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a non-negative integer')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a non-negative integer')
    if number < 0:
        raise ValidationError(f'{field} must be a non-negative integer')
    return number


@dataclass(frozen=True)
class HintResult:
    session: RoomSession
    outcome: str
    record: dict

    @property
    def time_penalty_applied(self) -> bool:
        return self.outcome == rules.PENALTY_APPLIED


class RoomCoordinator:
    """Owns every room's ``RoomSession`` and applies commands and ticks to it.

    Sessions stay resident in memory; storage is written on each committed
    transition and read at startup. Each transition runs under the room's
    lock, from validation through persistence to broadcast, so commands on one
    room never interleave while different rooms proceed independently.
    """

    def __init__(self, store: RoomStore, router: BroadcastRouter, presence: PresenceTracker,
                 room_count: int = 5, default_duration: int = 3600, default_free_hints: int = 3,
                 hint_penalty: int = 120, default_language: str = 'es',
                 logger: Optional[logging.Logger] = None):
        self.store = store
        self.router = router
        self.presence = presence
        self.room_count = room_count
        self.default_duration = default_duration
        self.default_free_hints = default_free_hints
        self.hint_penalty = hint_penalty
        self.default_language = default_language
        self.logger = logger or logging.getLogger(__name__)
        self._sessions: Dict[int, RoomSession] = {}
        self._locks: Dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._loaded = False

    # ---- loading ----

    def load(self) -> None:
        """Read persisted rooms and seed any missing default room ids."""
        with self._registry_lock:
            if self._loaded:
                return
            for session in self.store.list_rooms():
                self._sessions.setdefault(session.id, session)
            for room_id in range(self.room_count):
                if room_id not in self._sessions:
                    session = default_session(room_id, self.default_duration, self.default_free_hints)
                    self.store.save_room(session)
                    self._sessions[room_id] = session
                    self.logger.info(f"[seed] room={room_id} name={session.name}")
            self._loaded = True

    def _lock_for(self, room_id: int) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(room_id)
            if lock is None:
                lock = self._locks[room_id] = threading.Lock()
            return lock

    def _resident(self, room_id: int) -> RoomSession:
        # Caller holds the room lock
        session = self._sessions.get(room_id)
        if session is not None:
            return session
        session = self.store.get_room(room_id)
        if session is None:
            if not 0 <= room_id < self.room_count:
                raise NotFoundError(f'Room {room_id} not found')
            session = default_session(room_id, self.default_duration, self.default_free_hints)
            self.store.save_room(session)
        with self._registry_lock:
            self._sessions[room_id] = session
        return session

    @contextmanager
    def _room(self, room_id: int) -> Iterator[RoomSession]:
        lock = self._lock_for(room_id)
        with lock:
            try:
                session = self._resident(room_id)
            except NotFoundError:
                # Unknown ids must not leave a lock behind
                with self._registry_lock:
                    if self._locks.get(room_id) is lock and room_id not in self._sessions:
                        del self._locks[room_id]
                raise
            yield session

    def _swap(self, session: RoomSession) -> RoomSession:
        self._sessions[session.id] = session
        return session

    def _commit(self, session: RoomSession) -> RoomSession:
        self.store.save_room(session)
        return self._swap(session)

    # ---- reads ----

    def get_room(self, room_id: int) -> RoomSession:
        with self._room(room_id) as session:
            return session

    def list_rooms(self) -> List[RoomSession]:
        self.load()
        with self._registry_lock:
            room_ids = sorted(self._sessions)
        return [self.get_room(room_id) for room_id in room_ids]

    def running_room_ids(self) -> List[int]:
        with self._registry_lock:
            return [room_id for room_id, s in self._sessions.items() if s.is_running and s.time_remaining > 0]

    def get_hint_history(self, room_id: int) -> List[dict]:
        self.get_room(room_id)
        return self.store.list_hint_usage(room_id)

    def display_status(self, room_id: int) -> dict:
        self.get_room(room_id)
        return self.presence.get_aggregate_status(room_id)

    # ---- commands ----

    def rename_room(self, room_id: int, name) -> RoomSession:
        name = _require_text(name, 'Room name')
        with self._room(room_id) as session:
            updated = self._commit(replace(session, name=name))
            self.router.room_changed(updated)
        self.logger.info(f"[rename] room={room_id} name={name}")
        return updated

    def start_stop(self, room_id: int, running: bool) -> RoomSession:
        with self._room(room_id) as session:
            updated = self._commit(rules.start_stop(session, running))
            self.router.room_changed(updated)
        self.logger.info(f"[timer] room={room_id} requested={bool(running)} running={updated.is_running}")
        return updated

    def update_room(self, room_id: int, changes: dict) -> RoomSession:
        """Apply a partial console edit (name, timer, budget, message) without breaking invariants."""
        changes = parse_payload(changes)
        fields = {}
        if 'name' in changes:
            fields['name'] = _require_text(changes['name'], 'Room name')
        if 'lastMessage' in changes:
            if not isinstance(changes['lastMessage'], str):
                raise ValidationError('lastMessage must be a string')
            fields['last_message'] = changes['lastMessage'].strip()
        if 'timeRemaining' in changes:
            fields['time_remaining'] = _non_negative_int(changes['timeRemaining'], 'timeRemaining')
        if 'freeHintsCount' in changes:
            fields['free_hints_total'] = _non_negative_int(changes['freeHintsCount'], 'freeHintsCount')
        if 'hintsRemaining' in changes:
            fields['free_hints_remaining'] = _non_negative_int(changes['hintsRemaining'], 'hintsRemaining')
        if 'isRunning' in changes:
            fields['is_running'] = bool(changes['isRunning'])
        with self._room(room_id) as session:
            updated = self._commit(replace(session, **fields).normalized())
            self.router.room_changed(updated)
        return updated

    def reset_room(self, room_id: int) -> RoomSession:
        with self._room(room_id) as session:
            updated = rules.reset(session, self.default_duration)
            cleared = self.store.reset_room(updated)
            self._swap(updated)
            self.router.room_changed(updated)
            self.router.room_reset(room_id)
        self.logger.info(f"[reset] room={room_id} cleared_hints={cleared}")
        return updated

    def send_hint(self, room_id: int, hint_id: Optional[str], hint_text, language: Optional[str] = None) -> HintResult:
        """Log a hint, charge it against the room and push it to the room's display.

        ``hint_id=None`` marks an ad hoc hint typed by the game master.
        """
        hint_text = _require_text(hint_text, 'Hint')
        language = language or self.default_language
        with self._room(room_id) as session:
            updated, outcome = rules.apply_hint(session, is_custom=hint_id is None, penalty_sec=self.hint_penalty)
            record = self.store.record_hint(updated, hint_id, hint_text, language)
            self._swap(updated)
            result = HintResult(updated, outcome, record)
            self.router.hint_broadcast(room_id, hint_id, hint_text, language, result.time_penalty_applied)
            self.router.room_changed(updated)
        self.logger.info(
            f"[hint] room={room_id} hint={hint_id or 'custom'} outcome={outcome} "
            f"free_left={updated.free_hints_remaining} time={updated.time_remaining}"
        )
        return result

    def send_message(self, room_id: int, message, language: Optional[str] = None) -> RoomSession:
        message = _require_text(message, 'Message')
        language = language or self.default_language
        with self._room(room_id) as session:
            updated = self._commit(replace(session, last_message=message))
            self.router.message_broadcast(room_id, message, language)
            self.router.room_changed(updated)
        self.logger.info(f"[message] room={room_id} language={language}")
        return updated

    def clear_hint_history(self, room_id: int) -> int:
        with self._room(room_id):
            return self.store.clear_hint_usage(room_id)

    def advance(self, room_id: int) -> Optional[RoomSession]:
        """Apply one tick to a room. Returns None when the room was not counting down."""
        with self._room(room_id) as session:
            if not session.is_running or session.time_remaining <= 0:
                return None
            updated = self._commit(rules.advance_clock(session))
            self.router.time_sync(updated)
            if updated.time_remaining == 0:
                self.router.room_changed(updated)
                self.logger.info(f"[expired] room={room_id}")
        return updated
