from contextlib import contextmanager, nullcontext
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from flask import has_app_context
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError

from gamemaster import db
from gamemaster.errors import PersistenceError
from gamemaster.models import HintUsage, Room
from .session import RoomSession


class RoomStore:
    """Durable room records and the per-room hint usage log.

    Every call runs in one committed transaction; database failures are
    rolled back and surfaced as ``PersistenceError``.
    """

    def __init__(self, app):
        self.app = app

    @contextmanager
    def _transaction(self, action: str):
        # Background ticks have no app context of their own
        ctx = nullcontext() if has_app_context() else self.app.app_context()
        with ctx:
            try:
                yield db.session
                db.session.commit()
            except SQLAlchemyError as exc:
                db.session.rollback()
                self.app.logger.error(f"[persist-error] action={action} error={exc}")
                raise PersistenceError(f'Failed to {action}') from exc

    @staticmethod
    def _to_session(room: Room) -> RoomSession:
        return RoomSession(
            id=room.id,
            name=room.name,
            time_remaining=room.time_remaining,
            is_running=bool(room.is_running),
            free_hints_remaining=room.hints_remaining,
            free_hints_total=room.free_hints_count,
            last_message=room.last_message or '',
        ).normalized()

    def get_room(self, room_id: int) -> Optional[RoomSession]:
        with self._transaction('load room') as session:
            room = session.get(Room, room_id)
            return self._to_session(room) if room else None

    def list_rooms(self) -> List[RoomSession]:
        with self._transaction('list rooms') as session:
            return [self._to_session(r) for r in session.query(Room).order_by(Room.id).all()]

    def _write_room(self, session, room_session: RoomSession) -> None:
        room = session.get(Room, room_session.id)
        if room is None:
            room = Room(id=room_session.id)
            session.add(room)
        room.name = room_session.name
        room.time_remaining = room_session.time_remaining
        room.is_running = room_session.is_running
        room.hints_remaining = room_session.free_hints_remaining
        room.free_hints_count = room_session.free_hints_total
        room.last_message = room_session.last_message

    def save_room(self, room_session: RoomSession) -> None:
        with self._transaction('save room') as session:
            self._write_room(session, room_session)

    def record_hint(self, room_session: RoomSession, hint_id: Optional[str], hint_text: str, language: str) -> dict:
        """Log a hint and save the charged room in one transaction."""
        with self._transaction('record hint') as session:
            usage = HintUsage(room_id=room_session.id, hint_id=hint_id, hint_text=hint_text, language=language)
            session.add(usage)
            self._write_room(session, room_session)
            session.flush()
            return usage.to_dict()

    def reset_room(self, room_session: RoomSession) -> int:
        """Drop the room's hint history and save its reset state together."""
        with self._transaction('reset room') as session:
            cleared = session.query(HintUsage).filter_by(room_id=room_session.id).delete()
            self._write_room(session, room_session)
            return cleared

    def list_hint_usage(self, room_id: int) -> List[dict]:
        with self._transaction('load hint history') as session:
            rows = (
                session.query(HintUsage)
                .filter_by(room_id=room_id)
                .order_by(HintUsage.sent_at, HintUsage.id)
                .all()
            )
            return [row.to_dict() for row in rows]

    def clear_hint_usage(self, room_id: int) -> int:
        with self._transaction('clear hint history') as session:
            return session.query(HintUsage).filter_by(room_id=room_id).delete()

    def hint_usage_stats(self, room_id: Optional[int] = None, days: int = 30) -> List[dict]:
        """Per-hint send counts over the last ``days`` days, most used first."""
        since = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=days)
        uses = func.count(HintUsage.id)
        with self._transaction('load hint analytics') as session:
            query = session.query(
                HintUsage.hint_id,
                HintUsage.hint_text,
                uses.label('uses'),
                func.max(HintUsage.sent_at).label('last_used'),
            ).filter(HintUsage.sent_at >= since)
            if room_id is not None:
                query = query.filter(HintUsage.room_id == room_id)
            rows = query.group_by(HintUsage.hint_id, HintUsage.hint_text).order_by(uses.desc()).all()
            return [
                {
                    'hintId': row.hint_id,
                    'hint': row.hint_text,
                    'uses': row.uses,
                    'lastUsed': row.last_used.isoformat() if isinstance(row.last_used, datetime) else row.last_used,
                }
                for row in rows
            ]

    def ping(self) -> bool:
        try:
            with self._transaction('ping database') as session:
                session.execute(text('SELECT 1'))
            return True
        except PersistenceError:
            return False
