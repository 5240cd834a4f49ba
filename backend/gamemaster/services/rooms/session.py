from dataclasses import dataclass, replace
from typing import Optional

STOPPED = 'stopped'
RUNNING = 'running'
EXPIRED = 'expired'


@dataclass(frozen=True)
class RoomSession:
    """Authoritative state of one room's countdown, hint budget and display message.

    Instances are immutable snapshots; transitions build a new snapshot with
    ``dataclasses.replace`` so a failed persist never leaves half-applied state.
    """

    id: int
    name: str
    time_remaining: int
    is_running: bool
    free_hints_remaining: int
    free_hints_total: int
    last_message: str = ''

    @property
    def state(self) -> str:
        if self.is_running:
            return RUNNING
        if self.time_remaining == 0:
            return EXPIRED
        return STOPPED

    def normalized(self) -> 'RoomSession':
        """Clamp fields back into the room invariants (used on load and manual edits)."""
        total = max(0, int(self.free_hints_total))
        remaining = min(max(0, int(self.free_hints_remaining)), total)
        time_remaining = max(0, int(self.time_remaining))
        return replace(
            self,
            time_remaining=time_remaining,
            is_running=bool(self.is_running) and time_remaining > 0,
            free_hints_remaining=remaining,
            free_hints_total=total,
            last_message=self.last_message or '',
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'timeRemaining': self.time_remaining,
            'isRunning': self.is_running,
            'hintsRemaining': self.free_hints_remaining,
            'freeHintsCount': self.free_hints_total,
            'lastMessage': self.last_message,
        }


def default_session(room_id: int, duration: int, free_hints: int, name: Optional[str] = None) -> RoomSession:
    return RoomSession(
        id=room_id,
        name=name or f'Sala {room_id + 1}',
        time_remaining=duration,
        is_running=False,
        free_hints_remaining=free_hints,
        free_hints_total=free_hints,
        last_message='',
    )
