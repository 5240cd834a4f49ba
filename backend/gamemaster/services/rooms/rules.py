"""Pure room transitions: hint penalty accounting and the one-second clock step."""

from dataclasses import replace
from typing import Tuple

from .session import RoomSession

CONSUMED_FREE_HINT = 'consumedFreeHint'
PENALTY_APPLIED = 'penaltyApplied'
NO_PENALTY_CUSTOM_HINT = 'noPenaltyCustomHint'


def apply_hint(session: RoomSession, is_custom: bool, penalty_sec: int) -> Tuple[RoomSession, str]:
    """Charge a hint against the room.

    A free hint is consumed whenever the budget is above zero, whatever the
    hint's origin. With the budget spent, catalogued hints cost
    ``penalty_sec`` (floored at zero time) and custom hints cost nothing.
    """
    if session.free_hints_remaining > 0:
        return replace(session, free_hints_remaining=session.free_hints_remaining - 1), CONSUMED_FREE_HINT
    if is_custom:
        return session, NO_PENALTY_CUSTOM_HINT
    new_time = max(0, session.time_remaining - penalty_sec)
    # A penalty that empties the clock also stops it
    return replace(session, time_remaining=new_time, is_running=session.is_running and new_time > 0), PENALTY_APPLIED


def advance_clock(session: RoomSession) -> RoomSession:
    """One tick. Stopped rooms and rooms at zero are returned unchanged."""
    if not session.is_running or session.time_remaining <= 0:
        return session
    new_time = session.time_remaining - 1
    return replace(session, time_remaining=new_time, is_running=new_time > 0)


def start_stop(session: RoomSession, running: bool) -> RoomSession:
    # Starting an expired room is a no-op
    return replace(session, is_running=bool(running) and session.time_remaining > 0)


def reset(session: RoomSession, duration: int) -> RoomSession:
    return replace(
        session,
        time_remaining=duration,
        is_running=False,
        free_hints_remaining=session.free_hints_total,
        last_message='',
    )
