import threading
import time
from typing import Set

from .coordinator import RoomCoordinator


class TickScheduler:
    """Single fixed-period driver advancing every running room's countdown.

    Each room's tick runs as its own background task so a slow write on one
    room does not hold up the others. A room whose previous tick is still in
    flight is skipped for this tick rather than queued behind it.
    In TESTING mode (unless ENABLE_TICKER_IN_TESTS) room ticks run inline.
    """

    def __init__(self, app, coordinator: RoomCoordinator, socketio, interval: float = 1.0):
        self.app = app
        self.coordinator = coordinator
        self.socketio = socketio
        self.interval = interval
        self._in_flight: Set[int] = set()
        self._in_flight_lock = threading.Lock()
        self._running = False
        self._task = None

    @property
    def _inline(self) -> bool:
        return bool(self.app.config.get('TESTING')) and not self.app.config.get('ENABLE_TICKER_IN_TESTS')

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self.app.logger.info(f"[ticker-start] interval={self.interval}s")
        self._task = self.socketio.start_background_task(self._run)

    def stop(self) -> None:
        self._running = False

    def _run(self) -> None:
        deadline = time.monotonic() + self.interval
        while self._running:
            self.socketio.sleep(max(0.0, deadline - time.monotonic()))
            deadline += self.interval
            try:
                self.tick()
            except Exception:
                # The scheduler itself must keep running
                self.app.logger.exception("[tick-error] sweep failed")

    def tick(self) -> None:
        for room_id in self.coordinator.running_room_ids():
            with self._in_flight_lock:
                if room_id in self._in_flight:
                    self.app.logger.warning(f"[tick-skip] room={room_id} previous tick still in flight")
                    continue
                self._in_flight.add(room_id)
            if self._inline:
                self._tick_room(room_id)
            else:
                self.socketio.start_background_task(self._tick_room, room_id)

    def _tick_room(self, room_id: int) -> None:
        try:
            with self.app.app_context():
                self.coordinator.advance(room_id)
        except Exception:
            self.app.logger.exception(f"[tick-error] room={room_id}")
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(room_id)
