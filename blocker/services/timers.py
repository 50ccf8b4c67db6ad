import threading
from dataclasses import dataclass
from typing import Callable

HELLO_TIMER = 'hello'
DISPATCH_TIMER = 'dispatch'


@dataclass
class TimerTick:
    name: str
    generation: int


class PeriodicTimer:
    """Named, cancellable repeating timer.

    - Each ``start`` bumps the generation and spawns a fresh sleep loop
    - ``stop`` bumps the generation too, so a loop that wakes up afterwards
      exits without firing
    - Ticks are handed to ``on_tick`` with their generation; the receiver
      drops any tick for which ``is_current`` is no longer true
    """

    def __init__(self, name: str, interval: float, on_tick: Callable[[TimerTick], None],
                 spawn: Callable, sleep: Callable[[float], None], logger=None):
        self.name = name
        self.interval = interval
        self._on_tick = on_tick
        self._spawn = spawn
        self._sleep = sleep
        self._logger = logger
        self._lock = threading.Lock()
        self._generation = 0
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return self._active and generation == self._generation

    def start(self) -> None:
        with self._lock:
            self._generation += 1
            self._active = True
            generation = self._generation
        if self._logger:
            self._logger.info(f"[timer-set] timer={self.name} generation={generation} interval={self.interval}s")
        self._spawn(self._run, generation)

    def stop(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._generation += 1
            self._active = False
        if self._logger:
            self._logger.info(f"[timer-stop] timer={self.name}")

    def _run(self, generation: int) -> None:
        while self.is_current(generation):
            self._sleep(self.interval)
            if not self.is_current(generation):
                return
            if self._logger:
                self._logger.debug(f"[timer-fire] timer={self.name} generation={generation}")
            self._on_tick(TimerTick(self.name, generation))


def socketio_timer_factory(socketio, logger=None):
    """Build timers whose loops run as Flask-SocketIO background tasks."""
    def factory(name, interval, on_tick):
        return PeriodicTimer(name, interval, on_tick,
                             spawn=socketio.start_background_task,
                             sleep=socketio.sleep,
                             logger=logger)
    return factory
