"""Coordinator session state machine.

One instance owns the session phase, the learned required version and both
periodic timers. Link callbacks and timer loops never touch that state
directly: they ``post`` events onto a single queue which ``run`` consumes one
at a time, and every phase change goes through ``_enter`` so that the set of
running timers always matches the phase.
"""

import os
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from blocker.coordinator.link import (
    LinkAuthenticated,
    LinkDisconnected,
    LinkFailed,
    MessageReceived,
)
from blocker.coordinator.messages import (
    ClientHello,
    ClientWelcome,
    ConnectionStatus,
    status_name,
)
from blocker.errors import ProtocolAnomaly
from .dispatch import dispatch_blocks
from .timers import DISPATCH_TIMER, HELLO_TIMER, TimerTick


class Phase(str, Enum):
    DISCONNECTED = 'disconnected'
    CONNECTED = 'connected'
    AWAITING_WELCOME = 'awaiting_welcome'
    READY = 'ready'


# Timers that run while the session sits in each phase
PHASE_TIMERS = {
    Phase.DISCONNECTED: frozenset(),
    Phase.CONNECTED: frozenset({HELLO_TIMER}),
    Phase.AWAITING_WELCOME: frozenset({HELLO_TIMER}),
    Phase.READY: frozenset({DISPATCH_TIMER}),
}

_STOP = object()


@dataclass(frozen=True)
class SessionSnapshot:
    phase: Phase
    required_version: Optional[int]
    self_identity: Optional[int]

    def to_dict(self):
        return {
            'phase': self.phase.value,
            'requiredVersion': self.required_version,
            'selfIdentity': self.self_identity,
        }


def _exit_process(code: int) -> None:
    # Called from a background task, where SystemExit would only end that task
    os._exit(code)


class SessionMachine:

    def __init__(self, link, registry, timer_factory: Callable,
                 app_id: int = 730, game_type: int = 519,
                 hello_interval: float = 1.0, block_interval: float = 2.5,
                 logger=None,
                 terminate: Callable[[int], None] = _exit_process,
                 on_change: Optional[Callable[[SessionSnapshot], None]] = None):
        self.link = link
        self.registry = registry
        self.app_id = app_id
        self.game_type = game_type
        self._logger = logger
        self._terminate = terminate
        self._on_change = on_change
        self._events = queue.Queue()
        self._lock = threading.RLock()
        self._running = False

        self._phase = Phase.DISCONNECTED
        self._required_version: Optional[int] = None
        self._self_identity: Optional[int] = None
        # Survives reconnects; a failed request is retried on the next login
        self._license_granted = False

        self._timers = {
            HELLO_TIMER: timer_factory(HELLO_TIMER, hello_interval, self.post),
            DISPATCH_TIMER: timer_factory(DISPATCH_TIMER, block_interval, self.post),
        }
        if link is not None:
            link.subscribe(self.post)

    # ---- Read side ----

    @property
    def phase(self) -> Phase:
        return self._phase

    def timer(self, name: str):
        return self._timers[name]

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(self._phase, self._required_version, self._self_identity)

    # ---- Event channel ----

    def post(self, event) -> None:
        self._events.put(event)

    def run(self) -> None:
        """Consume events until ``stop`` is called. Meant for a background task."""
        self._running = True
        while True:
            event = self._events.get()
            if event is _STOP:
                break
            try:
                self.handle(event)
            except Exception:
                if self._logger:
                    self._logger.exception(f"[session] failed handling {type(event).__name__}")
        self._running = False

    def stop(self) -> None:
        self.post(_STOP)

    def drain(self) -> int:
        """Handle every queued event on the calling thread; returns the count."""
        handled = 0
        while True:
            try:
                event = self._events.get_nowait()
            except queue.Empty:
                return handled
            if event is _STOP:
                continue
            self.handle(event)
            handled += 1

    def handle(self, event) -> None:
        with self._lock:
            if isinstance(event, TimerTick):
                self._on_tick(event)
            elif isinstance(event, MessageReceived):
                self._on_message(event)
            elif isinstance(event, LinkAuthenticated):
                self._on_authenticated(event)
            elif isinstance(event, LinkDisconnected):
                self._on_disconnected(event)
            elif isinstance(event, LinkFailed):
                self._on_fatal(event)

    # ---- Transitions ----

    def _enter(self, phase: Phase, restart: bool = False) -> None:
        """Move to ``phase`` and bring the running timers in line with it.

        With ``restart`` every timer the phase wants is started afresh even if
        it was already running.
        """
        previous = self._phase
        wanted = PHASE_TIMERS[phase]
        for name, timer in self._timers.items():
            if name not in wanted or restart:
                timer.stop()
        if phase != Phase.READY:
            self._required_version = None
        self._phase = phase
        for name in wanted:
            timer = self._timers[name]
            if not timer.active:
                timer.start()

        if previous != phase and self._logger:
            self._logger.info(f"[session] {previous.value} -> {phase.value}")
        if self._on_change:
            self._on_change(self.snapshot())

    def _on_authenticated(self, event: LinkAuthenticated) -> None:
        self._self_identity = event.self_identity
        if self._logger:
            self._logger.info(f"[session] logged on as account={event.self_identity}")
        if not self._license_granted:
            try:
                self.link.request_license(self.app_id)
            except Exception as exc:
                if self._logger:
                    self._logger.warning(f"[session] failed to request license, continuing anyway: {exc}")
            else:
                self._license_granted = True
        self.link.declare_playing([self.app_id])
        self._enter(Phase.CONNECTED, restart=True)

    def _on_disconnected(self, event: LinkDisconnected) -> None:
        if self._logger:
            self._logger.info(f"[session] disconnected ({event.reason or 'no reason'}), waiting for reconnect")
        self._self_identity = None
        self._enter(Phase.DISCONNECTED)

    def _on_fatal(self, event: LinkFailed) -> None:
        if self._logger:
            self._logger.critical(f"[session] fatal link error: {event.error!r}")
        self._self_identity = None
        self._enter(Phase.DISCONNECTED)
        self._terminate(1)

    def _on_tick(self, tick: TimerTick) -> None:
        timer = self._timers.get(tick.name)
        if timer is None or not timer.is_current(tick.generation):
            return
        if tick.name == HELLO_TIMER:
            self._send_hello()
        elif tick.name == DISPATCH_TIMER:
            self._dispatch()

    def _send_hello(self) -> None:
        if self._phase not in (Phase.CONNECTED, Phase.AWAITING_WELCOME):
            return
        if self._logger:
            self._logger.info("[hello] sending CMsgClientHello to GC")
        try:
            self.link.send(self.app_id, ClientHello())
        except Exception as exc:
            if self._logger:
                self._logger.warning(f"[hello] send failed: {exc}")
            return
        if self._phase == Phase.CONNECTED:
            self._enter(Phase.AWAITING_WELCOME)

    def _dispatch(self) -> int:
        if self._phase != Phase.READY:
            return 0
        return dispatch_blocks(
            self.link, self.registry, self.app_id, self.game_type,
            self._required_version, self._self_identity, logger=self._logger,
        )

    def _on_message(self, event: MessageReceived) -> None:
        if event.app_id != self.app_id or self._phase == Phase.DISCONNECTED:
            return
        message = event.message
        if isinstance(message, ClientWelcome):
            try:
                self._on_welcome(message)
            except ProtocolAnomaly as exc:
                if self._logger:
                    self._logger.error(f"[session] {exc}")
        elif isinstance(message, ConnectionStatus):
            self._on_status(message)

    def _on_welcome(self, message: ClientWelcome) -> None:
        if message.matchmaking is None:
            raise ProtocolAnomaly("Received CMsgClientWelcome without game_data2 on it")
        version = message.matchmaking.required_version
        if self._logger:
            self._logger.info(f"[session] setting current version to: {version}")
        self._required_version = version
        self._enter(Phase.READY, restart=True)

    def _on_status(self, message: ConnectionStatus) -> None:
        if self._logger:
            self._logger.info(f"[session] received CMsgConnectionStatus: {status_name(message.status)}")
        if not message.has_session:
            self._enter(Phase.CONNECTED, restart=True)
