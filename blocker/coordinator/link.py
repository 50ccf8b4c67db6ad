"""Boundary between the session and the transport that reaches the coordinator.

A link authenticates, keeps itself connected and moves typed messages; it
reports what happens to it as events delivered to every subscribed sink.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List


@dataclass
class LinkAuthenticated:
    self_identity: int


@dataclass
class MessageReceived:
    app_id: int
    message: Any


@dataclass
class LinkDisconnected:
    reason: str = ''


@dataclass
class LinkFailed:
    error: Exception


class CoordinatorLink:
    """Base class for coordinator transports.

    Subclasses implement the transport calls and report events through
    ``_emit``.
    """

    def __init__(self):
        self._sinks: List[Callable[[Any], None]] = []

    def subscribe(self, sink: Callable[[Any], None]) -> None:
        self._sinks.append(sink)

    def _emit(self, event) -> None:
        for sink in list(self._sinks):
            sink(event)

    def connect(self) -> None:
        raise NotImplementedError

    def request_license(self, app_id: int) -> None:
        raise NotImplementedError

    def declare_playing(self, app_ids: Iterable[int]) -> None:
        raise NotImplementedError

    def send(self, app_id: int, message) -> None:
        raise NotImplementedError
