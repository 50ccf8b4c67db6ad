import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from blocker.errors import CapacityExceeded, InvalidInput


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Target:
    id: int
    expires_at: int

    def to_dict(self):
        return {
            'id': self.id,
            'expiresAt': self.expires_at,
        }


@dataclass(frozen=True)
class AddResult:
    created: bool
    expires_at: int


class TargetRegistry:
    """Bounded, expiring set of account ids to block.

    Every public operation evicts expired entries first, so callers never
    observe a target whose ``expires_at`` has passed. Access is serialized
    by a single re-entrant lock shared by HTTP handlers and the dispatcher.
    """

    def __init__(self, max_users: int, max_ttl: int,
                 clock: Callable[[], int] = now_ms,
                 on_change: Optional[Callable[[List[Target]], None]] = None,
                 logger=None):
        self.max_users = max_users
        self.max_ttl = max_ttl
        self._clock = clock
        self._on_change = on_change
        self._logger = logger
        self._lock = threading.RLock()
        # dicts keep insertion order, which is the dispatch order
        self._targets: Dict[int, Target] = {}

    def __len__(self):
        with self._lock:
            return len(self._targets)

    def __contains__(self, identity):
        with self._lock:
            return identity in self._targets

    def evict(self, now: Optional[int] = None) -> int:
        with self._lock:
            removed = self._evict_locked(now)
            snapshot = self._snapshot_if(removed > 0)
        self._notify(snapshot)
        return removed

    def add(self, identity: int, ttl_seconds: int) -> AddResult:
        if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) \
                or ttl_seconds <= 0 or ttl_seconds > self.max_ttl:
            raise InvalidInput(
                f"Input length is invalid, it must be between 1 and {self.max_ttl} inclusive"
            )
        with self._lock:
            changed = self._evict_locked() > 0
            full = len(self._targets) >= self.max_users
            target = self._targets.get(identity)
            created = not full and target is None
            if created:
                target = Target(id=identity, expires_at=self._clock() + ttl_seconds * 1000)
                self._targets[identity] = target
                changed = True
                if self._logger:
                    self._logger.info(f"[registry] added target={identity} expires_at={target.expires_at}")
            snapshot = self._snapshot_if(changed)
        self._notify(snapshot)

        if full:
            raise CapacityExceeded(
                f"Too many users are on the list, maximum {self.max_users}"
            )
        return AddResult(created=created, expires_at=target.expires_at)

    def remove(self, identity: int) -> bool:
        with self._lock:
            changed = self._evict_locked() > 0
            removed = self._targets.pop(identity, None) is not None
            if removed and self._logger:
                self._logger.info(f"[registry] removed target={identity}")
            snapshot = self._snapshot_if(changed or removed)
        self._notify(snapshot)
        return removed

    def list(self) -> List[Target]:
        with self._lock:
            changed = self._evict_locked() > 0
            targets = list(self._targets.values())
        if changed:
            self._notify(targets)
        return list(targets)

    def _evict_locked(self, now: Optional[int] = None) -> int:
        if now is None:
            now = self._clock()
        expired = [t.id for t in self._targets.values() if t.expires_at <= now]
        for identity in expired:
            del self._targets[identity]
        if expired and self._logger:
            self._logger.info(f"[registry] evicted {len(expired)} expired target(s): {expired}")
        return len(expired)

    def _snapshot_if(self, changed: bool) -> Optional[List[Target]]:
        return list(self._targets.values()) if changed else None

    def _notify(self, snapshot: Optional[List[Target]]) -> None:
        # Runs after the lock is released so broadcasts never stall callers
        if snapshot is not None and self._on_change:
            self._on_change(snapshot)
