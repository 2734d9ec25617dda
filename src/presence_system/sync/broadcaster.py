"""In-process "something changed" fan-out for display clients.

Clients either poll `snapshot()` every `poll_interval` seconds, long-poll with
`wait_for_change()`, or hold a Server-Sent Events stream. A signal only tells a
client to re-fetch presence/feed data; it never carries state of its own.
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, Optional

from ..common.datetime_utils import isoformat_or_none, now_local
from ..core.constants import DEFAULT_SYNC_POLL_INTERVAL_SECONDS
from ..core.enums import ChangeKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeSignal:
    version: int
    kind: Optional[ChangeKind]
    changed_at: Optional[datetime]
    poll_interval: int
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "kind": self.kind.value if self.kind else None,
            "changed_at": isoformat_or_none(self.changed_at),
            "poll_interval": self.poll_interval,
            "payload": dict(self.payload),
        }


class SyncBroadcaster:
    def __init__(
        self,
        *,
        poll_interval: int = DEFAULT_SYNC_POLL_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._cond = threading.Condition()
        self._poll_interval = int(poll_interval)
        self._clock = clock
        self._version = 0
        self._kind: Optional[ChangeKind] = None
        self._changed_at: Optional[datetime] = None
        self._payload: Dict[str, Any] = {}
        self._closed = False

    def notify(self, kind: ChangeKind, **payload: Any) -> int:
        with self._cond:
            self._version += 1
            self._kind = kind
            self._changed_at = self._clock()
            self._payload = payload
            self._cond.notify_all()
            version = self._version
        logger.debug("Broadcast %s change v%s %s", kind.value, version, payload)
        return version

    def snapshot(self) -> ChangeSignal:
        with self._cond:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> ChangeSignal:
        return ChangeSignal(
            version=self._version,
            kind=self._kind,
            changed_at=self._changed_at,
            poll_interval=self._poll_interval,
            payload=dict(self._payload),
        )

    def wait_for_change(self, since: int, timeout: float) -> ChangeSignal:
        """Block until the version moves past `since`, the timeout elapses, or the broadcaster closes."""

        with self._cond:
            self._cond.wait_for(lambda: self._version > since or self._closed, timeout=timeout)
            return self._snapshot_locked()

    def stream(self, since: Optional[int] = None, *, keepalive: float = 15.0) -> Iterator[str]:
        last = self.snapshot().version if since is None else int(since)
        yield f"retry: {self._poll_interval * 1000}\n\n"
        while not self.closed:
            signal = self.wait_for_change(last, keepalive)
            if signal.version > last:
                last = signal.version
                yield f"id: {signal.version}\nevent: change\ndata: {json.dumps(signal.to_dict())}\n\n"
            else:
                yield ": keepalive\n\n"

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()
