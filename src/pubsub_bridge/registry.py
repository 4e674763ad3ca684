from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


Handler = Callable[[Any], Any]


@dataclass(frozen=True)
class Subscription:
    """A single registration in an event bucket.

    Attributes:
        observer: Identifier of whoever registered; used for targeted removal.
        handler: Local callback, or None for a remote subscription.
        payload: Control data captured from the remote subscribe call.
    """

    observer: Any
    handler: Optional[Handler] = None
    payload: Any = None

    @property
    def is_remote(self) -> bool:
        return self.handler is None

    def to_message(self) -> Dict[str, Any]:
        """Wire form of a remote subscription record."""
        return {"observer": self.observer, "payload": self.payload}


class Registry:
    """Mapping of event name to an ordered list of subscriptions.

    Insertion order is delivery order. Event names are created on first use and
    never removed; ``reset`` only empties the buckets.
    """

    def __init__(self, seed: Iterable[str] = ("default",)) -> None:
        self._events: Dict[str, List[Subscription]] = {}
        self._lock = RLock()
        for name in seed:
            self.ensure_bucket(name)

    def ensure_bucket(self, event_name: str) -> List[Subscription]:
        with self._lock:
            return self._events.setdefault(event_name, [])

    def append(self, event_name: str, record: Subscription) -> None:
        with self._lock:
            self.ensure_bucket(event_name).append(record)
        logger.debug("Appended %r to '%s'", record.observer, event_name)

    def remove_by_observer(self, event_name: str, observer: Any) -> bool:
        """Remove the first record for ``observer`` in ``event_name``.

        Returns True when a record was removed.
        """
        with self._lock:
            bucket = self._events.get(event_name)
            if not bucket:
                return False
            for i, record in enumerate(bucket):
                if record.observer == observer:
                    del bucket[i]
                    logger.debug("Removed %r from '%s'", observer, event_name)
                    return True
        return False

    def remove_observer_everywhere(self, observer: Any) -> int:
        """Drop every record for ``observer`` from every bucket; returns the count removed."""
        removed = 0
        with self._lock:
            for name, bucket in self._events.items():
                kept = [record for record in bucket if record.observer != observer]
                removed += len(bucket) - len(kept)
                self._events[name] = kept
        logger.debug("Removed %d subscriptions of %r", removed, observer)
        return removed

    def reset(self) -> None:
        with self._lock:
            for name in self._events:
                self._events[name] = []

    def list(self, event_name: str) -> Optional[List[Subscription]]:
        """Return the live bucket, or None when the event name is unknown."""
        with self._lock:
            return self._events.get(event_name)

    def snapshot(self, event_name: str) -> List[Subscription]:
        with self._lock:
            return list(self._events.get(event_name, []))

    def event_names(self) -> List[str]:
        with self._lock:
            return list(self._events)

    def as_dict(self) -> Dict[str, List[Subscription]]:
        with self._lock:
            return {name: list(bucket) for name, bucket in self._events.items()}

    def __contains__(self, event_name: object) -> bool:
        return event_name in self._events
