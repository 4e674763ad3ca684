from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from .registry import Handler, Registry, Subscription
from .settings import BridgeSettings

if TYPE_CHECKING:  # pragma: no cover
    from .bridge import RemoteBridge

logger = logging.getLogger(__name__)


def _is_event_name(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


@dataclass
class PubSubEventArgs:
    """Convenience wrapper for publish data that names its sender."""

    sender: Any
    data: Any
    name: str
    is_last_published_event: bool = False


class PubSub:
    """Synchronous publish/subscribe dispatcher.

    Handlers run inline, in subscription order. A failing handler is logged and
    skipped; nothing raised by a handler reaches the publisher. Usage errors
    (empty event names, bad arguments) are logged as warnings and ignored.

    Subscriptions whose observer is a URL and which carry no callable are
    remote: on publish they are handed to the attached ``RemoteBridge``.
    """

    def __init__(
        self,
        settings: Optional[BridgeSettings] = None,
        bridge: Optional["RemoteBridge"] = None,
    ) -> None:
        self.settings = settings or BridgeSettings()
        self.registry = Registry(seed=self.settings.default_events)
        self.bridge = bridge

    # ------------------------ Subscribing ------------------------
    def subscribe(self, event_name: str, observer: Any, handler: Any = None) -> None:
        """Subscribe ``observer`` to ``event_name``.

        Args:
            event_name: Event to listen for.
            observer: Identifier used later to unsubscribe.
            handler: Callable receiving the published data. When it is not
                callable and ``observer`` is a URL, it is kept as the control
                payload replayed to that remote target on publish.
        """
        if not _is_event_name(event_name):
            logger.warning("Attempt to subscribe to unknown event! Use: %s", self.registry.event_names())
            return
        if callable(handler):
            self.registry.append(event_name, Subscription(observer=observer, handler=handler))
        elif self.settings.is_remote_observer(observer):
            self.registry.append(event_name, Subscription(observer=observer, payload=handler))
        else:
            logger.debug("Ignoring subscription of %r to '%s': no handler and not a remote observer", observer, event_name)

    def subscribe_multiple(self, event_names: Sequence[str], observer: Any, handler: Handler) -> None:
        if not isinstance(event_names, (list, tuple)) or not event_names or not all(map(_is_event_name, event_names)):
            logger.warning("Attempt to subscribe to unknown events! Use: %s", self.registry.event_names())
            return
        if not callable(handler):
            logger.warning("subscribe_multiple requires a callable handler for %r", observer)
            return
        for name in event_names:
            self.registry.append(name, Subscription(observer=observer, handler=handler))

    def unsubscribe(self, event_name: str, observer: Any) -> None:
        """Remove the first subscription of ``observer`` from ``event_name``."""
        if not _is_event_name(event_name) or event_name not in self.registry:
            logger.warning("Attempt to unsubscribe from unknown event! Use: %s", self.registry.event_names())
            return
        self.registry.remove_by_observer(event_name, observer)

    def unsubscribe_observer(self, observer: Any) -> None:
        """Remove every subscription of ``observer`` from every event."""
        if not observer:
            logger.warning("Attempt to unsubscribe an undefined observer!")
            return
        self.registry.remove_observer_everywhere(observer)

    # ------------------------ Publishing ------------------------
    def publish(self, event_name: str, data: Any = None) -> None:
        """Deliver ``data`` to every subscription of ``event_name``."""
        # Iterate a copy so handlers may (un)subscribe during dispatch.
        records = self.registry.snapshot(event_name) if _is_event_name(event_name) else []
        if not records:
            return
        logger.debug("Publishing '%s' to %d subscribers", event_name, len(records))
        for record in records:
            try:
                if record.is_remote:
                    self._publish_remotely(record, data)
                else:
                    record.handler(data)
            except Exception:
                logger.warning("Subscriber failed for '%s': %r", event_name, record, exc_info=True)

    def _publish_remotely(self, record: Subscription, data: Any) -> None:
        if self.bridge is None:
            logger.warning("No remote bridge attached; dropping %r", record)
            return
        self.bridge.send(record, data)

    # ------------------------ Introspection ------------------------
    def is_subscribed(self, event_name: str) -> bool:
        return _is_event_name(event_name) and bool(self.registry.list(event_name))

    def is_subscribed_by_who(self, event_name: str) -> Optional[List[Subscription]]:
        """Return the subscriptions of ``event_name``; None when the event is unknown."""
        bucket = self.registry.list(event_name) if _is_event_name(event_name) else None
        if bucket is None:
            return None
        return list(bucket)

    def get_events(self) -> Dict[str, List[Subscription]]:
        return self.registry.as_dict()

    dump = get_events

    def initialize(self) -> None:
        """Clear all subscriptions, keeping the known event names."""
        self.registry.reset()


# Module-level singleton for convenience
_GLOBAL_PUBSUB: Optional[PubSub] = None


def get_pubsub() -> PubSub:
    """Return the process-wide PubSub, creating it from loaded settings on first use."""
    global _GLOBAL_PUBSUB
    if _GLOBAL_PUBSUB is None:
        _GLOBAL_PUBSUB = PubSub(BridgeSettings.load())
    return _GLOBAL_PUBSUB


def reset_pubsub(pubsub: Optional[PubSub] = None) -> PubSub:
    """Replace the process-wide PubSub (useful in tests).

    Without an explicit instance a new one is built from ``BridgeSettings.load()``.
    """
    global _GLOBAL_PUBSUB
    _GLOBAL_PUBSUB = pubsub or PubSub(BridgeSettings.load())
    return _GLOBAL_PUBSUB


def add_event_listener(event_name: str, observer: Any, handler: Any = None) -> None:
    get_pubsub().subscribe(event_name, observer, handler)


def remove_event_listener(event_name: str, observer: Any, handler: Any = None) -> None:
    """Unsubscribe ``observer`` from ``event_name``; ``handler`` is ignored."""
    get_pubsub().unsubscribe(event_name, observer)


def clear_event_listeners() -> None:
    get_pubsub().initialize()
