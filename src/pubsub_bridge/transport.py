"""
Structured cross-window messaging, modeled in-process.

A ``Window`` stands in for a browser window or frame: it has a live ``href``,
child ``frames``, an optional ``opener`` and a set of message listeners.
``post_message`` follows the host rules that matter to the bridge: target
origin scoping, closed windows, and structured-clone copies of the payload.
"""
from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


WILDCARD_ORIGIN = "*"


def origin_of(href: str) -> str:
    """Return ``scheme://host[:port]`` for a URL; empty string when it has none."""
    parts = urlsplit(href or "")
    if not parts.scheme or not parts.netloc:
        return ""
    return f"{parts.scheme}://{parts.netloc}"


@dataclass(frozen=True)
class MessageEvent:
    """An inbound message as seen by a listener."""

    data: Any
    is_trusted: bool = True
    origin: str = ""
    source: Optional["MessageTarget"] = None


MessageListener = Callable[[MessageEvent], None]


class MessageTarget(ABC):
    """Anything the bridge can address with a structured message."""

    @property
    @abstractmethod
    def href(self) -> str:
        """The currently navigated URL."""

    @property
    def origin(self) -> str:
        return origin_of(self.href)

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once the target can no longer receive messages."""

    @abstractmethod
    def post_message(self, message: Any, target_origin: str, source: Optional["MessageTarget"] = None) -> bool:
        """Deliver ``message``; return False when the host drops it."""


class Window(MessageTarget):
    """In-memory window with frames, an opener and message listeners."""

    def __init__(self, href: str, opener: Optional[MessageTarget] = None) -> None:
        self._href = href
        self._closed = False
        self.opener = opener
        self.frames: List[MessageTarget] = []
        self.inbox: List[MessageEvent] = []
        self._listeners: List[MessageListener] = []

    def __repr__(self) -> str:
        return f"Window({self._href!r})"

    @property
    def href(self) -> str:
        return self._href

    @property
    def closed(self) -> bool:
        return self._closed

    def navigate(self, href: str) -> None:
        logger.debug("%r navigating to %s", self, href)
        self._href = href

    def close(self) -> None:
        self._closed = True

    def add_frame(self, href: str) -> "Window":
        frame = Window(href)
        self.frames.append(frame)
        return frame

    def open(self, href: str) -> "Window":
        """Open a popup whose opener is this window."""
        return Window(href, opener=self)

    def add_message_listener(self, listener: MessageListener) -> None:
        self._listeners.append(listener)

    def remove_message_listener(self, listener: MessageListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def post_message(self, message: Any, target_origin: str, source: Optional[MessageTarget] = None) -> bool:
        if self._closed:
            logger.debug("Dropping message to closed %r", self)
            return False
        if target_origin != WILDCARD_ORIGIN and target_origin != self.origin:
            logger.debug("Dropping message to %r: target origin %s does not match %s", self, target_origin, self.origin)
            return False
        event = MessageEvent(
            data=copy.deepcopy(message),
            is_trusted=True,
            origin=source.origin if source is not None else "",
            source=source,
        )
        self.dispatch(event)
        return True

    def dispatch(self, event: MessageEvent) -> None:
        """Hand ``event`` to every listener, as the host event loop would."""
        self.inbox.append(event)
        for listener in list(self._listeners):
            listener(event)
