from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from .messages import ReplyEnvelope
from .registry import Subscription
from .settings import BridgeSettings
from .transport import MessageTarget, Window

logger = logging.getLogger(__name__)


Outbound = Union[Subscription, ReplyEnvelope, Dict[str, Any]]


class RemoteBridge:
    """Delivers remote subscriptions and replies across the window boundary.

    The direction is decided at send time: a child frame currently showing the
    observer URL wins, otherwise the opener window (if still open) receives the
    message. Undeliverable messages are logged and dropped.
    """

    def __init__(self, window: Window, settings: Optional[BridgeSettings] = None) -> None:
        self.window = window
        self.settings = settings or BridgeSettings()

    @staticmethod
    def _to_message(record: Outbound, data: Any) -> Dict[str, Any]:
        if isinstance(record, Subscription):
            return {**record.to_message(), "data": data}
        if isinstance(record, ReplyEnvelope):
            return record.to_message()
        return dict(record)

    def _find_frame(self, observer: Any) -> Optional[MessageTarget]:
        matches: List[MessageTarget] = [frame for frame in self.window.frames if frame.href == observer]
        if len(matches) > 1:
            logger.warning("Ambiguous target: %d frames show %s", len(matches), observer)
            return None
        return matches[0] if matches else None

    def send(self, record: Outbound, data: Any = None) -> bool:
        """Send ``record`` to its observer; return True when a target accepted it."""
        try:
            message = self._to_message(record, data)
            observer = message.get("observer")
            child = self._find_frame(observer)
            if child is not None and callable(getattr(child, "post_message", None)):
                delivered = child.post_message(message, self.window.origin, source=self.window)
                logger.debug("Posted to frame %s (delivered=%s)", observer, delivered)
                return delivered
            opener = self.window.opener
            if opener is not None and not opener.closed:
                delivered = opener.post_message(message, self.settings.opener_target_origin, source=self.window)
                logger.debug("Posted to opener for %s (delivered=%s)", observer, delivered)
                return delivered
            logger.warning("Attempt to post a message to an unfound target! %r", record)
        except Exception:
            logger.warning("Remote delivery failed for %r", record, exc_info=True)
        return False

    def reply(self, response: Any, observer: Optional[str], info: Dict[str, Any]) -> bool:
        """Send a ``{response, observer, info}`` envelope back to ``observer``."""
        return self.send(ReplyEnvelope(response=response, observer=observer, info=info))
