from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from weakref import WeakKeyDictionary

from .bridge import RemoteBridge
from .capabilities import CapabilityTable, get_capabilities, shared_namespace
from .dispatcher import PubSub, get_pubsub
from .messages import (
    AuthorizationResponse,
    GetterCall,
    InboundMessage,
    MethodCall,
    NotUnderstood,
    RestCall,
    decode_message,
    normalize_args,
)
from .settings import BridgeSettings
from .transport import MessageEvent, Window

logger = logging.getLogger(__name__)

# One wired router per window
_ROUTERS: "WeakKeyDictionary[Window, InboundRouter]" = WeakKeyDictionary()


class InboundRouter:
    """Routes trusted inbound window messages to the dispatcher or the capability table.

    Message kinds, in priority order:
      - authorization responses are published on the inbound event and merged
        into the shared namespace
      - ``method`` paths naming the pub/sub module are control calls
        (subscribe, subscribeMultiple, unsubscribe, unsubscribeObserver);
        other ``method`` paths are invoked and their result is replied
      - ``getter`` paths are read and replied, asynchronously for async paths
      - ``rest`` paths are invoked with ``context={observer, info}`` and no reply

    One router holds at most one listener; ``attach`` is idempotent and
    ``detach`` releases the listener.
    """

    def __init__(
        self,
        pubsub: PubSub,
        bridge: RemoteBridge,
        capabilities: Optional[CapabilityTable] = None,
        settings: Optional[BridgeSettings] = None,
        namespace: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.pubsub = pubsub
        self.bridge = bridge
        self.settings = settings or pubsub.settings
        self.capabilities = capabilities if capabilities is not None else get_capabilities()
        self.namespace = namespace if namespace is not None else shared_namespace
        self._window: Optional[Window] = None

    # ------------------------ Lifecycle ------------------------
    @property
    def attached(self) -> bool:
        return self._window is not None

    def attach(self, window: Window) -> None:
        if self._window is window:
            logger.debug("Router already listening on %r", window)
            return
        if self._window is not None:
            self.detach()
        window.add_message_listener(self.handle)
        self._window = window
        self.pubsub.registry.ensure_bucket(self.settings.inbound_event)
        logger.info("Listening for messages on %r", window)

    def detach(self) -> None:
        if self._window is None:
            return
        self._window.remove_message_listener(self.handle)
        logger.info("Stopped listening for messages on %r", self._window)
        self._window = None

    def __enter__(self) -> "InboundRouter":
        self.attach(self.bridge.window)
        return self

    def __exit__(self, *exc: Any) -> None:
        self.detach()

    # ------------------------ Ingress ------------------------
    def handle(self, event: MessageEvent) -> None:
        """Entry point for the window's message listener. Never raises."""
        if not getattr(event, "is_trusted", False):
            return
        body = getattr(event, "data", None)
        try:
            self.route(decode_message(body, self.settings))
        except Exception:
            logger.error("Failed to handle inbound message: %r", body, exc_info=True)

    def route(self, message: InboundMessage) -> None:
        if isinstance(message, AuthorizationResponse):
            self._on_authorization(message)
        elif isinstance(message, MethodCall):
            if self.settings.is_control_path(message.path):
                self._on_control(message)
            else:
                self._on_method(message)
        elif isinstance(message, GetterCall):
            self._on_getter(message)
        elif isinstance(message, RestCall):
            self._on_rest(message)
        elif isinstance(message, NotUnderstood):
            logger.error("A message was heard but not understood (%s): %r", message.reason, message.body)
        else:  # pragma: no cover - exhaustive over InboundMessage
            raise TypeError(f"Unhandled message kind: {message!r}")

    # ------------------------ Handlers ------------------------
    def _on_authorization(self, message: AuthorizationResponse) -> None:
        response = dict(message.response)
        self.pubsub.publish(self.settings.inbound_event, response)
        key = self.settings.namespace_key
        self.namespace[key] = {**(self.namespace.get(key) or {}), **response}

    def _on_control(self, message: MethodCall) -> None:
        verb, args, observer = message.verb, message.args, message.observer
        if verb == "subscribe":
            if not isinstance(args, str):
                logger.warning("Remote subscribe needs an event name in args: %r", message.body)
                return
            self.pubsub.subscribe(args, observer, message.body)
        elif verb == "subscribeMultiple":
            names = [args] if isinstance(args, str) else args
            if not isinstance(names, list) or not all(isinstance(name, str) for name in names):
                logger.warning("Remote subscribeMultiple needs event names in args: %r", message.body)
                return
            for name in names:
                self.pubsub.subscribe(name, observer, message.body)
        elif verb == "unsubscribe":
            if not isinstance(args, str):
                logger.warning("Remote unsubscribe needs an event name in args: %r", message.body)
                return
            self.pubsub.unsubscribe(args, observer)
        elif verb == "unsubscribeObserver":
            self.pubsub.unsubscribe_observer(args or observer)
        else:
            logger.warning("Unknown pub/sub control call '%s': %r", message.path, message.body)

    def _on_method(self, message: MethodCall) -> None:
        try:
            response = self.capabilities.invoke(message.path, normalize_args(message.args))
        except Exception:
            logger.error("postMessage.method '%s' failed: %r", message.path, message.body, exc_info=True)
            return
        self.bridge.reply(response, message.observer, message.body)

    def _on_getter(self, message: GetterCall) -> None:
        args = normalize_args(message.args)
        try:
            if self.settings.is_async_path(message.path):

                def done(info: Any) -> None:
                    self.bridge.reply(info, message.observer, message.body)

                self.capabilities.invoke(message.path, args, callback=done)
                return
            response = self.capabilities.read(message.path, args)
        except Exception:
            logger.error("postMessage.getter '%s' failed: %r", message.path, message.body, exc_info=True)
            return
        self.bridge.reply(response, message.observer, message.body)

    def _on_rest(self, message: RestCall) -> None:
        context = {"observer": message.observer, "info": message.body}
        try:
            self.capabilities.invoke(message.path, normalize_args(message.args), context=context)
        except Exception:
            logger.error("postMessage.rest '%s' failed: %r", message.path, message.body, exc_info=True)


def init_post_messaging(
    window: Window,
    pubsub: Optional[PubSub] = None,
    capabilities: Optional[CapabilityTable] = None,
    namespace: Optional[Dict[str, Any]] = None,
) -> InboundRouter:
    """Wire a PubSub to ``window``: remote delivery plus an attached inbound router.

    A window keeps at most one wired router: calling this again detaches the
    previous router before the new one starts listening.
    """
    pubsub = pubsub or get_pubsub()
    if pubsub.bridge is None or pubsub.bridge.window is not window:
        pubsub.bridge = RemoteBridge(window, pubsub.settings)
    router = InboundRouter(pubsub, pubsub.bridge, capabilities=capabilities, namespace=namespace)
    previous = _ROUTERS.get(window)
    if previous is not None:
        previous.detach()
    router.attach(window)
    _ROUTERS[window] = router
    return router


def teardown_post_messaging(window: Window) -> None:
    """Detach the router wired to ``window`` by ``init_post_messaging``, if any."""
    router = _ROUTERS.pop(window, None)
    if router is not None:
        router.detach()
