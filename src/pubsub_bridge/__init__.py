"""In-process publish/subscribe dispatcher with a cross-window message bridge."""
from .bridge import RemoteBridge
from .capabilities import CapabilityTable, get_capabilities, shared_namespace
from .dispatcher import (
    PubSub,
    PubSubEventArgs,
    add_event_listener,
    clear_event_listeners,
    get_pubsub,
    remove_event_listener,
    reset_pubsub,
)
from .errors import (
    CapabilityError,
    CapabilityNotCallable,
    CapabilityNotFound,
    PubSubError,
    SettingsError,
)
from .logging_config import configure_logging
from .messages import ReplyEnvelope, decode_message
from .registry import Registry, Subscription
from .router import InboundRouter, init_post_messaging, teardown_post_messaging
from .settings import BridgeSettings
from .transport import MessageEvent, MessageTarget, Window

__all__ = [
    "BridgeSettings",
    "CapabilityError",
    "CapabilityNotCallable",
    "CapabilityNotFound",
    "CapabilityTable",
    "InboundRouter",
    "MessageEvent",
    "MessageTarget",
    "PubSub",
    "PubSubError",
    "PubSubEventArgs",
    "Registry",
    "RemoteBridge",
    "ReplyEnvelope",
    "SettingsError",
    "Subscription",
    "Window",
    "add_event_listener",
    "clear_event_listeners",
    "configure_logging",
    "decode_message",
    "get_capabilities",
    "get_pubsub",
    "init_post_messaging",
    "remove_event_listener",
    "reset_pubsub",
    "shared_namespace",
    "teardown_post_messaging",
]
