class PubSubError(Exception):
    """Base error for pubsub_bridge exceptions."""


class CapabilityError(PubSubError):
    """Raised when an exposed capability cannot be used as requested."""


class CapabilityNotFound(CapabilityError):
    """Raised when a dotted path is not present in the capability table."""


class CapabilityNotCallable(CapabilityError):
    """Raised when a capability is invoked but its target is a plain value."""


class SettingsError(PubSubError):
    """Raised when a settings file exists but cannot be parsed."""
