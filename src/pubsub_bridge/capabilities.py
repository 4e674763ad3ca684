from __future__ import annotations

import logging
from threading import RLock
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .errors import CapabilityNotCallable, CapabilityNotFound

logger = logging.getLogger(__name__)


class CapabilityTable:
    """Closed table of operations and values exposed to remote peers.

    Inbound ``method``/``getter``/``rest`` requests name an entry by its dotted
    path (e.g. ``"app.auth.getToken"``). Only paths registered here are
    reachable; there is no attribute walk over live objects.

    Calling conventions:
        invoke(path, args)                 -> target(*args)
        invoke(path, args, callback=cb)    -> target(*args, callback=cb)
        invoke(path, args, context=ctx)    -> target(*args, context=ctx)
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}
        self._lock = RLock()

    def expose(self, path: str, target: Any) -> None:
        """Expose a callable or a plain value under ``path``."""
        if not path:
            raise ValueError("path must be a non-empty dotted name")
        with self._lock:
            self._entries[path] = target
        logger.debug("Exposed capability '%s'", path)

    def expose_namespace(self, prefix: str, mapping: Mapping[str, Any]) -> None:
        """Expose every item of ``mapping`` as ``prefix.<key>``."""
        for key, target in mapping.items():
            self.expose(f"{prefix}.{key}" if prefix else key, target)

    def withdraw(self, path: str) -> None:
        with self._lock:
            self._entries.pop(path, None)

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def resolve(self, path: str) -> Any:
        with self._lock:
            if path not in self._entries:
                raise CapabilityNotFound(f"No capability exposed at '{path}'")
            return self._entries[path]

    def invoke(
        self,
        path: str,
        args: Sequence[Any] = (),
        callback: Optional[Callable[[Any], Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> Any:
        target = self.resolve(path)
        if not callable(target):
            raise CapabilityNotCallable(f"Capability '{path}' is not callable")
        kwargs: Dict[str, Any] = {}
        if callback is not None:
            kwargs["callback"] = callback
        if context is not None:
            kwargs["context"] = context
        logger.debug("Invoking '%s' with %d args", path, len(args))
        return target(*args, **kwargs)

    def read(self, path: str, args: Sequence[Any] = ()) -> Any:
        """Return the value at ``path``; callables are invoked with ``args``."""
        target = self.resolve(path)
        if callable(target):
            return target(*args)
        return target


# Process-wide state shared with remote peers
shared_namespace: Dict[str, Any] = {}

_GLOBAL_CAPABILITIES: Optional[CapabilityTable] = None


def get_capabilities() -> CapabilityTable:
    """Return the process-wide CapabilityTable, creating it if necessary."""
    global _GLOBAL_CAPABILITIES
    if _GLOBAL_CAPABILITIES is None:
        _GLOBAL_CAPABILITIES = CapabilityTable()
    return _GLOBAL_CAPABILITIES
