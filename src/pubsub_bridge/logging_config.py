import logging
import sys
from typing import Optional, Union

from .settings import BridgeSettings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s: %(message)s"


def _level_number(name: Union[int, str, None]) -> Optional[int]:
    if isinstance(name, int):
        return name
    if not name:
        return None
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else None


def configure_logging(
    level: Optional[Union[int, str]] = None,
    settings: Optional[BridgeSettings] = None,
    default_level: int = logging.INFO,
) -> int:
    """Route pubsub_bridge diagnostics to stdout.

    The level is the explicit ``level`` if given, otherwise ``settings.log_level``
    (which already reflects PUBSUB_LOG_LEVEL), otherwise ``default_level``.
    Unknown level names fall back to ``default_level``. Returns the level applied.
    """
    if level is None:
        settings = settings or BridgeSettings.load()
        level = settings.log_level
    resolved = _level_number(level)
    if resolved is None:
        logging.getLogger(__name__).warning("Unknown log level %r; using %s", level, logging.getLevelName(default_level))
        resolved = default_level

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.setLevel(resolved)
    # Remove existing handlers to avoid duplicates in repeated test runs
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    return resolved
