import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

import pubsub_bridge  # noqa: E402
from pubsub_bridge import capabilities as capabilities_module  # noqa: E402
from pubsub_bridge.transport import Window  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_globals():
    """Give every test its own process-wide PubSub, capability table and namespace."""
    pubsub_bridge.reset_pubsub()
    capabilities_module._GLOBAL_CAPABILITIES = None
    capabilities_module.shared_namespace.clear()
    yield
    capabilities_module.shared_namespace.clear()


@pytest.fixture
def host() -> Window:
    return Window("https://app.example.com/index.html")
