import os
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Ensure PyQt widgets render without an attached display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if SRC.exists():
    sys.path.insert(0, str(SRC))

# Register shared Hypothesis profiles for deterministic CI runs and fast local loops.
from tests.util import hypothesis_profiles  # noqa: E402,F401  pylint: disable=unused-import

from allocviz.source.client import MetricsSourceClient  # noqa: E402
from tests.util.fakes import FakeOpener  # noqa: E402


@pytest.fixture
def make_client() -> Callable[..., tuple[MetricsSourceClient, FakeOpener]]:
    def _make(*outcomes: Any, **kwargs: Any) -> tuple[MetricsSourceClient, FakeOpener]:
        opener = FakeOpener(*outcomes)
        client = MetricsSourceClient("http://metrics.test", opener=opener, **kwargs)
        return client, opener

    return _make


def pytest_configure(config: pytest.Config) -> None:
    """Ensure custom marks remain registered even when pytest.ini isn't picked up."""
    config.addinivalue_line("markers", "qt: Qt / pyqtgraph dependent tests")
