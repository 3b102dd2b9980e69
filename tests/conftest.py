import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from walkman.config import WalkmanConfig


@pytest.fixture
def config():
    return WalkmanConfig(
        api_key="sk-test",
        suppression_delay=0,
        realtime_url="https://realtime.test/v1/realtime",
        sessions_url="https://realtime.test/v1/realtime/sessions",
    )
