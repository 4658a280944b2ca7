import logging
import sys
from pathlib import Path

import pytest

# Ensure repository root is on sys.path so the in-tree package imports cleanly.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cargogate.logging import clear_log_context  # noqa: E402
from cargogate.runner import CommandRunner  # noqa: E402
from tests.fakes import FakeProcessRunner, make_command_runner  # noqa: E402


@pytest.fixture
def fake_process() -> FakeProcessRunner:
    return FakeProcessRunner()


@pytest.fixture
def command_runner(fake_process: FakeProcessRunner) -> CommandRunner:
    return make_command_runner(fake_process)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch):
    for name in ("CARGOGATE_FEATURES", "CARGOGATE_PROJECT_ROOT", "CARGOGATE_LOG_LEVEL", "CARGOGATE_LOG_JSON"):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    clear_log_context()
    yield
    root.handlers = handlers
    root.setLevel(level)
    clear_log_context()
