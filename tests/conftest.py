import pytest

from config import Config
from desired_sync.actions import ActionResult, ExternalAction, NodeGroupScaling
from desired_sync.discovery import ResourceHandle
from desired_sync.incremental import StateManager


class RecordingAction(ExternalAction):
    """Acción externa falsa que registra cada invocación."""

    name = "recording"

    def __init__(self, fail_with=None, invalid=False):
        self.calls = []
        self.fail_with = fail_with
        self.invalid = invalid

    def apply(self, handle, desired_size):
        self.calls.append((handle, desired_size))
        if self.fail_with:
            return ActionResult(False, self.fail_with, invalid_value=self.invalid)
        return ActionResult(True, "ok")

    def describe(self, handle):
        return NodeGroupScaling(min_size=1, max_size=10, desired_size=3, status="ACTIVE")


## Fixtures

@pytest.fixture(autouse=True)
def isolated_cache(tmp_path, monkeypatch):
    cache_dir = tmp_path / ".cache"
    monkeypatch.setattr(Config, "CACHE_DIR", cache_dir)
    monkeypatch.setattr(Config, "STATE_FILE", cache_dir / "state.json")
    monkeypatch.setattr(Config, "LOCK_DIR", cache_dir / "locks")
    return cache_dir


@pytest.fixture
def handle():
    return ResourceHandle("demo-cluster", "workers", "eu-west-1")


@pytest.fixture
def state_manager(isolated_cache):
    return StateManager(isolated_cache / "state.json")


@pytest.fixture
def action():
    return RecordingAction()
