"""
Shared fixtures for the event layer tests.
"""

import pytest

from config import default_config
from events.bus import EventBus
from events.context import DaemonContext
from events.types import EventKind, HandlerBinding


class Recorder:
    """Handler that records every call it receives."""

    def __init__(self, name="recorder", log=None):
        self.__name__ = name
        self.calls = []
        self.log = log if log is not None else []

    def __call__(self, ctx, kind, image, filename, payload, timestamp):
        self.calls.append((kind, image, filename, payload, timestamp))
        self.log.append(self.__name__)

    def of_kind(self, kind: EventKind):
        return [call for call in self.calls if call[0] is kind]


@pytest.fixture
def make_config(tmp_path):
    """Builds a default config writing below tmp_path, with overrides."""

    def _make(**overrides):
        config = default_config()
        config["TARGET_DIR"] = str(tmp_path / "out")
        config.update(overrides)
        return config

    return _make


@pytest.fixture
def make_ctx(make_config):
    """Builds a DaemonContext on a bus with the given bindings only."""

    def _make(bindings=(), **overrides):
        bus = EventBus([HandlerBinding(kind, handler) for kind, handler in bindings])
        return DaemonContext(config=make_config(**overrides), events=bus)

    return _make


@pytest.fixture
def recorder():
    return Recorder()
