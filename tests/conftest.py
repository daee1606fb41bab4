"""Shared fixtures for safeshell tests."""

import os

import pytest

from safeshell import config as config_module
from safeshell.backends import RecordingBackend
from safeshell.executor import ShellExecutor, set_executor


def pytest_collection_modifyitems(config, items):
    """Skip tests that spawn real processes when not on POSIX."""
    if os.name == "posix":
        return
    skip = pytest.mark.skip(reason="requires a POSIX shell")
    for item in items:
        if "posix" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from the user's config file and SAFESHELL_* variables."""
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", tmp_path / "config.yml")
    for name in list(os.environ):
        if name.startswith("SAFESHELL_"):
            monkeypatch.delenv(name)
    previous = set_executor(None)
    yield
    set_executor(previous)


@pytest.fixture
def recording_backend():
    """A backend with no canned responses."""
    return RecordingBackend()


@pytest.fixture
def executor(recording_backend):
    """An executor bound to the recording backend."""
    return ShellExecutor(recording_backend)
