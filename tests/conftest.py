from pathlib import Path

import platformdirs
import pytest
import requests

from story_launcher.config_store import ConfigStore
from story_launcher.install.manager import InstallManager
from story_launcher.settings import LauncherPaths
from tests.launcher_test_utils import FakeDownloader, FakeRunner

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """Register the markers used across the suite."""
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line(
        "markers", "integration: tests exercising several components together"
    )
    config.addinivalue_line("markers", "user_interface: command-line interface tests")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point every per-user location at a temporary directory.

    Patches the platformdirs config and log directories, sets
    STORY_LAUNCHER_TOOLS_DIR, disables file logging and clears GITHUB_TOKEN so
    the developer's environment cannot leak into tests.
    """
    base = tmp_path_factory.mktemp("story_launcher")
    config_dir = base / "config"
    log_dir = base / "log"
    tools_dir = base / "tools"
    for path in (config_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("STORY_LAUNCHER_TOOLS_DIR", str(tools_dir))
    monkeypatch.setenv("STORY_LAUNCHER_DISABLE_FILE_LOGGING", "1")
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("STORY_LAUNCHER_LOG_LEVEL", raising=False)

    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_log_dir", lambda *_args, **_kwargs: str(log_dir)
    )


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.put = _block_network
    requests.delete = _block_network
    requests.head = _block_network
    requests.Session.request = _block_network


@pytest.fixture
def launcher_paths(tmp_path) -> LauncherPaths:
    return LauncherPaths(tmp_path / ".story-tools")


@pytest.fixture
def config_store(launcher_paths) -> ConfigStore:
    return ConfigStore(launcher_paths.config_path)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def download_dir(tmp_path) -> Path:
    path = tmp_path / "downloads"
    path.mkdir()
    return path


@pytest.fixture
def make_manager(launcher_paths, config_store, fake_runner, download_dir):
    """
    Factory building an InstallManager around stub collaborators.

    The returned callable takes a resolver and an optional downloader; any
    other keyword is passed to InstallManager. Quarantine clearing is off
    unless requested.
    """

    def _make(resolver, downloader=None, **kwargs) -> InstallManager:
        kwargs.setdefault("runner", fake_runner)
        kwargs.setdefault("clear_quarantine_attrs", False)
        return InstallManager(
            launcher_paths,
            resolver=resolver,
            config_store=config_store,
            downloader=downloader or FakeDownloader(),
            temp_dir=download_dir,
            **kwargs,
        )

    return _make
