from pathlib import Path

import platformdirs
import pytest
import requests

from sb0_installer import log_utils
from sb0_installer.config import InstallerConfig
from tests.installer_test_utils import (
    LATEST_URL,
    REPO,
    FakeTransport,
    build_tarball,
    release_files,
)

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)

_INSTALLER_ENV_VARS = (
    "GITHUB_REPO",
    "GITHUB_TOKEN",
    "INSTALL_DIR",
    "SB0_VERSION",
    "SB0_DATA_DIR",
    "SB0_WHEELS_DIR",
    "SB0_TEMPLATE_DIR",
    "SB0_HTTP_CLIENT",
    "SB0_INSTALLER_LOG_LEVEL",
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.head = _block_network
    requests.Session.request = _block_network


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Give every test its own HOME and data directory and clear installer overrides.

    platformdirs.user_data_dir is patched so the platform default data directory
    points inside the temporary layout.
    """
    base = tmp_path_factory.mktemp("sb0-env")
    home = base / "home"
    data_dir = home / ".local" / "share" / "sb0"
    home.mkdir(parents=True, exist_ok=True)

    for name in _INSTALLER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(
        platformdirs, "user_data_dir", lambda *_args, **_kwargs: str(data_dir)
    )


@pytest.fixture(autouse=True)
def _propagate_installer_logs(monkeypatch):
    """Let caplog see records from the installer logger, which normally does not propagate."""
    monkeypatch.setattr(log_utils.logger, "propagate", True)


@pytest.fixture
def make_tarball():
    return build_tarball


@pytest.fixture
def install_layout(tmp_path):
    """Install, data and temp directories under tmp_path."""
    layout = {
        "install_dir": tmp_path / "bin",
        "data_dir": tmp_path / "data",
        "temp_root": tmp_path / "tmp",
    }
    layout["temp_root"].mkdir()
    return layout


@pytest.fixture
def make_config(install_layout):
    """Factory for InstallerConfig values pointing into install_layout."""

    def _make(**overrides):
        data_dir = str(install_layout["data_dir"])
        values = {
            "repo": REPO,
            "install_dir": str(install_layout["install_dir"]),
            "data_dir": data_dir,
            "wheels_dir": str(Path(data_dir) / "wheels"),
            "templates_dir": str(Path(data_dir) / "templates"),
        }
        values.update(overrides)
        return InstallerConfig(**values)

    return _make


@pytest.fixture
def release_transport():
    """FakeTransport serving a complete v2.0.0 release and its latest-release listing."""
    return FakeTransport(
        documents={LATEST_URL: '{"tag_name": "v2.0.0", "name": "sb0 2.0.0"}'},
        files=release_files("v2.0.0"),
    )
