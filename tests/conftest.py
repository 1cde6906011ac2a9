import time
from pathlib import Path

import platformdirs
import pytest
import requests

from assetmirror.index import Asset, AssetArch, AssetOS, AssetType

from factories import BUILD_ID, make_release

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
    """Register the markers used to group the test suite."""
    for marker, description in (
        ("unit", "fast tests without filesystem or process side effects"),
        ("core", "index model: versions, assets, releases, codec"),
        ("storage", "durable writes and index files"),
        ("pipeline", "remote source, reconciliation and orchestration"),
        ("infrastructure", "logging, configuration and HTTP helpers"),
        ("user_interface", "command-line interface"),
    ):
        config.addinivalue_line("markers", f"{marker}: {description}")


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point XDG and platformdirs user directories at a temporary tree.

    Keeps a developer's real configuration file out of CLI and config tests.
    """
    base = tmp_path_factory.mktemp("assetmirror")
    cache_dir = base / "cache"
    state_dir = base / "state"
    config_dir = base / "config"
    data_dir = base / "data"
    log_dir = state_dir / "log"

    for path in (cache_dir, state_dir, config_dir, data_dir, log_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_STATE_HOME", str(state_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("XDG_DATA_HOME", str(data_dir))

    monkeypatch.setattr(
        platformdirs, "user_cache_dir", lambda *_args, **_kwargs: str(cache_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_state_dir", lambda *_args, **_kwargs: str(state_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_data_dir", lambda *_args, **_kwargs: str(data_dir)
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
    requests.patch = _block_network
    requests.options = _block_network
    requests.Session.request = _block_network


@pytest.fixture(autouse=True)
def _mock_time_sleep(monkeypatch):
    """
    Make time.sleep instant for all tests to prevent delays.

    The GitHub API helper pauses after every request.
    """
    monkeypatch.setattr(time, "sleep", lambda *_args, **_kwargs: None)


# =============================================================================
# Index fixtures
# =============================================================================


@pytest.fixture
def sample_releases():
    """Two releases with a mix of asset kinds, one of them carrying a build ID."""
    return [
        make_release(
            "v1.0.0",
            1,
            0,
            0,
            build_id=BUILD_ID,
            id=100,
            name="First",
            body="Initial release",
            assets=[
                Asset(
                    url="https://api.github.com/tarball/v1.0.0",
                    name="source.tar.gz",
                    os=AssetOS.ANY,
                    arch=AssetArch.ANY,
                    type=AssetType.SOURCE_TAR,
                ),
                Asset(
                    id=11,
                    url="https://github.com/downloads/11/myapp-linux-amd64",
                    name="myapp-linux-amd64",
                    base="myapp",
                    os=AssetOS.LINUX,
                    arch=AssetArch.AMD64,
                    type=AssetType.EXECUTABLE,
                ),
            ],
        ),
        make_release("v1.1.0-rc.1", 1, 1, 0, prerelease="rc.1", id=101),
    ]


@pytest.fixture
def output_dir(tmp_path) -> Path:
    path = tmp_path / "mirror"
    path.mkdir()
    return path
