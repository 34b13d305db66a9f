"""
Pytest configuration and shared fixtures for local-setup tests.
"""

import io
import tarfile
import zipfile
from pathlib import Path
from typing import Dict, Optional

import pytest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# ============================================================================
# Environment Isolation
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Clear local-setup variables so the host environment cannot leak in."""
    for name in (
        "LOCAL_ENV_EXCLUDE",
        "LOCAL_SETUP_PLATFORM",
        "LOCAL_SETUP_CACHE_DIR",
        "LOCAL_SETUP_DOWNLOAD_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_caches():
    """Reset module-level caches between tests."""
    from localsetup.core import platform

    platform.clear_platform_cache()
    yield
    platform.clear_platform_cache()


@pytest.fixture
def cache_dir(tmp_path, monkeypatch) -> Path:
    """Point the download cache at a temporary directory."""
    path = tmp_path / "cache"
    monkeypatch.setenv("LOCAL_SETUP_CACHE_DIR", str(path))
    return path


@pytest.fixture
def localdir(tmp_path) -> Path:
    """Local install directory (not created yet)."""
    return tmp_path / "local"


@pytest.fixture
def no_network(monkeypatch):
    """Disable network access for tests."""
    import socket

    def guard(*args, **kwargs):
        raise RuntimeError("Network access not allowed in this test")

    monkeypatch.setattr(socket, "socket", guard)


# ============================================================================
# Archive Builders
# ============================================================================


def make_zip_bytes(files: Dict[str, bytes], modes: Optional[Dict[str, int]] = None):
    """Build a zip archive in memory; modes sets unix permissions per member."""
    modes = modes or {}
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            info = zipfile.ZipInfo(name)
            info.external_attr = (0o100000 | modes.get(name, 0o644)) << 16
            zf.writestr(info, content)
    return buffer.getvalue()


def make_tar_bytes(files: Dict[str, bytes], compression: str = "gz", modes=None):
    """Build a compressed tarball in memory."""
    modes = modes or {}
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode=f"w:{compression}") as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = modes.get(name, 0o644)
            tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


@pytest.fixture
def zip_bytes():
    return make_zip_bytes


@pytest.fixture
def tar_bytes():
    return make_tar_bytes
