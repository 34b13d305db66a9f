"""
Manifest of installed tools.

The manifest records, in install order, the manifest names of the
installables last installed successfully into a local directory. It is read
once before installing to decide whether the local directory is already up
to date, and written once after a complete install pass.

Format (localdir/.local-setup-manifest.json):
    {
      "version": 1,
      "installables": ["node-v16.13.0-linux-x64.tar.xz", "gradle-7.4-bin.zip"]
    }
"""

import json
import logging
from pathlib import Path
from typing import List, Sequence

from localsetup.core.exceptions import ManifestReadError
from localsetup.core.filesystem import atomic_write
from localsetup.installable import Installable

logger = logging.getLogger(__name__)

MANIFEST_FILE = ".local-setup-manifest.json"
MANIFEST_VERSION = 1


def manifest_path(localdir: Path) -> Path:
    return Path(localdir) / MANIFEST_FILE


def manifest_names(installs: Sequence[Installable]) -> List[str]:
    return [i.manifest_name for i in installs]


def read_manifest(localdir: Path) -> List[str]:
    """
    Read the persisted manifest of a local directory.

    Returns:
        Installed manifest names in install order; empty if no manifest exists

    Raises:
        ManifestReadError: If the manifest exists but cannot be decoded
    """
    path = manifest_path(localdir)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug(f"No manifest at {path}")
        return []
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestReadError(f"Cannot read manifest {path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestReadError(f"Manifest {path} is not a JSON object")

    version = data.get("version")
    if version != MANIFEST_VERSION:
        raise ManifestReadError(f"Unsupported manifest version {version!r} in {path}")

    names = data.get("installables")
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise ManifestReadError(f"Manifest {path} has no valid installables list")

    return names


def check_manifest(installs: Sequence[Installable], localdir: Path) -> bool:
    """
    Check whether localdir already holds exactly these installables.

    The comparison is order-sensitive: the environment script depends on
    tool order, so a reordered list counts as a change. An unreadable
    manifest counts as a mismatch.

    Returns:
        True if installing can be skipped
    """
    wanted = manifest_names(installs)

    try:
        installed = read_manifest(localdir)
    except ManifestReadError as e:
        logger.warning(f"{e}; reinstalling everything")
        return False

    if installed == wanted:
        logger.debug(f"Manifest in {localdir} is up to date")
        return True

    logger.debug(f"Manifest mismatch: installed={installed} wanted={wanted}")
    return False


def write_manifest(installs: Sequence[Installable], localdir: Path) -> None:
    """Persist the manifest names of installs, replacing any previous manifest."""
    data = {
        "version": MANIFEST_VERSION,
        "installables": manifest_names(installs),
    }
    atomic_write(manifest_path(localdir), json.dumps(data, indent=2) + "\n")
    logger.debug(f"Wrote manifest {manifest_path(localdir)}")


__all__ = [
    "MANIFEST_FILE",
    "manifest_path",
    "manifest_names",
    "read_manifest",
    "check_manifest",
    "write_manifest",
]
