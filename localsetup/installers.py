"""
Install strategies.

Each constructor turns a cached artifact into an Installable whose install
action places files under the local directory. The manifest name of an
archive-based installable is the artifact's cached name, which already
carries the tool version and platform.

Strategies:
- raw_binary: the artifact is the executable itself
- zipped_binary: a zip holding executables, unpacked into bin/
- zipped_package: a zip unpacked under the local directory
- tar_package: a gzip or xz tarball unpacked under the local directory
- macos_package: a macOS .pkg expanded with pkgutil
- shell_installer: a self-installing shell script run with --prefix
- deno_script: a deno program installed with the local deno
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from localsetup.core.download import DownloadFile, cached_download
from localsetup.core.exceptions import InstallExecutionError
from localsetup.core.filesystem import (
    Compression,
    copy_file,
    extract_tar,
    extract_zip,
    make_executable,
    safe_rmtree,
)
from localsetup.installable import Installable

logger = logging.getLogger(__name__)

_TAR_COMPRESSION: Dict[str, Compression] = {
    "gzip": "gzip",
    "xz": "xz",
    "--gzip": "gzip",
    "--xz": "xz",
}


def run_command(cmd: Sequence[Union[str, Path]], cwd: Optional[Path] = None) -> str:
    """
    Run an installer subprocess to completion.

    Args:
        cmd: Command and arguments
        cwd: Working directory

    Returns:
        Captured standard output

    Raises:
        InstallExecutionError: If the command cannot start or exits non-zero
    """
    args = [str(part) for part in cmd]
    logger.debug(f"Running: {' '.join(args)}")

    try:
        result = subprocess.run(args, capture_output=True, text=True, cwd=cwd)
    except OSError as e:
        raise InstallExecutionError(args, 127, str(e)) from e

    if result.returncode != 0:
        raise InstallExecutionError(args, result.returncode, result.stderr)

    return result.stdout


def raw_binary(file: DownloadFile, name: str) -> Installable:
    """The downloaded file is the executable; installed as bin/<name>."""

    def install(localdir: Path) -> None:
        binary = cached_download(file)
        logger.info(f"Installing {file.cached_name}")
        target = copy_file(binary, localdir / "bin" / name)
        make_executable(target)

    return Installable(manifest_name=file.cached_name, install=install)


def zipped_binary(file: DownloadFile) -> Installable:
    """A zip of one or more executables, unpacked into bin/."""

    def install(localdir: Path) -> None:
        zipfile = cached_download(file)
        logger.info(f"Installing {file.cached_name}")
        for path in extract_zip(zipfile, localdir / "bin"):
            if path.is_file() and not path.is_symlink():
                make_executable(path)

    return Installable(manifest_name=file.cached_name, install=install)


def zipped_package(file: DownloadFile, subdir: Optional[str] = None) -> Installable:
    """
    A zip unpacked under the local directory.

    The package defines its own layout; subdir nests it one level deeper.
    """

    def install(localdir: Path) -> None:
        zipfile = cached_download(file)
        logger.info(f"Installing {file.cached_name}")
        extract_zip(zipfile, localdir / subdir if subdir else localdir)

    return Installable(manifest_name=file.cached_name, install=install)


def tar_package(file: DownloadFile, compression: str) -> Installable:
    """
    A tarball unpacked under the local directory.

    Args:
        file: Tarball to install
        compression: 'gzip' or 'xz' (tar's '--gzip'/'--xz' flags also accepted)
    """
    try:
        mode = _TAR_COMPRESSION[compression]
    except KeyError:
        raise ValueError(f"Unsupported tar compression: {compression}") from None

    def install(localdir: Path) -> None:
        tarball = cached_download(file)
        logger.info(f"Installing {file.cached_name}")
        extract_tar(tarball, localdir, mode)

    return Installable(manifest_name=file.cached_name, install=install)


def macos_package(file: DownloadFile, prefix: str) -> Installable:
    """
    A macOS installer package expanded into localdir/prefix.

    pkgutil expands every component package into <name>.pkg/Payload; the
    payload contents are moved into the prefix.
    """

    def install(localdir: Path) -> None:
        pkgfile = cached_download(file)
        logger.info(f"Installing {file.cached_name}")

        destination = localdir / prefix
        staging = localdir / f".{file.cached_name}.expanded"
        safe_rmtree(staging)
        try:
            run_command(["pkgutil", "--expand-full", pkgfile, staging])
            destination.mkdir(parents=True, exist_ok=True)

            payloads = sorted(staging.glob("*.pkg/Payload"))
            if (staging / "Payload").is_dir():
                payloads.append(staging / "Payload")

            for payload in payloads:
                for item in payload.iterdir():
                    target = destination / item.name
                    if target.is_dir() and not target.is_symlink():
                        safe_rmtree(target)
                    elif target.exists() or target.is_symlink():
                        target.unlink()
                    shutil.move(str(item), str(target))
        finally:
            safe_rmtree(staging)

    return Installable(manifest_name=file.cached_name, install=install)


def shell_installer(file: DownloadFile, prefix: str) -> Installable:
    """A self-installing shell script, run with --prefix=localdir/prefix."""

    def install(localdir: Path) -> None:
        script = cached_download(file)
        logger.info(f"Installing {file.cached_name}")
        run_command(["/bin/bash", script, f"--prefix={localdir / prefix}"])

    return Installable(manifest_name=file.cached_name, install=install)


def deno_script(name: str, url: str) -> Installable:
    """
    A deno program installed as bin/<name> with the deno in localdir/bin.

    The deno installable must come earlier in the install list.
    """

    def install(localdir: Path) -> None:
        logger.info(f"Installing {name} from {url}")
        run_command(
            [
                localdir / "bin" / "deno",
                "install",
                "--quiet",
                "--root",
                localdir,
                "--force",
                "--allow-all",
                "--name",
                name,
                url,
            ]
        )

    return Installable(manifest_name=f"{name}-{url}", install=install)


__all__ = [
    "run_command",
    "raw_binary",
    "zipped_binary",
    "zipped_package",
    "tar_package",
    "macos_package",
    "shell_installer",
    "deno_script",
]
