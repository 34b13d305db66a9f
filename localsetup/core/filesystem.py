"""
File system utilities for local-setup.

This module provides the file operations the install strategies build on:
- Archive extraction (zip, tar.gz, tar.xz) with path validation
- Symlink creation that replaces stale links
- Executable bit handling
- Atomic writes for the manifest and environment script
"""

import os
import shutil
import stat
import sys
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import List, Literal, Union

from localsetup.core.exceptions import LocalSetupError


# ============================================================================
# Error Handling
# ============================================================================


class FilesystemError(LocalSetupError):
    """Base exception for filesystem operations."""

    pass


class LinkCreationError(FilesystemError):
    """Failed to create a symbolic link."""

    pass


class ArchiveExtractionError(FilesystemError):
    """Failed to extract an archive."""

    pass


class InsecureArchiveError(ArchiveExtractionError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


Compression = Literal["gzip", "xz"]

_TAR_MODES = {
    "gzip": "r:gz",
    "xz": "r:xz",
}


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Reject archive members that would land outside destination.

    Raises:
        InsecureArchiveError: If the member path is absolute or escapes
    """
    if os.path.isabs(path) or path.startswith(("/", "\\")):
        raise InsecureArchiveError(f"Archive contains absolute path: {path}")

    resolved = (destination / path).resolve()
    if not resolved.is_relative_to(destination.resolve()):
        raise InsecureArchiveError(f"Archive member escapes destination: {path}")


def _validate_link_target(link: Path, link_target: str, destination: Path) -> None:
    """
    Reject symlink members pointing outside destination.

    Raises:
        InsecureArchiveError: If the link target is absolute or escapes
    """
    if os.path.isabs(link_target) or link_target.startswith(("/", "\\")):
        raise InsecureArchiveError(
            f"Archive symlink {link.name} has absolute target: {link_target}"
        )

    resolved = (link.parent / link_target).resolve()
    if not resolved.is_relative_to(destination.resolve()):
        raise InsecureArchiveError(
            f"Archive symlink {link.name} escapes destination: {link_target}"
        )


def extract_zip(
    archive_path: Union[str, Path], destination: Union[str, Path]
) -> List[Path]:
    """
    Extract a zip archive, keeping the unix permissions recorded in it.

    zipfile drops permission bits on extraction, which would leave the
    binaries of a tool distribution non-executable, so they are reapplied
    from each member's external attributes. Symlink members are recreated
    as symlinks.

    Returns:
        Paths of the extracted members

    Raises:
        ArchiveExtractionError: If the archive is missing or corrupt
        InsecureArchiveError: If the archive contains malicious paths
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)

    extracted_paths = []
    try:
        with zipfile.ZipFile(archive_path, "r") as zf:
            members = zf.infolist()
            for member in members:
                _validate_archive_path(member.filename, destination)

            for member in members:
                mode = member.external_attr >> 16
                target = destination / member.filename

                # Earlier symlink members may redirect this path
                _validate_archive_path(member.filename, destination)

                if stat.S_ISLNK(mode):
                    link_target = zf.read(member).decode("utf-8")
                    _validate_link_target(target, link_target, destination)
                    target.parent.mkdir(parents=True, exist_ok=True)
                    if target.is_symlink() or target.exists():
                        target.unlink()
                    os.symlink(link_target, target)
                    extracted_paths.append(target)
                    continue

                extracted = Path(zf.extract(member, destination))
                if mode and not member.is_dir():
                    extracted.chmod(stat.S_IMODE(mode))
                extracted_paths.append(extracted)
    except InsecureArchiveError:
        raise
    except (zipfile.BadZipFile, OSError, UnicodeDecodeError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e

    return extracted_paths


def extract_tar(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    compression: Compression,
) -> None:
    """
    Extract a compressed tar archive.

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract to
        compression: 'gzip' or 'xz'

    Raises:
        ValueError: If compression is not recognized
        ArchiveExtractionError: If extraction fails
        InsecureArchiveError: If the archive contains malicious paths
    """
    try:
        mode = _TAR_MODES[compression]
    except KeyError:
        raise ValueError(
            f"Unsupported tar compression: {compression}. "
            f"Supported: {', '.join(_TAR_MODES)}"
        ) from None

    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    destination.mkdir(parents=True, exist_ok=True)

    try:
        with tarfile.open(archive_path, mode) as tar:
            for member in tar.getmembers():
                _validate_archive_path(member.name, destination)

            # Extract with filter for security (Python 3.12+)
            # For older Python, we've already validated paths above
            if sys.version_info >= (3, 12):
                tar.extractall(destination, filter="data")
            else:
                tar.extractall(destination)
    except InsecureArchiveError:
        raise
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e


# ============================================================================
# Links and Permissions
# ============================================================================


def ensure_symlink(source: Union[str, Path], link: Union[str, Path]) -> None:
    """
    Create link pointing at source, replacing an existing file or link.

    Missing parent directories of link are created. The source does not
    have to exist yet.

    Raises:
        LinkCreationError: If link exists as a directory or creation fails
    """
    source = Path(source)
    link = Path(link)

    link.parent.mkdir(parents=True, exist_ok=True)

    if link.is_symlink() or link.is_file():
        link.unlink()
    elif link.is_dir():
        raise LinkCreationError(
            f"Link path exists as a directory: {link}. "
            "Please remove it manually if you want to create a link."
        )

    try:
        os.symlink(source, link)
    except OSError as e:
        raise LinkCreationError(f"Failed to link {link} -> {source}: {e}") from e


def make_executable(path: Union[str, Path]) -> None:
    """Add execute permission wherever read permission is set."""
    path = Path(path)
    mode = path.stat().st_mode
    path.chmod(mode | ((mode & 0o444) >> 2))


def copy_file(source: Union[str, Path], destination: Union[str, Path]) -> Path:
    """Copy a file, creating the destination directory."""
    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        shutil.copyfile(source, destination)
    except OSError as e:
        raise FilesystemError(f"Failed to copy {source} to {destination}: {e}") from e
    return destination


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    This ensures the file is never in a partially-written state.
    If the write fails, the original file (if any) remains unchanged.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Create temp file in same directory (ensures same filesystem)
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            with open(temp_fd, "w", encoding=encoding) as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def safe_rmtree(path: Union[str, Path]) -> None:
    """
    Remove a directory tree if it exists.

    Raises:
        FilesystemError: If path is not a directory or deletion fails
    """
    path = Path(path)

    if not path.exists():
        return

    if not path.is_dir() or path.is_symlink():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        shutil.rmtree(path)
    except OSError as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


__all__ = [
    "FilesystemError",
    "LinkCreationError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "Compression",
    "extract_zip",
    "extract_tar",
    "ensure_symlink",
    "make_executable",
    "copy_file",
    "atomic_write",
    "safe_rmtree",
]
