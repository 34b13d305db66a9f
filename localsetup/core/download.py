"""
Download cache for tool archives.

Archives are stored in a cache directory shared by every local directory,
keyed by their cached name. A cached file is reused without any network
access; a missing one is streamed to a temporary file and renamed into place
only once the transfer completed, so an interrupted or failed download never
leaves a truncated file under the final name.

Cache location:
    $LOCAL_SETUP_CACHE_DIR, or ~/.local-setup/downloads
"""

import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException, Timeout

from localsetup.core.exceptions import (
    ConfigError,
    DownloadError,
    DownloadTimeoutError,
)

logger = logging.getLogger(__name__)

CACHE_DIR_ENV = "LOCAL_SETUP_CACHE_DIR"
TIMEOUT_ENV = "LOCAL_SETUP_DOWNLOAD_TIMEOUT"

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class DownloadFile:
    """A remote artifact and the name it is cached under."""

    url: str
    cached_name: str

    def __post_init__(self):
        if not self.url:
            raise ValueError("URL cannot be empty")
        if not self.cached_name or "/" in self.cached_name or "\\" in self.cached_name:
            raise ValueError(f"Invalid cached name: {self.cached_name!r}")


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second

    def __str__(self) -> str:
        return format_progress(self)


def get_cache_dir() -> Path:
    """
    Get the download cache directory.

    Returns:
        $LOCAL_SETUP_CACHE_DIR if set, otherwise ~/.local-setup/downloads
    """
    override = os.environ.get(CACHE_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".local-setup" / "downloads"


def get_download_timeout() -> Optional[float]:
    """
    Get the transfer timeout from $LOCAL_SETUP_DOWNLOAD_TIMEOUT.

    Returns:
        Timeout in seconds, or None when unset (wait indefinitely)

    Raises:
        ConfigError: If the variable is not a positive number
    """
    raw = os.environ.get(TIMEOUT_ENV)
    if not raw:
        return None
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigError(f"{TIMEOUT_ENV} must be a number, got {raw!r}") from None
    if timeout <= 0:
        raise ConfigError(f"{TIMEOUT_ENV} must be positive, got {raw!r}")
    return timeout


def cached_download(
    file: DownloadFile,
    cache_dir: Optional[Path] = None,
    timeout: Optional[float] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
) -> Path:
    """
    Return the local path of a cached artifact, downloading it on a miss.

    Args:
        file: Artifact to fetch
        cache_dir: Cache directory (default: get_cache_dir())
        timeout: Transfer timeout in seconds (default: get_download_timeout())
        progress_callback: Optional callback for progress updates

    Returns:
        Path to the cached file

    Raises:
        DownloadError: If the transfer fails
        DownloadTimeoutError: If the transfer times out

    Example:
        >>> path = cached_download(DownloadFile(url, "yarn-v1.22.15.tar.gz"))
    """
    cache_dir = Path(cache_dir) if cache_dir is not None else get_cache_dir()
    if timeout is None:
        timeout = get_download_timeout()

    destination = cache_dir / file.cached_name
    if destination.is_file():
        logger.debug(f"Cache hit for {file.cached_name}: {destination}")
        return destination

    try:
        cache_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DownloadError(f"Cannot create cache directory {cache_dir}: {e}") from e

    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=cache_dir, prefix=f".{file.cached_name}.", suffix=".part"
    )
    os.close(temp_fd)
    temp_path = Path(temp_path_str)

    try:
        _stream_to_file(file.url, temp_path, timeout, progress_callback)
        temp_path.replace(destination)
    except Timeout as e:
        raise DownloadTimeoutError(
            f"Timed out downloading {file.url} after {timeout}s"
        ) from e
    except (RequestException, OSError) as e:
        raise DownloadError(f"Failed to download {file.url}: {e}") from e
    finally:
        # Partial data never survives under any name
        temp_path.unlink(missing_ok=True)

    logger.info(f"Downloaded {file.cached_name}")
    return destination


def _stream_to_file(
    url: str,
    destination: Path,
    timeout: Optional[float],
    progress_callback: Optional[Callable[[DownloadProgress], None]],
) -> None:
    """Stream url into destination, reporting progress at most twice a second."""
    logger.info(f"Downloading {url}")

    with requests.get(
        url, stream=True, timeout=timeout, allow_redirects=True
    ) as response:
        response.raise_for_status()

        content_length = response.headers.get("content-length")
        total_size = int(content_length) if content_length else 0
        # content-length counts encoded bytes when the body is compressed
        if response.headers.get("content-encoding"):
            total_size = 0

        downloaded = 0
        start_time = time.time()
        last_progress_time = start_time

        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                downloaded += len(chunk)

                current_time = time.time()
                if progress_callback and (
                    current_time - last_progress_time >= 0.5
                    or downloaded == total_size
                ):
                    elapsed = current_time - start_time
                    progress_callback(
                        DownloadProgress(
                            bytes_downloaded=downloaded,
                            total_bytes=total_size or downloaded,
                            percentage=(downloaded / total_size * 100)
                            if total_size
                            else 0,
                            speed_bps=downloaded / elapsed if elapsed > 0 else 0,
                        )
                    )
                    last_progress_time = current_time

    if total_size and downloaded != total_size:
        raise DownloadError(
            f"Incomplete download of {url}: got {downloaded} of {total_size} bytes"
        )


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s"
        )
    return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"


__all__ = [
    "DownloadFile",
    "DownloadProgress",
    "get_cache_dir",
    "get_download_timeout",
    "cached_download",
    "format_progress",
]
