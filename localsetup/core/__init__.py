"""
Core functionality for local-setup.

This package contains the foundational modules the installers and the setup
pipeline depend on: platform dispatch, the download cache, filesystem
primitives and the exception hierarchy.
"""

from .platform import (
    PlatformKey,
    MultiPlatform,
    get_host_platform,
    clear_platform_cache,
    for_platform,
    map_platform,
)

from .download import (
    DownloadFile,
    DownloadProgress,
    get_cache_dir,
    cached_download,
)

from .filesystem import (
    FilesystemError,
    LinkCreationError,
    ArchiveExtractionError,
    InsecureArchiveError,
)

from .exceptions import (
    LocalSetupError,
    ConfigError,
    PlatformError,
    UnsupportedPlatformError,
    MissingPlatformVariantError,
    DownloadError,
    DownloadTimeoutError,
    InstallError,
    InstallExecutionError,
    InstallStepError,
    ManifestReadError,
)

__all__ = [
    "PlatformKey",
    "MultiPlatform",
    "get_host_platform",
    "clear_platform_cache",
    "for_platform",
    "map_platform",
    "DownloadFile",
    "DownloadProgress",
    "get_cache_dir",
    "cached_download",
    "FilesystemError",
    "LinkCreationError",
    "ArchiveExtractionError",
    "InsecureArchiveError",
    "LocalSetupError",
    "ConfigError",
    "PlatformError",
    "UnsupportedPlatformError",
    "MissingPlatformVariantError",
    "DownloadError",
    "DownloadTimeoutError",
    "InstallError",
    "InstallExecutionError",
    "InstallStepError",
    "ManifestReadError",
]
