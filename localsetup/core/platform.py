"""
Platform detection and dispatch for local-setup.

Tools publish a different archive per operating system and CPU architecture.
This module maps the host onto a closed set of platform keys and selects the
matching variant of a multi-platform tool definition.

Usage:
    from localsetup.core.platform import get_host_platform, for_platform

    platform_key = get_host_platform()
    installable = for_platform(packages.nodejs("16.13.0"), platform_key)
"""

import functools
import platform
from enum import Enum
from typing import Callable, Dict, TypeVar

from localsetup.core.exceptions import (
    MissingPlatformVariantError,
    UnsupportedPlatformError,
)

T = TypeVar("T")
U = TypeVar("U")


class PlatformKey(Enum):
    """Supported OS + CPU architecture combinations."""

    LINUX_X86_64 = "linux_x86_64"
    LINUX_AARCH64 = "linux_aarch64"
    DARWIN_X86_64 = "darwin_x86_64"
    DARWIN_AARCH64 = "darwin_aarch64"

    @property
    def os(self) -> str:
        return self.value.split("_", 1)[0]

    @property
    def arch(self) -> str:
        return self.value.split("_", 1)[1]

    @classmethod
    def parse(cls, text: str) -> "PlatformKey":
        """
        Parse a platform key from its string form (e.g. 'darwin_aarch64').

        Raises:
            UnsupportedPlatformError: If text names no known platform
        """
        try:
            return cls(text.strip().lower())
        except ValueError:
            raise UnsupportedPlatformError(text) from None

    def __str__(self) -> str:
        return self.value


# Partial mapping: tools do not have to support every platform
MultiPlatform = Dict[PlatformKey, T]


_OS_NAMES = {
    "linux": "linux",
    "darwin": "darwin",
}

_ARCH_NAMES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}


@functools.lru_cache(maxsize=1)
def get_host_platform() -> PlatformKey:
    """
    Detect the platform key of the running host.

    This function is cached - it only runs detection once per process.

    Returns:
        PlatformKey for the host

    Raises:
        UnsupportedPlatformError: If the OS/architecture is not supported

    Example:
        >>> get_host_platform()
        <PlatformKey.LINUX_X86_64: 'linux_x86_64'>
    """
    system = platform.system().lower()
    machine = platform.machine().lower()

    os_name = _OS_NAMES.get(system)
    arch = _ARCH_NAMES.get(machine)
    if os_name is None or arch is None:
        raise UnsupportedPlatformError(system, machine)

    return PlatformKey(f"{os_name}_{arch}")


def clear_platform_cache():
    """
    Clear the platform detection cache.

    This forces the next call to get_host_platform() to re-detect.
    """
    get_host_platform.cache_clear()


def for_platform(multi: MultiPlatform[T], key: PlatformKey) -> T:
    """
    Select the variant of a multi-platform value for a platform key.

    Args:
        multi: Mapping from platform key to value
        key: Platform to select

    Returns:
        The value registered for key

    Raises:
        MissingPlatformVariantError: If the mapping has no entry for key
    """
    try:
        return multi[key]
    except KeyError:
        raise MissingPlatformVariantError(key, multi.keys()) from None


def map_platform(
    multi: MultiPlatform[T], build: Callable[[T], U]
) -> MultiPlatform[U]:
    """
    Apply build to every present variant, preserving the key set.

    Example:
        >>> installables = map_platform(urls, zipped_binary)
    """
    return {key: build(value) for key, value in multi.items()}


__all__ = [
    "PlatformKey",
    "MultiPlatform",
    "get_host_platform",
    "clear_platform_cache",
    "for_platform",
    "map_platform",
]
