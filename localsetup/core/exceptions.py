"""
Centralized exception hierarchy for local-setup.

Every error raised by the setup pipeline derives from LocalSetupError so the
command line can report failures uniformly.
"""

from typing import Optional, Sequence


# ============================================================================
# Base Exceptions
# ============================================================================


class LocalSetupError(Exception):
    """Base exception for all local-setup errors."""

    pass


class ConfigError(LocalSetupError):
    """Invalid configuration (environment variables or tool list file)."""

    pass


# ============================================================================
# Platform Exceptions
# ============================================================================


class PlatformError(LocalSetupError):
    """Base exception for platform resolution errors."""

    pass


class UnsupportedPlatformError(PlatformError):
    """Raised when the host OS/architecture has no platform key."""

    def __init__(self, os_name: str, arch: str = ""):
        self.os_name = os_name
        self.arch = arch
        description = f"{os_name}/{arch}" if arch else os_name
        super().__init__(f"Unsupported platform: {description}")


class MissingPlatformVariantError(PlatformError):
    """Raised when a multi-platform tool has no variant for a platform key."""

    def __init__(self, platform_key, available: Sequence = ()):
        self.platform_key = platform_key
        self.available = list(available)
        names = ", ".join(str(k) for k in self.available) or "none"
        super().__init__(
            f"No variant available for platform {platform_key} (available: {names})"
        )


# ============================================================================
# Download Exceptions
# ============================================================================


class DownloadError(LocalSetupError):
    """Raised when fetching an artifact fails."""

    pass


class DownloadTimeoutError(DownloadError):
    """Raised when an artifact transfer exceeds the configured timeout."""

    pass


# ============================================================================
# Install Exceptions
# ============================================================================


class InstallError(LocalSetupError):
    """Base exception for install failures."""

    pass


class InstallExecutionError(InstallError):
    """Raised when a native installer subprocess exits with non-zero status."""

    def __init__(self, cmd: Sequence[str], returncode: int, stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        msg = f"Command {' '.join(self.cmd)} failed with exit status {returncode}"
        if stderr:
            msg += f": {stderr.strip()}"
        super().__init__(msg)


class InstallStepError(InstallError):
    """Raised when a step of one installable fails, naming the installable."""

    def __init__(self, manifest_name: str, step: str, cause: Optional[Exception]):
        self.manifest_name = manifest_name
        self.step = step
        self.cause = cause
        super().__init__(f"Failed to {step} {manifest_name}: {cause}")


# ============================================================================
# Manifest Exceptions
# ============================================================================


class ManifestReadError(LocalSetupError):
    """Raised when a persisted manifest cannot be decoded."""

    pass
