"""
The installable abstraction.

An Installable is the uniform unit of a provisionable tool: a manifest name
that fingerprints the installed artifact, an install action that places the
tool under a local directory, and an env function describing the
environment changes the installed tool needs.

Installables are immutable values. Decorators such as with_env() and
with_post_install() return a new Installable closing over the wrapped one.

Example:
    >>> base = tar_package(DownloadFile(url, "yarn-v1.22.15.tar.gz"), "gzip")
    >>> yarn = with_env(base, lambda localdir: [
    ...     add_to_path(localdir / "yarn-v1.22.15" / "bin"),
    ... ])
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, List, Union

from localsetup.core.filesystem import ensure_symlink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetVariable:
    """Export an environment variable."""

    name: str
    value: str


@dataclass(frozen=True)
class AddToPath:
    """Prepend a directory to PATH."""

    directory: str


EnvAction = Union[SetVariable, AddToPath]

InstallFn = Callable[[Path], None]
EnvFn = Callable[[Path], List[EnvAction]]


def set_variable(name: str, value: Union[str, Path]) -> SetVariable:
    return SetVariable(name, str(value))


def add_to_path(directory: Union[str, Path]) -> AddToPath:
    return AddToPath(str(directory))


def no_env(localdir: Path) -> List[EnvAction]:
    return []


@dataclass(frozen=True)
class Installable:
    """
    A provisionable tool.

    Attributes:
        manifest_name: Stable identifier with version/platform baked in
        install: Places the tool under a local directory
        env: Environment actions for an installed tool; pure, called after install
    """

    manifest_name: str
    install: InstallFn
    env: EnvFn = no_env

    def __post_init__(self):
        if not self.manifest_name:
            raise ValueError("Installable manifest name cannot be empty")


def with_env(base: Installable, env_fn: EnvFn) -> Installable:
    """Return base with its env function replaced by env_fn."""
    return replace(base, env=env_fn)


def with_post_install(base: Installable, extra: InstallFn) -> Installable:
    """
    Return base with extra run after its install action.

    extra does not run when base.install raises; the error propagates.
    """

    def install(localdir: Path) -> None:
        base.install(localdir)
        extra(localdir)

    return replace(base, install=install)


def with_symlink(base: Installable, target: str, link: str) -> Installable:
    """
    Return base followed by linking localdir/link to localdir/target.

    Example:
        >>> with_symlink(awscli_zip, "lib/aws/dist/aws", "bin/aws")
    """

    def create_link(localdir: Path) -> None:
        logger.debug(f"Linking {link} -> {target}")
        ensure_symlink(localdir / target, localdir / link)

    return with_post_install(base, create_link)


__all__ = [
    "SetVariable",
    "AddToPath",
    "EnvAction",
    "Installable",
    "set_variable",
    "add_to_path",
    "no_env",
    "with_env",
    "with_post_install",
    "with_symlink",
]
