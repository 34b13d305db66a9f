"""
Setup configuration.

A SetupConfig holds everything one setup run needs: the local directory, the
ordered tool list, an optional exclude pattern and an optional platform
override. The command line builds it from the environment and an optional
YAML tool list; tests construct it directly with synthetic installables.

Environment variables:
    LOCAL_ENV_EXCLUDE             regex; installables whose manifest name
                                  matches are skipped
    LOCAL_SETUP_PLATFORM          platform key to use instead of detection
    LOCAL_SETUP_CACHE_DIR         download cache directory (see core.download)
    LOCAL_SETUP_DOWNLOAD_TIMEOUT  transfer timeout in seconds (see core.download)

Tool list file:
    tools:
      - name: nodejs
        version: "16.13.0"
      - name: yarn
        version: "1.22.15"
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Pattern

import yaml

from localsetup import packages
from localsetup.core.exceptions import ConfigError, UnsupportedPlatformError
from localsetup.core.platform import PlatformKey
from localsetup.packages import ToolDefinition

logger = logging.getLogger(__name__)

EXCLUDE_ENV = "LOCAL_ENV_EXCLUDE"
PLATFORM_ENV = "LOCAL_SETUP_PLATFORM"


def default_tools() -> List[ToolDefinition]:
    """The tool list installed when no tool list file is given."""
    return [
        packages.deno("1.18.2"),
        packages.helixadl("1.1.6"),
        packages.awscli("2.2.18"),
        packages.nodejs("16.13.0"),
        packages.adoptopenjdk("11.0.12+7"),
        packages.dnit("1.12.9"),
        packages.gradle("7.4"),
        packages.yarn("1.22.15"),
    ]


@dataclass
class SetupConfig:
    """
    Configuration for one setup run.

    Attributes:
        localdir: Directory tools are installed into
        tools: Installables or multi-platform tool definitions, in install order
        exclude: Installables whose manifest name matches are skipped
        platform: Platform override; detected from the host when None
    """

    localdir: Path
    tools: List[ToolDefinition] = field(default_factory=default_tools)
    exclude: Optional[Pattern[str]] = None
    platform: Optional[PlatformKey] = None

    @classmethod
    def from_env(
        cls,
        localdir: Path,
        config_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "SetupConfig":
        """
        Build a configuration from environment variables and a tool list file.

        Args:
            localdir: Directory tools are installed into
            config_file: Optional YAML tool list; the default list otherwise
            environ: Environment to read (default: os.environ)

        Raises:
            ConfigError: If a variable or the tool list file is invalid
        """
        if environ is None:
            environ = os.environ

        exclude = compile_exclude(environ.get(EXCLUDE_ENV))

        platform = None
        platform_override = environ.get(PLATFORM_ENV)
        if platform_override:
            try:
                platform = PlatformKey.parse(platform_override)
            except UnsupportedPlatformError as e:
                raise ConfigError(f"Invalid {PLATFORM_ENV}: {e}") from e

        tools = load_tool_list(config_file) if config_file else default_tools()

        return cls(
            localdir=Path(localdir).expanduser().resolve(),
            tools=tools,
            exclude=exclude,
            platform=platform,
        )


def compile_exclude(pattern: Optional[str]) -> Optional[Pattern[str]]:
    """
    Compile an exclude pattern; None or empty means no filtering.

    Raises:
        ConfigError: If pattern is not a valid regular expression
    """
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid {EXCLUDE_ENV} pattern {pattern!r}: {e}") from e


def load_tool_list(config_file: Path) -> List[ToolDefinition]:
    """
    Load a YAML tool list and build its tool definitions.

    Raises:
        ConfigError: If the file is missing, malformed or names unknown tools
    """
    config_file = Path(config_file)
    logger.debug(f"Loading tool list from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigError(f"Tool list file not found: {config_file}") from None
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Invalid tool list file {config_file}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("tools"), list):
        raise ConfigError(f"{config_file}: expected a top-level 'tools' list")

    tools = []
    for index, entry in enumerate(data["tools"]):
        if not isinstance(entry, dict):
            raise ConfigError(f"{config_file}: tools[{index}] must be a mapping")

        name = entry.get("name")
        version = entry.get("version")

        factory = packages.PACKAGES.get(name) if isinstance(name, str) else None
        if factory is None:
            known = ", ".join(sorted(packages.PACKAGES))
            raise ConfigError(
                f"{config_file}: unknown tool {name!r} in tools[{index}] "
                f"(known: {known})"
            )
        if not isinstance(version, str) or not version:
            raise ConfigError(
                f"{config_file}: tools[{index}] ({name}) needs a version string; "
                "quote numeric versions such as \"7.4\""
            )

        tools.append(factory(version))

    return tools


__all__ = [
    "EXCLUDE_ENV",
    "PLATFORM_ENV",
    "SetupConfig",
    "default_tools",
    "compile_exclude",
    "load_tool_list",
]
