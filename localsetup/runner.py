"""
The setup pipeline.

One run resolves the tool list for a platform, drops excluded installables,
and installs into the local directory unless its manifest already matches:

    resolve -> filter -> check manifest -> install each -> env script -> manifest

Installs run strictly in list order. The first failure aborts the run before
the environment script or manifest is written, so the previous manifest
stays in place and the next run starts over (cheaply, since completed
downloads are cache hits).
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Pattern, Sequence, Union

from localsetup.config import SetupConfig
from localsetup.core.exceptions import InstallStepError, LocalSetupError
from localsetup.core.platform import PlatformKey, for_platform, get_host_platform
from localsetup.envscript import write_env_script
from localsetup.installable import Installable
from localsetup.manifest import check_manifest, write_manifest
from localsetup.packages import ToolDefinition

logger = logging.getLogger(__name__)


def resolve_installables(
    tools: Sequence[ToolDefinition], platform: PlatformKey
) -> List[Installable]:
    """
    Pick the platform variant of every multi-platform tool definition.

    Raises:
        MissingPlatformVariantError: If a tool has no variant for platform
    """
    return [
        tool if isinstance(tool, Installable) else for_platform(tool, platform)
        for tool in tools
    ]


def filter_installables(
    installs: Sequence[Installable], exclude: Optional[Union[str, Pattern[str]]]
) -> List[Installable]:
    """Drop installables whose manifest name matches exclude (re.search)."""
    if not exclude:
        return list(installs)

    kept = []
    for installable in installs:
        if re.search(exclude, installable.manifest_name):
            logger.info(f"Excluding {installable.manifest_name}")
        else:
            kept.append(installable)
    return kept


def run_setup(installs: Sequence[Installable], localdir: Path) -> bool:
    """
    Install installables into localdir unless its manifest already matches.

    Returns:
        False if localdir was up to date, True if an install pass ran

    Raises:
        InstallStepError: If an installable fails; names it and the step
    """
    # Links and env.sh record absolute paths
    localdir = Path(localdir).expanduser().resolve()

    if check_manifest(installs, localdir):
        logger.info(f"{localdir} is up to date")
        return False

    localdir.mkdir(parents=True, exist_ok=True)

    for installable in installs:
        try:
            installable.install(localdir)
        except (LocalSetupError, OSError) as e:
            logger.error(f"Failed to install {installable.manifest_name}: {e}")
            raise InstallStepError(installable.manifest_name, "install", e) from e

    write_env_script(installs, localdir)
    write_manifest(installs, localdir)

    logger.info(f"Installed {len(installs)} tool(s) into {localdir}")
    return True


def run(config: SetupConfig) -> bool:
    """
    Run setup for a configuration.

    Returns:
        False if the local directory was up to date, True otherwise
    """
    platform = config.platform or get_host_platform()
    logger.debug(f"Platform: {platform}")

    installs = resolve_installables(config.tools, platform)
    installs = filter_installables(installs, config.exclude)

    return run_setup(installs, config.localdir)


__all__ = [
    "resolve_installables",
    "filter_installables",
    "run_setup",
    "run",
]
