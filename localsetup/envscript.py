"""
Environment script generation.

Every installed tool contributes environment actions; they are folded in
install-list order into one shell script that consumers source:

    $ . LOCALDIR/env.sh

PATH entries are prepended in list order, so directories of a later tool
take precedence over those of an earlier one.
"""

import logging
import re
import shlex
from pathlib import Path
from typing import List, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from localsetup.core.filesystem import atomic_write
from localsetup.installable import (
    AddToPath,
    EnvAction,
    Installable,
    SetVariable,
    add_to_path,
)

logger = logging.getLogger(__name__)

ENV_SCRIPT_FILE = "env.sh"
TEMPLATE_NAME = "env.sh.j2"

_VARIABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _init_jinja2() -> Environment:
    """Create the Jinja2 environment for the packaged templates."""
    template_dir = Path(__file__).parent / "templates"
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["shquote"] = lambda value: shlex.quote(str(value))
    env.tests["path_entry"] = lambda action: isinstance(action, AddToPath)
    return env


_jinja_env = _init_jinja2()


def env_script_path(localdir: Path) -> Path:
    return Path(localdir) / ENV_SCRIPT_FILE


def collect_env_actions(
    installs: Sequence[Installable], localdir: Path
) -> List[EnvAction]:
    """Concatenate env actions of installs, keeping list and per-tool order."""
    actions: List[EnvAction] = []
    for installable in installs:
        actions.extend(installable.env(Path(localdir)))
    return actions


def render_env_script(actions: Sequence[EnvAction], localdir: Path) -> str:
    """
    Render env actions as a shell-sourceable script.

    Raises:
        ValueError: If a variable name is not a valid shell identifier
    """
    for action in actions:
        if isinstance(action, SetVariable) and not _VARIABLE_NAME.match(action.name):
            raise ValueError(f"Invalid environment variable name: {action.name!r}")

    template = _jinja_env.get_template(TEMPLATE_NAME)
    return template.render(actions=list(actions), localdir=str(localdir))


def write_env_script(installs: Sequence[Installable], localdir: Path) -> Path:
    """
    Write localdir/env.sh for the installed installables.

    localdir/bin, where single binaries and tool links are placed, is put
    on PATH first, so every tool contribution takes precedence over it.

    Returns:
        Path to the written script
    """
    localdir = Path(localdir)
    actions: List[EnvAction] = [add_to_path(localdir / "bin")]
    actions.extend(collect_env_actions(installs, localdir))
    content = render_env_script(actions, localdir)
    path = env_script_path(localdir)
    atomic_write(path, content)
    logger.info(f"Wrote environment script {path}")
    return path


__all__ = [
    "ENV_SCRIPT_FILE",
    "env_script_path",
    "collect_env_actions",
    "render_env_script",
    "write_env_script",
]
