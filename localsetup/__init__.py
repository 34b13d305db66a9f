"""
local-setup: provision a reproducible local toolchain directory.

Tools are modelled as installables; a run installs them into a local
directory, writes an environment script and records a manifest so that an
unchanged tool list is skipped on the next run.
"""

__version__ = "0.1.0"

from localsetup.installable import (
    AddToPath,
    EnvAction,
    Installable,
    SetVariable,
    add_to_path,
    set_variable,
    with_env,
    with_post_install,
    with_symlink,
)
from localsetup.config import SetupConfig
from localsetup.runner import run, run_setup

__all__ = [
    "__version__",
    "AddToPath",
    "EnvAction",
    "Installable",
    "SetVariable",
    "add_to_path",
    "set_variable",
    "with_env",
    "with_post_install",
    "with_symlink",
    "SetupConfig",
    "run",
    "run_setup",
]
