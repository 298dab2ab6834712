"""Find the shell startup file that should carry the rcctl configuration."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Mapping, Optional

logger = logging.getLogger(__name__)

BASH_CANDIDATES = [".bash_profile", ".bashrc"]
ZSH_CANDIDATES = [".zprofile", ".zshrc"]

# Written into the app directory on managed hosting, sourced by the platform
HOSTING_ENV_FILE = ".environment"


def candidate_files(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """Return startup file names in priority order for the user's shell."""
    env = os.environ if environ is None else environ
    candidates = list(BASH_CANDIDATES)
    if os.path.basename(env.get("SHELL", "")) == "zsh":
        candidates = ZSH_CANDIDATES + candidates
    return candidates


def hosting_environment_file(
    env_prefix: str,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Optional[Path]:
    """Return the managed-hosting .environment path when its variables apply."""
    env = os.environ if environ is None else environ
    home_dir = home or Path.home()

    project = env.get(f"{env_prefix}PROJECT")
    app_dir = env.get(f"{env_prefix}APP_DIR")
    if project is None or app_dir is None:
        return None
    if Path(app_dir) != Path(home_dir):
        logger.debug("%sAPP_DIR %s is not the home directory, ignoring", env_prefix, app_dir)
        return None
    return Path(app_dir) / HOSTING_ENV_FILE


def locate_shell_config_file(
    env_prefix: str,
    environ: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Optional[Path]:
    """Return the absolute path of an existing shell config file, or None.

    The managed-hosting .environment file wins whenever its variables are
    set, whether or not it exists yet. Otherwise the first existing
    candidate from candidate_files() in the home directory is returned.
    """
    home_dir = home or Path.home()

    hosted = hosting_environment_file(env_prefix, environ, home_dir)
    if hosted is not None:
        logger.info("Using managed hosting environment file %s", hosted)
        return hosted

    for name in candidate_files(environ):
        path = home_dir / name
        if path.exists():
            logger.info("Found shell config file %s", path)
            return path
        logger.debug("No %s in %s", name, home_dir)

    return None
