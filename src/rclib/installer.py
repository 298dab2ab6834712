"""Install the rcctl shell configuration for the current user."""

from __future__ import annotations

import logging
import os
import shlex
from enum import Enum
from pathlib import Path
from typing import Callable, Mapping, Optional

from . import locator, snippet, writer
from .config import ToolConfig
from .errors import LocatorNotFound, ResourceWriteError

logger = logging.getLogger(__name__)

CONFIRM_PROMPT = "Do you want to update the file automatically?"


class InstallOutcome(Enum):
    APPLIED = "applied"
    ALREADY_CONFIGURED = "already_configured"
    DECLINED = "declined"

    @property
    def exit_code(self) -> int:
        # Declining is not a defect, but it is reported like a failure
        return 1 if self is InstallOutcome.DECLINED else 0


def source_hint(path: Path, cwd: Optional[Path] = None) -> str:
    """The path to show in a `source <path>` hint."""
    current = cwd or Path.cwd()
    short = path.name if Path(current) == path.parent else str(path)
    if " " in short:
        short = shlex.quote(short)
    return short


class ShellConfigInstaller:
    """Deploy the managed config and wire it into the user's startup file.

    ``confirm`` asks the user a yes/no question and ``echo`` writes one
    status line; both are supplied by the caller so the installer never
    touches the terminal itself.
    """

    def __init__(
        self,
        config: ToolConfig,
        confirm: Callable[[str], bool],
        echo: Callable[[str], None],
        environ: Optional[Mapping[str, str]] = None,
        home: Optional[Path] = None,
        cwd: Optional[Path] = None,
    ) -> None:
        self.config = config
        self.confirm = confirm
        self.echo = echo
        self.environ = os.environ if environ is None else environ
        self.home = home
        self.cwd = cwd

    def deploy(self) -> Path:
        try:
            self.config.ensure_user_config_dir()
        except OSError as e:
            raise ResourceWriteError(self.config.user_config_dir, e) from e

        destination = writer.deploy_managed_resource(
            self.config.resource_path, self.config.shell_config_destination
        )
        self.echo(f"Successfully copied CLI configuration to: {destination}")
        return destination

    def locate(self) -> Path:
        found = locator.locate_shell_config_file(
            self.config.env_prefix, environ=self.environ, home=self.home
        )
        if found is None:
            raise LocatorNotFound()
        return found

    def install(self) -> InstallOutcome:
        destination = self.deploy()
        shell_config_file = self.locate()

        current = ""
        # Checked here only so the "Reading" line is shown for existing files
        if shell_config_file.exists():
            self.echo(f"Reading shell configuration file: {shell_config_file}")
            current = writer.read_startup_file(shell_config_file)

        marker = snippet.marker_for(self.config.user_config_dir)
        if writer.is_configured(current, marker):
            self.echo(f"Already configured: {shell_config_file}")
            return InstallOutcome.ALREADY_CONFIGURED

        suggested = snippet.build_snippet(self.config.user_config_dir, destination)
        decision = writer.Decision.CONFIRMED if self.confirm(CONFIRM_PROMPT) else writer.Decision.DECLINED
        logger.info("User %s the automatic update", decision.value)

        result = writer.reconcile(
            shell_config_file,
            suggested,
            marker,
            decision,
            self.config.application_name,
            current=current,
        )

        if result is writer.ReconcileOutcome.DECLINED:
            self.echo(f"To set up the CLI, add the following lines to: {shell_config_file}")
            self.echo(snippet.render_instructions(self.config.application_name, suggested))
            return InstallOutcome.DECLINED

        self.echo("Updated successfully. Start a new terminal to use the new configuration.")
        self.echo("Or to use it now, type:")
        self.echo(f"  source {source_hint(shell_config_file, self.cwd)}")
        return InstallOutcome.APPLIED
