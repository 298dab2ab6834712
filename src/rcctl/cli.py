from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Callable

import click
from tabulate import tabulate

from rclib.config import ConfigError, ToolConfig, load_config
from rclib.errors import InstallError, format_config_error, format_install_error, suggest_troubleshooting_steps
from rclib.installer import ShellConfigInstaller
import rclib.locator as locator


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--json-output",
    "json_output",
    is_flag=True,
    help="Output JSON instead of tables (pretty-printed)",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose logging to stderr (what the CLI is doing)",
)
@click.pass_context
def cli(ctx: click.Context, json_output: bool, verbose: bool) -> None:
    """Shell integration CLI.

    Configuration is loaded via XDG or the RCCTL_CONFIG environment
    variable; built-in defaults apply when neither is present.
    """
    ctx.ensure_object(dict)
    ctx.obj["json"] = json_output
    ctx.obj["verbose"] = verbose

    # Configure logging once per process
    level = logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def _load_config_or_exit(log: logging.Logger) -> ToolConfig:
    try:
        log.info("Loading config...")
        cfg = load_config()
        log.info("Loaded config from %s", cfg.source_path or "<defaults>")
    except ConfigError as e:
        click.echo(format_config_error(e), err=True)
        raise SystemExit(1)
    return cfg


def _echo_err(line: str) -> None:
    click.echo(line, err=True)


def _confirmer(assume_yes: bool, assume_no: bool) -> Callable[[str], bool]:
    """Answer prompts from --yes/--no, or ask on the terminal."""
    if assume_yes:
        return lambda _text: True
    if assume_no:
        return lambda _text: False
    return lambda text: click.confirm(text, default=True, err=True)


@cli.group("self")
@click.pass_context
def self_(ctx: click.Context) -> None:  # noqa: D401
    """Commands that manage the CLI's own installation."""
    pass


@click.command("install")
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Update the shell config file without asking")
@click.option("-n", "--no", "assume_no", is_flag=True, help="Only print the lines to add, never update")
@click.pass_context
def self_install(ctx: click.Context, assume_yes: bool, assume_no: bool) -> None:
    """Install or update CLI configuration files.

    Installs shell configuration for the CLI, adding autocompletion
    support and handy aliases. Bash and ZSH are supported.
    """
    log = logging.getLogger("rcctl.install")
    if assume_yes and assume_no:
        click.echo("--yes and --no cannot be used together", err=True)
        raise SystemExit(1)

    cfg = _load_config_or_exit(log)

    installer = ShellConfigInstaller(cfg, confirm=_confirmer(assume_yes, assume_no), echo=_echo_err)
    try:
        log.info("Installing shell configuration into %s", cfg.user_config_dir)
        outcome = installer.install()
        log.info("Install finished: %s", outcome.value)
    except InstallError as e:
        click.echo(format_install_error(e), err=True)
        if ctx.obj.get("verbose"):
            suggestions = suggest_troubleshooting_steps(e)
            if suggestions:
                click.echo("\nTroubleshooting suggestions:", err=True)
                for suggestion in suggestions[:3]:  # Show top 3 suggestions
                    click.echo(f"  • {suggestion}", err=True)
        raise SystemExit(1)

    raise SystemExit(outcome.exit_code)


self_.add_command(self_install)


@cli.group("local", hidden=True)
def local() -> None:
    """Alias of the self commands."""
    pass


local.add_command(self_install)


@self_.command("locate")
@click.pass_context
def self_locate(ctx: click.Context) -> None:
    """Show which shell config file the installer would modify."""
    log = logging.getLogger("rcctl.locate")
    cfg = _load_config_or_exit(log)

    home = Path.home()
    selected = locator.locate_shell_config_file(cfg.env_prefix)
    hosted = locator.hosting_environment_file(cfg.env_prefix)

    rows = []
    for name in locator.candidate_files():
        path = home / name
        rows.append([str(path), "yes" if path.exists() else "—", "yes" if path == selected else "—"])
    if hosted is not None:
        rows.insert(0, [str(hosted), "yes" if hosted.exists() else "—", "yes"])

    if ctx.obj.get("json"):
        out = {
            "shell": os.environ.get("SHELL"),
            "selected": str(selected) if selected else None,
            "candidates": [
                {"path": r[0], "exists": r[1] == "yes", "selected": r[2] == "yes"} for r in rows
            ],
        }
        click.echo(json.dumps(out, indent=2, sort_keys=True))
    else:
        log.info("Rendering %d candidate files", len(rows))
        click.echo(tabulate(rows, headers=["FILE", "EXISTS", "SELECTED"]))

    if selected is None:
        click.echo("Failed to find a shell configuration file.", err=True)
        raise SystemExit(1)


def main() -> None:  # entry point
    cli(standalone_mode=True)


if __name__ == "__main__":  # pragma: no cover
    main()
