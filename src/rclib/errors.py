"""Error types and message formatting for rcctl."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class InstallError(RuntimeError):
    """Base class for failures that abort a shell configuration install."""

    message = "Shell configuration failed"

    def __init__(self, path: Optional[Path] = None, cause: Optional[BaseException] = None) -> None:
        self.path = path
        self.cause = cause
        super().__init__(self._render())

    def _render(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message}: {self.path}"


class ResourceReadError(InstallError):
    message = "Failed to read file"


class ResourceWriteError(InstallError):
    message = "Failed to write file"


class LocatorNotFound(InstallError):
    message = "Failed to find a shell configuration file."

    def _render(self) -> str:
        return self.message


class StartupReadError(InstallError):
    message = "Failed to read file"


class StartupWriteError(InstallError):
    message = "Failed to modify configuration file"


def format_install_error(error: InstallError) -> str:
    """Format a user-friendly error message for an aborted install."""
    text = str(error)
    cause = error.cause
    if cause is not None and getattr(cause, "strerror", None):
        text = f"{text} ({cause.strerror})"
    return text


def suggest_troubleshooting_steps(error: InstallError) -> list[str]:
    """Suggest troubleshooting steps based on the failure type."""
    suggestions = []

    if isinstance(error, LocatorNotFound):
        suggestions.extend([
            "Create a startup file first, e.g.: touch ~/.bashrc",
            "Check that $HOME points at your home directory",
            "Run 'rcctl self locate' to see which files were considered",
        ])

    elif isinstance(error, (ResourceReadError, ResourceWriteError)):
        suggestions.extend([
            "Check that resource_path in your config points at a readable file",
            "Verify the user config directory is writable",
            "Ensure user_config_dir in your config is an absolute path",
        ])

    elif isinstance(error, (StartupReadError, StartupWriteError)):
        suggestions.extend([
            "Check the permissions of your shell startup file",
            "Check for a leftover .cli.bak file to restore from",
            "Add the configuration manually using 'rcctl self install --no'",
        ])

    return suggestions


def format_config_error(error: Exception) -> str:
    """Format configuration-related error messages."""
    error_str = str(error)

    if "rcctl_config path not found" in error_str.lower():
        return (
            f"Configuration error: {error_str}\n"
            "Either point RCCTL_CONFIG at an existing file, or unset it to use\n"
            "~/.config/rcctl/config.yaml (or the built-in defaults)."
        )

    if "invalid yaml" in error_str.lower() or "expected a mapping" in error_str.lower():
        return (
            f"Configuration error: {error_str}\n"
            "Check your config file syntax."
        )

    return f"Configuration error: {error_str}"
