from __future__ import annotations

import os
import shlex
from pathlib import Path

LINE_TERMINATOR = os.linesep


def marker_for(user_config_dir: Path) -> str:
    """The substring whose presence means a startup file is already configured."""
    return f"{user_config_dir}/bin"


def build_snippet(user_config_dir: Path, managed_config_path: Path) -> str:
    """Render the PATH export and the conditional source of the managed config."""
    return (
        "export PATH=" + shlex.quote(marker_for(user_config_dir)) + ':"$PATH"'
        + LINE_TERMINATOR
        + '[ "$BASH" ] || [ "$ZSH" ] && . '
        + shlex.quote(str(managed_config_path))
        + " 2>/dev/null || true"
    )


def render_block(app_name: str, snippet: str) -> str:
    return f"# Automatically added by the {app_name}{LINE_TERMINATOR}{snippet}{LINE_TERMINATOR}"


def render_instructions(app_name: str, snippet: str) -> str:
    """Snippet with a comment header, indented for display to the user."""
    lines = ["", f"# {app_name} configuration", *snippet.split(LINE_TERMINATOR)]
    return "\n".join(f"  {line}" for line in lines)
