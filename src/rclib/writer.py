"""Deploy the managed shell config and merge the sourcing block into startup files."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import (
    ResourceReadError,
    ResourceWriteError,
    StartupReadError,
    StartupWriteError,
)
from .snippet import LINE_TERMINATOR, render_block

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".cli.bak"

# Startup files are opaque user text: keep undecodable bytes and line endings intact
ENCODING = "utf-8"
ERRORS = "surrogateescape"


class Decision(Enum):
    """The user's answer to the update prompt."""
    CONFIRMED = "confirmed"
    DECLINED = "declined"


class ReconcileOutcome(Enum):
    APPLIED = "applied"
    ALREADY_CONFIGURED = "already_configured"
    DECLINED = "declined"


def backup_path_for(path: Path) -> Path:
    return path.with_name(path.name + BACKUP_SUFFIX)


def _read_text(path: Path) -> str:
    with path.open("r", encoding=ENCODING, errors=ERRORS, newline="") as fh:
        return fh.read()


def atomic_write_text(path: Path, text: str) -> None:
    """Replace path with text in one step, or leave it untouched on failure.

    Symlinks are followed so the link itself survives, and an existing
    file keeps its permission bits. The file gets a new inode, so hard
    links, ownership and ACLs are not carried over.
    """
    target = path.resolve() if path.is_symlink() else path
    temp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding=ENCODING,
            errors=ERRORS,
            newline="",
            dir=str(target.parent),
            prefix=target.name + ".",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            temp_path = Path(tmp.name)
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        if target.exists():
            shutil.copymode(target, temp_path)
        else:
            os.chmod(temp_path, 0o644)
        os.replace(temp_path, target)
    finally:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink(missing_ok=True)


def deploy_managed_resource(source_path: Path, destination_path: Path) -> Path:
    """Copy the managed shell config verbatim, overwriting the destination."""
    try:
        text = _read_text(source_path)
    except OSError as e:
        raise ResourceReadError(source_path, e) from e

    # The user config dir is created by ToolConfig, never here
    if not destination_path.parent.is_dir():
        raise ResourceWriteError(destination_path)
    try:
        atomic_write_text(destination_path, text)
    except OSError as e:
        raise ResourceWriteError(destination_path, e) from e

    logger.info("Deployed %s to %s", source_path, destination_path)
    return destination_path


def read_startup_file(path: Path) -> str:
    """Read a shell startup file; a missing file reads as empty."""
    if not path.exists():
        return ""
    try:
        return _read_text(path)
    except OSError as e:
        raise StartupReadError(path, e) from e


def is_configured(content: str, marker: str) -> bool:
    return marker in content


def backup_startup_file(path: Path) -> Optional[Path]:
    """Copy path to its .cli.bak sibling. Failures are logged, not raised."""
    if not path.exists():
        return None
    backup = backup_path_for(path)
    try:
        shutil.copyfile(path, backup)
    except OSError as e:
        # Proceeding without a backup is accepted behaviour
        logger.warning("Could not back up %s to %s: %s", path, backup, e)
        return None
    logger.info("Backed up %s to %s", path, backup)
    return backup


def merged_content(current: str, app_name: str, snippet: str) -> str:
    block = render_block(app_name, snippet)
    existing = current.rstrip(LINE_TERMINATOR)
    if not existing:
        return block
    return existing + LINE_TERMINATOR + LINE_TERMINATOR + block


def reconcile(
    path: Path,
    snippet: str,
    marker: str,
    decision: Decision,
    app_name: str,
    current: Optional[str] = None,
) -> ReconcileOutcome:
    """Merge the snippet into a startup file unless it is already configured.

    Pass ``current`` when the caller has already read the file, so it is
    read only once per install.
    """
    if current is None:
        current = read_startup_file(path)

    if is_configured(current, marker):
        logger.info("Marker %s already present in %s", marker, path)
        return ReconcileOutcome.ALREADY_CONFIGURED

    if decision is Decision.DECLINED:
        return ReconcileOutcome.DECLINED

    new_content = merged_content(current, app_name, snippet)
    backup_startup_file(path)
    try:
        atomic_write_text(path, new_content)
    except OSError as e:
        raise StartupWriteError(path, e) from e

    logger.info("Wrote %d bytes to %s", len(new_content), path)
    return ReconcileOutcome.APPLIED
