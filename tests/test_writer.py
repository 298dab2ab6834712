from __future__ import annotations

import hashlib
import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from rclib.errors import ResourceReadError, ResourceWriteError, StartupReadError, StartupWriteError
from rclib.snippet import build_snippet, marker_for
from rclib.writer import (
    Decision,
    ReconcileOutcome,
    deploy_managed_resource,
    read_startup_file,
    reconcile,
)


def digest(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


@pytest.fixture
def cfg_dir(tmp_path) -> Path:
    d = tmp_path / ".tool"
    d.mkdir()
    return d


@pytest.fixture
def snippet(cfg_dir) -> str:
    return build_snippet(cfg_dir, cfg_dir / "shell-config.rc")


# deploy_managed_resource


@pytest.mark.parametrize("prior", [None, "", "old contents\n" * 50])
def test_deploy_overwrites_destination(tmp_path, cfg_dir, prior):
    source = tmp_path / "source.rc"
    source.write_text("alias x=y\n")
    dest = cfg_dir / "shell-config.rc"
    if prior is not None:
        dest.write_text(prior)

    assert deploy_managed_resource(source, dest) == dest
    assert dest.read_text() == "alias x=y\n"


def test_deploy_missing_source(tmp_path, cfg_dir):
    with pytest.raises(ResourceReadError) as exc:
        deploy_managed_resource(tmp_path / "nope.rc", cfg_dir / "shell-config.rc")
    assert str(exc.value) == f"Failed to read file: {tmp_path / 'nope.rc'}"
    assert not (cfg_dir / "shell-config.rc").exists()


def test_deploy_missing_destination_dir(tmp_path):
    source = tmp_path / "source.rc"
    source.write_text("x")
    dest = tmp_path / "missing" / "shell-config.rc"
    with pytest.raises(ResourceWriteError):
        deploy_managed_resource(source, dest)
    assert not dest.parent.exists()


def test_deploy_write_failure(tmp_path, cfg_dir):
    source = tmp_path / "source.rc"
    source.write_text("x")
    with patch("rclib.writer.os.replace", side_effect=PermissionError(13, "Permission denied")):
        with pytest.raises(ResourceWriteError) as exc:
            deploy_managed_resource(source, cfg_dir / "shell-config.rc")
    assert isinstance(exc.value.cause, PermissionError)
    # No temporary files left behind
    assert list(cfg_dir.iterdir()) == []


# read_startup_file


def test_read_missing_file_is_empty(tmp_path):
    assert read_startup_file(tmp_path / ".bashrc") == ""


def test_read_failure(tmp_path):
    rc = tmp_path / ".bashrc"
    rc.write_text("x")
    with patch("rclib.writer._read_text", side_effect=PermissionError(13, "Permission denied")):
        with pytest.raises(StartupReadError):
            read_startup_file(rc)


def test_read_preserves_line_endings_and_bytes(tmp_path):
    rc = tmp_path / ".bashrc"
    rc.write_bytes(b"a\r\nb\xff\n")
    assert read_startup_file(rc).encode("utf-8", "surrogateescape") == b"a\r\nb\xff\n"


# reconcile


def test_reconcile_appends_block_and_backs_up(tmp_path, cfg_dir, snippet):
    rc = tmp_path / ".bashrc"
    rc.write_text("alias ll='ls -la'\n")

    outcome = reconcile(rc, snippet, marker_for(cfg_dir), Decision.CONFIRMED, "Tool")

    assert outcome is ReconcileOutcome.APPLIED
    assert rc.read_text() == (
        "alias ll='ls -la'\n"
        "\n"
        "# Automatically added by the Tool\n"
        f"{snippet}\n"
    )
    assert (tmp_path / ".bashrc.cli.bak").read_text() == "alias ll='ls -la'\n"


def test_reconcile_trims_trailing_newlines(tmp_path, cfg_dir, snippet):
    rc = tmp_path / ".bashrc"
    rc.write_text("export A=1\n\n\n\n")
    reconcile(rc, snippet, marker_for(cfg_dir), Decision.CONFIRMED, "Tool")
    assert rc.read_text().startswith("export A=1\n\n# Automatically added by the Tool\n")


def test_reconcile_is_idempotent(tmp_path, cfg_dir, snippet):
    rc = tmp_path / ".bashrc"
    rc.write_text("export EDITOR=vim")
    marker = marker_for(cfg_dir)

    assert reconcile(rc, snippet, marker, Decision.CONFIRMED, "Tool") is ReconcileOutcome.APPLIED
    after_first = rc.read_bytes()
    backup_first = (tmp_path / ".bashrc.cli.bak").read_bytes()

    assert reconcile(rc, snippet, marker, Decision.CONFIRMED, "Tool") is ReconcileOutcome.ALREADY_CONFIGURED
    assert rc.read_bytes() == after_first
    assert (tmp_path / ".bashrc.cli.bak").read_bytes() == backup_first


def test_reconcile_marker_anywhere_counts(tmp_path, cfg_dir, snippet):
    rc = tmp_path / ".bashrc"
    rc.write_text(f"# unrelated mention of {cfg_dir}/bin in a comment\n")
    before = digest(rc)

    outcome = reconcile(rc, snippet, marker_for(cfg_dir), Decision.CONFIRMED, "Tool")

    assert outcome is ReconcileOutcome.ALREADY_CONFIGURED
    assert digest(rc) == before
    assert not (tmp_path / ".bashrc.cli.bak").exists()


def test_reconcile_declined_leaves_file_alone(tmp_path, cfg_dir, snippet):
    rc = tmp_path / ".bashrc"
    rc.write_text("alias ll='ls -la'\n")
    before = digest(rc)

    outcome = reconcile(rc, snippet, marker_for(cfg_dir), Decision.DECLINED, "Tool")

    assert outcome is ReconcileOutcome.DECLINED
    assert digest(rc) == before
    assert not (tmp_path / ".bashrc.cli.bak").exists()


def test_reconcile_creates_missing_file_without_backup(tmp_path, cfg_dir, snippet):
    env_file = tmp_path / ".environment"

    outcome = reconcile(env_file, snippet, marker_for(cfg_dir), Decision.CONFIRMED, "Tool")

    assert outcome is ReconcileOutcome.APPLIED
    assert env_file.read_text() == f"# Automatically added by the Tool\n{snippet}\n"
    assert not (tmp_path / ".environment.cli.bak").exists()


def test_reconcile_uses_content_passed_in(tmp_path, cfg_dir, snippet):
    rc = tmp_path / ".bashrc"
    rc.write_text("export A=1\n")
    with patch("rclib.writer.read_startup_file") as read:
        reconcile(rc, snippet, marker_for(cfg_dir), Decision.CONFIRMED, "Tool", current="export A=1\n")
    read.assert_not_called()


def test_reconcile_backup_failure_is_tolerated(tmp_path, cfg_dir, snippet, caplog):
    rc = tmp_path / ".bashrc"
    rc.write_text("export A=1\n")

    with patch("rclib.writer.shutil.copyfile", side_effect=OSError(28, "No space left on device")):
        outcome = reconcile(rc, snippet, marker_for(cfg_dir), Decision.CONFIRMED, "Tool")

    assert outcome is ReconcileOutcome.APPLIED
    assert snippet in rc.read_text()
    assert not (tmp_path / ".bashrc.cli.bak").exists()
    assert "Could not back up" in caplog.text


def test_reconcile_write_failure_keeps_original(tmp_path, cfg_dir, snippet):
    rc = tmp_path / ".bashrc"
    rc.write_text("export A=1\n")

    with patch("rclib.writer.os.replace", side_effect=PermissionError(13, "Permission denied")):
        with pytest.raises(StartupWriteError) as exc:
            reconcile(rc, snippet, marker_for(cfg_dir), Decision.CONFIRMED, "Tool")

    assert str(exc.value) == f"Failed to modify configuration file: {rc}"
    assert rc.read_text() == "export A=1\n"
    assert sorted(p.name for p in tmp_path.iterdir()) == [".bashrc", ".bashrc.cli.bak", ".tool"]


def test_reconcile_preserves_mode(tmp_path, cfg_dir, snippet):
    rc = tmp_path / ".bashrc"
    rc.write_text("export A=1\n")
    os.chmod(rc, 0o600)
    reconcile(rc, snippet, marker_for(cfg_dir), Decision.CONFIRMED, "Tool")
    assert stat.S_IMODE(rc.stat().st_mode) == 0o600


def test_reconcile_writes_through_symlink(tmp_path, cfg_dir, snippet):
    dotfiles = tmp_path / "dotfiles"
    dotfiles.mkdir()
    real = dotfiles / "bashrc"
    real.write_text("export A=1\n")
    rc = tmp_path / ".bashrc"
    rc.symlink_to(real)

    reconcile(rc, snippet, marker_for(cfg_dir), Decision.CONFIRMED, "Tool")

    assert rc.is_symlink()
    assert snippet in real.read_text()


def test_reconcile_replaces_inode_of_hard_linked_file(tmp_path, cfg_dir, snippet):
    rc = tmp_path / ".bashrc"
    rc.write_text("export A=1\n")
    other = tmp_path / "bashrc.link"
    os.link(rc, other)

    reconcile(rc, snippet, marker_for(cfg_dir), Decision.CONFIRMED, "Tool")

    # The startup file is a new inode; other hard links keep the old text
    assert snippet in rc.read_text()
    assert other.read_text() == "export A=1\n"
    assert rc.stat().st_ino != other.stat().st_ino
