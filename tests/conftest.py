from __future__ import annotations

from pathlib import Path

import pytest

from rclib.config import ToolConfig


@pytest.fixture
def home(tmp_path, monkeypatch) -> Path:
    """An empty home directory with a clean shell environment."""
    home_dir = tmp_path / "home" / "u"
    home_dir.mkdir(parents=True)
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("SHELL", "/bin/bash")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("XDG_CONFIG_DIRS", str(tmp_path / "xdg-dirs"))
    monkeypatch.delenv("RCCTL_CONFIG", raising=False)
    monkeypatch.delenv("PLATFORM_PROJECT", raising=False)
    monkeypatch.delenv("PLATFORM_APP_DIR", raising=False)
    return home_dir


@pytest.fixture
def tool_config(home) -> ToolConfig:
    return ToolConfig(application_name="Tool", user_config_dir=home / ".tool")
