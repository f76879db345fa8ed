import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the user config at a temp file and clear ZDP_ variables."""
    for key in list(os.environ):
        if key.startswith("ZDP_"):
            monkeypatch.delenv(key)
    user_config = tmp_path / "user" / "config.toml"
    monkeypatch.setattr(
        "zdp.config._discovery.get_user_config_path", lambda: user_config
    )
    return user_config
