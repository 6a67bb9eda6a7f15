# Shared fixtures: every test gets its own config dir and fresh settings.
# Created: 2026-09-20

import pytest

from codev.config import get_settings


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point CODEV_CONFIG_DIR at a temp dir and drop cached settings."""
    config_dir = tmp_path / "codev-config"
    monkeypatch.setenv("CODEV_CONFIG_DIR", str(config_dir))
    for name in ("CODEV_CLIENT_ID", "GITHUB_CLIENT_ID", "CODEV_SERVER_URL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield config_dir
    get_settings.cache_clear()
