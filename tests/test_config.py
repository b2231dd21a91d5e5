"""Tests for config module: env loading, defaults, save_to_env, ensure_loaded."""

import os

import pytest


class TestDefaults:
    def test_api_url_ends_with_slash(self):
        from avocado_sync import config

        assert config.AVOCADO_API_URL.endswith("/")

    def test_numeric_settings_are_ints(self):
        from avocado_sync import config

        assert isinstance(config.HTTP_TIMEOUT, int)
        assert isinstance(config.SYNC_CHECK_SECONDS, int)

    def test_config_dir_exists(self):
        from avocado_sync import config

        assert config.CONFIG_DIR.is_dir()


class TestSaveToEnv:
    """Tests for config.save_to_env()."""

    def test_creates_new_key(self, tmp_path, monkeypatch):
        from avocado_sync import config

        env_file = tmp_path / ".env"
        env_file.write_text("EXISTING=value\n")
        monkeypatch.setattr(config, "ENV_PATH", env_file)
        monkeypatch.delenv("NEW_KEY", raising=False)

        config.save_to_env("NEW_KEY", "new_value")
        text = env_file.read_text()
        assert "NEW_KEY=new_value" in text
        assert "EXISTING=value" in text
        monkeypatch.delenv("NEW_KEY", raising=False)

    def test_updates_existing_key(self, tmp_path, monkeypatch):
        from avocado_sync import config

        env_file = tmp_path / ".env"
        env_file.write_text("OBSIDIAN_VAULT_PATH=/old\nOTHER=keep\n")
        monkeypatch.setattr(config, "ENV_PATH", env_file)
        monkeypatch.setenv("OBSIDIAN_VAULT_PATH", "/old")

        config.save_to_env("OBSIDIAN_VAULT_PATH", "/new")
        text = env_file.read_text()
        assert "OBSIDIAN_VAULT_PATH=/new" in text
        assert "OBSIDIAN_VAULT_PATH=/old" not in text
        assert "OTHER=keep" in text

    def test_creates_env_file_if_missing(self, tmp_path, monkeypatch):
        from avocado_sync import config

        env_file = tmp_path / ".env"
        monkeypatch.setattr(config, "ENV_PATH", env_file)
        monkeypatch.delenv("BRAND_NEW", raising=False)

        config.save_to_env("BRAND_NEW", "val")
        assert env_file.exists()
        assert "BRAND_NEW=val" in env_file.read_text()
        monkeypatch.delenv("BRAND_NEW", raising=False)

    def test_sets_env_file_permissions(self, tmp_path, monkeypatch):
        from avocado_sync import config

        env_file = tmp_path / ".env"
        monkeypatch.setattr(config, "ENV_PATH", env_file)
        monkeypatch.delenv("SECRET", raising=False)

        config.save_to_env("SECRET", "value")
        assert env_file.stat().st_mode & 0o777 == 0o600
        monkeypatch.delenv("SECRET", raising=False)

    def test_sets_os_environ(self, tmp_path, monkeypatch):
        from avocado_sync import config

        env_file = tmp_path / ".env"
        monkeypatch.setattr(config, "ENV_PATH", env_file)
        monkeypatch.setenv("AVOCADO_TEST_KEY", "before")

        config.save_to_env("AVOCADO_TEST_KEY", "after")
        assert os.environ["AVOCADO_TEST_KEY"] == "after"


class TestEnsureLoaded:
    def test_missing_vault_path_exits(self, tmp_path, monkeypatch, capsys):
        from avocado_sync import config

        monkeypatch.setattr(config, "_loaded", False)
        monkeypatch.setattr(config, "ENV_PATH", tmp_path / ".env")
        monkeypatch.setattr(config, "OBSIDIAN_VAULT_PATH", "")
        monkeypatch.delenv("OBSIDIAN_VAULT_PATH", raising=False)

        with pytest.raises(SystemExit):
            config.ensure_loaded()
        assert "--init" in capsys.readouterr().out

    def test_loads_vault_path_from_env(self, monkeypatch):
        from avocado_sync import config

        monkeypatch.setattr(config, "_loaded", False)
        monkeypatch.setattr(config, "OBSIDIAN_VAULT_PATH", "")
        monkeypatch.setenv("OBSIDIAN_VAULT_PATH", "/vaults/main")

        config.ensure_loaded()
        assert config.OBSIDIAN_VAULT_PATH == "/vaults/main"

    def test_placeholder_value_is_rejected(self, tmp_path, monkeypatch, capsys):
        from avocado_sync import config

        env_file = tmp_path / ".env"
        env_file.write_text("OBSIDIAN_VAULT_PATH=your_vault_path\n")
        monkeypatch.setattr(config, "_loaded", False)
        monkeypatch.setattr(config, "ENV_PATH", env_file)
        monkeypatch.setattr(config, "OBSIDIAN_VAULT_PATH", "")
        monkeypatch.setenv("OBSIDIAN_VAULT_PATH", "your_vault_path")

        with pytest.raises(SystemExit):
            config.ensure_loaded()
        assert "OBSIDIAN_VAULT_PATH is not set" in capsys.readouterr().out
