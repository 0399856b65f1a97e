"""Unit tests for vault settings and run context."""

import json
from pathlib import Path

import pytest


class TestVaultConfig:
    """Tests for the persisted settings record."""

    def test_defaults(self):
        """Fresh settings encrypt with AES and keep vaults sealed."""
        from strongbox.vault.config import VaultConfig

        config = VaultConfig()

        assert config.active_db == ""
        assert config.cipher == "aes"
        assert config.kdf == "auto"
        assert config.auto_encrypt is True
        assert config.keep_encrypted is True

    def test_to_dict_uses_file_keys(self):
        """keep_encrypted is stored under encrypt_on."""
        from strongbox.vault.config import VaultConfig

        data = VaultConfig(keep_encrypted=False).to_dict()

        assert data["encrypt_on"] is False
        assert "keep_encrypted" not in data

    def test_from_dict_ignores_unknown(self):
        """Unknown keys are dropped and missing keys defaulted."""
        from strongbox.vault.config import VaultConfig

        config = VaultConfig.from_dict({"cipher": "xchacha", "theme": "dark"})

        assert config.cipher == "xchacha"
        assert config.auto_encrypt is True

    def test_from_dict_unknown_kdf(self, caplog):
        """An unknown kdf falls back to auto with a warning."""
        from strongbox.vault.config import VaultConfig

        with caplog.at_level("WARNING", logger="strongbox"):
            config = VaultConfig.from_dict({"kdf": "bcrypt"})

        assert config.kdf == "auto"
        assert "bcrypt" in caplog.text

    def test_cipher_name(self):
        """Aliases normalize to a suite name."""
        from strongbox.vault.config import VaultConfig

        assert VaultConfig(cipher="chacha").cipher_name == "xchacha"

    def test_active_path(self, vault_file: Path, tmp_path: Path):
        """active_path is None unless the file exists."""
        from strongbox.vault.config import VaultConfig

        assert VaultConfig(active_db=str(vault_file)).active_path == vault_file
        assert VaultConfig(active_db=str(tmp_path / "gone.db")).active_path is None
        assert VaultConfig().active_path is None


class TestConfigFile:
    """Tests for loading and saving settings."""

    def test_load_creates_defaults(self, config_dir: Path):
        """First load writes a default settings file."""
        from strongbox.vault.config import load_vault_config

        config = load_vault_config(config_dir)
        config_file = config_dir / "config.json"

        assert config_file.exists()
        assert config.path == str(config_file)
        assert json.loads(config_file.read_text())["cipher"] == "aes"

    def test_load_uses_env_dir(self, config_dir: Path):
        """Without an argument the STRONGBOX_CONFIG_DIR directory is used."""
        from strongbox.vault.config import default_config_dir, load_vault_config

        config = load_vault_config()

        assert default_config_dir() == config_dir
        assert Path(config.path).parent == config_dir

    def test_default_dir_xdg(self, tmp_path: Path, monkeypatch):
        """XDG_CONFIG_HOME is honored when no explicit directory is set."""
        from strongbox.vault.config import default_config_dir

        monkeypatch.delenv("STRONGBOX_CONFIG_DIR")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

        assert default_config_dir() == tmp_path / "xdg" / "strongbox"

    def test_update_roundtrip(self, config_dir: Path, vault_file: Path):
        """Updated settings are read back unchanged."""
        from strongbox.vault.config import load_vault_config, update_vault_config

        config = load_vault_config(config_dir)
        config.active_db = str(vault_file)
        config.cipher = "xchacha"
        config.kdf = "argon2"
        config.keep_encrypted = False
        update_vault_config(config)

        reloaded = load_vault_config(config_dir)

        assert reloaded.active_db == str(vault_file)
        assert reloaded.cipher == "xchacha"
        assert reloaded.kdf == "argon2"
        assert reloaded.keep_encrypted is False

    def test_load_bad_json(self, config_dir: Path):
        """A damaged settings file raises ConfigError."""
        from strongbox.vault.config import load_vault_config
        from strongbox.vault.exceptions import ConfigError

        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text("{not json")

        with pytest.raises(ConfigError, match="Error parsing config"):
            load_vault_config(config_dir)

    def test_load_not_object(self, config_dir: Path):
        """A JSON list is not a settings record."""
        from strongbox.vault.config import load_vault_config
        from strongbox.vault.exceptions import ConfigError

        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text("[1, 2]")

        with pytest.raises(ConfigError):
            load_vault_config(config_dir)

    @pytest.mark.parametrize("key", ["auto_encrypt", "encrypt_on"])
    @pytest.mark.parametrize("value", ['"false"', "0", "null"])
    def test_load_non_boolean_flag(self, config_dir: Path, key, value):
        """Flags must be JSON booleans; strings and numbers are rejected."""
        from strongbox.vault.config import load_vault_config
        from strongbox.vault.exceptions import ConfigError

        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text(f'{{"{key}": {value}}}')

        with pytest.raises(ConfigError, match=key):
            load_vault_config(config_dir)

    def test_update_without_path(self):
        """Settings without a file path can't be saved."""
        from strongbox.vault.config import VaultConfig, update_vault_config
        from strongbox.vault.exceptions import ConfigError

        with pytest.raises(ConfigError):
            update_vault_config(VaultConfig())


class TestVaultContext:
    """Tests for run overrides and the threaded context."""

    def test_overrides_from_env(self, monkeypatch):
        """Environment variables populate overrides."""
        from strongbox.vault.config import RunOverrides

        monkeypatch.setenv("STRONGBOX_CIPHER", "xchacha")
        monkeypatch.setenv("STRONGBOX_ASSUME_YES", "true")

        overrides = RunOverrides.from_env()

        assert overrides.cipher == "xchacha"
        assert overrides.assume_yes is True

    def test_overrides_default(self):
        """Without environment variables nothing is overridden."""
        from strongbox.vault.config import RunOverrides

        overrides = RunOverrides.from_env()

        assert overrides.cipher is None
        assert overrides.assume_yes is False

    def test_cipher_override_wins(self, context):
        """A per-run cipher beats the persisted one."""
        assert context.cipher == "aes"

        context.overrides.cipher = "chacha"

        assert context.cipher == "xchacha"
        assert context.config.cipher == "aes"

    def test_load(self, config_dir: Path, make_prompter):
        """load() reads settings and keeps the given prompter."""
        from strongbox.vault.config import RunOverrides, VaultContext

        prompter = make_prompter()
        context = VaultContext.load(config_dir, RunOverrides(cipher="xchacha"), prompter)

        assert context.prompter is prompter
        assert context.cipher == "xchacha"
        assert context.kdf == "auto"

    def test_confirm_assume_yes(self, context, make_prompter):
        """assume_yes answers confirmations without prompting."""
        context.prompter = make_prompter(confirm_answer=False)

        assert context.confirm("Continue?") is False

        context.overrides.assume_yes = True

        assert context.confirm("Continue?") is True
