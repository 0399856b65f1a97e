"""Vault settings for the strongbox encryption engine.

Settings are persisted as a JSON record in the per-user config directory.
They are created with defaults on first run, read before every vault
action, and only changed by rewriting the whole record.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..utils.logging import get_logger
from .atomic import replace
from .crypto import KDF_AUTO, KDF_CHOICES, normalize_cipher_name
from .exceptions import ConfigError, VaultIOError
from .prompt import PassphrasePrompter

logger = get_logger(__name__)

APP_NAME = "strongbox"
CONFIG_FILE = "config.json"


def _bool_setting(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"Setting {key!r} must be true or false, got {value!r}")
    return value


@dataclass
class VaultConfig:
    """Persisted vault settings."""

    active_db: str = ""
    cipher: str = "aes"
    kdf: str = KDF_AUTO
    auto_encrypt: bool = True
    keep_encrypted: bool = True  # stored as "encrypt_on"
    path: str = ""  # settings file this record was loaded from

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "active_db": self.active_db,
            "cipher": self.cipher,
            "kdf": self.kdf,
            "auto_encrypt": self.auto_encrypt,
            "encrypt_on": self.keep_encrypted,
            "path": self.path,
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent="\t")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VaultConfig":
        """
        Create from dictionary, ignoring unknown keys.

        Raises:
            ConfigError: If auto_encrypt or encrypt_on is not a JSON boolean
        """
        kdf = data.get("kdf", KDF_AUTO)
        if kdf not in KDF_CHOICES:
            logger.warning(f"Unknown kdf {kdf!r} in settings, using {KDF_AUTO!r}")
            kdf = KDF_AUTO
        return cls(
            active_db=data.get("active_db", ""),
            cipher=data.get("cipher", "aes"),
            kdf=kdf,
            auto_encrypt=_bool_setting(data, "auto_encrypt", True),
            keep_encrypted=_bool_setting(data, "encrypt_on", True),
            path=data.get("path", ""),
        )

    @property
    def cipher_name(self) -> str:
        """Normalized cipher suite identifier ("aes" or "xchacha")."""
        return normalize_cipher_name(self.cipher)

    @property
    def active_path(self) -> Optional[Path]:
        """Active vault path if one is configured and exists."""
        if not self.active_db:
            return None
        path = Path(self.active_db)
        return path if path.exists() else None


def default_config_dir() -> Path:
    """
    Get the per-user config directory.

    Environment variables:
        STRONGBOX_CONFIG_DIR: Explicit settings directory
        XDG_CONFIG_HOME: Base config directory (default: ~/.config)
    """
    if config_dir := os.getenv("STRONGBOX_CONFIG_DIR"):
        return Path(config_dir)
    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_NAME


def load_vault_config(config_dir: Optional[Path] = None) -> VaultConfig:
    """
    Load settings, creating the file with defaults on first run.

    Args:
        config_dir: Settings directory (default: default_config_dir())

    Raises:
        ConfigError: If the settings file can't be created or parsed
    """
    config_dir = Path(config_dir) if config_dir else default_config_dir()
    config_file = config_dir / CONFIG_FILE

    if config_file.exists():
        try:
            data = json.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Error parsing config {config_file} - {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Error parsing config {config_file} - not a JSON object")
        config = VaultConfig.from_dict(data)
        config.path = str(config_file)
        return config

    config = VaultConfig(path=str(config_file))
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(f"Error creating config directory {config_dir} - {e}") from e
    update_vault_config(config)
    logger.debug(f"Created default configuration at {config_file}")
    return config


def update_vault_config(config: VaultConfig) -> None:
    """
    Rewrite the whole settings record.

    Raises:
        ConfigError: If the config has no file path or the write fails
    """
    if not config.path:
        raise ConfigError("Config has no settings file path")
    try:
        replace(config.path, (config.to_json() + "\n").encode("utf-8"))
    except VaultIOError as e:
        raise ConfigError(f"Error updating config {config.path} - {e}") from e


@dataclass
class RunOverrides:
    """Per-invocation overrides of persisted settings."""

    assume_yes: bool = False
    cipher: Optional[str] = None

    @classmethod
    def from_env(cls) -> "RunOverrides":
        """
        Load overrides from environment variables.

        Environment variables:
            STRONGBOX_CIPHER: Cipher to use instead of the persisted setting
            STRONGBOX_ASSUME_YES: Answer yes to confirmations (default: false)
        """
        overrides = cls()

        if cipher := os.getenv("STRONGBOX_CIPHER"):
            overrides.cipher = cipher

        if os.getenv("STRONGBOX_ASSUME_YES", "").lower() == "true":
            overrides.assume_yes = True

        return overrides


@dataclass
class VaultContext:
    """Settings, overrides and prompter threaded through vault actions."""

    config: VaultConfig = field(default_factory=VaultConfig)
    overrides: RunOverrides = field(default_factory=RunOverrides)
    prompter: PassphrasePrompter = field(default_factory=PassphrasePrompter)

    @classmethod
    def load(
        cls,
        config_dir: Optional[Path] = None,
        overrides: Optional[RunOverrides] = None,
        prompter: Optional[PassphrasePrompter] = None,
    ) -> "VaultContext":
        """Build a context from the persisted settings."""
        return cls(
            config=load_vault_config(config_dir),
            overrides=overrides or RunOverrides.from_env(),
            prompter=prompter or PassphrasePrompter(),
        )

    @property
    def cipher(self) -> str:
        """Effective cipher suite identifier."""
        return normalize_cipher_name(self.overrides.cipher or self.config.cipher)

    @property
    def kdf(self) -> str:
        """Effective key derivation setting."""
        return self.config.kdf

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask for confirmation unless assume_yes is set."""
        if self.overrides.assume_yes:
            return True
        return self.prompter.confirm(message, default=default)
