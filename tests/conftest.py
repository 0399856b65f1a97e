"""Shared pytest fixtures for strongbox tests."""

from pathlib import Path

import pytest

from strongbox.vault.config import CONFIG_FILE, RunOverrides, VaultConfig, VaultContext
from strongbox.vault.prompt import PassphrasePrompter

PASSPHRASE = "correct-horse"


class ScriptedPrompter(PassphrasePrompter):
    """Prompter that answers from a list instead of the terminal."""

    def __init__(self, answers=None, confirm_answer: bool = True):
        self.answers = list(answers or [])
        self.asked: list[str] = []
        self.confirm_answer = confirm_answer

    def ask(self, label: str) -> str:
        self.asked.append(label)
        if not self.answers:
            raise AssertionError(f"Unexpected prompt: {label}")
        return self.answers.pop(0)

    def confirm(self, message: str, default: bool = False) -> bool:
        return self.confirm_answer


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch):
    """Keep tests away from the real user config and env overrides."""
    monkeypatch.setenv("STRONGBOX_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("STRONGBOX_CIPHER", raising=False)
    monkeypatch.delenv("STRONGBOX_ASSUME_YES", raising=False)


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Settings directory used by the isolated environment."""
    return tmp_path / "config"


@pytest.fixture
def passphrase() -> str:
    """Passphrase the encrypted_vault fixture is sealed with."""
    return PASSPHRASE


@pytest.fixture
def make_prompter():
    """Factory for scripted prompters."""
    return ScriptedPrompter


@pytest.fixture
def plaintext() -> bytes:
    """100 bytes of vault content."""
    return bytes(range(100))


@pytest.fixture
def vault_file(tmp_path: Path, plaintext: bytes) -> Path:
    """A plaintext vault file."""
    path = tmp_path / "vault.db"
    path.write_bytes(plaintext)
    return path


@pytest.fixture
def prompter() -> ScriptedPrompter:
    """Prompter with no scripted answers (tests append as needed)."""
    return ScriptedPrompter()


@pytest.fixture
def context(config_dir: Path, vault_file: Path, prompter: ScriptedPrompter) -> VaultContext:
    """Context with the vault file active and auto-crypt on."""
    config_dir.mkdir(parents=True, exist_ok=True)
    config = VaultConfig(
        active_db=str(vault_file),
        path=str(config_dir / CONFIG_FILE),
    )
    return VaultContext(config=config, overrides=RunOverrides(), prompter=prompter)


@pytest.fixture
def encrypted_vault(vault_file: Path, context: VaultContext) -> Path:
    """The vault file, encrypted with PASSPHRASE using the context's cipher."""
    from strongbox.vault import encrypt_vault

    encrypt_vault(vault_file, PASSPHRASE, context=context)
    return vault_file
