"""Vault actions used by the command line front end.

Each action takes an explicit VaultContext (settings, overrides and a
passphrase prompter). When none is given the persisted settings are loaded.
"""

from pathlib import Path
from typing import Optional, Union

from ..utils.logging import get_logger
from .config import VaultContext, update_vault_config
from .container import check_encrypted, is_encrypted
from .engine import VaultEngine
from .exceptions import (
    NoActiveVaultError,
    NotEncryptedError,
    VaultAlreadyEncryptedError,
    VaultError,
    VaultNotFoundError,
)

logger = get_logger(__name__)


def _engine(context: VaultContext) -> VaultEngine:
    return VaultEngine(context.cipher, context.kdf)


def encrypt_vault(
    path: Union[str, Path],
    passphrase: Optional[str] = None,
    context: Optional[VaultContext] = None,
) -> Path:
    """
    Encrypt a vault file in place.

    Prompts for a new passphrase (twice) when none is given.

    Raises:
        VaultNotFoundError: If the file does not exist
        VaultAlreadyEncryptedError: If the file is already encrypted
        PasswordMismatchError: If the two prompted passphrases differ
    """
    context = context or VaultContext.load()
    path = Path(path)

    if not path.exists():
        raise VaultNotFoundError(path)
    if is_encrypted(path):
        raise VaultAlreadyEncryptedError(path)

    if not passphrase:
        passphrase = context.prompter.new_passphrase()

    return _engine(context).encrypt_file(path, passphrase)


def decrypt_vault(
    path: Union[str, Path],
    passphrase: Optional[str] = None,
    context: Optional[VaultContext] = None,
    in_place: bool = False,
) -> str:
    """
    Decrypt a vault container.

    Prompts once for the passphrase when none is given. The plaintext goes to
    the path with any .sbx suffix stripped, or over path itself when in_place.

    Returns:
        The passphrase that opened the vault, so callers can re-seal it

    Raises:
        NotEncryptedError: If the file is not a container (or can't be read)
        SignatureCheckFailedError: Wrong passphrase or tampered container
    """
    context = context or VaultContext.load()
    path = Path(path)

    encrypted, reason = check_encrypted(path)
    if not encrypted:
        raise NotEncryptedError(reason)

    if not passphrase:
        passphrase = context.prompter.current_passphrase()

    _engine(context).decrypt_file(path, passphrase, in_place=in_place)
    return passphrase


def get_active_vault(context: Optional[VaultContext] = None) -> Optional[Path]:
    """Get the active vault path if one is configured and exists."""
    context = context or VaultContext.load()
    return context.config.active_path


def has_active_decrypted_vault(context: Optional[VaultContext] = None) -> bool:
    """Check for an active vault that is currently plaintext."""
    path = get_active_vault(context)
    return path is not None and not is_encrypted(path)


def is_active_vault_encrypted(context: Optional[VaultContext] = None) -> bool:
    """Check whether the active vault is currently a container."""
    path = get_active_vault(context)
    return path is not None and is_encrypted(path)


def encrypt_active_vault(context: Optional[VaultContext] = None) -> Path:
    """
    Encrypt the active vault.

    Raises:
        NoActiveVaultError: If there is no active, decrypted vault
    """
    context = context or VaultContext.load()
    path = get_active_vault(context)
    if path is None or is_encrypted(path):
        raise NoActiveVaultError()
    return encrypt_vault(path, context=context)


def set_active_vault(
    path: Union[str, Path],
    context: Optional[VaultContext] = None,
) -> bool:
    """
    Make another vault file the active one.

    With auto_encrypt on, a plaintext active vault is encrypted before
    switching. With it off, the switch is refused unless the current vault
    is already encrypted and the new one is not.

    Returns:
        True if the active vault changed, False if it already was active

    Raises:
        VaultNotFoundError: If the new path does not exist
        VaultError: If the switch is refused
    """
    context = context or VaultContext.load()
    config = context.config

    path = Path(path)
    if not path.exists():
        raise VaultNotFoundError(path)
    full_path = path.resolve()

    if config.active_db and Path(config.active_db).resolve() == full_path:
        logger.info(f'Current vault is "{full_path}" - nothing to do')
        return False

    current = config.active_path
    current_encrypted = current is None or is_encrypted(current)
    new_encrypted = is_encrypted(full_path)

    if config.auto_encrypt and not current_encrypted:
        logger.info(f"Encrypting current active vault - {current}")
        encrypt_vault(current, context=context)
        current_encrypted = True

    if not current_encrypted:
        raise VaultError("Auto-encrypt disabled, encrypt existing vault before switching to new.")

    if new_encrypted and not config.auto_encrypt:
        raise VaultError("Auto-encrypt disabled, decrypt new vault manually before switching.")

    config.active_db = str(full_path)
    update_vault_config(config)
    logger.info(f"Switched active vault to {full_path}")
    return True


def show_active_vault_path(context: Optional[VaultContext] = None) -> str:
    """Describe the active vault for display ("No active vault" if unset)."""
    path = get_active_vault(context)
    return str(path) if path is not None else "No active vault"
