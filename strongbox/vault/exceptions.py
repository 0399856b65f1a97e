"""Vault exceptions for the strongbox encryption engine."""

from pathlib import Path
from typing import Optional, Union


class VaultError(Exception):
    """Base exception for vault operations."""

    pass


class NotEncryptedError(VaultError):
    """Raised when a file does not carry the vault container magic."""

    def __init__(self, message: str = "Not an encrypted vault - invalid magic number."):
        super().__init__(message)


class InvalidSaltError(VaultError, ValueError):
    """Raised when a supplied salt has the wrong length."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Invalid salt: expected {expected} bytes, got {actual}.")


class SignatureCheckFailedError(VaultError):
    """Raised when the container HMAC does not match (wrong password or tampering)."""

    def __init__(self, message: str = "Invalid password or tampered data. Aborted."):
        super().__init__(message)


class AuthenticationError(VaultError):
    """Raised when AEAD opening fails after the HMAC check passed."""

    def __init__(self, message: str = "Authenticated decryption failed."):
        super().__init__(message)


class VaultIOError(VaultError):
    """Raised when reading or writing a vault file fails."""

    def __init__(
        self,
        path: Union[str, Path],
        operation: str,
        reason: Optional[str] = None,
    ):
        self.path = Path(path)
        self.operation = operation
        message = f"Can't {operation} {self.path}"
        if reason:
            message += f' - "{reason}"'
        super().__init__(message)


class VaultCorruptedError(VaultError):
    """Raised when a container is too short or otherwise malformed."""

    def __init__(self, message: str = "Vault container is corrupted."):
        super().__init__(message)


class VaultAlreadyEncryptedError(VaultError):
    """Raised when trying to encrypt a file that is already a container."""

    def __init__(self, path: Union[str, Path] = ""):
        message = f"Vault is already encrypted: {path}" if path else "Vault is already encrypted."
        super().__init__(message)


class VaultNotFoundError(VaultError):
    """Raised when a vault path does not exist."""

    def __init__(self, path: Union[str, Path] = ""):
        message = f"Vault not found: {path}" if path else "Vault not found."
        super().__init__(message)


class NoActiveVaultError(VaultError):
    """Raised when an action needs an active, decrypted vault and there is none."""

    def __init__(self, message: str = "No decrypted active vault found."):
        super().__init__(message)


class PasswordMismatchError(VaultError):
    """Raised when the confirmation passphrase does not match."""

    def __init__(self, message: str = "Password mismatch."):
        super().__init__(message)


class ConfigError(VaultError):
    """Raised when the settings file can't be read or written."""

    def __init__(self, message: str = "Invalid vault configuration."):
        super().__init__(message)
