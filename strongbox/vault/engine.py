"""Vault encryption engine.

Seals a plaintext vault file into a container and opens it again:

    encrypt: read plaintext -> derive key + fresh salt -> AEAD seal
             -> HMAC-SHA512 over nonce||ciphertext -> atomic rewrite
    decrypt: read container -> derive key from stored salt -> check HMAC
             -> AEAD open -> atomic rewrite of the base path
"""

from pathlib import Path
from typing import Optional, Union

from ..utils.logging import get_logger
from . import container
from .atomic import OWNER_READ_WRITE, replace, rewrite_base_file
from .crypto import (
    HMAC_SHA512_SIZE,
    KDF_AUTO,
    SALT_SIZE,
    CipherSuite,
    KeyDerivation,
    Passphrase,
    get_cipher_suite,
    sign,
    verify_signature,
)
from .exceptions import VaultAlreadyEncryptedError, VaultIOError, VaultNotFoundError

logger = get_logger(__name__)


def _read_file(path: Path) -> bytes:
    """Read a whole file, translating OS errors."""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        raise VaultNotFoundError(path) from None
    except OSError as e:
        raise VaultIOError(path, "read vault", str(e)) from e


class VaultEngine:
    """
    Encrypts and decrypts vault files with one cipher suite.

    The suite and key derivation function are not stored in the container,
    so the same settings must be used to decrypt.

    Usage:
        engine = VaultEngine(cipher="aes")
        engine.encrypt_file(vault_path, "correct-horse")
        engine.decrypt_file(vault_path, "correct-horse")
    """

    def __init__(self, cipher: Optional[str] = "aes", kdf: str = KDF_AUTO):
        """
        Initialize the engine.

        Args:
            cipher: Cipher name ("aes", "xchacha" or an alias); unknown names use AES
            kdf: "auto" (suite default), "argon2" or "pbkdf2"
        """
        self.suite: CipherSuite = get_cipher_suite(cipher)
        self.kdf = self.suite.resolve_kdf(kdf)

    def __repr__(self) -> str:
        return f"VaultEngine(cipher={self.suite.name!r}, kdf={self.kdf!r})"

    def container_size(self, plaintext_size: int) -> int:
        """Size of the container produced for a plaintext of the given size."""
        return (
            container.MAGIC_SIZE
            + SALT_SIZE
            + HMAC_SHA512_SIZE
            + self.suite.nonce_size
            + plaintext_size
            + self.suite.tag_size
        )

    def seal(self, plaintext: bytes, passphrase: Passphrase) -> bytes:
        """
        Encrypt data in memory into container bytes.

        A fresh salt and nonce are generated on every call.
        """
        salt, key = KeyDerivation.derive(passphrase, None, self.kdf)
        nonce = self.suite.generate_nonce()
        ciphertext = self.suite.seal(key, nonce, plaintext)
        tag = sign(key, nonce + ciphertext)
        return container.encode(container.MAGIC_BYTES, salt, tag, nonce, ciphertext)

    def open(self, data: bytes, passphrase: Passphrase) -> bytes:
        """
        Decrypt container bytes in memory.

        Raises:
            NotEncryptedError: If data has no container magic
            VaultCorruptedError: If data is truncated
            SignatureCheckFailedError: Wrong passphrase or tampered container
            AuthenticationError: AEAD tag rejected the ciphertext
        """
        header = container.decode(data)
        nonce, ciphertext = container.split_payload(
            header.remainder, self.suite.nonce_size, self.suite.tag_size
        )

        _, key = KeyDerivation.derive(passphrase, header.salt, self.kdf)

        # HMAC first: no AEAD attempt on a wrong key or altered container
        verify_signature(key, header.remainder, header.tag)

        return self.suite.open(key, nonce, ciphertext)

    def encrypt_file(self, path: Union[str, Path], passphrase: Passphrase) -> Path:
        """
        Encrypt a vault file in place.

        Args:
            path: Plaintext vault file
            passphrase: Passphrase to derive the key from

        Returns:
            Path to the container (same as path)

        Raises:
            VaultNotFoundError: If the file does not exist
            VaultAlreadyEncryptedError: If the file is already a container
            VaultIOError: If reading or rewriting fails
        """
        path = Path(path)
        plaintext = _read_file(path)

        if plaintext[: container.MAGIC_SIZE] == container.MAGIC_BYTES:
            raise VaultAlreadyEncryptedError(path)

        data = self.seal(plaintext, passphrase)
        replace(path, data, OWNER_READ_WRITE)

        logger.info(f"Encrypted {path} ({self.suite.name}, {len(data)} bytes)")
        return path

    def decrypt_file(
        self,
        path: Union[str, Path],
        passphrase: Passphrase,
        in_place: bool = False,
    ) -> Path:
        """
        Decrypt a container and restore the plaintext vault.

        Args:
            path: Container file
            passphrase: Passphrase used at encryption time
            in_place: Restore over path itself instead of its base path

        Returns:
            Path the plaintext was written to (path minus any .sbx suffix
            unless in_place)
        """
        path = Path(path)
        data = _read_file(path)
        plaintext = self.open(data, passphrase)
        if in_place:
            restored = replace(path, plaintext, OWNER_READ_WRITE)
        else:
            restored = rewrite_base_file(path, plaintext, OWNER_READ_WRITE)

        logger.info(f"Decrypted {path} -> {restored} ({len(plaintext)} bytes)")
        return restored


def encrypt_file(
    path: Union[str, Path],
    passphrase: Passphrase,
    cipher: Optional[str] = "aes",
    kdf: str = KDF_AUTO,
) -> Path:
    """Encrypt a vault file in place."""
    return VaultEngine(cipher, kdf).encrypt_file(path, passphrase)


def decrypt_file(
    path: Union[str, Path],
    passphrase: Passphrase,
    cipher: Optional[str] = "aes",
    kdf: str = KDF_AUTO,
) -> Path:
    """Decrypt a vault container in place."""
    return VaultEngine(cipher, kdf).decrypt_file(path, passphrase)
