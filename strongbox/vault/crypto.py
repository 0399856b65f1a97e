"""Core cryptographic primitives for vault encryption.

Uses:
- argon2-cffi for Argon2i key derivation (memory-hard)
- the cryptography library for PBKDF2-HMAC-SHA512, AES-256-GCM and HMAC-SHA512
- pycryptodomex for XChaCha20-Poly1305 (24-byte nonces)
"""

import os
from typing import Optional, Union

from argon2.low_level import Type, hash_secret_raw
from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from Cryptodome.Cipher import ChaCha20_Poly1305

from ..utils.logging import get_logger
from .exceptions import AuthenticationError, InvalidSaltError, SignatureCheckFailedError

logger = get_logger(__name__)

KEY_SIZE = 32  # 256 bits
SALT_SIZE = 64
HMAC_SHA512_SIZE = 64
AEAD_TAG_SIZE = 16

# PBKDF2-HMAC-SHA512
PBKDF2_ITERATIONS = 120_000

# Argon2i, memory cost in KiB
ARGON2_TIME_COST = 3
ARGON2_MEMORY_COST = 32 * 1024
ARGON2_PARALLELISM = 4

KDF_ARGON2 = "argon2"
KDF_PBKDF2 = "pbkdf2"
KDF_AUTO = "auto"
KDF_CHOICES = (KDF_AUTO, KDF_ARGON2, KDF_PBKDF2)

Passphrase = Union[str, bytes]


def _to_bytes(passphrase: Passphrase) -> bytes:
    if isinstance(passphrase, str):
        return passphrase.encode("utf-8")
    return passphrase


class KeyDerivation:
    """Derives encryption keys from a passphrase using Argon2 or PBKDF2."""

    @staticmethod
    def generate_salt() -> bytes:
        """Generate cryptographically secure random salt."""
        return os.urandom(SALT_SIZE)

    @staticmethod
    def derive_key_argon2(passphrase: Passphrase, salt: bytes) -> bytes:
        """Derive a 256-bit key with Argon2i."""
        return hash_secret_raw(
            secret=_to_bytes(passphrase),
            salt=salt,
            time_cost=ARGON2_TIME_COST,
            memory_cost=ARGON2_MEMORY_COST,
            parallelism=ARGON2_PARALLELISM,
            hash_len=KEY_SIZE,
            type=Type.I,
        )

    @staticmethod
    def derive_key_pbkdf2(
        passphrase: Passphrase,
        salt: bytes,
        iterations: int = PBKDF2_ITERATIONS,
    ) -> bytes:
        """Derive a 256-bit key with PBKDF2-HMAC-SHA512."""
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA512(),
            length=KEY_SIZE,
            salt=salt,
            iterations=iterations,
        )
        return kdf.derive(_to_bytes(passphrase))

    @classmethod
    def derive(
        cls,
        passphrase: Passphrase,
        salt: Optional[bytes] = None,
        kdf: str = KDF_ARGON2,
    ) -> tuple[bytes, bytes]:
        """
        Derive a key from a passphrase, generating a salt when none is given.

        Args:
            passphrase: User passphrase
            salt: Existing salt (must be SALT_SIZE bytes) or None for a fresh one
            kdf: "argon2" or "pbkdf2"

        Returns:
            (salt, key) tuple

        Raises:
            InvalidSaltError: If the supplied salt has the wrong length
            ValueError: If the kdf name is unknown
        """
        if salt is None:
            salt = cls.generate_salt()
        elif len(salt) != SALT_SIZE:
            raise InvalidSaltError(SALT_SIZE, len(salt))

        if kdf == KDF_ARGON2:
            key = cls.derive_key_argon2(passphrase, salt)
        elif kdf == KDF_PBKDF2:
            key = cls.derive_key_pbkdf2(passphrase, salt)
        else:
            raise ValueError(f"Unknown key derivation function: {kdf}")

        logger.debug(f"Derived {len(key)}-byte key using {kdf}")
        return salt, key


def sign(key: bytes, data: bytes) -> bytes:
    """Compute the HMAC-SHA512 tag of data."""
    h = hmac.HMAC(key, hashes.SHA512())
    h.update(data)
    return h.finalize()


def verify_signature(key: bytes, data: bytes, tag: bytes) -> None:
    """
    Check an HMAC-SHA512 tag in constant time.

    Raises:
        SignatureCheckFailedError: If the tag does not match
    """
    h = hmac.HMAC(key, hashes.SHA512())
    h.update(data)
    try:
        h.verify(tag)
    except InvalidSignature:
        raise SignatureCheckFailedError() from None


class CipherSuite:
    """
    Authenticated encryption with a fixed key size and nonce size.

    Subclasses implement seal/open. Sealed output is ciphertext with the
    AEAD tag appended.
    """

    name: str = ""
    nonce_size: int = 0
    tag_size: int = AEAD_TAG_SIZE
    # KDF the suite is paired with when the kdf setting is "auto"
    default_kdf: str = KDF_ARGON2

    def generate_nonce(self) -> bytes:
        """Generate a fresh random nonce for one encryption."""
        return os.urandom(self.nonce_size)

    def resolve_kdf(self, kdf: str = KDF_AUTO) -> str:
        """Map a kdf setting to the concrete function used with this suite."""
        if kdf == KDF_AUTO:
            return self.default_kdf
        return kdf

    def seal(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        raise NotImplementedError

    def open(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        raise NotImplementedError

    def _check(self, key: bytes, nonce: bytes) -> None:
        if len(key) != KEY_SIZE:
            raise ValueError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")
        if len(nonce) != self.nonce_size:
            raise ValueError(f"Nonce must be {self.nonce_size} bytes, got {len(nonce)}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class AESGCMSuite(CipherSuite):
    """AES-256-GCM, 96-bit nonce."""

    name = "aes"
    nonce_size = 12
    default_kdf = KDF_ARGON2

    def seal(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        self._check(key, nonce)
        return AESGCM(key).encrypt(nonce, plaintext, None)

    def open(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        self._check(key, nonce)
        try:
            return AESGCM(key).decrypt(nonce, ciphertext, None)
        except InvalidTag:
            raise AuthenticationError("AES-GCM decryption failed - corrupted or wrong key") from None


class XChaCha20Poly1305Suite(CipherSuite):
    """XChaCha20-Poly1305, 192-bit nonce."""

    name = "xchacha"
    nonce_size = 24
    default_kdf = KDF_PBKDF2

    def seal(self, key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
        self._check(key, nonce)
        cipher = ChaCha20_Poly1305.new(key=key, nonce=nonce)
        ciphertext, tag = cipher.encrypt_and_digest(plaintext)
        return ciphertext + tag

    def open(self, key: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
        self._check(key, nonce)
        if len(ciphertext) < self.tag_size:
            raise AuthenticationError("XChaCha20-Poly1305 ciphertext is shorter than its tag")
        cipher = ChaCha20_Poly1305.new(key=key, nonce=nonce)
        body, tag = ciphertext[: -self.tag_size], ciphertext[-self.tag_size :]
        try:
            return cipher.decrypt_and_verify(body, tag)
        except ValueError:
            raise AuthenticationError(
                "XChaCha20-Poly1305 decryption failed - corrupted or wrong key"
            ) from None


CIPHER_SUITES: dict[str, type[CipherSuite]] = {
    "aes": AESGCMSuite,
    "xchacha": XChaCha20Poly1305Suite,
}

# Accepted spellings in the settings file
CIPHER_ALIASES = {
    "aes": "aes",
    "xchacha": "xchacha",
    "chacha": "xchacha",
    "xchachapoly": "xchacha",
}

DEFAULT_CIPHER = "aes"


def normalize_cipher_name(name: Optional[str]) -> str:
    """
    Map a configured cipher name to a suite identifier.

    Unknown or empty values fall back to AES with a warning.
    """
    key = (name or "").strip().lower()
    if key in CIPHER_ALIASES:
        return CIPHER_ALIASES[key]
    logger.warning(f"No valid cipher set ({name!r}), defaulting to AES")
    return DEFAULT_CIPHER


def get_cipher_suite(name: Optional[str]) -> CipherSuite:
    """Get a cipher suite instance for a configured cipher name."""
    return CIPHER_SUITES[normalize_cipher_name(name)]()
