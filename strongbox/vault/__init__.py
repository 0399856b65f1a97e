"""Vault encryption module for strongbox.

Keeps a vault file encrypted at rest (AES-256-GCM or XChaCha20-Poly1305
with an HMAC-SHA512 integrity tag) and opens it transparently around
operations that need the plaintext.

Usage:
    # Check if a vault is encrypted
    from strongbox.vault import is_encrypted
    if is_encrypted(vault_path):
        passphrase = decrypt_vault(vault_path)

    # Encrypt a vault file
    from strongbox.vault import encrypt_vault
    encrypt_vault(vault_path, "correct-horse")

    # Run an operation against the decrypted active vault
    from strongbox.vault import with_auto_crypt
    with_auto_crypt(list_records)
"""

# Exceptions
from .exceptions import (
    AuthenticationError,
    ConfigError,
    InvalidSaltError,
    NoActiveVaultError,
    NotEncryptedError,
    PasswordMismatchError,
    SignatureCheckFailedError,
    VaultAlreadyEncryptedError,
    VaultCorruptedError,
    VaultError,
    VaultIOError,
    VaultNotFoundError,
)

# Primitives
from .crypto import (
    AESGCMSuite,
    CipherSuite,
    KeyDerivation,
    XChaCha20Poly1305Suite,
    get_cipher_suite,
    normalize_cipher_name,
)
from .container import check_encrypted, is_encrypted
from .atomic import replace, rewrite_base_file

# Configuration
from .config import (
    RunOverrides,
    VaultConfig,
    VaultContext,
    load_vault_config,
    update_vault_config,
)
from .prompt import PassphrasePrompter

# Engine and actions
from .engine import VaultEngine, decrypt_file, encrypt_file
from .actions import (
    decrypt_vault,
    encrypt_active_vault,
    encrypt_vault,
    get_active_vault,
    has_active_decrypted_vault,
    is_active_vault_encrypted,
    set_active_vault,
    show_active_vault_path,
)

# Auto-crypt sessions
from .session import (
    AutoCryptSession,
    ResealGate,
    auto_crypt,
    with_auto_crypt,
)

__all__ = [
    # Exceptions
    "VaultError",
    "NotEncryptedError",
    "InvalidSaltError",
    "SignatureCheckFailedError",
    "AuthenticationError",
    "VaultIOError",
    "VaultCorruptedError",
    "VaultAlreadyEncryptedError",
    "VaultNotFoundError",
    "NoActiveVaultError",
    "PasswordMismatchError",
    "ConfigError",
    # Primitives
    "KeyDerivation",
    "CipherSuite",
    "AESGCMSuite",
    "XChaCha20Poly1305Suite",
    "get_cipher_suite",
    "normalize_cipher_name",
    "is_encrypted",
    "check_encrypted",
    "replace",
    "rewrite_base_file",
    # Configuration
    "VaultConfig",
    "VaultContext",
    "RunOverrides",
    "PassphrasePrompter",
    "load_vault_config",
    "update_vault_config",
    # Engine and actions
    "VaultEngine",
    "encrypt_file",
    "decrypt_file",
    "encrypt_vault",
    "decrypt_vault",
    "encrypt_active_vault",
    "get_active_vault",
    "has_active_decrypted_vault",
    "is_active_vault_encrypted",
    "set_active_vault",
    "show_active_vault_path",
    # Sessions
    "AutoCryptSession",
    "ResealGate",
    "with_auto_crypt",
    "auto_crypt",
]
