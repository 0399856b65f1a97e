"""strongbox - encrypted-at-rest secret vault for the command line."""

__version__ = "0.4.1"

from .vault import (
    VaultContext,
    VaultEngine,
    decrypt_vault,
    encrypt_vault,
    is_encrypted,
    with_auto_crypt,
)

__all__ = [
    "__version__",
    "VaultContext",
    "VaultEngine",
    "decrypt_vault",
    "encrypt_vault",
    "is_encrypted",
    "with_auto_crypt",
]
