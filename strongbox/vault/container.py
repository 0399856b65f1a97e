"""On-disk container layout for encrypted vaults.

File format:
[magic (8 bytes, hex text "cafebabe")] [salt (64 bytes)] [hmac-sha512 (64 bytes)]
[nonce (12 or 24 bytes)] [ciphertext + AEAD tag]

The cipher suite is not recorded; the reader must know it from settings.
"""

from pathlib import Path
from typing import NamedTuple, Union

from .crypto import HMAC_SHA512_SIZE, SALT_SIZE
from .exceptions import NotEncryptedError, VaultCorruptedError

MAGIC_HEADER = 0xCAFEBABE
MAGIC_BYTES = f"{MAGIC_HEADER:x}".encode("ascii")
MAGIC_SIZE = len(MAGIC_BYTES)

HEADER_SIZE = MAGIC_SIZE + SALT_SIZE + HMAC_SHA512_SIZE


class ContainerHeader(NamedTuple):
    """Header fields sliced off a container, plus the nonce||ciphertext rest."""

    salt: bytes
    tag: bytes
    remainder: bytes


def encode(magic: bytes, salt: bytes, tag: bytes, nonce: bytes, ciphertext: bytes) -> bytes:
    """Concatenate container fields in on-disk order."""
    return b"".join((magic, salt, tag, nonce, ciphertext))


def decode(data: bytes) -> ContainerHeader:
    """
    Split a container into salt, integrity tag and remainder.

    Args:
        data: Whole container bytes

    Returns:
        ContainerHeader(salt, tag, remainder) where remainder is nonce || ciphertext

    Raises:
        NotEncryptedError: If the magic marker is missing
        VaultCorruptedError: If the container is shorter than its header
    """
    if data[:MAGIC_SIZE] != MAGIC_BYTES:
        raise NotEncryptedError()
    if len(data) < HEADER_SIZE:
        raise VaultCorruptedError(
            f"Container truncated: {len(data)} bytes, header needs {HEADER_SIZE}"
        )

    body = data[MAGIC_SIZE:]
    salt, body = body[:SALT_SIZE], body[SALT_SIZE:]
    tag, remainder = body[:HMAC_SHA512_SIZE], body[HMAC_SHA512_SIZE:]
    return ContainerHeader(salt, tag, remainder)


def split_payload(remainder: bytes, nonce_size: int, tag_size: int = 0) -> tuple[bytes, bytes]:
    """
    Split nonce || ciphertext by the suite's nonce size.

    Raises:
        VaultCorruptedError: If there are not enough bytes for nonce and AEAD tag
    """
    if len(remainder) < nonce_size + tag_size:
        raise VaultCorruptedError(
            f"Container payload truncated: {len(remainder)} bytes, "
            f"need at least {nonce_size + tag_size}"
        )
    return remainder[:nonce_size], remainder[nonce_size:]


def check_encrypted(path: Union[str, Path]) -> tuple[bool, str]:
    """
    Check whether a file starts with the container magic.

    Returns:
        (encrypted, reason) - reason is empty when encrypted, otherwise
        describes whether the file could not be read or had no magic
    """
    try:
        with open(path, "rb") as fh:
            header = fh.read(MAGIC_SIZE)
    except OSError as e:
        return False, f'Error - Can\'t read vault "{path}" - "{e}"'

    if len(header) < MAGIC_SIZE:
        return False, f'Error - Can\'t read file header of "{path}" - unexpected end of file'

    if header != MAGIC_BYTES:
        return False, f'Not an encrypted vault "{path}" - invalid magic number'

    return True, ""


def is_encrypted(path: Union[str, Path]) -> bool:
    """Check if a file is an encrypted vault container."""
    encrypted, _ = check_encrypted(path)
    return encrypted
