"""Atomic in-place file rewriting.

New contents are written to a randomly named sibling file, flushed to disk,
and only then renamed over the target. A crash at any point leaves either
the old contents or the new contents at the target path, never a mix.
"""

import os
import tempfile
from pathlib import Path
from typing import Union

from ..utils.logging import get_logger
from .exceptions import VaultIOError

logger = get_logger(__name__)

# Suffix of side files written next to a vault before they replace it
CONTAINER_SUFFIX = ".sbx"

OWNER_READ_WRITE = 0o600


def base_path(path: Union[str, Path]) -> Path:
    """Get the vault path with the side-file suffix stripped, if present."""
    path = Path(path)
    name = path.name
    if name.endswith(CONTAINER_SUFFIX) and len(name) > len(CONTAINER_SUFFIX):
        return path.with_name(name[: -len(CONTAINER_SUFFIX)])
    return path


def _fsync_directory(directory: Path) -> None:
    """Flush a directory entry so a rename survives power loss (POSIX only)."""
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def replace(
    path: Union[str, Path],
    contents: bytes,
    mode: int = OWNER_READ_WRITE,
) -> Path:
    """
    Replace a file's contents atomically.

    Args:
        path: Target file
        contents: New file contents
        mode: Permission bits for the resulting file

    Returns:
        The target path

    Raises:
        VaultIOError: If the side file can't be written or renamed
    """
    path = Path(path)
    directory = path.parent if str(path.parent) else Path(".")

    try:
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{path.name}.",
            suffix=CONTAINER_SUFFIX,
            dir=directory,
        )
    except OSError as e:
        raise VaultIOError(path, "create side file for", str(e)) from e

    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(contents)
            fh.flush()
            os.fsync(fh.fileno())
            written = os.fstat(fh.fileno()).st_size
        if written != len(contents):
            raise OSError(f"short write: {written} of {len(contents)} bytes")
        os.chmod(temp_path, mode)
        os.replace(temp_path, path)
    except BaseException as e:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass
        if isinstance(e, OSError):
            raise VaultIOError(path, "write", str(e)) from e
        raise

    try:
        _fsync_directory(directory)
    except OSError as e:
        logger.debug(f"Directory fsync skipped for {directory}: {e}")

    logger.debug(f"Rewrote {path} ({len(contents)} bytes)")
    return path


def rewrite_base_file(
    path: Union[str, Path],
    contents: bytes,
    mode: int = OWNER_READ_WRITE,
) -> Path:
    """
    Atomically write contents to the base path of a vault file.

    Used when restoring plaintext: a container at "vault.db" restores to
    "vault.db", one at "vault.db.sbx" restores to "vault.db".

    Returns:
        The path that was written
    """
    return replace(base_path(path), contents, mode)
