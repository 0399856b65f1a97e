"""Auto-crypt sessions around operations that need a plaintext vault.

When the active vault is encrypted and both keep_encrypted and auto_encrypt
are on, a session decrypts the vault on entry, lets the operation run, and
re-encrypts it on every exit path. Termination signals (SIGINT, SIGTERM,
SIGHUP) received while the vault is open re-encrypt it before the process
exits.

Usage:
    with AutoCryptSession(context):
        edit_records(context.config.active_db)

    # Or
    with_auto_crypt(list_records, "title")
"""

import functools
import signal
import threading
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from ..utils.logging import get_logger
from .actions import decrypt_vault, encrypt_vault
from .config import VaultContext
from .container import is_encrypted
from .exceptions import VaultError

logger = get_logger(__name__)

T = TypeVar("T")

TERMINATION_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP") if hasattr(signal, name)
)

# Exit status after an interrupt-driven reseal
INTERRUPTED_EXIT_CODE = 1


class ResealGate:
    """
    One-shot gate deciding who re-encrypts the vault.

    The first claim() wins and every later claim() returns False. The lock
    is never released, so claiming is atomic and can't block, which keeps
    it safe to call from a signal handler interrupting the main thread.
    """

    def __init__(self):
        self._lock = threading.Lock()

    def claim(self) -> bool:
        """Claim the reseal action. Returns True only for the first caller."""
        return self._lock.acquire(blocking=False)

    @property
    def claimed(self) -> bool:
        """Whether the reseal has been claimed."""
        return self._lock.locked()


class AutoCryptSession:
    """
    Scoped plaintext access to the active vault.

    States: check -> arm -> open -> run (caller's block) -> reseal -> disarm.
    Signals received while opening are deferred until the vault is open,
    then it is resealed and the process exits. If opening fails the block
    never runs. If the block raises, the vault is
    still resealed before the exception propagates.
    """

    def __init__(self, context: Optional[VaultContext] = None):
        """
        Initialize the session.

        Args:
            context: Vault context (persisted settings are loaded if not provided)
        """
        self.context = context or VaultContext.load()
        self.active = False
        self.vault_path: Optional[Path] = None
        self.resealed = False
        self.interrupted: Optional[int] = None
        self._passphrase: Optional[str] = None
        self._gate = ResealGate()
        self._previous_handlers: dict[int, Any] = {}

    def check(self) -> tuple[bool, Optional[Path]]:
        """
        Decide whether this session must decrypt/re-encrypt.

        Returns:
            (auto_active, vault_path)
        """
        config = self.context.config
        path = config.active_path
        if path is not None and is_encrypted(path) and config.keep_encrypted and config.auto_encrypt:
            return True, path
        return False, None

    def __enter__(self) -> "AutoCryptSession":
        """Arm signal handlers and decrypt the active vault (if auto-crypt applies)."""
        auto_active, vault_path = self.check()
        if not auto_active:
            return self

        self.vault_path = vault_path
        passphrase = self.context.prompter.current_passphrase()

        # Signals arriving while the vault is being opened are deferred
        self._arm()
        try:
            decrypt_vault(vault_path, passphrase, context=self.context, in_place=True)
        except BaseException:
            # Opening failed: the vault is untouched and the operation never runs
            self._disarm()
            raise
        self._passphrase = passphrase
        self.active = True

        if self.interrupted is not None and self._gate.claim():
            self._reseal_and_exit()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Re-encrypt the vault unless a signal handler already did."""
        if not self.active:
            return False

        try:
            if self._gate.claim():
                self._reseal()
        finally:
            self._disarm()
            self._passphrase = None
            self.active = False

        if self.interrupted is not None:
            raise SystemExit(INTERRUPTED_EXIT_CODE)
        return False

    def _reseal(self) -> None:
        """Encrypt the vault again with the passphrase that opened it."""
        if is_encrypted(self.vault_path):
            logger.debug(f"{self.vault_path} already encrypted, nothing to reseal")
            self.resealed = True
            return
        try:
            encrypt_vault(self.vault_path, self._passphrase, context=self.context)
        except VaultError as e:
            logger.error(f"Failed to re-encrypt {self.vault_path} - vault left decrypted: {e}")
            raise
        self.resealed = True

    def _arm(self) -> None:
        """Install termination handlers (main thread only)."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal handlers not installed")
            return
        for signum in TERMINATION_SIGNALS:
            self._previous_handlers[signum] = signal.signal(signum, self._handle_signal)

    def _disarm(self) -> None:
        """Restore the handlers that were installed before arming."""
        while self._previous_handlers:
            signum, previous = self._previous_handlers.popitem()
            signal.signal(signum, previous if previous is not None else signal.SIG_DFL)

    def _handle_signal(self, signum: int, frame) -> None:
        """Reseal the vault and exit, or defer to an open or reseal under way."""
        name = signal.Signals(signum).name
        logger.warning(f"Received signal {name}, re-encrypting {self.vault_path}")
        self.interrupted = signum

        if not self.active:
            # Still opening; __enter__ reseals and exits once the vault is open
            return
        if not self._gate.claim():
            # Normal path is resealing; __exit__ exits once it is done
            return
        self._reseal_and_exit()

    def _reseal_and_exit(self) -> None:
        """Reseal after an interrupt, restore handlers and exit with status 1."""
        try:
            self._reseal()
        finally:
            self._disarm()
            self._passphrase = None
            self.active = False
        raise SystemExit(INTERRUPTED_EXIT_CODE)


def with_auto_crypt(
    operation: Callable[..., T],
    *args: Any,
    context: Optional[VaultContext] = None,
    **kwargs: Any,
) -> T:
    """
    Run an operation with the active vault decrypted, re-encrypting after.

    Args:
        operation: Callable to run against the plaintext vault
        *args: Positional arguments for the operation
        context: Vault context (consumed here, not passed to the operation)
        **kwargs: Keyword arguments for the operation

    Returns:
        The operation's return value
    """
    with AutoCryptSession(context):
        return operation(*args, **kwargs)


def auto_crypt(fn: Callable[..., T]) -> Callable[..., T]:
    """Decorator form of with_auto_crypt using the persisted settings."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        return with_auto_crypt(fn, *args, **kwargs)

    return wrapper
