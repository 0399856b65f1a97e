"""Passphrase prompting for vault actions."""

import typer

from .exceptions import PasswordMismatchError


class PassphrasePrompter:
    """
    Reads passphrases from the terminal without echoing.

    Subclass and override ask()/confirm() to feed passphrases from
    elsewhere (tests, GUIs, agents).
    """

    def ask(self, label: str) -> str:
        """Prompt once for a hidden value."""
        return typer.prompt(label, hide_input=True)

    def confirm(self, message: str, default: bool = False) -> bool:
        """Ask a yes/no question."""
        return typer.confirm(message, default=default)

    def new_passphrase(self) -> str:
        """
        Prompt for a new passphrase twice.

        Raises:
            PasswordMismatchError: If the two entries differ
        """
        first = self.ask("Encryption Password")
        second = self.ask("Encryption Password again")
        if first != second:
            raise PasswordMismatchError()
        return first

    def current_passphrase(self) -> str:
        """Prompt once for the passphrase of an existing vault."""
        return self.ask("Decryption Password")
