"""strongbox CLI - encrypted-at-rest secret vault."""

import subprocess
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..utils.logging import setup_logging
from ..vault import (
    RunOverrides,
    VaultContext,
    VaultError,
    check_encrypted,
    decrypt_vault,
    encrypt_active_vault,
    encrypt_vault,
    get_active_vault,
    set_active_vault,
    show_active_vault_path,
    update_vault_config,
    with_auto_crypt,
)
from ..vault.crypto import CIPHER_ALIASES, KDF_CHOICES

app = typer.Typer(
    name="strongbox",
    help="Encrypted-at-rest secret vault for the command line.",
    no_args_is_help=True,
)
config_app = typer.Typer(help="Show or change vault settings.", no_args_is_help=True)
app.add_typer(config_app, name="config")

console = Console()

# Placeholder in `run` arguments replaced by the active vault path
VAULT_PLACEHOLDER = "{vault}"


def _fail(error: Exception) -> None:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(1)


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise typer.BadParameter(f"Expected true/false, got {value!r}")


@app.callback()
def main_callback(
    ctx: typer.Context,
    assume_yes: bool = typer.Option(
        False, "--yes", "-y",
        help="Assume yes for confirmations",
    ),
    log_level: str = typer.Option(
        "WARNING", "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file",
        help="Also write DEBUG records to this file (created owner-only)",
    ),
    config_dir: Optional[Path] = typer.Option(
        None, "--config-dir",
        help="Settings directory (default: ~/.config/strongbox)",
        envvar="STRONGBOX_CONFIG_DIR",
    ),
):
    """Load settings once and pass them to the command."""
    try:
        setup_logging(level=log_level, log_file=log_file)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--log-level")

    overrides = RunOverrides.from_env()
    if assume_yes:
        overrides.assume_yes = True

    try:
        ctx.obj = VaultContext.load(config_dir=config_dir, overrides=overrides)
    except VaultError as e:
        _fail(e)


@app.command()
def encrypt(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Vault file (default: active vault)"),
    cipher: Optional[str] = typer.Option(
        None, "--cipher", "-c",
        help="Cipher for this run: aes or xchacha",
    ),
):
    """Encrypt a vault file (the active vault by default)."""
    context: VaultContext = ctx.obj
    if cipher:
        context.overrides.cipher = cipher

    try:
        if path is None:
            target = encrypt_active_vault(context)
        else:
            target = encrypt_vault(path, context=context)
    except VaultError as e:
        _fail(e)

    console.print(f"[green]Encryption complete.[/green] {target}")


@app.command()
def decrypt(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Encrypted vault file"),
    cipher: Optional[str] = typer.Option(
        None, "--cipher", "-c",
        help="Cipher the vault was encrypted with: aes or xchacha",
    ),
):
    """Decrypt a vault file in place."""
    context: VaultContext = ctx.obj
    if cipher:
        context.overrides.cipher = cipher

    try:
        decrypt_vault(path, context=context)
    except VaultError as e:
        _fail(e)

    console.print(f"[green]...decryption complete.[/green] {path}")


@app.command()
def status(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="Vault file (default: active vault)"),
):
    """Show whether a vault file is encrypted."""
    context: VaultContext = ctx.obj
    target = path or get_active_vault(context)

    if target is None:
        console.print("No active vault")
        raise typer.Exit(1)

    encrypted, reason = check_encrypted(target)
    if encrypted:
        console.print(f"{target}: [green]encrypted[/green]")
    else:
        console.print(f"{target}: [yellow]not encrypted[/yellow]")
        console.print(f"  {reason}", markup=False)


@app.command()
def use(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="Vault file to make active"),
):
    """Set the active vault."""
    context: VaultContext = ctx.obj

    try:
        switched = set_active_vault(path, context)
    except VaultError as e:
        _fail(e)

    if switched:
        console.print("Switched active vault successfully.")
    else:
        console.print(f'Current vault is "{path.resolve()}" - nothing to do')


@app.command("path")
def show_path(ctx: typer.Context):
    """Show the active vault path."""
    context: VaultContext = ctx.obj
    console.print(show_active_vault_path(context), markup=False, soft_wrap=True)


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def run(
    ctx: typer.Context,
    command: list[str] = typer.Argument(..., help="Command to run; {vault} is the active vault path"),
):
    """Run a command against the decrypted active vault, re-encrypting after."""
    context: VaultContext = ctx.obj
    active = get_active_vault(context)
    if active is None:
        console.print("[red]Error: No active vault[/red]")
        raise typer.Exit(1)

    argv = [arg.replace(VAULT_PLACEHOLDER, str(active)) for arg in command]

    def _run_command() -> int:
        return subprocess.run(argv).returncode

    try:
        returncode = with_auto_crypt(_run_command, context=context)
    except VaultError as e:
        _fail(e)
    except FileNotFoundError as e:
        _fail(e)

    raise typer.Exit(returncode)


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Show the current settings."""
    context: VaultContext = ctx.obj
    config = context.config

    table = Table(title="Vault settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("active_db", config.active_db or "-")
    table.add_row("cipher", config.cipher)
    table.add_row("kdf", config.kdf)
    table.add_row("auto_encrypt", str(config.auto_encrypt).lower())
    table.add_row("keep_encrypted", str(config.keep_encrypted).lower())
    table.add_row("path", config.path)

    console.print(table)


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="cipher, kdf, auto_encrypt or keep_encrypted"),
    value: str = typer.Argument(..., help="New value"),
):
    """Change one setting."""
    context: VaultContext = ctx.obj
    config = context.config

    if key == "cipher":
        if value.lower() not in CIPHER_ALIASES:
            _fail(ValueError(f"Unknown cipher {value!r} (choose from {', '.join(CIPHER_ALIASES)})"))
        config.cipher = value.lower()
    elif key == "kdf":
        if value.lower() not in KDF_CHOICES:
            _fail(ValueError(f"Unknown kdf {value!r} (choose from {', '.join(KDF_CHOICES)})"))
        config.kdf = value.lower()
    elif key == "auto_encrypt":
        config.auto_encrypt = _parse_bool(value)
    elif key == "keep_encrypted":
        config.keep_encrypted = _parse_bool(value)
    else:
        _fail(ValueError(f"Unknown setting {key!r}"))

    if key in ("cipher", "kdf") and not context.confirm(
        "Encrypted vaults must be opened with the same setting. Continue?"
    ):
        raise typer.Exit(1)

    try:
        update_vault_config(config)
    except VaultError as e:
        _fail(e)

    console.print(f"{key} = {value}")


@app.command()
def version():
    """Show version information."""
    console.print(f"strongbox v{__version__}")
    console.print("Encrypted-at-rest secret vault")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
