"""Integration test: a termination signal reseals the vault of a real process."""

import os
import signal
import subprocess
import sys
import textwrap
from pathlib import Path

import pytest

from strongbox.vault import encrypt_vault, is_encrypted, load_vault_config, update_vault_config


CHILD_SCRIPT = textwrap.dedent(
    """
    import sys
    import time

    from strongbox.vault import PassphrasePrompter, VaultContext, with_auto_crypt


    class FixedPrompter(PassphrasePrompter):
        def ask(self, label):
            return sys.argv[2]


    def wait_for_signal():
        print("READY", flush=True)
        time.sleep(60)


    context = VaultContext.load(sys.argv[1], prompter=FixedPrompter())
    with_auto_crypt(wait_for_signal, context=context)
    """
)


@pytest.mark.skipif(os.name != "posix", reason="POSIX signals")
@pytest.mark.parametrize("signum", [signal.SIGTERM, signal.SIGINT])
def test_signal_reseals_vault(signum, vault_file: Path, config_dir: Path, context, passphrase):
    """The child is killed while the vault is open and leaves it encrypted."""
    config = load_vault_config(config_dir)
    config.active_db = str(vault_file)
    update_vault_config(config)
    encrypt_vault(vault_file, passphrase, context=context)

    env = dict(os.environ)
    project_root = str(Path(__file__).resolve().parents[2])
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [project_root, env.get("PYTHONPATH")]))

    proc = subprocess.Popen(
        [sys.executable, "-c", CHILD_SCRIPT, str(config_dir), passphrase],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env=env,
        text=True,
    )
    try:
        line = proc.stdout.readline()
        assert line.strip() == "READY", proc.stderr.read()
        assert not is_encrypted(vault_file)

        proc.send_signal(signum)
        proc.wait(timeout=60)
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()
        proc.stdout.close()
        proc.stderr.close()

    assert proc.returncode == 1
    assert is_encrypted(vault_file)
