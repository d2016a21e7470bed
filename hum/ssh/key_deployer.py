"""
SSH key generation and deployment.

Generates a 4096-bit RSA key pair under <config_dir>/keys and installs the
public half on the remote host over a password-authenticated session.
"""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import asyncssh
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ..config import get_config
from ..core.errors import ConfigurationError, SshError
from ..core.logger import HumLogger
from ..core.prompts import Prompter
from ..models.settings import AnsibleRemoteConfig

KEY_FILE_NAME = "hum_ansible_id_rsa"
KEY_COMMENT = "hum-cli-generated-key"
KEY_SIZE = 4096

AUTHORIZED_KEYS_COMMANDS = (
    "mkdir -p ~/.ssh",
    "chmod 700 ~/.ssh",
    "cat >> ~/.ssh/authorized_keys",
    "chmod 600 ~/.ssh/authorized_keys",
)


@dataclass
class KeyPair:
    private_key_path: Path
    public_key_path: Path
    public_key: str
    encrypted: bool


def generate_key_pair(
    key_dir: Path,
    passphrase: Optional[str] = None,
    key_size: int = KEY_SIZE,
    comment: str = KEY_COMMENT,
) -> KeyPair:
    """
    Write a new RSA key pair to key_dir, replacing any previous one.

    The private key is traditional PEM ("BEGIN RSA PRIVATE KEY"), encrypted
    when a passphrase is given, with mode 0600. The public key is a single
    OpenSSH authorized_keys line.
    """
    key_dir = Path(key_dir)
    key_dir.mkdir(parents=True, exist_ok=True)
    private_path = key_dir / KEY_FILE_NAME
    public_path = key_dir / f"{KEY_FILE_NAME}.pub"

    key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    encryption = (
        serialization.BestAvailableEncryption(passphrase.encode())
        if passphrase
        else serialization.NoEncryption()
    )
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=encryption,
    )
    public_line = key.public_key().public_bytes(
        encoding=serialization.Encoding.OpenSSH,
        format=serialization.PublicFormat.OpenSSH,
    ).decode() + f" {comment}"

    for path in (private_path, public_path):
        if path.exists():
            path.unlink()

    fd = os.open(private_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(private_pem)
    os.chmod(private_path, 0o600)
    public_path.write_text(public_line + "\n", encoding="utf-8")
    os.chmod(public_path, 0o644)

    return KeyPair(private_path, public_path, public_line, bool(passphrase))


class KeyDeployer:
    """Generates a key pair and installs it for the configured remote user."""

    def __init__(
        self,
        key_dir: Optional[Path] = None,
        prompter: Optional[Prompter] = None,
        logger: Optional[HumLogger] = None,
        connect_timeout: Optional[float] = None,
    ):
        config = get_config()
        self.key_dir = Path(key_dir) if key_dir else config.keys_dir
        self.prompter = prompter or Prompter()
        self.logger = logger or HumLogger("KeyDeployer")
        self.connect_timeout = connect_timeout or config.timeouts.ssh_connect

    def ask_new_passphrase(self) -> Optional[str]:
        """
        Ask for an optional passphrase and its confirmation.

        Raises:
            ConfigurationError: the confirmation does not match
        """
        passphrase = self.prompter.ask_secret("Enter a passphrase for the new key (or leave blank for none)")
        if not passphrase:
            return None
        confirmation = self.prompter.ask_secret("Confirm passphrase")
        if passphrase != confirmation:
            raise ConfigurationError("Passphrases do not match. Please try again.")
        return passphrase

    async def generate(self, passphrase: Optional[str] = None) -> KeyPair:
        self.logger.info(f"Generating {KEY_SIZE}-bit RSA key...")
        pair = await asyncio.to_thread(generate_key_pair, self.key_dir, passphrase)
        self.logger.success(f"Key pair written to {pair.private_key_path}")
        self.logger.detail(f"Private key: {pair.private_key_path}")
        self.logger.detail(f"Public key: {pair.public_key_path}")
        return pair

    async def deploy_public_key(self, config: AnsibleRemoteConfig, public_key: str, password: str) -> None:
        """
        Append public_key to the remote user's authorized_keys.

        Authenticates with the password only; no local keys or agent are offered.

        Raises:
            SshError: connection, authentication or a remote command failed
        """
        try:
            conn = await asyncio.wait_for(
                asyncssh.connect(
                    config.host,
                    username=config.user,
                    password=password,
                    client_keys=None,
                    agent_path=None,
                    known_hosts=None,
                    preferred_auth="password,keyboard-interactive",
                ),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError as e:
            raise SshError(f"Connection to {config.host} timed out after {self.connect_timeout} seconds") from e
        except (asyncssh.Error, OSError) as e:
            raise SshError(f"Could not connect to {config.user}@{config.host}: {e}") from e

        try:
            self.logger.success("Connected with password.")
            for command in AUTHORIZED_KEYS_COMMANDS:
                stdin = public_key.strip() + "\n" if command.startswith("cat") else None
                await conn.run(command, input=stdin, check=True)
        except asyncssh.ProcessError as e:
            raise SshError(f"Remote command failed ({e.command}): {(e.stderr or '').strip()}") from e
        except (asyncssh.Error, OSError) as e:
            raise SshError(f"Failed to deploy public key: {e}") from e
        finally:
            conn.close()
            await conn.wait_closed()

        self.logger.success("Public key deployed successfully.")

    async def generate_and_deploy(self, config: AnsibleRemoteConfig) -> KeyPair:
        """Interactive flow: passphrase, generate, password prompt, deploy."""
        passphrase = self.ask_new_passphrase()
        pair = await self.generate(passphrase)
        password = self.prompter.ask_secret(
            f"Enter the password for {config.user}@{config.host} to deploy the key"
        )
        await self.deploy_public_key(config, pair.public_key, password)
        return pair
