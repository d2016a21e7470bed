"""
SSH connection validation for the remote Ansible host.

Loads the configured private key (asking for a passphrase when needed),
connects with a bounded timeout and disconnects again. Used by
``hum ansible-config`` before settings are saved.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import asyncssh

from .key_inspector import KeyMaterialInspector, KeyMaterialState
from ..config import get_config
from ..core.logger import HumLogger
from ..core.prompts import Prompter
from ..models.settings import AnsibleRemoteConfig

# A rejected passphrase may be re-entered once.
MAX_PASSPHRASE_RETRIES = 1


class ConnectionOutcome(Enum):
    CONNECTED = "connected"
    TIMEOUT = "timeout"
    AUTH_FAILED = "auth_failed"
    KEY_ERROR = "key_error"
    MISSING_INPUT = "missing_input"
    CONNECTION_ERROR = "connection_error"


@dataclass
class ConnectionResult:
    outcome: ConnectionOutcome
    message: str = ""
    server_version: Optional[str] = None
    key_state: Optional[KeyMaterialState] = None
    passphrase_attempts: int = 0

    @property
    def success(self) -> bool:
        return self.outcome is ConnectionOutcome.CONNECTED


class _PassphraseRequired(Exception):
    pass


class _DecryptionFailed(Exception):
    pass


def _load_private_key(key_path: Path, passphrase: Optional[str]) -> asyncssh.SSHKey:
    """Load a key, translating asyncssh errors into the two passphrase cases."""
    try:
        return asyncssh.read_private_key(str(key_path), passphrase or None)
    except asyncssh.KeyEncryptionError as e:
        raise _DecryptionFailed(str(e)) from e
    except asyncssh.KeyImportError as e:
        if "passphrase" in str(e).lower():
            raise _PassphraseRequired(str(e)) from e
        if passphrase:
            # a wrong passphrase on legacy PEM surfaces as a decode error
            raise _DecryptionFailed(str(e)) from e
        raise


class SshConnector:
    """Validates key-based SSH access to a host."""

    def __init__(
        self,
        prompter: Optional[Prompter] = None,
        inspector: Optional[KeyMaterialInspector] = None,
        logger: Optional[HumLogger] = None,
        connect_timeout: Optional[float] = None,
    ):
        self.logger = logger or HumLogger("SSH")
        self.prompter = prompter or Prompter()
        self.inspector = inspector or KeyMaterialInspector(logger=self.logger)
        self.connect_timeout = connect_timeout or get_config().timeouts.ssh_connect

    async def test_connection(
        self,
        config: AnsibleRemoteConfig,
        passphrase: Optional[str] = None,
    ) -> ConnectionResult:
        """
        Load the key and open (then close) a session to config.host.

        Args:
            config: Host, user and private key path
            passphrase: Key passphrase if already known

        Returns:
            ConnectionResult; only CONNECTED counts as success
        """
        if not config.is_complete:
            return self._fail(ConnectionOutcome.MISSING_INPUT, "Host, user, and private key path are all required.")

        key_path = Path(config.private_key_path).expanduser()
        if not key_path.is_file():
            return self._fail(ConnectionOutcome.KEY_ERROR, f"Key file not found: {key_path}")

        self.logger.step(f"Attempting to connect to {config.user}@{config.host}...")

        retries_left = MAX_PASSPHRASE_RETRIES
        attempts = 0
        while True:
            state = await self.inspector.prepare(key_path, passphrase)
            self.logger.info(f"Key appears to be {'encrypted' if state.encrypted else 'unencrypted'}")

            if state.encrypted and not passphrase:
                passphrase = self.prompter.ask_secret("This key requires a passphrase. Please enter the passphrase")
                if not passphrase:
                    return self._fail(
                        ConnectionOutcome.KEY_ERROR,
                        "Empty passphrase provided for an encrypted key. Cannot proceed.",
                        state, attempts,
                    )

            try:
                attempts += 1
                key = _load_private_key(key_path, passphrase)
            except _PassphraseRequired:
                if passphrase:
                    return self._fail(
                        ConnectionOutcome.KEY_ERROR,
                        "Key requires a passphrase, but the provided passphrase was rejected.",
                        state, attempts,
                    )
                passphrase = self.prompter.ask_secret("The key is encrypted. Please enter the passphrase")
                if not passphrase:
                    return self._fail(ConnectionOutcome.KEY_ERROR, "Passphrase cannot be empty for this key.", state, attempts)
                continue
            except _DecryptionFailed as e:
                self.logger.error(f"Invalid passphrase or corrupt key file: {e}")
                if retries_left <= 0 or not self.prompter.confirm("Try again with a different passphrase?"):
                    return self._fail(ConnectionOutcome.KEY_ERROR, f"Could not decrypt key: {e}", state, attempts)
                retries_left -= 1
                passphrase = self.prompter.ask_secret("Enter passphrase")
                continue
            except (asyncssh.KeyImportError, OSError) as e:
                return self._fail(ConnectionOutcome.KEY_ERROR, f"Could not load key: {e}", state, attempts)

            self.logger.success("Key loaded successfully")
            result = await self._connect(config, key)
            result.key_state = state
            result.passphrase_attempts = attempts
            return result

    async def _connect(self, config: AnsibleRemoteConfig, key: asyncssh.SSHKey) -> ConnectionResult:
        """Connect, read the server version, disconnect."""
        self.logger.info("Connecting...")
        try:
            conn = await asyncio.wait_for(
                asyncssh.connect(
                    config.host,
                    username=config.user,
                    client_keys=[key],
                    known_hosts=None,
                    agent_path=None,
                    password=None,
                ),
                timeout=self.connect_timeout,
            )
        except asyncio.TimeoutError:
            return self._fail(ConnectionOutcome.TIMEOUT, f"Connection timed out after {self.connect_timeout} seconds.")
        except asyncssh.PermissionDenied as e:
            return self._fail(ConnectionOutcome.AUTH_FAILED, f"Authentication failed: {e.reason}")
        except (asyncssh.Error, OSError) as e:
            return self._fail(ConnectionOutcome.CONNECTION_ERROR, f"Connection error: {e}")

        try:
            server_version = None
            try:
                server_version = conn.get_extra_info("server_version")
                self.logger.info(f"Server: {server_version}")
            except (AttributeError, KeyError, asyncssh.Error) as e:
                self.logger.debug(f"Unable to retrieve server version: {e}")
            self.logger.success("SSH connection successful!")
            return ConnectionResult(ConnectionOutcome.CONNECTED, "Connected", server_version=server_version)
        finally:
            conn.close()
            await conn.wait_closed()

    def _fail(
        self,
        outcome: ConnectionOutcome,
        message: str,
        state: Optional[KeyMaterialState] = None,
        attempts: int = 0,
    ) -> ConnectionResult:
        self.logger.error(message)
        return ConnectionResult(outcome, message, key_state=state, passphrase_attempts=attempts)
