"""
Unit tests for key generation and public key deployment.
"""

import stat
from unittest.mock import AsyncMock, MagicMock, patch

import asyncssh
import pytest
from cryptography.hazmat.primitives import serialization

from hum.core.errors import ConfigurationError, SshError
from hum.models import AnsibleRemoteConfig
from hum.ssh import key_deployer as deployer_module
from hum.ssh.key_deployer import AUTHORIZED_KEYS_COMMANDS, KEY_COMMENT, KeyDeployer, generate_key_pair
from hum.ssh.key_inspector import KeyFormat, inspect_key_file


class TestGenerateKeyPair:
    """Native RSA key generation."""

    def test_unencrypted_pair(self, tmp_path):
        pair = generate_key_pair(tmp_path / "keys", key_size=2048)

        assert pair.private_key_path.name == "hum_ansible_id_rsa"
        assert pair.public_key_path.name == "hum_ansible_id_rsa.pub"
        assert stat.S_IMODE(pair.private_key_path.stat().st_mode) == 0o600
        assert not pair.encrypted

        state = inspect_key_file(pair.private_key_path)
        assert state.format is KeyFormat.PEM_PKCS1
        assert not state.encrypted

        assert pair.public_key.startswith("ssh-rsa ")
        assert pair.public_key.endswith(f" {KEY_COMMENT}")
        assert pair.public_key_path.read_text().strip() == pair.public_key

    def test_encrypted_pair_loads_with_passphrase(self, tmp_path):
        pair = generate_key_pair(tmp_path, passphrase="s3cret", key_size=2048)

        assert pair.encrypted
        assert inspect_key_file(pair.private_key_path).encrypted
        key = serialization.load_pem_private_key(pair.private_key_path.read_bytes(), password=b"s3cret")
        assert key.key_size == 2048

    def test_regeneration_replaces_previous_pair(self, tmp_path):
        first = generate_key_pair(tmp_path, key_size=2048)
        second = generate_key_pair(tmp_path, key_size=2048)

        assert first.private_key_path == second.private_key_path
        assert second.public_key_path.read_text().strip() == second.public_key
        assert first.public_key != second.public_key

    def test_default_size_is_4096(self):
        assert deployer_module.KEY_SIZE == 4096


class TestKeyDeployer:
    """Passphrase prompts and password-authenticated deployment."""

    def test_blank_passphrase_means_unencrypted(self, tmp_path, scripted_prompter):
        deployer = KeyDeployer(key_dir=tmp_path, prompter=scripted_prompter(secrets=[""]))
        assert deployer.ask_new_passphrase() is None

    def test_mismatched_confirmation(self, tmp_path, scripted_prompter):
        deployer = KeyDeployer(key_dir=tmp_path, prompter=scripted_prompter(secrets=["one", "two"]))
        with pytest.raises(ConfigurationError, match="do not match"):
            deployer.ask_new_passphrase()

    @pytest.mark.asyncio
    async def test_deploy_runs_authorized_keys_commands(self, tmp_path, scripted_prompter):
        conn = MagicMock()
        conn.run = AsyncMock()
        conn.wait_closed = AsyncMock()
        deployer = KeyDeployer(key_dir=tmp_path, prompter=scripted_prompter())
        config = AnsibleRemoteConfig("ansible01", "deploy", "")

        with patch.object(deployer_module.asyncssh, "connect", new=AsyncMock(return_value=conn)) as connect:
            await deployer.deploy_public_key(config, "ssh-rsa AAAA hum-cli-generated-key", "pw")

        kwargs = connect.call_args.kwargs
        assert kwargs["password"] == "pw"
        assert kwargs["client_keys"] is None
        assert kwargs["agent_path"] is None

        commands = [c.args[0] for c in conn.run.call_args_list]
        assert commands == list(AUTHORIZED_KEYS_COMMANDS)
        cat_call = conn.run.call_args_list[2]
        assert cat_call.kwargs["input"] == "ssh-rsa AAAA hum-cli-generated-key\n"
        conn.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_auth_failure_is_ssh_error(self, tmp_path, scripted_prompter):
        deployer = KeyDeployer(key_dir=tmp_path, prompter=scripted_prompter())
        error = asyncssh.PermissionDenied("Permission denied")

        with patch.object(deployer_module.asyncssh, "connect", new=AsyncMock(side_effect=error)):
            with pytest.raises(SshError, match="Could not connect to deploy@ansible01"):
                await deployer.deploy_public_key(AnsibleRemoteConfig("ansible01", "deploy", ""), "ssh-rsa AAAA", "bad")

    @pytest.mark.asyncio
    async def test_generate_and_deploy(self, tmp_path, scripted_prompter):
        prompter = scripted_prompter(secrets=["", "pw"])
        deployer = KeyDeployer(key_dir=tmp_path, prompter=prompter)
        config = AnsibleRemoteConfig("ansible01", "deploy", "")

        with patch.object(deployer_module, "generate_key_pair",
                          side_effect=lambda key_dir, passphrase: generate_key_pair(key_dir, passphrase, key_size=2048)), \
                patch.object(KeyDeployer, "deploy_public_key", new=AsyncMock()) as deploy:
            pair = await deployer.generate_and_deploy(config)

        assert pair.private_key_path.exists()
        deploy.assert_awaited_once_with(config, pair.public_key, "pw")
        assert "deploy@ansible01" in prompter.asked[-1]
