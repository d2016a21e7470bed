"""
Unit tests for Ansible detection and inventory listing.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from hum.core.executor import CommandResult
from hum.models import AnsibleRemoteConfig, AppSettings
from hum.services.inventory import AnsibleMethod, InventoryService


def result(success=True, stdout="", stderr="", timed_out=False):
    return CommandResult("cmd", 0 if success else 1, stdout, stderr, success, 0.01, timed_out)


@pytest.fixture
def executor():
    executor = MagicMock()
    executor.run = AsyncMock(return_value=result())
    executor.get_tool_version = AsyncMock(return_value=None)
    return executor


class TestDetect:

    @pytest.mark.asyncio
    async def test_remote_wins(self, executor, tmp_path):
        settings = AppSettings(ansible_config=AnsibleRemoteConfig("ansible01", "deploy", "/k"))
        availability = await InventoryService(executor=executor, inventory_path=tmp_path / "inv.yml").detect(settings)

        assert availability.method is AnsibleMethod.REMOTE
        executor.get_tool_version.assert_not_called()

    @pytest.mark.asyncio
    async def test_native_then_wsl(self, executor, tmp_path):
        executor.get_tool_version.side_effect = [None, "ansible [core 2.16.3]"]
        availability = await InventoryService(executor=executor, inventory_path=tmp_path / "inv.yml").detect(AppSettings())

        assert availability.method is AnsibleMethod.WSL
        assert executor.get_tool_version.call_args_list[1].args[0] == ["wsl", "ansible", "--version"]

    @pytest.mark.asyncio
    async def test_nothing_available(self, executor, tmp_path):
        availability = await InventoryService(executor=executor, inventory_path=tmp_path / "inv.yml").detect(AppSettings())
        assert not availability.available


class TestListInventory:

    @pytest.mark.asyncio
    async def test_remote_listing_command(self, executor, tmp_path):
        key = tmp_path / "id_rsa"
        key.write_text("key")
        executor.run.return_value = result(stdout="all:\n  children: {}\n")
        settings = AppSettings(ansible_config=AnsibleRemoteConfig("ansible01", "deploy", str(key)))

        listing = await InventoryService(executor=executor, inventory_path=tmp_path / "inv.yml").list_inventory(settings)

        assert listing.success
        assert listing.method is AnsibleMethod.REMOTE
        args = executor.run.call_args.args[0]
        assert args[:5] == ["ssh", "-o", "ConnectTimeout=5", "-o", "BatchMode=yes"]
        assert "deploy@ansible01" in args
        assert args[-1] == "ansible-inventory --list -y"
        assert executor.run.call_args.kwargs["timeout"] == 10

    @pytest.mark.asyncio
    async def test_remote_timeout(self, executor, tmp_path):
        key = tmp_path / "id_rsa"
        key.write_text("key")
        executor.run.return_value = result(success=False, timed_out=True)
        settings = AppSettings(ansible_config=AnsibleRemoteConfig("ansible01", "deploy", str(key)))

        listing = await InventoryService(executor=executor, inventory_path=tmp_path / "inv.yml").list_inventory(settings)

        assert listing.timed_out
        assert "timed out" in listing.error

    @pytest.mark.asyncio
    async def test_remote_missing_key(self, executor, tmp_path):
        settings = AppSettings(ansible_config=AnsibleRemoteConfig("ansible01", "deploy", str(tmp_path / "none")))
        listing = await InventoryService(executor=executor, inventory_path=tmp_path / "inv.yml").list_inventory(settings)

        assert not listing.success
        assert "SSH key not found" in listing.error
        executor.run.assert_not_called()

    @pytest.mark.asyncio
    async def test_native_uses_local_inventory_file(self, executor, tmp_path):
        inventory = tmp_path / "inventory.yml"
        inventory.write_text("all: {}\n")
        executor.run.return_value = result(stdout="all: {}\n")

        listing = await InventoryService(executor=executor, inventory_path=inventory).list_inventory(AppSettings())

        assert listing.method is AnsibleMethod.NATIVE
        assert executor.run.call_args.args[0] == ["ansible-inventory", "--list", "-y", "-i", str(inventory)]

    @pytest.mark.asyncio
    async def test_falls_back_to_wsl(self, executor, tmp_path):
        executor.run.side_effect = [result(success=False, stderr="not found"), result(stdout="all: {}\n")]

        listing = await InventoryService(executor=executor, inventory_path=tmp_path / "inv.yml").list_inventory(AppSettings())

        assert listing.method is AnsibleMethod.WSL
        assert executor.run.call_args.args[0][:2] == ["wsl", "ansible-inventory"]

    @pytest.mark.asyncio
    async def test_no_method(self, executor, tmp_path):
        executor.run.return_value = result(success=False)
        listing = await InventoryService(executor=executor, inventory_path=tmp_path / "inv.yml").list_inventory(AppSettings())

        assert not listing.success
        assert listing.method is None
