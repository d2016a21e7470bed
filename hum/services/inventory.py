"""
Inventory listing.

Prefers the configured remote Ansible host (over ssh), then a local
ansible installation, then ansible inside WSL.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from ..config import get_config
from ..core.executor import CommandExecutor
from ..core.logger import HumLogger
from ..models.settings import AnsibleRemoteConfig, AppSettings

DEFAULT_KEY_PATH = Path("~/.ssh/id_rsa")


class AnsibleMethod(Enum):
    REMOTE = "remote"
    NATIVE = "native"
    WSL = "wsl"


@dataclass
class AnsibleAvailability:
    method: Optional[AnsibleMethod]
    detail: str = ""

    @property
    def available(self) -> bool:
        return self.method is not None


@dataclass
class InventoryListing:
    method: Optional[AnsibleMethod]
    success: bool
    output: str = ""
    error: str = ""
    timed_out: bool = False


class InventoryService:
    """Finds a usable Ansible and lists its inventory."""

    def __init__(
        self,
        executor: Optional[CommandExecutor] = None,
        logger: Optional[HumLogger] = None,
        inventory_path: Optional[Path] = None,
    ):
        self.logger = logger or HumLogger("Inventory")
        self.executor = executor or CommandExecutor(logger=self.logger)
        config = get_config()
        self.timeouts = config.timeouts
        self.inventory_path = inventory_path or config.resolve_ansible_dir() / "inventory.yml"

    async def detect(self, settings: AppSettings) -> AnsibleAvailability:
        remote = settings.ansible_config
        if remote and remote.host:
            return AnsibleAvailability(AnsibleMethod.REMOTE, f"Using remote Ansible at {remote.host}")

        version = await self.executor.get_tool_version(["ansible", "--version"], timeout=self.timeouts.probe)
        if version:
            return AnsibleAvailability(AnsibleMethod.NATIVE, version)

        version = await self.executor.get_tool_version(["wsl", "ansible", "--version"], timeout=self.timeouts.probe)
        if version:
            return AnsibleAvailability(AnsibleMethod.WSL, f"{version} (via WSL)")

        return AnsibleAvailability(None, "No Ansible installation found")

    async def list_inventory(self, settings: AppSettings) -> InventoryListing:
        remote = settings.ansible_config
        if remote and remote.host:
            return await self.list_remote(remote)

        native = await self._list_local(AnsibleMethod.NATIVE, ["ansible-inventory"])
        if native.success:
            return native
        self.logger.debug("Native ansible-inventory unavailable", error=native.error)

        wsl = await self._list_local(AnsibleMethod.WSL, ["wsl", "ansible-inventory"])
        if wsl.success:
            return wsl
        return InventoryListing(None, False, error="Failed to list inventory. No method available.")

    async def list_remote(self, remote: AnsibleRemoteConfig) -> InventoryListing:
        key_path = Path(remote.private_key_path or DEFAULT_KEY_PATH).expanduser()
        if not key_path.is_file():
            return InventoryListing(
                AnsibleMethod.REMOTE, False,
                error=f"SSH key not found at {key_path}. Configure a valid key with 'hum ansible-config'.",
            )

        self.logger.info(f"Connecting to remote Ansible server {remote.host}...")
        result = await self.executor.run(
            [
                "ssh", "-o", "ConnectTimeout=5", "-o", "BatchMode=yes",
                "-i", str(key_path), f"{remote.user}@{remote.host}",
                "ansible-inventory --list -y",
            ],
            timeout=self.timeouts.remote_inventory,
        )
        if result.timed_out:
            return InventoryListing(
                AnsibleMethod.REMOTE, False, timed_out=True,
                error="Connection to remote server timed out. Check that the server is reachable and your SSH key is authorized.",
            )
        return InventoryListing(AnsibleMethod.REMOTE, result.success, result.stdout, result.stderr.strip())

    async def _list_local(self, method: AnsibleMethod, prefix: list) -> InventoryListing:
        args = [*prefix, "--list", "-y"]
        if method is AnsibleMethod.NATIVE and self.inventory_path.is_file():
            args += ["-i", str(self.inventory_path)]
        result = await self.executor.run(args, timeout=self.timeouts.probe)
        return InventoryListing(method, result.success, result.stdout, result.stderr.strip(), result.timed_out)
