"""
Ansible infrastructure provider.

Maintains an ansible/ directory: role skeletons, an inventory.yml that
collects every provisioned project's hosts, and a deploy.yml playbook.
"""

import shutil
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .base import InfrastructureProvider
from ..config import get_config
from ..core.file_manager import FileManager, substitute_placeholders
from ..core.logger import HumLogger
from ..core.settings import file_lock
from ..models.project import ProjectConfig
from ..models.repository import RepositoryInfo

ROLES = ("common", "web", "dotnet")
ROLE_DIRS = ("tasks", "handlers", "templates", "files", "vars", "defaults", "meta")


class AnsibleInventory:
    """
    YAML inventory in the standard layout::

        all:
          children:
            <environment>:
              hosts:
                <host>: {<var>: <value>, ...}

    Groups and hosts not touched by set_host() are kept as loaded.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = data if isinstance(data, dict) else {}

    @classmethod
    def from_yaml(cls, text: str) -> "AnsibleInventory":
        """
        Raises:
            yaml.YAMLError: text is not valid YAML
            ValueError: document is not a mapping
        """
        data = yaml.safe_load(text)
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError("inventory root must be a mapping")
        cls._check_shape(data)
        return cls(data)

    @staticmethod
    def _check_shape(data: Dict[str, Any]) -> None:
        """Every node on the all/children/<group>/hosts/<host> path must be a mapping or empty."""

        def mapping(node: Any, where: str) -> Dict[str, Any]:
            if node is None:
                return {}
            if not isinstance(node, dict):
                raise ValueError(f"{where} must be a mapping")
            return node

        children = mapping(mapping(data.get("all"), "all").get("children"), "all.children")
        for group_name, group in children.items():
            hosts = mapping(mapping(group, f"group {group_name}").get("hosts"), f"group {group_name} hosts")
            for host_name, host in hosts.items():
                mapping(host, f"host {host_name}")

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.data, sort_keys=False, default_flow_style=False)

    def group(self, name: str) -> Dict[str, Any]:
        all_group = self.data.setdefault("all", {}) or {}
        self.data["all"] = all_group
        children = all_group.get("children") or {}
        all_group["children"] = children
        group = children.get(name) or {}
        children[name] = group
        return group

    def set_host(self, group_name: str, host_name: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """Merge variables into a host entry, creating group and host as needed."""
        group = self.group(group_name)
        hosts = group.get("hosts") or {}
        group["hosts"] = hosts
        host = hosts.get(host_name) or {}
        host.update(variables)
        hosts[host_name] = host
        return host

    def groups(self) -> Dict[str, Any]:
        return ((self.data.get("all") or {}).get("children")) or {}

    def hosts(self, group_name: str) -> Dict[str, Any]:
        return (self.groups().get(group_name) or {}).get("hosts") or {}


class AnsibleProvider(InfrastructureProvider):
    """Writes Ansible inventory and playbook for provisioned projects."""

    def __init__(
        self,
        ansible_path: Optional[Path] = None,
        file_manager: Optional[FileManager] = None,
        logger: Optional[HumLogger] = None,
    ):
        self.ansible_path = Path(ansible_path) if ansible_path else get_config().resolve_ansible_dir()
        self.logger = logger or HumLogger("Ansible")
        self.file_manager = file_manager or FileManager(base_dir=self.ansible_path, logger=self.logger)

    @property
    def provider_name(self) -> str:
        return "Ansible"

    @property
    def inventory_path(self) -> Path:
        return self.ansible_path / "inventory.yml"

    @property
    def playbook_path(self) -> Path:
        return self.ansible_path / "deploy.yml"

    async def configure_infrastructure(self, project_config: ProjectConfig, repository: RepositoryInfo) -> None:
        self.logger.info(f"Configuring Ansible infrastructure for project: {project_config.name}")
        await self.ensure_directory_structure()
        await self.update_inventory(project_config, repository)
        await self.create_playbook(project_config)
        self.logger.success(f"Ansible configuration written to {self.ansible_path}")

    async def update_inventory(self, project_config: ProjectConfig, repository: RepositoryInfo) -> None:
        """Add or update one host per deployment environment."""
        async with file_lock(self.inventory_path):
            inventory = await self._load_inventory()

            deployment = project_config.deployment_config
            if deployment:
                for env in deployment.environments:
                    variables = {
                        "project_name": project_config.name,
                        "deploy_path": env.deployment_path,
                        "repository_url": repository.clone_url,
                    }
                    variables.update(env.environment_variables)
                    inventory.set_host(env.name, env.host_name, variables)

            await self.file_manager.write_file(self.inventory_path, inventory.to_yaml())

        self.logger.debug(f"Ansible inventory updated at {self.inventory_path}")

    async def load_inventory(self) -> AnsibleInventory:
        async with file_lock(self.inventory_path):
            return await self._load_inventory()

    async def _load_inventory(self) -> AnsibleInventory:
        if not await self.file_manager.exists(self.inventory_path):
            return AnsibleInventory()
        text = await self.file_manager.read_file(self.inventory_path)
        try:
            return AnsibleInventory.from_yaml(text)
        except (yaml.YAMLError, ValueError) as e:
            backup = self.inventory_path.with_suffix(".yml.bak")
            shutil.copy2(self.inventory_path, backup)
            self.logger.warning(f"Could not load existing inventory ({e}); saved a copy to {backup}")
            return AnsibleInventory()

    async def create_playbook(self, project_config: ProjectConfig) -> Path:
        """
        Raises:
            FileNotFoundError: the playbook template is missing from the package
        """
        template = self.file_manager.load_asset("ansible-playbook.yml")
        content = substitute_placeholders(template, {"ProjectName": project_config.name})
        return await self.file_manager.write_file(self.playbook_path, content)

    async def validate_configuration(self, project_config: ProjectConfig) -> bool:
        return await self.file_manager.exists(self.inventory_path) and await self.file_manager.exists(self.playbook_path)

    async def ensure_directory_structure(self) -> None:
        """Create ansible/roles/{common,web,dotnet} skeletons; existing roles are left alone."""
        roles_path = self.ansible_path / "roles"
        for role in ROLES:
            role_path = roles_path / role
            if role_path.exists():
                continue
            for sub in ROLE_DIRS:
                await self.file_manager.makedirs(role_path / sub)
            await self.file_manager.write_file(role_path / "tasks" / "main.yml", f"---\n# Tasks for role {role}\n")
