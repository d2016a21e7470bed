"""
.NET project template provider.

Runs ``dotnet new`` and adds README, .gitignore, Dockerfile and a starter
Ansible directory to the generated project.
"""

from pathlib import Path
from typing import Optional

import yaml

from .base import ProjectTemplateProvider
from ..config import get_config
from ..core.executor import CommandExecutor
from ..core.file_manager import FileManager, substitute_placeholders
from ..core.logger import HumLogger
from ..models.project import DOTNET_PREFIX, ProjectConfig

# hum template kind -> `dotnet new` short name
DOTNET_NEW_TEMPLATES = {
    "dotnet": "web",
    "dotnet-web": "web",
    "dotnet-webapi": "webapi",
    "dotnet-blazor": "blazor",
    "dotnet-blazorapp": "blazor",
    "dotnet-worker": "worker",
    "dotnet-console": "console",
}


def dotnet_new_template(template_type: str) -> str:
    kind = template_type.lower()
    if kind in DOTNET_NEW_TEMPLATES:
        return DOTNET_NEW_TEMPLATES[kind]
    return kind[len(DOTNET_PREFIX):]


class DotNetTemplateProvider(ProjectTemplateProvider):
    """Creates .NET projects with the dotnet CLI."""

    def __init__(
        self,
        executor: Optional[CommandExecutor] = None,
        file_manager: Optional[FileManager] = None,
        logger: Optional[HumLogger] = None,
    ):
        self.logger = logger or HumLogger("DotNet")
        self.executor = executor or CommandExecutor(logger=self.logger)
        self.file_manager = file_manager or FileManager(logger=self.logger)
        self.config = get_config()

    @property
    def template_name(self) -> str:
        return "DotNet"

    def can_handle(self, template_type: str) -> bool:
        kind = (template_type or "").lower()
        return kind == "dotnet" or kind.startswith(DOTNET_PREFIX)

    async def create_project(self, project_config: ProjectConfig) -> str:
        """
        Run ``dotnet new`` into the project directory.

        Raises:
            ToolInvocationError: dotnet exited non-zero (stderr carried verbatim)
            ToolTimeoutError: dotnet did not finish in time
        """
        project_path = project_config.project_path
        self.logger.info(f"Creating .NET project: {project_config.name}")
        await self.file_manager.makedirs(project_path)

        template = dotnet_new_template(project_config.template_type)
        await self.executor.check(
            ["dotnet", "new", template, "-n", project_config.name, "-o", str(project_path)],
            timeout=self.config.timeouts.template,
        )
        self.logger.success(f"Created .NET project at {project_path}")

        await self.configure_project(str(project_path), project_config)
        return str(project_path)

    async def configure_project(self, project_path: str, project_config: ProjectConfig) -> None:
        root = Path(project_path)
        name = project_config.name
        git = project_config.git_config

        context = {
            "name": name,
            "description": project_config.description,
            "clone_url": f"https://github.com/{git.username}/{name}.git" if git and git.username else f"<repository-url>/{name}.git",
            "extra_patterns": list(git.additional_ignore_patterns) if git else [],
        }
        await self.file_manager.write_file(root / "README.md", self.file_manager.render_template("README.md.j2", context))
        await self.file_manager.write_file(root / ".gitignore", self.file_manager.render_template("gitignore.j2", context))
        await self.file_manager.write_file(root / "Dockerfile", self.file_manager.render_template("Dockerfile.j2", context))
        await self._create_ansible_directory(root / "ansible", project_config)

        self.logger.debug(f"Configured .NET project at {project_path}")

    async def _create_ansible_directory(self, ansible_path: Path, project_config: ProjectConfig) -> None:
        """Starter inventory, deploy.yml and the systemd unit template."""
        name = project_config.name
        hosts = {}
        deployment = project_config.deployment_config
        if deployment and deployment.environments:
            for env in deployment.environments:
                hosts[env.name] = {
                    "hosts": {
                        env.host_name: {
                            "ansible_user": "deploy",
                            "deploy_path": env.deployment_path,
                            "project_name": name,
                        }
                    }
                }
        else:
            for env_name, host in (("production", "example.com"), ("staging", "staging.example.com")):
                hosts[env_name] = {
                    "hosts": {host: {"ansible_user": "deploy", "deploy_path": "/var/www", "project_name": name}}
                }

        inventory = yaml.safe_dump({"all": {"children": hosts}}, sort_keys=False, default_flow_style=False)
        await self.file_manager.write_file(ansible_path / "inventory.yml", "---\n" + inventory)

        playbook = substitute_placeholders(self.file_manager.load_asset("ansible-playbook.yml"), {"ProjectName": name})
        await self.file_manager.write_file(ansible_path / "deploy.yml", playbook)
        await self.file_manager.write_file(ansible_path / "templates" / "service.j2", self.file_manager.load_asset("service.j2"))
