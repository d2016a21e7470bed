"""
Provider interfaces.

A provider implements the external effect of one pipeline stage. A class
may implement several interfaces (the GitHub providers are both source
control and CI/CD).
"""

from abc import ABC, abstractmethod

from ..models.project import ProjectConfig
from ..models.repository import RepositoryInfo


class ProjectTemplateProvider(ABC):
    """Creates a project on disk from a template kind."""

    @property
    @abstractmethod
    def template_name(self) -> str:
        pass

    @abstractmethod
    def can_handle(self, template_type: str) -> bool:
        pass

    @abstractmethod
    async def create_project(self, project_config: ProjectConfig) -> str:
        """Materialize the project and return its path."""
        pass

    @abstractmethod
    async def configure_project(self, project_path: str, project_config: ProjectConfig) -> None:
        pass


class SourceControlProvider(ABC):
    """Hosts the repository."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    def can_handle(self, source_control_type: str) -> bool:
        pass

    @abstractmethod
    async def create_repository(self, name: str, description: str) -> RepositoryInfo:
        pass

    @abstractmethod
    async def configure_repository(self, repository: RepositoryInfo, project_config: ProjectConfig) -> None:
        """Local init, remote wiring, first push, branch protection. Sub-steps are best effort."""
        pass

    @abstractmethod
    async def get_repository_url(self, repository_name: str) -> str:
        pass


class CiCdProvider(ABC):
    """Configures build/deploy pipelines for a repository."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def configure_pipelines(self, repository: RepositoryInfo, project_config: ProjectConfig) -> None:
        pass

    @abstractmethod
    async def validate_configuration(self, repository: RepositoryInfo) -> bool:
        pass


class InfrastructureProvider(ABC):
    """Maintains deployment inventory and playbooks."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def configure_infrastructure(self, project_config: ProjectConfig, repository: RepositoryInfo) -> None:
        pass

    @abstractmethod
    async def update_inventory(self, project_config: ProjectConfig, repository: RepositoryInfo) -> None:
        pass

    @abstractmethod
    async def validate_configuration(self, project_config: ProjectConfig) -> bool:
        pass
