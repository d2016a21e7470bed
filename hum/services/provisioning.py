"""
Provisioning pipeline.

Drives one provider per family through four ordered stages:

    1. template        -> project path
    2. source control  -> RepositoryInfo
    3. CI/CD           (uses the repository)
    4. infrastructure  (uses config + repository)

A failing stage stops the run and its error propagates unchanged. Nothing
is rolled back: files and the repository from earlier stages remain.
"""

from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

from ..core.errors import ConfigurationError
from ..core.logger import HumLogger
from ..models.project import ProjectConfig
from ..models.report import ProvisioningReport, ProvisioningStage, ProvisioningStatus, StageResult
from ..models.repository import RepositoryInfo
from ..providers.ansible import AnsibleProvider
from ..providers.dotnet_template import DotNetTemplateProvider
from ..providers.github_api import GitHubApiProvider
from ..providers.github_cli import GitHubCliProvider
from ..providers.registry import ProviderRegistry

T = TypeVar("T")

DEFAULT_INFRASTRUCTURE = "ansible"


class ProvisioningPipeline:
    """Runs the four provisioning stages for a ProjectConfig."""

    def __init__(self, registry: ProviderRegistry, logger: Optional[HumLogger] = None):
        self.registry = registry
        self.logger = logger or HumLogger("Provisioning")
        self.report: Optional[ProvisioningReport] = None

    async def provision(self, project_config: ProjectConfig) -> str:
        """
        Provision a project end to end.

        The caller's config has its template kind normalized in place;
        provider defaults are applied to a working copy.

        Returns:
            Path of the created project

        Raises:
            ConfigurationError: no template kind given
            ProviderResolutionError: a family has no matching provider
            HumError: whatever a stage's provider raised
        """
        if not project_config.template_type:
            raise ConfigurationError("Template type is required")

        project_config.normalize()
        working = project_config.with_provider_defaults()

        self.report = ProvisioningReport(project_name=working.name, template_type=working.template_type)
        try:
            project_path = await self._create_project(working)
            repository = await self._create_repository(working)
            await self._configure_cicd(working, repository)
            await self._configure_infrastructure(working, repository)
        except Exception:
            self.report.finish(ProvisioningStatus.FAILED)
            raise

        self.report.finish(ProvisioningStatus.SUCCESS)
        self.logger.success(f"Project {working.name} provisioned")
        self.logger.detail(f"Project path: {project_path}")
        self.logger.detail(f"Repository: {repository.url}")
        return project_path

    async def _create_project(self, config: ProjectConfig) -> str:
        self.logger.step(f"Creating project from template '{config.template_type}'", 1)
        provider = self.registry.resolve_template(config.template_type)
        project_path = await self._run_stage(
            ProvisioningStage.TEMPLATE, provider.template_name,
            lambda: provider.create_project(config),
        )
        self.report.project_path = project_path
        return project_path

    async def _create_repository(self, config: ProjectConfig) -> RepositoryInfo:
        self.logger.step(f"Setting up source control ({config.source_control_provider})", 2)
        provider = self.registry.resolve_source_control(config.source_control_provider)

        async def stage() -> RepositoryInfo:
            repository = await provider.create_repository(config.name, config.description)
            self.report.repository = repository
            # sub-steps inside configure_repository are best effort
            await provider.configure_repository(repository, config)
            return repository

        return await self._run_stage(ProvisioningStage.SOURCE_CONTROL, provider.provider_name, stage)

    async def _configure_cicd(self, config: ProjectConfig, repository: RepositoryInfo) -> None:
        self.logger.step(f"Configuring CI/CD ({config.cicd_provider})", 3)
        provider = self.registry.resolve_cicd(config.cicd_provider)
        await self._run_stage(
            ProvisioningStage.CICD, provider.provider_name,
            lambda: provider.configure_pipelines(repository, config),
        )

    async def _configure_infrastructure(self, config: ProjectConfig, repository: RepositoryInfo) -> None:
        kind = config.infrastructure_provider or DEFAULT_INFRASTRUCTURE
        self.logger.step(f"Configuring infrastructure ({kind})", 4)
        provider = self.registry.resolve_infrastructure(kind)
        await self._run_stage(
            ProvisioningStage.INFRASTRUCTURE, provider.provider_name,
            lambda: provider.configure_infrastructure(config, repository),
        )

    async def _run_stage(self, stage: ProvisioningStage, provider_name: str, action: Callable[[], Awaitable[T]]) -> T:
        """Run a stage and record its result; errors are recorded then re-raised."""
        stage_result = StageResult(stage=stage, success=False, provider=provider_name)
        try:
            value = await action()
        except Exception as e:
            stage_result.message = str(e)
            self.report.add_stage_result(self._finalize_stage(stage_result))
            raise
        stage_result.success = True
        self.report.add_stage_result(self._finalize_stage(stage_result))
        return value

    def _finalize_stage(self, stage_result: StageResult) -> StageResult:
        stage_result.finished_at = datetime.now()
        stage_result.duration_seconds = (stage_result.finished_at - stage_result.started_at).total_seconds()
        return stage_result


def build_registry(
    github_token: Optional[str] = None,
    github_username: Optional[str] = None,
    organization: Optional[str] = None,
    ansible_path: Optional[Path] = None,
    use_github_api: bool = False,
) -> ProviderRegistry:
    """
    Standard provider set.

    With use_github_api the token-based REST provider is registered first
    (``hum init``); otherwise the gh CLI provider is (``hum create``).
    """
    github_providers = []
    if use_github_api:
        github_providers.append(GitHubApiProvider(github_token, github_username, organization=organization))
    github_providers.append(GitHubCliProvider(organization=organization))

    return ProviderRegistry(
        templates=[DotNetTemplateProvider()],
        source_control=list(github_providers),
        cicd=list(github_providers),
        infrastructure=[AnsibleProvider(ansible_path)],
    )

