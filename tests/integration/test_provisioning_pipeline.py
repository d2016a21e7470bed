"""
End-to-end tests for the provisioning pipeline.

The first group uses in-memory providers; the second runs the real
DotNet, gh CLI and Ansible providers against a scripted executor.
"""

import json

import pytest
import yaml

from hum.core.errors import ConfigurationError, HumError, ProviderResolutionError, ToolInvocationError
from hum.core.executor import CommandResult
from hum.models import (
    DeploymentConfig,
    Environment,
    ProjectConfig,
    ProvisioningStage,
    ProvisioningStatus,
    RepositoryInfo,
)
from hum.providers import (
    AnsibleProvider,
    CiCdProvider,
    DotNetTemplateProvider,
    GitHubCliProvider,
    InfrastructureProvider,
    ProjectTemplateProvider,
    ProviderRegistry,
    SourceControlProvider,
)
from hum.services.provisioning import ProvisioningPipeline, build_registry


class MemoryTemplate(ProjectTemplateProvider):
    def __init__(self):
        self.created = []

    @property
    def template_name(self):
        return "DotNet"

    def can_handle(self, template_type):
        return template_type.startswith("dotnet")

    async def create_project(self, project_config):
        self.created.append(project_config.template_type)
        project_config.project_path.mkdir(parents=True, exist_ok=True)
        await self.configure_project(str(project_config.project_path), project_config)
        return str(project_config.project_path)

    async def configure_project(self, project_path, project_config):
        pass


class MemoryGitHub(SourceControlProvider, CiCdProvider):
    """Hosted repositories kept in a dict."""

    def __init__(self):
        self.repositories = {}
        self.workflows = []

    @property
    def provider_name(self):
        return "GitHub"

    def can_handle(self, source_control_type):
        return source_control_type.lower() == "github"

    async def create_repository(self, name, description):
        repo = RepositoryInfo(name, description, f"https://github.com/octocat/{name}",
                              f"git@github.com:octocat/{name}.git", "main", "octocat", name)
        self.repositories[name] = repo
        return repo

    async def configure_repository(self, repository, project_config):
        pass

    async def get_repository_url(self, repository_name):
        return self.repositories[repository_name].url

    async def configure_pipelines(self, repository, project_config):
        self.workflows.append(repository.name)

    async def validate_configuration(self, repository):
        return repository.name in self.repositories


class BrokenInfra(InfrastructureProvider):
    @property
    def provider_name(self):
        return "Ansible"

    async def configure_infrastructure(self, project_config, repository):
        raise HumError("inventory directory is read-only")

    async def update_inventory(self, project_config, repository):
        pass

    async def validate_configuration(self, project_config):
        return False


def project(tmp_path, template="webapi", **kwargs):
    return ProjectConfig(
        name="svc1",
        description="demo",
        template_type=template,
        output_path=str(tmp_path / "svc1"),
        deployment_config=DeploymentConfig(environments=[
            Environment("staging", "svc1-server", "/var/www/svc1", {"PROJECT_NAME": "svc1"}),
        ]),
        **kwargs,
    )


class TestPipelineWithMemoryProviders:
    """Stage order, normalization and failure propagation."""

    @pytest.mark.asyncio
    async def test_full_run(self, tmp_path):
        template, github = MemoryTemplate(), MemoryGitHub()
        registry = ProviderRegistry(
            templates=[template], source_control=[github], cicd=[github],
            infrastructure=[AnsibleProvider(ansible_path=tmp_path / "ansible")],
        )
        pipeline = ProvisioningPipeline(registry)
        config = project(tmp_path)

        path = await pipeline.provision(config)

        assert path == str(tmp_path / "svc1")
        assert config.template_type == "dotnet-webapi"
        assert config.source_control_provider is None
        assert template.created == ["dotnet-webapi"]
        assert github.workflows == ["svc1"]
        assert pipeline.report.status is ProvisioningStatus.SUCCESS
        assert list(pipeline.report.stages) == list(ProvisioningStage)

        inventory = yaml.safe_load((tmp_path / "ansible" / "inventory.yml").read_text())
        host = inventory["all"]["children"]["staging"]["hosts"]["svc1-server"]
        assert host["repository_url"] == "git@github.com:octocat/svc1.git"

    @pytest.mark.asyncio
    async def test_infrastructure_failure_leaves_repository(self, tmp_path):
        github = MemoryGitHub()
        registry = ProviderRegistry(
            templates=[MemoryTemplate()], source_control=[github], cicd=[github], infrastructure=[BrokenInfra()],
        )
        pipeline = ProvisioningPipeline(registry)

        with pytest.raises(HumError, match="read-only"):
            await pipeline.provision(project(tmp_path))

        report = pipeline.report
        assert report.status is ProvisioningStatus.FAILED
        assert report.failed_stage is ProvisioningStage.INFRASTRUCTURE
        assert report.completed_stages == [ProvisioningStage.TEMPLATE, ProvisioningStage.SOURCE_CONTROL, ProvisioningStage.CICD]
        assert await github.validate_configuration(report.repository)
        assert (tmp_path / "svc1").is_dir()

    @pytest.mark.asyncio
    async def test_missing_template_type(self, tmp_path):
        pipeline = ProvisioningPipeline(ProviderRegistry())
        with pytest.raises(ConfigurationError):
            await pipeline.provision(project(tmp_path, template=""))

    @pytest.mark.asyncio
    async def test_unknown_template_stops_before_any_side_effect(self, tmp_path):
        github = MemoryGitHub()
        registry = ProviderRegistry(templates=[MemoryTemplate()], source_control=[github], cicd=[github])

        with pytest.raises(ProviderResolutionError, match="react"):
            await ProvisioningPipeline(registry).provision(project(tmp_path, template="react"))

        assert github.repositories == {}
        assert not (tmp_path / "svc1").exists()

    @pytest.mark.asyncio
    async def test_infrastructure_defaults_to_ansible(self, tmp_path):
        github = MemoryGitHub()
        registry = ProviderRegistry(
            templates=[MemoryTemplate()], source_control=[github], cicd=[github],
            infrastructure=[AnsibleProvider(ansible_path=tmp_path / "ansible")],
        )

        await ProvisioningPipeline(registry).provision(project(tmp_path, infrastructure_provider=None))

        assert (tmp_path / "ansible" / "deploy.yml").exists()


class ScriptedExecutor:
    """Succeeds for everything except commands matched by a failure rule."""

    def __init__(self, failures=()):
        self.failures = list(failures)
        self.calls = []

    async def run(self, args, timeout=300, cwd=None, env=None, input_text=None, secrets=()):
        args = list(args)
        self.calls.append(args)
        for predicate, stderr in self.failures:
            if predicate(args):
                return CommandResult(" ".join(args), 1, "", stderr, False, 0.01)
        stdout = ""
        if args[:3] == ["gh", "repo", "view"]:
            stdout = json.dumps({
                "name": "svc1", "description": "demo", "url": "https://github.com/octocat/svc1",
                "sshUrl": "git@github.com:octocat/svc1.git", "defaultBranchRef": {"name": "main"},
                "owner": {"login": "octocat"},
            })
        elif "--porcelain" in args:
            stdout = " A Program.cs\n"
        return CommandResult(" ".join(args), 0, stdout, "", True, 0.01)

    async def check(self, args, timeout=300, **kwargs):
        result = await self.run(args, timeout=timeout, **kwargs)
        if not result.success:
            raise ToolInvocationError(result.command, result.return_code, result.stderr)
        return result


class TestPipelineWithToolProviders:
    """Real providers, scripted external tools."""

    def registry(self, tmp_path, executor):
        gh = GitHubCliProvider(executor=executor)
        return ProviderRegistry(
            templates=[DotNetTemplateProvider(executor=executor)],
            source_control=[gh],
            cicd=[gh],
            infrastructure=[AnsibleProvider(ansible_path=tmp_path / "ansible")],
        ), gh

    @pytest.mark.asyncio
    async def test_branch_protection_failure_still_returns_path(self, tmp_path):
        executor = ScriptedExecutor([(lambda args: "--input" in args, "HTTP 403: Upgrade to GitHub Pro")])
        registry, gh = self.registry(tmp_path, executor)

        path = await ProvisioningPipeline(registry).provision(project(tmp_path))

        assert path == str(tmp_path / "svc1")
        assert any("branch protection" in w for w in gh.warnings)
        assert ["gh", "repo", "create", "svc1", "--description", "demo", "--public"] in executor.calls
        assert any(args[:2] == ["git", "push"] for args in executor.calls)
        assert (tmp_path / "ansible" / "inventory.yml").exists()

    @pytest.mark.asyncio
    async def test_repository_creation_failure_is_fatal(self, tmp_path):
        executor = ScriptedExecutor([(lambda args: args[:3] == ["gh", "repo", "create"], "Name already exists")])
        registry, _ = self.registry(tmp_path, executor)
        pipeline = ProvisioningPipeline(registry)

        with pytest.raises(ToolInvocationError, match="Name already exists"):
            await pipeline.provision(project(tmp_path))

        assert pipeline.report.failed_stage is ProvisioningStage.SOURCE_CONTROL
        assert (tmp_path / "svc1" / "README.md").exists()
        assert not (tmp_path / "ansible").exists()


class TestBuildRegistry:

    def test_cli_only(self, tmp_path):
        registry = build_registry(ansible_path=tmp_path)
        assert [p.provider_name for p in registry.source_control] == ["GitHub CLI"]
        assert registry.resolve_source_control("github").provider_name == "GitHub CLI"

    def test_api_first(self, tmp_path):
        registry = build_registry(github_token="ghp_x", github_username="octocat", ansible_path=tmp_path, use_github_api=True)
        assert [p.provider_name for p in registry.cicd] == ["GitHub", "GitHub CLI"]
        assert registry.resolve_cicd("github").provider_name == "GitHub"
