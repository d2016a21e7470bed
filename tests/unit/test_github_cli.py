"""
Unit tests for the gh CLI provider.

The executor is replaced by a scripted fake that records every command.
"""

import base64
import json

import pytest

from hum.core.errors import ToolInvocationError
from hum.core.executor import CommandResult
from hum.models import GitConfig, ProjectConfig, RepositoryInfo
from hum.providers.github_cli import WORKFLOW_PATH, GitHubCliProvider

REPO_VIEW = json.dumps({
    "name": "svc1",
    "description": "demo",
    "url": "https://github.com/octocat/svc1",
    "sshUrl": "git@github.com:octocat/svc1.git",
    "defaultBranchRef": {"name": "main"},
    "owner": {"login": "octocat"},
})


class FakeExecutor:
    """Answers commands by the first matching rule: (predicate, CommandResult)."""

    def __init__(self, rules=()):
        self.rules = list(rules)
        self.calls = []

    async def run(self, args, timeout=300, cwd=None, env=None, input_text=None, secrets=()):
        self.calls.append({"args": list(args), "cwd": cwd, "input_text": input_text, "timeout": timeout})
        for predicate, result in self.rules:
            if predicate(list(args)):
                return result
        return ok()

    async def check(self, args, timeout=300, **kwargs):
        result = await self.run(args, timeout=timeout, **kwargs)
        if not result.success:
            raise ToolInvocationError(" ".join(args), result.return_code, result.stderr)
        return result

    def commands(self):
        return [" ".join(call["args"]) for call in self.calls]


def ok(stdout=""):
    return CommandResult("cmd", 0, stdout, "", True, 0.01)


def fail(stderr, code=1):
    return CommandResult("cmd", code, "", stderr, False, 0.01)


def has(*parts):
    return lambda args: all(part in args for part in parts)


def repository():
    return RepositoryInfo(
        name="svc1", description="demo", url="https://github.com/octocat/svc1",
        clone_url="git@github.com:octocat/svc1.git", default_branch="main",
        owner="octocat", provider_specific_id="svc1",
    )


@pytest.fixture
def project_dir(tmp_path):
    path = tmp_path / "svc1"
    path.mkdir()
    (path / "Program.cs").write_text("// app\n")
    return path


class TestCreateRepository:

    @pytest.mark.asyncio
    async def test_creates_and_reads_back(self):
        executor = FakeExecutor([(has("repo", "view"), ok(REPO_VIEW))])
        provider = GitHubCliProvider(executor=executor)

        repo = await provider.create_repository("svc1", "demo")

        assert executor.calls[0]["args"] == ["gh", "repo", "create", "svc1", "--description", "demo", "--public"]
        assert repo.full_name == "octocat/svc1"
        assert repo.clone_url == "git@github.com:octocat/svc1.git"
        assert repo.default_branch == "main"

    @pytest.mark.asyncio
    async def test_organization_prefix(self):
        executor = FakeExecutor([(has("repo", "view"), ok(REPO_VIEW))])
        await GitHubCliProvider(organization="acme", executor=executor).create_repository("svc1", "demo")

        assert executor.calls[0]["args"][3] == "acme/svc1"

    @pytest.mark.asyncio
    async def test_failure_carries_stderr(self):
        executor = FakeExecutor([(has("repo", "create"), fail("GraphQL: Name already exists on this account"))])

        with pytest.raises(ToolInvocationError, match="Name already exists"):
            await GitHubCliProvider(executor=executor).create_repository("svc1", "demo")

    def test_can_handle(self):
        provider = GitHubCliProvider(executor=FakeExecutor())
        assert provider.can_handle("GitHub")
        assert provider.can_handle("gh")
        assert not provider.can_handle("gitlab")


class TestConfigureRepository:
    """Best-effort local git wiring."""

    @pytest.mark.asyncio
    async def test_happy_path_command_order(self, project_dir):
        executor = FakeExecutor([
            (has("status", "--porcelain"), ok(" A Program.cs\n")),
            (has("branch", "--show-current"), ok("main\n")),
        ])
        provider = GitHubCliProvider(executor=executor)
        config = ProjectConfig(name="svc1", output_path=str(project_dir), git_config=GitConfig(username="Octo", email="o@x"))

        await provider.configure_repository(repository(), config)

        commands = executor.commands()
        order = [
            "git init",
            "git remote add origin git@github.com:octocat/svc1.git",
            "git config --local user.name Octo",
            "git commit -m Initial commit --no-verify",
            "git push -u origin main",
        ]
        positions = [commands.index(c) for c in order]
        assert positions == sorted(positions)
        protection = [c for c in executor.calls if "repos/octocat/svc1/branches/main/protection" in c["args"]]
        assert json.loads(protection[0]["input_text"])["enforce_admins"] is False
        assert provider.warnings == []

    @pytest.mark.asyncio
    async def test_branch_protection_failure_is_only_a_warning(self, project_dir):
        executor = FakeExecutor([(has("--method", "PUT", "--input"), fail("HTTP 403: Upgrade to GitHub Pro"))])
        provider = GitHubCliProvider(executor=executor)

        await provider.configure_repository(repository(), ProjectConfig(name="svc1", output_path=str(project_dir)))

        assert len(provider.warnings) == 1
        assert "branch protection failed" in provider.warnings[0]
        assert "Upgrade to GitHub Pro" in provider.warnings[0]

    @pytest.mark.asyncio
    async def test_failed_push_uploads_readme(self, project_dir):
        executor = FakeExecutor([
            (has("status", "--porcelain"), ok(" A Program.cs\n")),
            (has("branch", "--show-current"), ok("main\n")),
            (has("push"), fail("remote rejected")),
        ])
        provider = GitHubCliProvider(executor=executor)

        await provider.configure_repository(repository(), ProjectConfig(name="svc1", description="demo", output_path=str(project_dir)))

        uploads = [c["args"] for c in executor.calls if "repos/octocat/svc1/contents/README.md" in c["args"]]
        assert len(uploads) == 1
        assert any("git push failed" in w for w in provider.warnings)

    @pytest.mark.asyncio
    async def test_existing_remote_is_updated(self, project_dir):
        executor = FakeExecutor([(lambda args: args == ["git", "remote"], ok("origin\n"))])

        await GitHubCliProvider(executor=executor).configure_repository(
            repository(), ProjectConfig(name="svc1", output_path=str(project_dir)),
        )

        assert "git remote set-url origin git@github.com:octocat/svc1.git" in executor.commands()

    @pytest.mark.asyncio
    async def test_missing_project_directory(self, tmp_path):
        executor = FakeExecutor()
        provider = GitHubCliProvider(executor=executor)

        await provider.configure_repository(repository(), ProjectConfig(name="svc1", output_path=str(tmp_path / "missing")))

        assert executor.calls == []
        assert provider.warnings


class TestConfigurePipelines:

    @pytest.mark.asyncio
    async def test_uploads_workflow(self):
        executor = FakeExecutor([(has("--jq"), fail("Not Found", 1))])
        await GitHubCliProvider(executor=executor).configure_pipelines(repository(), ProjectConfig(name="svc1"))

        put = executor.calls[-1]["args"]
        assert f"repos/octocat/svc1/contents/{WORKFLOW_PATH}" in put
        content = next(a for a in put if a.startswith("content="))[len("content="):]
        workflow = base64.b64decode(content).decode()
        assert "name: svc1 CI/CD" in workflow
        assert not any(a.startswith("sha=") for a in put)

    @pytest.mark.asyncio
    async def test_updates_existing_workflow_with_sha(self):
        executor = FakeExecutor([(has("--jq"), ok("abc123\n"))])
        await GitHubCliProvider(executor=executor).configure_pipelines(repository(), ProjectConfig(name="svc1"))

        assert "sha=abc123" in executor.calls[-1]["args"]

    @pytest.mark.asyncio
    async def test_upload_failure_is_fatal(self):
        executor = FakeExecutor([(has("--method", "PUT"), fail("HTTP 404"))])

        with pytest.raises(ToolInvocationError):
            await GitHubCliProvider(executor=executor).configure_pipelines(repository(), ProjectConfig(name="svc1"))
