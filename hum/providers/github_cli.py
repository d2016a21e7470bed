"""
GitHub provider backed by the ``gh`` and ``git`` command-line tools.

Acts as both the source-control and the CI/CD provider. Repository
creation and workflow upload are fatal on failure; the local git wiring
done by configure_repository() is best effort.
"""

import base64
import json
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from .base import CiCdProvider, SourceControlProvider
from ..config import get_config
from ..core.errors import HumError, ToolInvocationError
from ..core.executor import CommandExecutor, CommandResult
from ..core.file_manager import FileManager, substitute_placeholders
from ..core.logger import HumLogger
from ..models.project import ProjectConfig
from ..models.repository import RepositoryInfo

WORKFLOW_PATH = ".github/workflows/ci-cd.yml"
DEFAULT_GIT_USER = "hum CLI"
DEFAULT_GIT_EMAIL = "hum@example.com"

BRANCH_PROTECTION = {
    "required_status_checks": {"strict": True, "contexts": []},
    "enforce_admins": False,
    "required_pull_request_reviews": None,
    "restrictions": None,
}


class GitHubCliProvider(SourceControlProvider, CiCdProvider):
    """GitHub via gh CLI. Requires a prior ``gh auth login``."""

    HANDLES = ("github", "gh", "github-cli")

    def __init__(
        self,
        organization: Optional[str] = None,
        visibility: str = "public",
        executor: Optional[CommandExecutor] = None,
        file_manager: Optional[FileManager] = None,
        logger: Optional[HumLogger] = None,
    ):
        self.organization = organization
        self.visibility = visibility
        self.logger = logger or HumLogger("GitHubCLI")
        self.executor = executor or CommandExecutor(logger=self.logger)
        self.file_manager = file_manager or FileManager(logger=self.logger)
        self.timeouts = get_config().timeouts
        self.warnings: List[str] = []

    @property
    def provider_name(self) -> str:
        return "GitHub CLI"

    def can_handle(self, source_control_type: str) -> bool:
        return (source_control_type or "").lower() in self.HANDLES

    def _target(self, name: str) -> str:
        return f"{self.organization}/{name}" if self.organization else name

    async def _gh(self, *args: str, timeout: Optional[float] = None, **kwargs) -> CommandResult:
        return await self.executor.check(["gh", *args], timeout=timeout or self.timeouts.network, **kwargs)

    async def _git(self, cwd: Path, *args: str, timeout: Optional[float] = None) -> CommandResult:
        return await self.executor.check(["git", *args], timeout=timeout or self.timeouts.git, cwd=cwd)

    # -- source control -------------------------------------------------

    async def create_repository(self, name: str, description: str) -> RepositoryInfo:
        """
        Create the repository and read back its details.

        Raises:
            ToolInvocationError: gh failed (stderr carried verbatim)
            ToolTimeoutError: gh did not answer in time
        """
        target = self._target(name)
        self.logger.info(f"Creating GitHub repository via gh CLI: {target}")

        await self._gh("repo", "create", target, "--description", description or "", f"--{self.visibility}")

        details = await self._gh(
            "repo", "view", target, "--json", "name,description,url,sshUrl,defaultBranchRef,owner",
        )
        try:
            data = json.loads(details.stdout)
        except ValueError as e:
            raise ToolInvocationError(details.command, 0, f"Unexpected gh output: {e}") from e

        repository = RepositoryInfo(
            name=data.get("name") or name,
            description=data.get("description") or description or "",
            url=data.get("url") or "",
            clone_url=data.get("sshUrl") or "",
            default_branch=(data.get("defaultBranchRef") or {}).get("name") or "main",
            owner=(data.get("owner") or {}).get("login") or self.organization or "",
            provider_specific_id=data.get("name") or name,
        )
        self.logger.success(f"Created repository {repository.url}")
        return repository

    async def configure_repository(self, repository: RepositoryInfo, project_config: ProjectConfig) -> None:
        """Wire the local project to the new repository and push it.

        Every step logs a warning on failure and the remaining steps still run.
        """
        project_path = project_config.project_path
        if not project_path.is_dir():
            self._warn(f"Project directory {project_path} not found; skipping repository setup")
            return

        git_config = project_config.git_config
        branch = (git_config.default_branch if git_config else "") or repository.default_branch or "main"

        await self._soft_step("git init", lambda: self._init(project_path))
        await self._soft_step("git remote", lambda: self._set_remote(project_path, repository.clone_url))
        await self._soft_step("git identity", lambda: self._ensure_identity(project_path, project_config))
        committed = await self._soft_step("git commit", lambda: self._commit(project_path))
        if committed:
            current = await self._soft_step("git branch", lambda: self._current_branch(project_path))
            if isinstance(current, str) and current:
                branch = current
            await self._soft_step("git pull", lambda: self._pull_if_remote_has_branch(project_path, branch))
            pushed = await self._soft_step("git push", lambda: self._git(
                project_path, "push", "-u", "origin", branch, timeout=self.timeouts.push,
            ))
            if not pushed:
                await self._soft_step("README upload", lambda: self._upload_readme(repository, project_config))
        await self._soft_step("branch protection", lambda: self.configure_branch_protection(repository, branch))

    async def configure_branch_protection(self, repository: RepositoryInfo, branch: str) -> None:
        await self._gh(
            "api", f"repos/{repository.full_name}/branches/{branch}/protection",
            "--method", "PUT", "--input", "-",
            input_text=json.dumps(BRANCH_PROTECTION),
        )
        self.logger.success(f"Branch protection configured for {branch}")

    async def get_repository_url(self, repository_name: str) -> str:
        result = await self._gh("repo", "view", self._target(repository_name), "--json", "url")
        return json.loads(result.stdout).get("url", "")

    async def is_authenticated(self) -> bool:
        result = await self.executor.run(["gh", "auth", "status"], timeout=self.timeouts.probe * 2)
        return result.success

    # -- CI/CD ----------------------------------------------------------

    async def configure_pipelines(self, repository: RepositoryInfo, project_config: ProjectConfig) -> None:
        """
        Commit the GitHub Actions workflow to the repository through the contents API.

        Raises:
            ToolInvocationError: upload failed
        """
        self.logger.info(f"Configuring GitHub Actions for {repository.full_name}")
        workflow = substitute_placeholders(
            self.file_manager.load_asset("github-workflow.yml"), {"ProjectName": project_config.name},
        )
        path = f"repos/{repository.full_name}/contents/{WORKFLOW_PATH}"
        args = [
            "api", "--method", "PUT", path,
            "-f", "message=Add CI/CD workflow",
            "-f", f"content={base64.b64encode(workflow.encode()).decode()}",
        ]
        existing = await self.executor.run(
            ["gh", "api", path, "--jq", ".sha"], timeout=self.timeouts.network,
        )
        if existing.success and existing.stdout.strip():
            args += ["-f", f"sha={existing.stdout.strip()}"]

        await self._gh(*args)
        self.logger.success(f"Workflow {WORKFLOW_PATH} committed")

    async def validate_configuration(self, repository: RepositoryInfo) -> bool:
        result = await self.executor.run(
            ["gh", "repo", "view", repository.full_name], timeout=self.timeouts.network,
        )
        return result.success

    # -- git steps ------------------------------------------------------

    async def _soft_step(self, description: str, step: Callable[[], Awaitable]):
        """Run a best-effort step. Returns the step's result (True if it returned None), or False on failure."""
        try:
            result = await step()
        except (HumError, OSError, ValueError) as e:
            self._warn(f"{description} failed: {e}")
            return False
        return True if result is None else result

    def _warn(self, message: str) -> None:
        self.warnings.append(message)
        self.logger.warning(message)

    async def _init(self, project_path: Path) -> None:
        if (project_path / ".git").exists():
            self.logger.debug("Git repository already exists")
            return
        await self._git(project_path, "init")

    async def _set_remote(self, project_path: Path, url: str) -> None:
        remotes = await self._git(project_path, "remote")
        if "origin" in remotes.stdout.split():
            await self._git(project_path, "remote", "set-url", "origin", url)
        else:
            await self._git(project_path, "remote", "add", "origin", url)

    async def _ensure_identity(self, project_path: Path, project_config: ProjectConfig) -> None:
        git_config = project_config.git_config
        for key, configured, fallback in (
            ("user.name", git_config.username if git_config else "", DEFAULT_GIT_USER),
            ("user.email", git_config.email if git_config else "", DEFAULT_GIT_EMAIL),
        ):
            current = await self.executor.run(["git", "config", key], timeout=self.timeouts.git, cwd=project_path)
            if configured or not current.stdout.strip():
                await self._git(project_path, "config", "--local", key, configured or fallback)

    async def _commit(self, project_path: Path) -> bool:
        await self._git(project_path, "add", ".", timeout=self.timeouts.network)
        status = await self._git(project_path, "status", "--porcelain")
        if not status.stdout.strip():
            self.logger.debug("No changes to commit")
            return True
        await self._git(project_path, "commit", "-m", "Initial commit", "--no-verify", timeout=self.timeouts.network)
        return True

    async def _current_branch(self, project_path: Path) -> str:
        result = await self._git(project_path, "branch", "--show-current")
        return result.stdout.strip()

    async def _pull_if_remote_has_branch(self, project_path: Path, branch: str) -> None:
        heads = await self._git(project_path, "ls-remote", "--heads", "origin", branch, timeout=self.timeouts.network)
        if heads.stdout.strip():
            await self._git(project_path, "pull", "--rebase", "origin", branch, timeout=self.timeouts.network)

    async def _upload_readme(self, repository: RepositoryInfo, project_config: ProjectConfig) -> None:
        content = f"# {project_config.name}\n\n{project_config.description}\n\nCreated with hum CLI\n"
        await self._gh(
            "api", "--method", "PUT", f"repos/{repository.full_name}/contents/README.md",
            "-f", "message=Initial commit from hum CLI",
            "-f", f"content={base64.b64encode(content.encode()).decode()}",
        )
        self.logger.info("Push failed; created README.md in the repository instead")
