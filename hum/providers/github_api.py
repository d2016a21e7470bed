"""
GitHub provider using the REST API with a personal access token.

Source control and CI/CD in one class, like the gh CLI provider, for
environments without ``gh`` installed.
"""

import base64
from typing import Any, Dict, Optional

import httpx

from .base import CiCdProvider, SourceControlProvider
from .github_cli import WORKFLOW_PATH
from ..config import get_config
from ..core.errors import ConfigurationError, GitHubApiError
from ..core.file_manager import FileManager, substitute_placeholders
from ..core.logger import HumLogger
from ..models.project import ProjectConfig
from ..models.repository import RepositoryInfo


class GitHubApiProvider(SourceControlProvider, CiCdProvider):
    """
    GitHub via REST.

    Usage:
        provider = GitHubApiProvider(token="ghp_...", username="octocat")
        repo = await provider.create_repository("svc1", "Demo service")
        await provider.close()
    """

    def __init__(
        self,
        token: str,
        username: str,
        organization: Optional[str] = None,
        base_url: Optional[str] = None,
        file_manager: Optional[FileManager] = None,
        logger: Optional[HumLogger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not token:
            raise ConfigurationError("GitHub token is required (hum config --github-token)")
        if not username:
            raise ConfigurationError("GitHub username is required (hum config --github-username)")
        self.token = token
        self.username = username
        self.organization = organization
        self.base_url = base_url or get_config().github.api_url
        self.logger = logger or HumLogger("GitHubAPI")
        self.file_manager = file_manager or FileManager(logger=self.logger)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def provider_name(self) -> str:
        return "GitHub"

    def can_handle(self, source_control_type: str) -> bool:
        return (source_control_type or "").lower() == "github"

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "Authorization": f"Bearer {self.token}",
            "User-Agent": "hum-cli",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=float(get_config().timeouts.network),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, action: str, method: str, url: str, expected=(200, 201), **kwargs) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubApiError(action, 0, str(e)) from e
        if response.status_code not in expected:
            try:
                detail = response.json().get("message", "")
            except ValueError:
                detail = response.text
            raise GitHubApiError(action, response.status_code, detail)
        return response.json() if response.content else {}

    # -- source control -------------------------------------------------

    async def create_repository(self, name: str, description: str) -> RepositoryInfo:
        self.logger.info(f"Creating GitHub repository: {name}")
        url = f"/orgs/{self.organization}/repos" if self.organization else "/user/repos"
        data = await self._request(
            "create repository", "POST", url,
            json={"name": name, "description": description, "private": False, "auto_init": True},
        )
        repository = RepositoryInfo(
            name=data["name"],
            description=data.get("description") or "",
            url=data["html_url"],
            clone_url=data["clone_url"],
            default_branch=data.get("default_branch") or "main",
            owner=data["owner"]["login"],
            provider_specific_id=str(data["id"]),
        )
        self.logger.success(f"Created repository {repository.url}")
        return repository

    async def configure_repository(self, repository: RepositoryInfo, project_config: ProjectConfig) -> None:
        """Apply branch protection; failure is only a warning."""
        self.logger.info(f"Configuring GitHub repository: {repository.name}")
        try:
            await self._request(
                "branch protection", "PUT",
                f"/repos/{repository.full_name}/branches/{repository.default_branch}/protection",
                json={
                    "required_status_checks": {"strict": True, "contexts": ["build"]},
                    "enforce_admins": True,
                    "required_pull_request_reviews": {"required_approving_review_count": 1},
                    "restrictions": None,
                },
            )
            self.logger.success(f"Branch protection configured for {repository.default_branch}")
        except GitHubApiError as e:
            self.logger.warning(f"Could not configure branch protection: {e}")

    async def get_repository_url(self, repository_name: str) -> str:
        owner = self.organization or self.username
        data = await self._request("get repository", "GET", f"/repos/{owner}/{repository_name}")
        return data.get("html_url", "")

    # -- CI/CD ----------------------------------------------------------

    async def configure_pipelines(self, repository: RepositoryInfo, project_config: ProjectConfig) -> None:
        self.logger.info(f"Configuring GitHub Actions for repository: {repository.name}")
        workflow = substitute_placeholders(
            self.file_manager.load_asset("github-workflow.yml"), {"ProjectName": project_config.name},
        )
        body = {
            "message": "Add CI/CD workflow",
            "content": base64.b64encode(workflow.encode()).decode(),
            "branch": repository.default_branch,
        }
        path = f"/repos/{repository.full_name}/contents/{WORKFLOW_PATH}"
        try:
            existing = await self._request("get workflow", "GET", path, params={"ref": repository.default_branch})
            body["sha"] = existing.get("sha")
        except GitHubApiError as e:
            if e.status_code != 404:
                raise
        await self._request("create workflow", "PUT", path, json=body)
        self.logger.success("GitHub Actions workflow configured")

    async def validate_configuration(self, repository: RepositoryInfo) -> bool:
        try:
            await self._request("get repository", "GET", f"/repos/{repository.full_name}")
            await self._request("list workflows", "GET", f"/repos/{repository.full_name}/actions/workflows")
        except GitHubApiError as e:
            self.logger.debug(f"Validation failed: {e}")
            return False
        return True
