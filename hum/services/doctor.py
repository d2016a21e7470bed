"""
Environment diagnostics for ``hum doctor``.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..config import get_config
from ..core.executor import CommandExecutor
from ..core.logger import HumLogger
from ..core.settings import ConfigurationService
from .inventory import InventoryService


class CheckStatus(Enum):
    OK = "ok"
    WARNING = "warning"
    FAILED = "failed"


@dataclass
class CheckResult:
    name: str
    status: CheckStatus
    detail: str = ""
    hint: str = ""

    @property
    def passed(self) -> bool:
        return self.status is not CheckStatus.FAILED


class DoctorService:
    """Runs tool and configuration checks. Only required tools can fail the run."""

    def __init__(
        self,
        settings_service: ConfigurationService,
        executor: Optional[CommandExecutor] = None,
        inventory: Optional[InventoryService] = None,
        logger: Optional[HumLogger] = None,
    ):
        self.logger = logger or HumLogger("Doctor")
        self.settings_service = settings_service
        self.executor = executor or CommandExecutor(logger=self.logger)
        self.inventory = inventory or InventoryService(executor=self.executor, logger=self.logger)
        self.timeouts = get_config().timeouts

    async def run_checks(self) -> List[CheckResult]:
        results = [
            await self._check_tool(".NET SDK", ["dotnet", "--version"], True,
                                   "Install the .NET SDK from https://dotnet.microsoft.com/download"),
            await self._check_tool("Git", ["git", "--version"], True,
                                   "Install Git from https://git-scm.com/downloads"),
            await self._check_tool("GitHub CLI", ["gh", "--version"], False,
                                   "Install from https://cli.github.com/ (required by 'hum create')"),
            await self._check_gh_auth(),
            await self._check_tool("ssh-keygen", ["ssh-keygen", "-V"], False,
                                   "Needed to convert OpenSSH keys; install OpenSSH client tools"),
            await self._check_credentials(),
            await self._check_ansible(),
            self._check_environment(),
        ]
        return results

    async def _check_tool(self, name: str, args: List[str], required: bool, hint: str) -> CheckResult:
        version = await self.executor.get_tool_version(args, timeout=self.timeouts.probe)
        if version is not None:
            return CheckResult(name, CheckStatus.OK, version or "installed")
        if not required and self.executor.check_tool_exists(args[0]):
            return CheckResult(name, CheckStatus.OK, "installed")
        status = CheckStatus.FAILED if required else CheckStatus.WARNING
        return CheckResult(name, status, "Not found", hint)

    async def _check_gh_auth(self) -> CheckResult:
        if not self.executor.check_tool_exists("gh"):
            return CheckResult("GitHub CLI auth", CheckStatus.WARNING, "gh not installed")
        result = await self.executor.run(["gh", "auth", "status"], timeout=self.timeouts.probe * 2)
        if result.success:
            return CheckResult("GitHub CLI auth", CheckStatus.OK, "Authenticated")
        return CheckResult("GitHub CLI auth", CheckStatus.WARNING, "Not authenticated", "Run: gh auth login")

    async def _check_credentials(self) -> CheckResult:
        settings = await self.settings_service.load_settings()
        missing = []
        if not settings.github_token:
            missing.append("Missing GitHub token. Run: hum config --github-token <your-token>")
        if not settings.github_username:
            missing.append("Missing GitHub username. Run: hum config --github-username <your-username>")
        if missing:
            return CheckResult("hum configuration", CheckStatus.WARNING,
                               "GitHub credentials not configured (needed by 'hum init')", "\n".join(missing))
        return CheckResult("hum configuration", CheckStatus.OK, "GitHub credentials configured")

    async def _check_ansible(self) -> CheckResult:
        settings = await self.settings_service.load_settings()
        availability = await self.inventory.detect(settings)
        if availability.available:
            return CheckResult("Ansible", CheckStatus.OK, availability.detail)
        return CheckResult("Ansible", CheckStatus.WARNING, availability.detail,
                           "Run 'hum ansible-config' to use a remote Ansible server")

    def _check_environment(self) -> CheckResult:
        if os.getenv("HUM_GITHUB_TOKEN"):
            return CheckResult("Environment", CheckStatus.OK, "HUM_GITHUB_TOKEN is set")
        return CheckResult("Environment", CheckStatus.WARNING, "HUM_GITHUB_TOKEN not set (using config file instead)")
