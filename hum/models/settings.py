"""
Persisted user settings (settings.json).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .project import DeploymentConfig, GitConfig


@dataclass
class AnsibleRemoteConfig:
    """Connection record for the remote Ansible host."""
    host: str = ""
    user: str = ""
    private_key_path: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.host and self.user and self.private_key_path)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "user": self.user,
            "privateKeyPath": self.private_key_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnsibleRemoteConfig":
        return cls(
            host=data.get("host") or "",
            user=data.get("user") or "",
            private_key_path=data.get("privateKeyPath") or "",
        )


@dataclass
class AppSettings:
    """Top-level settings document."""
    github_token: str = ""
    github_username: str = ""
    default_git_config: GitConfig = field(default_factory=GitConfig)
    default_deployment_config: DeploymentConfig = field(default_factory=DeploymentConfig)
    ansible_config: Optional[AnsibleRemoteConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gitHubToken": self.github_token,
            "gitHubUsername": self.github_username,
            "defaultGitConfig": self.default_git_config.to_dict(),
            "defaultDeploymentConfig": self.default_deployment_config.to_dict(),
            "ansibleConfig": self.ansible_config.to_dict() if self.ansible_config else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppSettings":
        git = data.get("defaultGitConfig")
        deployment = data.get("defaultDeploymentConfig")
        ansible = data.get("ansibleConfig")
        return cls(
            github_token=data.get("gitHubToken") or "",
            github_username=data.get("gitHubUsername") or "",
            default_git_config=GitConfig.from_dict(git) if git else GitConfig(),
            default_deployment_config=DeploymentConfig.from_dict(deployment) if deployment else DeploymentConfig(),
            ansible_config=AnsibleRemoteConfig.from_dict(ansible) if ansible else None,
        )
