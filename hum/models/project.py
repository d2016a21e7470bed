"""
Project configuration models.
Serialized to camelCase JSON for settings and saved templates.
"""

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

DOTNET_PREFIX = "dotnet-"

# Template kinds accepted without the "dotnet-" prefix
DOTNET_SHORT_KINDS = ("webapi", "blazor", "blazorapp", "worker", "console")

DEFAULT_SOURCE_CONTROL = "github"
DEFAULT_CICD = "github"


def normalize_template_kind(kind: str) -> str:
    """
    Prefix short .NET template kinds with "dotnet-".

    "webapi" becomes "dotnet-webapi"; anything else, including an already
    prefixed kind, is returned unchanged, so the transform is idempotent.
    """
    if not kind:
        return kind
    if not kind.lower().startswith(DOTNET_PREFIX) and kind.lower() in DOTNET_SHORT_KINDS:
        return f"{DOTNET_PREFIX}{kind}"
    return kind


@dataclass
class GitConfig:
    """Git identity and repository defaults."""
    username: str = ""
    email: str = ""
    default_branch: str = "main"
    initialize_with_readme: bool = True
    ignore_template: str = "dotnet"
    additional_ignore_patterns: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "email": self.email,
            "defaultBranch": self.default_branch,
            "initializeWithReadme": self.initialize_with_readme,
            "ignoreTemplate": self.ignore_template,
            "additionalIgnorePatterns": list(self.additional_ignore_patterns),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GitConfig":
        return cls(
            username=data.get("username") or "",
            email=data.get("email") or "",
            default_branch=data.get("defaultBranch") or "main",
            initialize_with_readme=data.get("initializeWithReadme", True),
            ignore_template=data.get("ignoreTemplate") or "dotnet",
            additional_ignore_patterns=list(data.get("additionalIgnorePatterns") or []),
        )


@dataclass
class Environment:
    """A deployment target."""
    name: str
    host_name: str
    deployment_path: str
    environment_variables: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "hostName": self.host_name,
            "deploymentPath": self.deployment_path,
            "environmentVariables": dict(self.environment_variables),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Environment":
        return cls(
            name=data["name"],
            host_name=data["hostName"],
            deployment_path=data["deploymentPath"],
            environment_variables=dict(data.get("environmentVariables") or {}),
        )


@dataclass
class DeploymentConfig:
    """Deployment targets plus shared variables and secret names."""
    environments: List[Environment] = field(default_factory=list)
    variables: Dict[str, str] = field(default_factory=dict)
    secrets: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "environments": [env.to_dict() for env in self.environments],
            "variables": dict(self.variables),
            "secrets": list(self.secrets),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentConfig":
        return cls(
            environments=[Environment.from_dict(e) for e in data.get("environments") or []],
            variables=dict(data.get("variables") or {}),
            secrets=list(data.get("secrets") or []),
        )


@dataclass
class ProjectConfig:
    """
    Everything the provisioning pipeline needs to create a project.

    Built by the CLI; the pipeline only rewrites ``template_type``
    (normalization) on the instance it is given.
    """
    name: str
    description: str = ""
    template_type: str = ""
    output_path: Optional[str] = None
    source_control_provider: Optional[str] = None
    cicd_provider: Optional[str] = None
    infrastructure_provider: Optional[str] = None
    git_config: Optional[GitConfig] = None
    deployment_config: Optional[DeploymentConfig] = None
    additional_options: Dict[str, Any] = field(default_factory=dict)

    @property
    def project_path(self) -> Path:
        """Output directory; defaults to ./<name>."""
        if self.output_path:
            return Path(self.output_path)
        return Path.cwd() / self.name

    def normalize(self) -> "ProjectConfig":
        """Normalize the template kind in place and return self."""
        self.template_type = normalize_template_kind(self.template_type)
        return self

    def with_provider_defaults(self) -> "ProjectConfig":
        """Copy of this config with source-control/CI-CD kinds defaulted to "github"."""
        return dataclasses.replace(
            self,
            source_control_provider=self.source_control_provider or DEFAULT_SOURCE_CONTROL,
            cicd_provider=self.cicd_provider or DEFAULT_CICD,
            additional_options=dict(self.additional_options),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "templateType": self.template_type,
            "outputPath": self.output_path,
            "sourceControlProvider": self.source_control_provider,
            "ciCdProvider": self.cicd_provider,
            "infrastructureProvider": self.infrastructure_provider,
            "gitConfig": self.git_config.to_dict() if self.git_config else None,
            "deploymentConfig": self.deployment_config.to_dict() if self.deployment_config else None,
            "additionalOptions": dict(self.additional_options),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectConfig":
        git = data.get("gitConfig")
        deployment = data.get("deploymentConfig")
        return cls(
            name=data.get("name") or "",
            description=data.get("description") or "",
            template_type=data.get("templateType") or "",
            output_path=data.get("outputPath"),
            source_control_provider=data.get("sourceControlProvider"),
            cicd_provider=data.get("ciCdProvider"),
            infrastructure_provider=data.get("infrastructureProvider"),
            git_config=GitConfig.from_dict(git) if git else None,
            deployment_config=DeploymentConfig.from_dict(deployment) if deployment else None,
            additional_options=dict(data.get("additionalOptions") or {}),
        )
