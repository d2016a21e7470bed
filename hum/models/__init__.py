"""Data models for hum."""

from .project import (
    ProjectConfig,
    GitConfig,
    DeploymentConfig,
    Environment,
    normalize_template_kind,
)
from .repository import RepositoryInfo
from .settings import AppSettings, AnsibleRemoteConfig
from .report import ProvisioningReport, ProvisioningStage, ProvisioningStatus, StageResult

__all__ = [
    "ProjectConfig",
    "GitConfig",
    "DeploymentConfig",
    "Environment",
    "normalize_template_kind",
    "RepositoryInfo",
    "AppSettings",
    "AnsibleRemoteConfig",
    "ProvisioningReport",
    "ProvisioningStage",
    "ProvisioningStatus",
    "StageResult",
]
