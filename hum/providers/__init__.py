"""Pipeline providers and their registry."""

from .base import CiCdProvider, InfrastructureProvider, ProjectTemplateProvider, SourceControlProvider
from .registry import ProviderRegistry
from .dotnet_template import DotNetTemplateProvider
from .github_cli import GitHubCliProvider
from .github_api import GitHubApiProvider
from .ansible import AnsibleInventory, AnsibleProvider

__all__ = [
    "CiCdProvider",
    "InfrastructureProvider",
    "ProjectTemplateProvider",
    "SourceControlProvider",
    "ProviderRegistry",
    "DotNetTemplateProvider",
    "GitHubCliProvider",
    "GitHubApiProvider",
    "AnsibleInventory",
    "AnsibleProvider",
]
