"""Repository descriptor returned by source-control providers."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RepositoryInfo:
    """A hosted repository. Only created by a provider's create_repository()."""
    name: str
    description: str
    url: str
    clone_url: str
    default_branch: str
    owner: str
    provider_specific_id: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}" if self.owner else self.name
