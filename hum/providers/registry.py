"""
Provider registry and resolution.

Each family is an ordered list. Resolution picks the first provider whose
can_handle() accepts the kind, then falls back to a case-insensitive match
on the provider's name. Infrastructure providers match by name only.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, TypeVar

from .base import CiCdProvider, InfrastructureProvider, ProjectTemplateProvider, SourceControlProvider
from ..core.errors import ProviderResolutionError
from ..core.logger import HumLogger

P = TypeVar("P")


def _resolve(
    family: str,
    kind: str,
    providers: Sequence[P],
    name_of: Callable[[P], str],
    predicate: Optional[Callable[[P, str], Optional[bool]]],
    logger: HumLogger,
) -> P:
    """Shared resolution: predicate match, then name match, then a listing error.

    ``predicate`` returns None for providers it does not apply to.
    """
    if predicate is not None:
        for provider in providers:
            if predicate(provider, kind):
                logger.debug(f"Resolved {family} provider", kind=kind, provider=name_of(provider), by="can_handle")
                return provider

    wanted = (kind or "").lower()
    for provider in providers:
        if name_of(provider).lower() == wanted:
            logger.debug(f"Resolved {family} provider", kind=kind, provider=name_of(provider), by="name")
            return provider

    names = [name_of(p) for p in providers]
    details = []
    for provider in providers:
        handles = predicate(provider, kind) if predicate is not None else None
        if handles is None:
            details.append(f"- {name_of(provider)}")
        else:
            details.append(f"- {name_of(provider)} (handles '{kind}'? {bool(handles)})")

    error = ProviderResolutionError(family, kind, names, details)
    logger.info(error.listing[0], family=family, kind=kind, registered=names)
    for line in error.listing[1:]:
        logger.detail(line)
    raise error


@dataclass
class ProviderRegistry:
    """Ordered provider lists, one per pipeline stage."""
    templates: List[ProjectTemplateProvider] = field(default_factory=list)
    source_control: List[SourceControlProvider] = field(default_factory=list)
    cicd: List[CiCdProvider] = field(default_factory=list)
    infrastructure: List[InfrastructureProvider] = field(default_factory=list)
    logger: HumLogger = field(default_factory=lambda: HumLogger("ProviderRegistry"))

    def resolve_template(self, template_type: str) -> ProjectTemplateProvider:
        return _resolve(
            "project template",
            template_type,
            self.templates,
            lambda p: p.template_name,
            lambda p, kind: p.can_handle(kind),
            self.logger,
        )

    def resolve_source_control(self, kind: str) -> SourceControlProvider:
        return _resolve(
            "source control",
            kind,
            self.source_control,
            lambda p: p.provider_name,
            lambda p, k: p.can_handle(k),
            self.logger,
        )

    def resolve_cicd(self, kind: str) -> CiCdProvider:
        """CI/CD providers that are also source-control providers may claim a kind via can_handle()."""
        return _resolve(
            "CI/CD",
            kind,
            self.cicd,
            lambda p: p.provider_name,
            lambda p, k: p.can_handle(k) if isinstance(p, SourceControlProvider) else None,
            self.logger,
        )

    def resolve_infrastructure(self, kind: str) -> InfrastructureProvider:
        return _resolve(
            "infrastructure",
            kind,
            self.infrastructure,
            lambda p: p.provider_name,
            None,
            self.logger,
        )
