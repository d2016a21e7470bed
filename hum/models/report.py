"""
Provisioning report models.
Summarizes which pipeline stages ran and what they produced.
"""

from enum import Enum
from typing import Optional, List, Dict
from dataclasses import dataclass, field
from datetime import datetime

from .repository import RepositoryInfo


class ProvisioningStatus(Enum):
    """Overall pipeline status."""
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class ProvisioningStage(Enum):
    """Pipeline stages, in execution order."""
    TEMPLATE = "template"
    SOURCE_CONTROL = "source_control"
    CICD = "cicd"
    INFRASTRUCTURE = "infrastructure"


@dataclass
class StageResult:
    """Result of a single pipeline stage."""
    stage: ProvisioningStage
    success: bool
    provider: str = ""

    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    duration_seconds: float = 0.0

    message: str = ""
    warnings: List[str] = field(default_factory=list)


@dataclass
class ProvisioningReport:
    """Execution record of one provisioning run."""
    project_name: str
    template_type: str
    status: ProvisioningStatus = ProvisioningStatus.RUNNING

    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    stages: Dict[ProvisioningStage, StageResult] = field(default_factory=dict)

    project_path: Optional[str] = None
    repository: Optional[RepositoryInfo] = None

    def add_stage_result(self, result: StageResult) -> None:
        self.stages[result.stage] = result

    @property
    def completed_stages(self) -> List[ProvisioningStage]:
        return [stage for stage, result in self.stages.items() if result.success]

    @property
    def failed_stage(self) -> Optional[ProvisioningStage]:
        for stage, result in self.stages.items():
            if not result.success:
                return stage
        return None

    def finish(self, status: ProvisioningStatus) -> None:
        self.status = status
        self.finished_at = datetime.now()

    @property
    def duration_seconds(self) -> float:
        end = self.finished_at or datetime.now()
        return (end - self.started_at).total_seconds()
