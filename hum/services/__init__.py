"""Application services: provisioning pipeline and diagnostics."""

from .provisioning import ProvisioningPipeline, build_registry
from .inventory import AnsibleAvailability, AnsibleMethod, InventoryListing, InventoryService
from .doctor import CheckResult, CheckStatus, DoctorService

__all__ = [
    "ProvisioningPipeline",
    "build_registry",
    "AnsibleAvailability",
    "AnsibleMethod",
    "InventoryListing",
    "InventoryService",
    "CheckResult",
    "CheckStatus",
    "DoctorService",
]
