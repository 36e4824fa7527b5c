"""
Load balancer lifecycle for bbl environments.

- create: create-lbs orchestration
- update: update-lbs, create-lbs for the attached type
- delete: delete-lbs orchestration
- report: lbs, the attached LB addresses
- backends: legacy (CloudFormation) and Terraform backends
"""

from .backends import LBBackend, LegacyBackend, TerraformBackend, apply_terraform
from .config import (
    NO_LB_FOUND,
    VALID_LB_TYPES,
    CreateLBsConfig,
    DeleteLBsConfig,
    LBType,
    UpdateLBsConfig,
    validate_lb_type,
)
from .create import CreateLBs
from .delete import DeleteLBs
from .report import LBs
from .update import UpdateLBs

__all__ = [
    "apply_terraform",
    "CreateLBs",
    "CreateLBsConfig",
    "DeleteLBs",
    "DeleteLBsConfig",
    "LBBackend",
    "LBs",
    "LBType",
    "LegacyBackend",
    "NO_LB_FOUND",
    "TerraformBackend",
    "UpdateLBs",
    "UpdateLBsConfig",
    "VALID_LB_TYPES",
    "validate_lb_type",
]
