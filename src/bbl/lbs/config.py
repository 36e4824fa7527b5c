"""
Load balancer command configuration.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from bbl.core.errors import ValidationError


class LBType(str, Enum):
    """Supported load balancer topologies."""

    CONCOURSE = "concourse"
    CF = "cf"


VALID_LB_TYPES = [lb_type.value for lb_type in LBType]

NO_LB_FOUND = "no load balancer has been found for this bbl environment"


class CreateLBsConfig(BaseModel):
    """Flags for create-lbs.

    ``lb_type`` is a plain string so an unknown type can be reported with
    the list of valid ones.
    """

    lb_type: str = ""
    cert_path: str = ""
    key_path: str = ""
    chain_path: str = ""
    domain: str = ""
    skip_if_exists: bool = False


class UpdateLBsConfig(BaseModel):
    """Flags for update-lbs."""

    cert_path: str = ""
    key_path: str = ""
    chain_path: str = ""
    domain: str = ""


class DeleteLBsConfig(BaseModel):
    """Flags for delete-lbs."""

    skip_if_missing: bool = False


def validate_lb_type(lb_type: str) -> None:
    """
    Check a requested LB type.

    Raises:
        ValidationError: If the type is empty or unknown
    """
    if lb_type == "":
        raise ValidationError("--type is a required flag")

    if lb_type not in VALID_LB_TYPES:
        raise ValidationError(
            f'"{lb_type}" is not a valid lb type, valid lb types are: '
            f"{VALID_LB_TYPES[0]} and {VALID_LB_TYPES[1]}"
        )
