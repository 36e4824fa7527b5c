"""
bbl - load balancer provisioning for BOSH environments on AWS.

Attaches, updates and removes concourse or cf load balancers on an
environment created either from a CloudFormation stack or with Terraform.
"""

from __future__ import annotations

from ._version import get_version
from .core.errors import BblError, ErrorList, StateError, ValidationError
from .core.state import State, StateStore

__version__ = get_version()

__all__ = [
    "__version__",
    "BblError",
    "ErrorList",
    "State",
    "StateError",
    "StateStore",
    "ValidationError",
]
