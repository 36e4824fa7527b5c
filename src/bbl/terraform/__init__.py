"""
Terraform backend for bbl.

- executor: runs the terraform binary over an opaque tf_state
- templates: HCL template and input variables for a state
- manager: applies a state, raising ManagerError on recoverable failure
- outputs: typed output extraction
"""

from .errors import ExecutorError, ManagerError
from .executor import Executor
from .manager import Manager
from .outputs import OutputProvider, Outputs
from .templates import InputGenerator, TemplateGenerator

__all__ = [
    "Executor",
    "ExecutorError",
    "InputGenerator",
    "Manager",
    "ManagerError",
    "OutputProvider",
    "Outputs",
    "TemplateGenerator",
]
