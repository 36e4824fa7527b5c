"""
AWS collaborators for bbl.

- session: boto3 client configuration from environment state
- iam: server certificate upload/describe/delete
- ec2: availability zone lookup
- cloudformation: legacy stack template and updates
"""

from .cloudformation import InfrastructureManager, Stack, StackManager, TemplateBuilder
from .ec2 import AvailabilityZoneRetriever
from .iam import Certificate, CertificateManager, certificate_name
from .session import AWSClientProvider, AWSConfig

__all__ = [
    "AWSClientProvider",
    "AWSConfig",
    "AvailabilityZoneRetriever",
    "Certificate",
    "CertificateManager",
    "certificate_name",
    "InfrastructureManager",
    "Stack",
    "StackManager",
    "TemplateBuilder",
]
