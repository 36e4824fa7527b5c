"""
AWS client configuration for bbl.

Credentials and region come from the environment state, not the process
environment, so each bbl environment talks to its own account/region.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import boto3

if TYPE_CHECKING:
    from bbl.core.state import State


@dataclass(frozen=True)
class AWSConfig:
    """AWS configuration for one bbl environment.

    Attributes:
        region: AWS region
        access_key_id: AWS access key ID
        secret_access_key: AWS secret access key
        endpoint_url: Custom endpoint for LocalStack/testing
    """

    region: str
    access_key_id: str | None = None
    secret_access_key: str | None = None
    endpoint_url: str | None = None

    @classmethod
    def from_state(cls, state: State, endpoint_url: str | None = None) -> AWSConfig:
        """Build config from the state's AWS section."""
        return cls(
            region=state.aws.region,
            access_key_id=state.aws.access_key_id or None,
            secret_access_key=state.aws.secret_access_key or None,
            endpoint_url=endpoint_url,
        )

    def to_boto3_kwargs(self) -> dict[str, Any]:
        """Build kwargs dict suitable for boto3 client creation."""
        kwargs: dict[str, Any] = {"region_name": self.region}
        if self.access_key_id:
            kwargs["aws_access_key_id"] = self.access_key_id
        if self.secret_access_key:
            kwargs["aws_secret_access_key"] = self.secret_access_key
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        return kwargs


class AWSClientProvider:
    """Creates and caches boto3 clients for one AWSConfig."""

    def __init__(self, config: AWSConfig):
        self.config = config
        self._clients: dict[str, Any] = {}

    def _client(self, service: str) -> Any:
        if service not in self._clients:
            self._clients[service] = boto3.client(service, **self.config.to_boto3_kwargs())
        return self._clients[service]

    def get_iam_client(self) -> Any:
        return self._client("iam")

    def get_ec2_client(self) -> Any:
        return self._client("ec2")

    def get_cloudformation_client(self) -> Any:
        return self._client("cloudformation")
