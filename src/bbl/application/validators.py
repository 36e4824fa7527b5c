"""
Pre-flight validation of the environment a command targets.

Both validators run before anything is changed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bbl.core.errors import BBLNotFoundError, ValidationError

if TYPE_CHECKING:
    from bbl.aws.cloudformation import InfrastructureManager
    from bbl.core.state import State

BBL_NOT_FOUND = (
    "a bbl environment could not be found, please create a new environment "
    "before running this command again"
)


class CredentialValidator:
    """Checks that the state carries usable AWS credentials."""

    def validate(self, state: State) -> None:
        if not state.aws.access_key_id:
            raise ValidationError("AWS access key ID must be provided")
        if not state.aws.secret_access_key:
            raise ValidationError("AWS secret access key must be provided")
        if not state.aws.region:
            raise ValidationError("AWS region must be provided")


class EnvironmentValidator:
    """
    Checks that the bbl environment exists.

    Terraform environments exist once they have a tf_state. Legacy
    environments exist while their CloudFormation stack does.
    """

    def __init__(self, infrastructure_manager: InfrastructureManager):
        self.infrastructure_manager = infrastructure_manager

    def validate(self, state: State) -> None:
        if state.uses_terraform:
            return

        if not self.infrastructure_manager.exists(state.stack.name):
            raise BBLNotFoundError(BBL_NOT_FOUND)
