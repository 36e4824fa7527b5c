"""
lbs: report the load balancers attached to a bbl environment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from bbl.aws.cloudformation import LB_OUTPUT_KEYS
from bbl.core.errors import ValidationError

if TYPE_CHECKING:
    from bbl.application.validators import CredentialValidator, EnvironmentValidator
    from bbl.aws.cloudformation import InfrastructureManager
    from bbl.core.state import State
    from bbl.terraform.outputs import OutputProvider

NO_LBS_FOUND = "no lbs found"


class LBs:
    """Collects LB names and addresses from whichever backend owns them."""

    def __init__(
        self,
        credential_validator: CredentialValidator,
        environment_validator: EnvironmentValidator,
        infrastructure_manager: InfrastructureManager,
        output_provider: OutputProvider,
    ):
        self.credential_validator = credential_validator
        self.environment_validator = environment_validator
        self.infrastructure_manager = infrastructure_manager
        self.output_provider = output_provider

    def execute(self, state: State) -> dict[str, Any]:
        """
        Get a label -> value mapping of the attached load balancers.

        Raises:
            ValidationError: If no LB is attached
        """
        self.credential_validator.validate(state)
        self.environment_validator.validate(state)

        if not state.has_lb:
            raise ValidationError(NO_LBS_FOUND)

        if state.uses_terraform:
            outputs = self.output_provider.get(
                state.tf_state, state.lb.type, bool(state.lb.domain)
            )
            return outputs.lb_summary(state.lb.type)

        stack = self.infrastructure_manager.describe(state.stack.name)
        return {
            key: stack.outputs[key]
            for key in LB_OUTPUT_KEYS.get(state.stack.lb_type, [])
            if key in stack.outputs
        }
