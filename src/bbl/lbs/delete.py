"""
delete-lbs: detach the load balancer from a bbl environment.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bbl.core.errors import ValidationError
from bbl.core.state import LB

from .backends import select_backend
from .config import NO_LB_FOUND

if TYPE_CHECKING:
    from bbl.application.validators import CredentialValidator, EnvironmentValidator
    from bbl.bosh.cloud_config import CloudConfigManager
    from bbl.core.state import State, StateStore

    from .backends import LegacyBackend, TerraformBackend
    from .config import DeleteLBsConfig

logger = logging.getLogger(__name__)


class DeleteLBs:
    """
    Removes the attached load balancer.

    The cloud config is updated first so that no VM extension points at an
    LB that is about to disappear.
    """

    def __init__(
        self,
        credential_validator: CredentialValidator,
        environment_validator: EnvironmentValidator,
        legacy_backend: LegacyBackend,
        terraform_backend: TerraformBackend,
        cloud_config_manager: CloudConfigManager,
        state_store: StateStore,
    ):
        self.credential_validator = credential_validator
        self.environment_validator = environment_validator
        self.legacy_backend = legacy_backend
        self.terraform_backend = terraform_backend
        self.cloud_config_manager = cloud_config_manager
        self.state_store = state_store

    def execute(self, config: DeleteLBsConfig, state: State) -> State:
        self.credential_validator.validate(state)
        self.environment_validator.validate(state)

        if not state.has_lb:
            if config.skip_if_missing:
                logger.info("no lb type exists, skipping...")
                return state
            raise ValidationError(NO_LB_FOUND)

        if not state.no_director:
            self.cloud_config_manager.update(_without_lb(state))

        backend = select_backend(state, self.legacy_backend, self.terraform_backend)
        new_state = backend.delete(state.copy_state())

        self.state_store.set(new_state)
        return new_state


def _without_lb(state: State) -> State:
    cleared = state.copy_state()
    if cleared.uses_terraform:
        cleared.lb = LB()
    else:
        cleared.stack.lb_type = ""
    return cleared
