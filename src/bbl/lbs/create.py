"""
create-lbs: attach a load balancer to a bbl environment.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bbl.core.errors import ValidationError

from .backends import select_backend
from .config import VALID_LB_TYPES, validate_lb_type

if TYPE_CHECKING:
    from bbl.application.validators import CredentialValidator, EnvironmentValidator
    from bbl.bosh.cloud_config import CloudConfigManager
    from bbl.core.state import State, StateStore

    from .backends import LegacyBackend, TerraformBackend
    from .config import CreateLBsConfig

logger = logging.getLogger(__name__)


class CreateLBs:
    """
    Attaches a concourse or cf load balancer to an environment.

    Every check that can fail without touching infrastructure runs first:
    credentials, skip-if-exists, LB type, environment, and LB conflict. Only
    then is the owning backend asked to create the LB, the cloud config
    refreshed, and the resulting state saved.
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

    def execute(self, config: CreateLBsConfig, state: State) -> State:
        """
        Create the load balancer described by ``config``.

        Args:
            config: create-lbs flags
            state: Current environment state; never modified

        Returns:
            The saved state, or ``state`` itself when skipped

        Raises:
            ValidationError: On a missing/unknown type or an LB conflict
            ManagerError: If terraform failed; the partial state was saved
            ErrorList: If terraform failed and its partial state could not
                be saved
        """
        self.credential_validator.validate(state)

        existing = state.lb_type
        if config.skip_if_exists and existing in VALID_LB_TYPES:
            logger.info('lb type "%s" exists, skipping...', existing)
            return state

        validate_lb_type(config.lb_type)

        self.environment_validator.validate(state)

        if state.has_lb and existing != config.lb_type:
            raise ValidationError(
                f"bbl already has a {existing} load balancer attached, please remove "
                "the previous load balancer before attaching a new one"
            )

        backend = select_backend(state, self.legacy_backend, self.terraform_backend)
        new_state = backend.create(config, state.copy_state())

        if not new_state.no_director:
            self.cloud_config_manager.update(new_state)

        self.state_store.set(new_state)
        return new_state
