"""
Load balancer backends.

An environment's LB is owned by exactly one backend, chosen from the shape of
its state: environments with a ``tf_state`` are Terraform environments,
everything else is a legacy CloudFormation environment. The choice is sticky
for the life of the environment.

The two backends handle certificates differently:
- legacy validates the files, uploads an IAM certificate, and points the
  stack's listeners at its ARN
- terraform reads the files into state and lets the template manage the
  certificate
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from botocore.exceptions import ClientError

from bbl.aws.iam import certificate_name
from bbl.core.errors import BblError, ErrorList
from bbl.core.state import LB
from bbl.terraform.errors import ManagerError

if TYPE_CHECKING:
    from bbl.aws.cloudformation import InfrastructureManager
    from bbl.aws.ec2 import AvailabilityZoneRetriever
    from bbl.aws.iam import CertificateManager
    from bbl.certs.validator import CertificateValidator
    from bbl.core.state import State, StateStore
    from bbl.helpers.guid import GUIDGenerator
    from bbl.terraform.manager import Manager

    from .config import CreateLBsConfig

logger = logging.getLogger(__name__)

CREATE_LBS_COMMAND = "create-lbs"


class LBBackend(ABC):
    """Creates and deletes the load balancer of one kind of environment."""

    @abstractmethod
    def create(self, config: CreateLBsConfig, state: State) -> State:
        """Attach the configured LB. ``state`` is a working copy."""
        ...

    @abstractmethod
    def delete(self, state: State) -> State:
        """Detach the LB. ``state`` is a working copy."""
        ...


# =============================================================================
# Legacy (CloudFormation)
# =============================================================================


class LegacyBackend(LBBackend):
    """LBs on a CloudFormation stack with an uploaded IAM certificate."""

    def __init__(
        self,
        certificate_validator: CertificateValidator,
        guid_generator: GUIDGenerator,
        certificate_manager: CertificateManager,
        az_retriever: AvailabilityZoneRetriever,
        infrastructure_manager: InfrastructureManager,
    ):
        self.certificate_validator = certificate_validator
        self.guid_generator = guid_generator
        self.certificate_manager = certificate_manager
        self.az_retriever = az_retriever
        self.infrastructure_manager = infrastructure_manager

    def create(self, config: CreateLBsConfig, state: State) -> State:
        self.certificate_validator.validate(
            CREATE_LBS_COMMAND, config.cert_path, config.key_path, config.chain_path
        )

        guid = self.guid_generator.generate()
        name = certificate_name(config.lb_type, guid, state.env_id)

        logger.info("uploading certificate")
        self.certificate_manager.create(config.cert_path, config.key_path, config.chain_path, name)

        azs = self.az_retriever.retrieve(state.aws.region)
        certificate = self.certificate_manager.describe(name)

        self.infrastructure_manager.update(
            key_pair_name=state.key_pair.name,
            azs=azs,
            stack_name=state.stack.name,
            bosh_az=state.stack.bosh_az,
            lb_type=config.lb_type,
            lb_certificate_arn=certificate.arn,
            env_id=state.env_id,
        )

        previous_name = state.stack.certificate_name
        state.stack.lb_type = config.lb_type
        state.stack.certificate_name = name

        # update-lbs replaces a certificate the stack no longer references;
        # a failed delete leaves the old one behind but the new name is kept
        if previous_name and previous_name != name:
            logger.info("deleting old certificate")
            try:
                self.certificate_manager.delete(previous_name)
            except (BblError, ClientError) as e:
                logger.warning("failed to delete old certificate %s: %s", previous_name, e)

        return state

    def delete(self, state: State) -> State:
        azs = self.az_retriever.retrieve(state.aws.region)

        self.infrastructure_manager.update(
            key_pair_name=state.key_pair.name,
            azs=azs,
            stack_name=state.stack.name,
            bosh_az=state.stack.bosh_az,
            lb_type="",
            lb_certificate_arn="",
            env_id=state.env_id,
        )

        if state.stack.certificate_name:
            logger.info("deleting certificate")
            self.certificate_manager.delete(state.stack.certificate_name)

        state.stack.lb_type = ""
        state.stack.certificate_name = ""
        return state


# =============================================================================
# Terraform
# =============================================================================


class TerraformBackend(LBBackend):
    """LBs declared in the environment's Terraform template."""

    def __init__(self, terraform_manager: Manager, state_store: StateStore):
        self.terraform_manager = terraform_manager
        self.state_store = state_store

    def create(self, config: CreateLBsConfig, state: State) -> State:
        cert = Path(config.cert_path).read_text()
        key = Path(config.key_path).read_text()
        chain = Path(config.chain_path).read_text() if config.chain_path else ""

        state.lb = LB(
            type=config.lb_type,
            cert=cert,
            key=key,
            chain=chain,
            domain=state.lb.domain or config.domain,
        )

        return apply_terraform(self.terraform_manager, self.state_store, state)

    def delete(self, state: State) -> State:
        state.lb = LB()
        return apply_terraform(self.terraform_manager, self.state_store, state)


def apply_terraform(terraform_manager: Manager, state_store: StateStore, state: State) -> State:
    """
    Apply a state with Terraform, saving partial state on recoverable failure.

    When the apply raises ManagerError, the partial state it carries is saved
    before the error is re-raised. If the partial state cannot be fetched or
    saved, an ErrorList of everything that went wrong is raised instead.
    """
    try:
        return terraform_manager.apply(state)
    except ManagerError as e:
        errors = save_partial_state(e, state_store)
        if errors is not None:
            raise errors from e
        raise


def save_partial_state(error: ManagerError, state_store: StateStore) -> ErrorList | None:
    """Save the partial state of a failed apply; return any errors doing so."""
    errors = ErrorList([error])

    try:
        partial_state = error.bbl_state()
    except Exception as fetch_error:
        errors.add(fetch_error)
        return errors

    try:
        state_store.set(partial_state)
    except Exception as set_error:
        errors.add(set_error)
        return errors

    return None


def select_backend(state: State, legacy: LegacyBackend, terraform: TerraformBackend) -> LBBackend:
    """Pick the backend that owns a state's LB."""
    if state.uses_terraform:
        return terraform
    return legacy
