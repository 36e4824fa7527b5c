"""
Load balancer commands for the bbl CLI.

Each command loads the state from the state directory, wires the real AWS,
Terraform and BOSH collaborators for it, and runs one operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any

import typer
from rich.table import Table

from bbl._version import get_version
from bbl.application import CredentialValidator, EnvironmentValidator
from bbl.aws import (
    AvailabilityZoneRetriever,
    AWSClientProvider,
    AWSConfig,
    CertificateManager,
    InfrastructureManager,
    StackManager,
    TemplateBuilder,
)
from bbl.bosh import BOSHCommandRunner, CloudConfigGenerator, CloudConfigManager
from bbl.certs import CertificateValidator
from bbl.config import BblConfig
from bbl.core.state import State, StateStore
from bbl.helpers import UUIDGenerator
from bbl.lbs import (
    CreateLBs,
    CreateLBsConfig,
    DeleteLBs,
    DeleteLBsConfig,
    LBs,
    LegacyBackend,
    TerraformBackend,
    UpdateLBs,
    UpdateLBsConfig,
)
from bbl.terraform import Executor, Manager, OutputProvider

from .utils import console, handle_errors


@dataclass
class LBCommands:
    """The load balancer operations, wired for one environment."""

    create: CreateLBs
    update: UpdateLBs
    delete: DeleteLBs
    report: LBs


def build_lb_commands(config: BblConfig, state: State, state_store: StateStore) -> LBCommands:
    """Wire the real collaborators for a loaded state."""
    client_provider = AWSClientProvider(AWSConfig.from_state(state, config.aws_endpoint_url))

    az_retriever = AvailabilityZoneRetriever(client_provider)
    certificate_manager = CertificateManager(client_provider)
    infrastructure_manager = InfrastructureManager(
        TemplateBuilder(), StackManager(client_provider)
    )

    executor = Executor(config.terraform_binary, debug=config.debug)
    output_provider = OutputProvider(executor)

    cloud_config_manager = CloudConfigManager(
        runner=BOSHCommandRunner(config.bosh_binary),
        generator=CloudConfigGenerator(),
        az_retriever=az_retriever,
        infrastructure_manager=infrastructure_manager,
        output_provider=output_provider,
    )

    credential_validator = CredentialValidator()
    environment_validator = EnvironmentValidator(infrastructure_manager)

    legacy_backend = LegacyBackend(
        certificate_validator=CertificateValidator(),
        guid_generator=UUIDGenerator(),
        certificate_manager=certificate_manager,
        az_retriever=az_retriever,
        infrastructure_manager=infrastructure_manager,
    )
    terraform_backend = TerraformBackend(Manager(executor), state_store)

    create = CreateLBs(
        credential_validator,
        environment_validator,
        legacy_backend,
        terraform_backend,
        cloud_config_manager,
        state_store,
    )
    delete = DeleteLBs(
        credential_validator,
        environment_validator,
        legacy_backend,
        terraform_backend,
        cloud_config_manager,
        state_store,
    )
    report = LBs(credential_validator, environment_validator, infrastructure_manager, output_provider)

    return LBCommands(create=create, update=UpdateLBs(create), delete=delete, report=report)


def _load(ctx: typer.Context) -> tuple[BblConfig, StateStore, State]:
    config: BblConfig = ctx.obj
    state_store = StateStore(config.get_state_dir())
    return config, state_store, state_store.get()


# =============================================================================
# Commands
# =============================================================================


def create_lbs_command(
    ctx: typer.Context,
    lb_type: Annotated[str, typer.Option("--type", help="Load balancer type: concourse or cf")] = "",
    cert: Annotated[str, typer.Option("--cert", help="Path to the PEM certificate")] = "",
    key: Annotated[str, typer.Option("--key", help="Path to the PEM private key")] = "",
    chain: Annotated[str, typer.Option("--chain", help="Path to the PEM certificate chain")] = "",
    domain: Annotated[str, typer.Option("--domain", help="System domain (cf only)")] = "",
    skip_if_exists: Annotated[
        bool,
        typer.Option("--skip-if-exists", help="Do nothing if a load balancer is attached"),
    ] = False,
) -> None:
    """Attach a load balancer with the supplied certificate."""
    with handle_errors():
        config, state_store, state = _load(ctx)
        commands = build_lb_commands(config, state, state_store)
        commands.create.execute(
            CreateLBsConfig(
                lb_type=lb_type,
                cert_path=cert,
                key_path=key,
                chain_path=chain,
                domain=domain,
                skip_if_exists=skip_if_exists,
            ),
            state,
        )


def update_lbs_command(
    ctx: typer.Context,
    cert: Annotated[str, typer.Option("--cert", help="Path to the PEM certificate")] = "",
    key: Annotated[str, typer.Option("--key", help="Path to the PEM private key")] = "",
    chain: Annotated[str, typer.Option("--chain", help="Path to the PEM certificate chain")] = "",
    domain: Annotated[str, typer.Option("--domain", help="System domain (cf only)")] = "",
) -> None:
    """Replace the certificate of the attached load balancer."""
    with handle_errors():
        config, state_store, state = _load(ctx)
        commands = build_lb_commands(config, state, state_store)
        commands.update.execute(
            UpdateLBsConfig(cert_path=cert, key_path=key, chain_path=chain, domain=domain),
            state,
        )


def delete_lbs_command(
    ctx: typer.Context,
    skip_if_missing: Annotated[
        bool,
        typer.Option("--skip-if-missing", help="Do nothing if no load balancer is attached"),
    ] = False,
) -> None:
    """Detach the load balancer."""
    with handle_errors():
        config, state_store, state = _load(ctx)
        commands = build_lb_commands(config, state, state_store)
        commands.delete.execute(DeleteLBsConfig(skip_if_missing=skip_if_missing), state)


def lbs_command(ctx: typer.Context) -> None:
    """Show the attached load balancers."""
    with handle_errors():
        config, state_store, state = _load(ctx)
        commands = build_lb_commands(config, state, state_store)
        lbs = commands.report.execute(state)

    table = Table(title="Load Balancers")
    table.add_column("Name", style="cyan")
    table.add_column("Value", style="green")
    for name, value in lbs.items():
        table.add_row(name, _format_value(value))
    console.print(table)


def version_command(ctx: typer.Context) -> None:
    """Show bbl and terraform versions."""
    config: BblConfig = ctx.obj
    console.print(f"bbl {get_version()}")

    with handle_errors():
        terraform_version = Executor(config.terraform_binary).version()
    console.print(f"terraform {terraform_version}")


def _format_value(value: Any) -> str:
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)
