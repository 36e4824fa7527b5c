"""
BOSH cloud config reconciliation.

The director's cloud config has to know which load balancers exist so that
deployments can attach instances to them through vm_extensions. After any LB
change the cloud config is regenerated from the environment and applied with
``bosh update-cloud-config``.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from bbl.core.errors import BblError

if TYPE_CHECKING:
    from bbl.aws.cloudformation import InfrastructureManager
    from bbl.aws.ec2 import AvailabilityZoneRetriever
    from bbl.core.state import BOSH, State
    from bbl.terraform.outputs import OutputProvider

logger = logging.getLogger(__name__)

BOSH_SUBNET_CIDR = "10.0.0.0/24"
BOSH_SUBNET_GATEWAY = "10.0.0.1"
BOSH_SUBNET_RESERVED = ["10.0.0.2-10.0.0.10"]
BOSH_SUBNET_STATIC = ["10.0.0.190-10.0.0.254"]

VM_TYPES = {
    "default": "m3.medium",
    "large": "m3.large",
}

DISK_TYPES = {
    "default": 10240,
    "large": 51200,
}


class BOSHError(BblError):
    """Raised when the bosh CLI fails."""

    pass


# =============================================================================
# Cloud Config Generator
# =============================================================================


class CloudConfigGenerator:
    """Builds a BOSH cloud config document."""

    def generate(
        self,
        azs: list[str],
        lb_type: str,
        subnet_id: str,
        security_groups: list[str],
        load_balancers: dict[str, str],
    ) -> dict[str, Any]:
        """
        Generate the cloud config.

        Args:
            azs: AWS availability zones, mapped to z1, z2, ...
            lb_type: "concourse", "cf", or "" for no LB extensions
            subnet_id: BOSH subnet ID
            security_groups: Security groups for deployed VMs
            load_balancers: ELB names keyed by role ("concourse", "router",
                "ssh_proxy", "tcp_router", "ws")

        Returns:
            Cloud config as a dict
        """
        az_names = [f"z{i}" for i in range(1, len(azs) + 1)] or ["z1"]

        return {
            "azs": [
                {"name": name, "cloud_properties": {"availability_zone": az}}
                for name, az in zip(az_names, azs, strict=False)
            ],
            "networks": [
                {
                    "name": "private",
                    "type": "manual",
                    "subnets": [
                        {
                            "range": BOSH_SUBNET_CIDR,
                            "gateway": BOSH_SUBNET_GATEWAY,
                            "azs": az_names,
                            "reserved": BOSH_SUBNET_RESERVED,
                            "static": BOSH_SUBNET_STATIC,
                            "cloud_properties": {
                                "subnet": subnet_id,
                                "security_groups": security_groups,
                            },
                        }
                    ],
                }
            ],
            "vm_types": [
                {"name": name, "cloud_properties": {"instance_type": instance_type}}
                for name, instance_type in VM_TYPES.items()
            ],
            "disk_types": [
                {"name": name, "disk_size": size, "cloud_properties": {"type": "gp2"}}
                for name, size in DISK_TYPES.items()
            ],
            "vm_extensions": self._vm_extensions(lb_type, load_balancers),
            "compilation": {
                "workers": 5,
                "network": "private",
                "az": az_names[0],
                "reuse_compilation_vms": True,
                "vm_type": "default",
            },
        }

    def _vm_extensions(self, lb_type: str, lbs: dict[str, str]) -> list[dict[str, Any]]:
        extensions: list[dict[str, Any]] = [
            {"name": "50GB_ephemeral_disk", "cloud_properties": {"ephemeral_disk": {"size": 51200}}},
        ]

        if lb_type == "concourse":
            extensions.append(_elb_extension("lb", [lbs.get("concourse", "")]))
        elif lb_type == "cf":
            extensions.append(_elb_extension("router-lb", [lbs.get("router", "")]))
            extensions.append(
                _elb_extension(
                    "ssh-proxy-and-router-lb", [lbs.get("ssh_proxy", ""), lbs.get("router", "")]
                )
            )
            if lbs.get("tcp_router"):
                extensions.append(_elb_extension("cf-tcp-router-network-properties", [lbs["tcp_router"]]))
            if lbs.get("ws"):
                extensions.append(_elb_extension("cf-websocket-lb", [lbs["ws"]]))

        return extensions


def _elb_extension(name: str, elbs: list[str]) -> dict[str, Any]:
    return {"name": name, "cloud_properties": {"elbs": [elb for elb in elbs if elb]}}


# =============================================================================
# BOSH CLI Runner
# =============================================================================


class BOSHCommandRunner:
    """Runs bosh CLI commands against a director."""

    def __init__(self, binary: str = "bosh"):
        self.binary = binary

    def update_cloud_config(self, bosh: BOSH, cloud_config: str) -> None:
        """
        Upload a cloud config to the director.

        Raises:
            BOSHError: If the bosh CLI fails
        """
        env = {
            **os.environ,
            "BOSH_ENVIRONMENT": bosh.director_address,
            "BOSH_CLIENT": bosh.director_username,
            "BOSH_CLIENT_SECRET": bosh.director_password,
        }
        if bosh.director_ssl_ca:
            env["BOSH_CA_CERT"] = bosh.director_ssl_ca

        with tempfile.TemporaryDirectory(prefix="bbl-cloud-config-") as tmp:
            config_path = Path(tmp) / "cloud-config.yml"
            config_path.write_text(cloud_config, encoding="utf-8")

            result = subprocess.run(
                [self.binary, "--non-interactive", "update-cloud-config", str(config_path)],
                env=env,
                capture_output=True,
                text=True,
            )

        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip()
            raise BOSHError(f"failed to update cloud config: {detail}")


# =============================================================================
# Cloud Config Manager
# =============================================================================


class CloudConfigManager:
    """Regenerates and applies the cloud config for an environment."""

    def __init__(
        self,
        runner: BOSHCommandRunner,
        generator: CloudConfigGenerator,
        az_retriever: AvailabilityZoneRetriever,
        infrastructure_manager: InfrastructureManager,
        output_provider: OutputProvider,
    ):
        self.runner = runner
        self.generator = generator
        self.az_retriever = az_retriever
        self.infrastructure_manager = infrastructure_manager
        self.output_provider = output_provider

    def generate(self, state: State) -> dict[str, Any]:
        """Generate the cloud config for a state."""
        azs = self.az_retriever.retrieve(state.aws.region)

        if state.uses_terraform:
            subnet_id, security_groups, lbs = self._from_terraform(state)
        else:
            subnet_id, security_groups, lbs = self._from_stack(state)

        return self.generator.generate(
            azs=azs,
            lb_type=state.lb_type if state.has_lb else "",
            subnet_id=subnet_id,
            security_groups=security_groups,
            load_balancers=lbs,
        )

    def update(self, state: State) -> None:
        """Apply the generated cloud config to the director."""
        logger.info("generating cloud config")
        cloud_config = self.generate(state)

        logger.info("applying cloud config")
        self.runner.update_cloud_config(state.bosh, yaml.safe_dump(cloud_config, sort_keys=False))

    def _from_terraform(self, state: State) -> tuple[str, list[str], dict[str, str]]:
        outputs = self.output_provider.get(state.tf_state, state.lb.type, bool(state.lb.domain))
        lbs = {
            "concourse": outputs.concourse_target_pool,
            "router": outputs.router_backend_service,
            "ssh_proxy": outputs.ssh_proxy_target_pool,
            "tcp_router": outputs.tcp_router_target_pool,
            "ws": outputs.ws_target_pool,
        }
        return outputs.subnetwork_name, [outputs.internal_tag], lbs

    def _from_stack(self, state: State) -> tuple[str, list[str], dict[str, str]]:
        stack = self.infrastructure_manager.describe(state.stack.name)
        lbs = {
            "concourse": stack.outputs.get("ConcourseLoadBalancer", ""),
            "router": stack.outputs.get("CFRouterLoadBalancer", ""),
            "ssh_proxy": stack.outputs.get("CFSSHProxyLoadBalancer", ""),
        }
        security_groups = [stack.outputs.get("InternalSecurityGroup", "")]
        return stack.outputs.get("BOSHSubnet", ""), security_groups, lbs
