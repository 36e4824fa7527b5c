"""
Terraform output extraction.

Reads typed facts about the applied infrastructure out of an opaque
``tf_state``. Which outputs are read depends on the LB type; extraction is
all-or-nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol


class OutputReader(Protocol):
    def output(self, tf_state: str, output_name: str) -> str: ...


DNS_SERVER_SEPARATOR = ",\n"


@dataclass
class Outputs:
    """Outputs of an applied bbl Terraform template."""

    external_ip: str = ""
    network_name: str = ""
    subnetwork_name: str = ""
    bosh_tag: str = ""
    internal_tag: str = ""
    director_address: str = ""
    router_backend_service: str = ""
    ssh_proxy_target_pool: str = ""
    tcp_router_target_pool: str = ""
    ws_target_pool: str = ""
    concourse_target_pool: str = ""
    router_lb_ip: str = ""
    ssh_proxy_lb_ip: str = ""
    tcp_router_lb_ip: str = ""
    web_socket_lb_ip: str = ""
    concourse_lb_ip: str = ""
    system_domain_dns_servers: list[str] = field(default_factory=list)

    def lb_summary(self, lb_type: str) -> dict[str, str | list[str]]:
        """Get the load balancer facts for an LB type."""
        if lb_type == "concourse":
            return {"Concourse LB": self.concourse_lb_ip}

        if lb_type == "cf":
            summary: dict[str, str | list[str]] = {
                "CF Router LB": self.router_lb_ip,
                "CF SSH Proxy LB": self.ssh_proxy_lb_ip,
                "CF TCP Router LB": self.tcp_router_lb_ip,
                "CF WebSocket LB": self.web_socket_lb_ip,
            }
            if self.system_domain_dns_servers:
                summary["CF System Domain DNS servers"] = self.system_domain_dns_servers
            return summary

        return {}


# (Outputs attribute, terraform output name), in extraction order
BASE_OUTPUTS = [
    ("external_ip", "external_ip"),
    ("network_name", "network_name"),
    ("subnetwork_name", "subnetwork_name"),
    ("bosh_tag", "bosh_open_tag_name"),
    ("internal_tag", "internal_tag_name"),
    ("director_address", "director_address"),
]

CF_OUTPUTS = [
    ("router_backend_service", "router_backend_service"),
    ("ssh_proxy_target_pool", "ssh_proxy_target_pool"),
    ("tcp_router_target_pool", "tcp_router_target_pool"),
    ("ws_target_pool", "ws_target_pool"),
    ("router_lb_ip", "router_lb_ip"),
    ("ssh_proxy_lb_ip", "ssh_proxy_lb_ip"),
    ("tcp_router_lb_ip", "tcp_router_lb_ip"),
    ("web_socket_lb_ip", "ws_lb_ip"),
]

CONCOURSE_OUTPUTS = [
    ("concourse_target_pool", "concourse_target_pool"),
    ("concourse_lb_ip", "concourse_lb_ip"),
]


class OutputProvider:
    """Extracts Outputs from a tf_state."""

    def __init__(self, executor: OutputReader):
        self.executor = executor

    def get(self, tf_state: str, lb_type: str, domain_exists: bool) -> Outputs:
        """
        Extract outputs.

        Args:
            tf_state: Serialized Terraform state; "" means nothing applied yet
            lb_type: "cf", "concourse", or anything else for base outputs only
            domain_exists: Whether the cf LB has a system domain

        Returns:
            Outputs; empty when tf_state is ""

        Raises:
            Exception: The first output that cannot be read, unchanged
        """
        if tf_state == "":
            return Outputs()

        outputs = Outputs()
        self._extract(outputs, tf_state, BASE_OUTPUTS)

        if lb_type == "cf":
            self._extract(outputs, tf_state, CF_OUTPUTS)

            if domain_exists:
                raw = self.executor.output(tf_state, "system_domain_dns_servers")
                outputs.system_domain_dns_servers = raw.split(DNS_SERVER_SEPARATOR)

        if lb_type == "concourse":
            self._extract(outputs, tf_state, CONCOURSE_OUTPUTS)

        return outputs

    def _extract(self, outputs: Outputs, tf_state: str, names: list[tuple[str, str]]) -> None:
        for attribute, output_name in names:
            setattr(outputs, attribute, self.executor.output(tf_state, output_name))
