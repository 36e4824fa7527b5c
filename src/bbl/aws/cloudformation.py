"""
CloudFormation stack management for legacy bbl environments.

Legacy environments are a single CloudFormation stack built from a fixed
template. Attaching or detaching a load balancer rebuilds the template for
the requested LB type and updates the stack in place.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from botocore.exceptions import ClientError, WaiterError

from bbl.core.errors import BblError

from .session import AWSClientProvider

logger = logging.getLogger(__name__)

TEMPLATE_VERSION = "2010-09-09"
VPC_CIDR = "10.0.0.0/16"
BOSH_SUBNET_CIDR = "10.0.0.0/24"
INTERNAL_SUBNET_CIDR = "10.0.16.0/20"

ELB_NAME_LIMIT = 32

NO_UPDATES_MESSAGE = "No updates are to be performed."

# Stack outputs that describe attached load balancers, per LB type
LB_OUTPUT_KEYS = {
    "concourse": ["ConcourseLoadBalancer", "ConcourseLoadBalancerURL"],
    "cf": [
        "CFRouterLoadBalancer",
        "CFRouterLoadBalancerURL",
        "CFSSHProxyLoadBalancer",
        "CFSSHProxyLoadBalancerURL",
    ],
}


@dataclass
class Stack:
    """A described CloudFormation stack."""

    name: str
    status: str = ""
    outputs: dict[str, str] = field(default_factory=dict)


# =============================================================================
# Template Builder
# =============================================================================


def _ref(name: str) -> dict[str, str]:
    return {"Ref": name}


def _get_att(resource: str, attribute: str) -> dict[str, list[str]]:
    return {"Fn::GetAtt": [resource, attribute]}


def _ingress(port: int, protocol: str = "tcp", cidr: str = "0.0.0.0/0") -> dict[str, Any]:
    return {"CidrIp": cidr, "IpProtocol": protocol, "FromPort": str(port), "ToPort": str(port)}


class TemplateBuilder:
    """Builds the bbl CloudFormation template for an LB type."""

    def build(
        self,
        key_pair_name: str,
        azs: list[str],
        bosh_az: str,
        lb_type: str,
        lb_certificate_arn: str,
        env_id: str,
    ) -> dict[str, Any]:
        """
        Build the complete stack template.

        Args:
            key_pair_name: EC2 key pair used by the director
            azs: Availability zones for load balancer subnets
            bosh_az: Availability zone of the BOSH subnet
            lb_type: "concourse", "cf", or "" for no load balancer
            lb_certificate_arn: IAM certificate ARN for HTTPS listeners
            env_id: Environment ID used to name resources

        Returns:
            CloudFormation template as a dict
        """
        template: dict[str, Any] = {
            "AWSTemplateFormatVersion": TEMPLATE_VERSION,
            "Description": f"Infrastructure for a BOSH deployment ({env_id or 'bbl'})",
            "Parameters": {
                "SSHKeyPairName": {
                    "Type": "AWS::EC2::KeyPair::KeyName",
                    "Default": key_pair_name,
                    "Description": "SSH Keypair to use for instances",
                },
            },
            "Resources": {},
            "Outputs": {},
        }

        self._add_network(template, bosh_az or (azs[0] if azs else ""))
        self._add_security_groups(template)

        if lb_type in ("concourse", "cf"):
            self._add_lb_subnets(template, azs)

        if lb_type == "concourse":
            self._add_concourse_lb(template, env_id, lb_certificate_arn)
        elif lb_type == "cf":
            self._add_cf_lbs(template, env_id, lb_certificate_arn)

        return template

    def _add_network(self, template: dict[str, Any], bosh_az: str) -> None:
        resources = template["Resources"]
        resources["VPC"] = {
            "Type": "AWS::EC2::VPC",
            "Properties": {
                "CidrBlock": VPC_CIDR,
                "Tags": [{"Key": "Name", "Value": _ref("AWS::StackName")}],
            },
        }
        resources["VPCGatewayInternetGateway"] = {"Type": "AWS::EC2::InternetGateway"}
        resources["VPCGatewayAttachment"] = {
            "Type": "AWS::EC2::VPCGatewayAttachment",
            "Properties": {
                "VpcId": _ref("VPC"),
                "InternetGatewayId": _ref("VPCGatewayInternetGateway"),
            },
        }
        resources["BOSHSubnet"] = {
            "Type": "AWS::EC2::Subnet",
            "Properties": {
                "AvailabilityZone": bosh_az,
                "CidrBlock": BOSH_SUBNET_CIDR,
                "VpcId": _ref("VPC"),
                "Tags": [{"Key": "Name", "Value": "BOSH"}],
            },
        }
        resources["BOSHRouteTable"] = {
            "Type": "AWS::EC2::RouteTable",
            "Properties": {"VpcId": _ref("VPC")},
        }
        resources["BOSHRoute"] = {
            "Type": "AWS::EC2::Route",
            "DependsOn": "VPCGatewayAttachment",
            "Properties": {
                "DestinationCidrBlock": "0.0.0.0/0",
                "GatewayId": _ref("VPCGatewayInternetGateway"),
                "RouteTableId": _ref("BOSHRouteTable"),
            },
        }
        resources["BOSHSubnetRouteTableAssociation"] = {
            "Type": "AWS::EC2::SubnetRouteTableAssociation",
            "Properties": {"RouteTableId": _ref("BOSHRouteTable"), "SubnetId": _ref("BOSHSubnet")},
        }

        outputs = template["Outputs"]
        outputs["VPCID"] = {"Value": _ref("VPC")}
        outputs["BOSHSubnet"] = {"Value": _ref("BOSHSubnet")}
        outputs["BOSHSubnetAZ"] = {"Value": _get_att("BOSHSubnet", "AvailabilityZone")}

    def _add_security_groups(self, template: dict[str, Any]) -> None:
        resources = template["Resources"]
        resources["InternalSecurityGroup"] = {
            "Type": "AWS::EC2::SecurityGroup",
            "Properties": {
                "VpcId": _ref("VPC"),
                "GroupDescription": "Internal",
                "SecurityGroupIngress": [
                    {"IpProtocol": "tcp", "FromPort": "0", "ToPort": "65535", "CidrIp": VPC_CIDR},
                    {"IpProtocol": "udp", "FromPort": "0", "ToPort": "65535", "CidrIp": VPC_CIDR},
                    {"IpProtocol": "icmp", "FromPort": "-1", "ToPort": "-1", "CidrIp": VPC_CIDR},
                ],
            },
        }
        resources["BOSHSecurityGroup"] = {
            "Type": "AWS::EC2::SecurityGroup",
            "Properties": {
                "VpcId": _ref("VPC"),
                "GroupDescription": "BOSH",
                "SecurityGroupIngress": [_ingress(22), _ingress(6868), _ingress(25555)],
            },
        }

        outputs = template["Outputs"]
        outputs["InternalSecurityGroup"] = {"Value": _ref("InternalSecurityGroup")}
        outputs["BOSHSecurityGroup"] = {"Value": _ref("BOSHSecurityGroup")}

    def _add_lb_subnets(self, template: dict[str, Any], azs: list[str]) -> None:
        resources = template["Resources"]
        resources["LoadBalancerRouteTable"] = {
            "Type": "AWS::EC2::RouteTable",
            "Properties": {"VpcId": _ref("VPC")},
        }
        resources["LoadBalancerRoute"] = {
            "Type": "AWS::EC2::Route",
            "DependsOn": "VPCGatewayAttachment",
            "Properties": {
                "DestinationCidrBlock": "0.0.0.0/0",
                "GatewayId": _ref("VPCGatewayInternetGateway"),
                "RouteTableId": _ref("LoadBalancerRouteTable"),
            },
        }

        for index, az in enumerate(azs, start=1):
            subnet = f"LoadBalancerSubnet{index}"
            resources[subnet] = {
                "Type": "AWS::EC2::Subnet",
                "Properties": {
                    "AvailabilityZone": az,
                    "CidrBlock": f"10.0.{index + 1}.0/24",
                    "VpcId": _ref("VPC"),
                    "Tags": [{"Key": "Name", "Value": f"LoadBalancer{index}"}],
                },
            }
            resources[f"{subnet}RouteTableAssociation"] = {
                "Type": "AWS::EC2::SubnetRouteTableAssociation",
                "Properties": {
                    "RouteTableId": _ref("LoadBalancerRouteTable"),
                    "SubnetId": _ref(subnet),
                },
            }

    def _lb_subnet_refs(self, template: dict[str, Any]) -> list[dict[str, str]]:
        return [
            _ref(name)
            for name, resource in template["Resources"].items()
            if name.startswith("LoadBalancerSubnet") and resource["Type"] == "AWS::EC2::Subnet"
        ]

    def _add_load_balancer(
        self,
        template: dict[str, Any],
        name: str,
        lb_name: str,
        ports: list[int],
        listeners: list[dict[str, Any]],
        health_check_target: str,
    ) -> None:
        resources = template["Resources"]
        security_group = f"{name}SecurityGroup"

        resources[security_group] = {
            "Type": "AWS::EC2::SecurityGroup",
            "Properties": {
                "VpcId": _ref("VPC"),
                "GroupDescription": name,
                "SecurityGroupIngress": [_ingress(port) for port in ports],
            },
        }
        resources[name] = {
            "Type": "AWS::ElasticLoadBalancing::LoadBalancer",
            "DependsOn": "VPCGatewayAttachment",
            "Properties": {
                "LoadBalancerName": lb_name,
                "CrossZone": True,
                "Subnets": self._lb_subnet_refs(template),
                "SecurityGroups": [_ref(security_group)],
                "HealthCheck": {
                    "Target": health_check_target,
                    "HealthyThreshold": "2",
                    "UnhealthyThreshold": "10",
                    "Interval": "12",
                    "Timeout": "2",
                },
                "Listeners": listeners,
            },
        }

        outputs = template["Outputs"]
        outputs[name] = {"Value": _ref(name)}
        outputs[f"{name}URL"] = {"Value": _get_att(name, "DNSName")}
        outputs[security_group] = {"Value": _ref(security_group)}

    def _add_concourse_lb(self, template: dict[str, Any], env_id: str, cert_arn: str) -> None:
        self._add_load_balancer(
            template,
            name="ConcourseLoadBalancer",
            lb_name=_lb_name(env_id, "concourse"),
            ports=[80, 443, 2222],
            listeners=[
                _listener(80, "tcp", 8080),
                _listener(2222, "tcp", 2222),
                _listener(443, "ssl", 8080, cert_arn),
            ],
            health_check_target="tcp:8080",
        )

    def _add_cf_lbs(self, template: dict[str, Any], env_id: str, cert_arn: str) -> None:
        self._add_load_balancer(
            template,
            name="CFRouterLoadBalancer",
            lb_name=_lb_name(env_id, "cf-router"),
            ports=[80, 443, 4443],
            listeners=[
                _listener(80, "http", 80),
                _listener(443, "https", 80, cert_arn),
                _listener(4443, "ssl", 80, cert_arn),
            ],
            health_check_target="tcp:80",
        )
        self._add_load_balancer(
            template,
            name="CFSSHProxyLoadBalancer",
            lb_name=_lb_name(env_id, "cf-ssh-proxy"),
            ports=[2222],
            listeners=[_listener(2222, "tcp", 2222)],
            health_check_target="tcp:2222",
        )


def _listener(port: int, protocol: str, instance_port: int, cert_arn: str = "") -> dict[str, Any]:
    listener: dict[str, Any] = {
        "LoadBalancerPort": str(port),
        "Protocol": protocol,
        "InstancePort": str(instance_port),
        "InstanceProtocol": "tcp" if protocol in ("tcp", "ssl") else "http",
    }
    if protocol in ("https", "ssl"):
        listener["SSLCertificateId"] = cert_arn
    return listener


def _lb_name(env_id: str, suffix: str) -> str:
    """ELB names are limited to 32 characters; the env ID is shortened to fit."""
    if not env_id:
        return suffix
    prefix = env_id[: ELB_NAME_LIMIT - len(suffix) - 1].rstrip("-")
    return f"{prefix}-{suffix}"


# =============================================================================
# Stack Manager
# =============================================================================


class StackManager:
    """Thin wrapper over the CloudFormation API."""

    def __init__(self, client_provider: AWSClientProvider):
        self.client_provider = client_provider

    @property
    def client(self) -> Any:
        return self.client_provider.get_cloudformation_client()

    def describe(self, stack_name: str) -> Stack:
        """Describe a stack, including its outputs."""
        response = self.client.describe_stacks(StackName=stack_name)
        stack = response["Stacks"][0]
        outputs = {o["OutputKey"]: o.get("OutputValue", "") for o in stack.get("Outputs", [])}
        return Stack(name=stack["StackName"], status=stack.get("StackStatus", ""), outputs=outputs)

    def exists(self, stack_name: str) -> bool:
        """Check if a stack exists."""
        if not stack_name:
            return False
        try:
            self.describe(stack_name)
        except ClientError as e:
            if "does not exist" in e.response.get("Error", {}).get("Message", ""):
                return False
            raise
        return True

    def update(self, stack_name: str, template: dict[str, Any], tags: dict[str, str]) -> None:
        """
        Update a stack and wait for the update to finish.

        An update with no changes is treated as success.
        """
        try:
            self.client.update_stack(
                StackName=stack_name,
                TemplateBody=json.dumps(template),
                Capabilities=["CAPABILITY_IAM", "CAPABILITY_NAMED_IAM"],
                Tags=[{"Key": key, "Value": value} for key, value in tags.items() if value],
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Message", "") == NO_UPDATES_MESSAGE:
                logger.debug("Stack %s is already up to date", stack_name)
                return
            raise

        logger.info("waiting for stack %s to finish updating", stack_name)
        try:
            self.client.get_waiter("stack_update_complete").wait(StackName=stack_name)
        except WaiterError as e:
            raise BblError(f"failed to update stack {stack_name}: {e}") from e


# =============================================================================
# Infrastructure Manager
# =============================================================================


class InfrastructureManager:
    """Applies LB changes to the legacy CloudFormation stack."""

    def __init__(self, template_builder: TemplateBuilder, stack_manager: StackManager):
        self.template_builder = template_builder
        self.stack_manager = stack_manager

    def update(
        self,
        key_pair_name: str,
        azs: list[str],
        stack_name: str,
        bosh_az: str,
        lb_type: str,
        lb_certificate_arn: str,
        env_id: str,
    ) -> Stack:
        """Rebuild the template for lb_type, update the stack, and describe it."""
        template = self.template_builder.build(
            key_pair_name=key_pair_name,
            azs=azs,
            bosh_az=bosh_az,
            lb_type=lb_type,
            lb_certificate_arn=lb_certificate_arn,
            env_id=env_id,
        )

        logger.info("updating cloudformation stack")
        self.stack_manager.update(stack_name, template, tags={"bbl-env-id": env_id})

        return self.stack_manager.describe(stack_name)

    def exists(self, stack_name: str) -> bool:
        return self.stack_manager.exists(stack_name)

    def describe(self, stack_name: str) -> Stack:
        return self.stack_manager.describe(stack_name)
