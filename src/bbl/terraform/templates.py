"""
Terraform template and input generation for AWS.

The template is assembled from sections: the base network every environment
has, the load balancer section for the state's LB type, and DNS when the LB
has a domain. Output names match what OutputProvider reads.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bbl.core.state import State


BASE_TEMPLATE = """
variable "access_key" {
  type = string
}

variable "secret_key" {
  type = string
}

variable "region" {
  type = string
}

variable "env_id" {
  type = string
}

variable "short_env_id" {
  type = string
}

variable "bosh_inbound_cidr" {
  default = "0.0.0.0/0"
}

provider "aws" {
  access_key = var.access_key
  secret_key = var.secret_key
  region     = var.region
}

data "aws_availability_zones" "available" {}

resource "aws_vpc" "vpc" {
  cidr_block           = "10.0.0.0/16"
  enable_dns_hostnames = true

  tags = {
    Name = "${var.env_id}-vpc"
  }
}

resource "aws_internet_gateway" "ig" {
  vpc_id = aws_vpc.vpc.id
}

resource "aws_subnet" "bosh_subnet" {
  vpc_id            = aws_vpc.vpc.id
  cidr_block        = "10.0.0.0/24"
  availability_zone = data.aws_availability_zones.available.names[0]

  tags = {
    Name = "${var.env_id}-bosh-subnet"
  }
}

resource "aws_route_table" "bosh_route_table" {
  vpc_id = aws_vpc.vpc.id

  route {
    cidr_block = "0.0.0.0/0"
    gateway_id = aws_internet_gateway.ig.id
  }
}

resource "aws_route_table_association" "bosh_route_bosh_subnet" {
  subnet_id      = aws_subnet.bosh_subnet.id
  route_table_id = aws_route_table.bosh_route_table.id
}

resource "aws_security_group" "bosh_security_group" {
  name        = "${var.env_id}-bosh-open"
  description = "BOSH director"
  vpc_id      = aws_vpc.vpc.id

  ingress {
    protocol    = "tcp"
    from_port   = 22
    to_port     = 22
    cidr_blocks = [var.bosh_inbound_cidr]
  }

  ingress {
    protocol    = "tcp"
    from_port   = 6868
    to_port     = 6868
    cidr_blocks = [var.bosh_inbound_cidr]
  }

  ingress {
    protocol    = "tcp"
    from_port   = 25555
    to_port     = 25555
    cidr_blocks = [var.bosh_inbound_cidr]
  }

  egress {
    protocol    = "-1"
    from_port   = 0
    to_port     = 0
    cidr_blocks = ["0.0.0.0/0"]
  }
}

resource "aws_security_group" "internal_security_group" {
  name        = "${var.env_id}-internal"
  description = "Internal"
  vpc_id      = aws_vpc.vpc.id

  ingress {
    protocol  = "-1"
    from_port = 0
    to_port   = 0
    self      = true
  }

  egress {
    protocol    = "-1"
    from_port   = 0
    to_port     = 0
    cidr_blocks = ["0.0.0.0/0"]
  }
}

resource "aws_eip" "bosh_eip" {
  depends_on = [aws_internet_gateway.ig]
  domain     = "vpc"
}

output "external_ip" {
  value = aws_eip.bosh_eip.public_ip
}

output "network_name" {
  value = aws_vpc.vpc.id
}

output "subnetwork_name" {
  value = aws_subnet.bosh_subnet.id
}

output "bosh_open_tag_name" {
  value = aws_security_group.bosh_security_group.name
}

output "internal_tag_name" {
  value = aws_security_group.internal_security_group.name
}

output "director_address" {
  value = "https://${aws_eip.bosh_eip.public_ip}:25555"
}
"""

LB_SUBNETS_TEMPLATE = """
resource "aws_subnet" "lb_subnets" {
  count             = length(data.aws_availability_zones.available.names)
  vpc_id            = aws_vpc.vpc.id
  cidr_block        = cidrsubnet("10.0.0.0/16", 8, count.index + 2)
  availability_zone = element(data.aws_availability_zones.available.names, count.index)

  tags = {
    Name = "${var.env_id}-lb-subnet${count.index}"
  }
}

resource "aws_route_table_association" "lb_route_lb_subnets" {
  count          = length(data.aws_availability_zones.available.names)
  subnet_id      = element(aws_subnet.lb_subnets[*].id, count.index)
  route_table_id = aws_route_table.bosh_route_table.id
}

variable "ssl_certificate" {
  type = string
}

variable "ssl_certificate_chain" {
  type = string
}

variable "ssl_certificate_private_key" {
  type = string
}

variable "ssl_certificate_name_prefix" {
  type = string
}

resource "aws_iam_server_certificate" "lb_cert" {
  name_prefix       = var.ssl_certificate_name_prefix
  certificate_body  = var.ssl_certificate
  certificate_chain = var.ssl_certificate_chain
  private_key       = var.ssl_certificate_private_key

  lifecycle {
    create_before_destroy = true
  }
}
"""

CONCOURSE_LB_TEMPLATE = """
resource "aws_security_group" "concourse_lb_security_group" {
  name        = "${var.env_id}-concourse-lb"
  description = "Concourse"
  vpc_id      = aws_vpc.vpc.id

  ingress {
    protocol    = "tcp"
    from_port   = 80
    to_port     = 80
    cidr_blocks = ["0.0.0.0/0"]
  }

  ingress {
    protocol    = "tcp"
    from_port   = 443
    to_port     = 443
    cidr_blocks = ["0.0.0.0/0"]
  }

  ingress {
    protocol    = "tcp"
    from_port   = 2222
    to_port     = 2222
    cidr_blocks = ["0.0.0.0/0"]
  }
}

resource "aws_elb" "concourse_lb" {
  name            = "${var.short_env_id}-concourse-lb"
  subnets         = aws_subnet.lb_subnets[*].id
  security_groups = [aws_security_group.concourse_lb_security_group.id]

  health_check {
    healthy_threshold   = 2
    unhealthy_threshold = 10
    interval            = 30
    timeout             = 5
    target              = "TCP:8080"
  }

  listener {
    instance_port     = 8080
    instance_protocol = "tcp"
    lb_port           = 80
    lb_protocol       = "tcp"
  }

  listener {
    instance_port     = 2222
    instance_protocol = "tcp"
    lb_port           = 2222
    lb_protocol       = "tcp"
  }

  listener {
    instance_port      = 8080
    instance_protocol  = "tcp"
    lb_port            = 443
    lb_protocol        = "ssl"
    ssl_certificate_id = aws_iam_server_certificate.lb_cert.arn
  }
}

output "concourse_target_pool" {
  value = aws_elb.concourse_lb.name
}

output "concourse_lb_ip" {
  value = aws_elb.concourse_lb.dns_name
}
"""

CF_LB_TEMPLATE = """
resource "aws_security_group" "cf_router_lb_security_group" {
  name        = "${var.env_id}-cf-router-lb"
  description = "CF Router"
  vpc_id      = aws_vpc.vpc.id

  ingress {
    protocol    = "tcp"
    from_port   = 80
    to_port     = 80
    cidr_blocks = ["0.0.0.0/0"]
  }

  ingress {
    protocol    = "tcp"
    from_port   = 443
    to_port     = 443
    cidr_blocks = ["0.0.0.0/0"]
  }

  ingress {
    protocol    = "tcp"
    from_port   = 4443
    to_port     = 4443
    cidr_blocks = ["0.0.0.0/0"]
  }
}

resource "aws_elb" "cf_router_lb" {
  name            = "${var.short_env_id}-cf-router-lb"
  subnets         = aws_subnet.lb_subnets[*].id
  security_groups = [aws_security_group.cf_router_lb_security_group.id]

  health_check {
    healthy_threshold   = 5
    unhealthy_threshold = 2
    interval            = 12
    timeout             = 2
    target              = "tcp:80"
  }

  listener {
    instance_port     = 80
    instance_protocol = "http"
    lb_port           = 80
    lb_protocol       = "http"
  }

  listener {
    instance_port      = 80
    instance_protocol  = "http"
    lb_port            = 443
    lb_protocol        = "https"
    ssl_certificate_id = aws_iam_server_certificate.lb_cert.arn
  }

  listener {
    instance_port      = 80
    instance_protocol  = "tcp"
    lb_port            = 4443
    lb_protocol        = "ssl"
    ssl_certificate_id = aws_iam_server_certificate.lb_cert.arn
  }
}

resource "aws_security_group" "cf_ssh_lb_security_group" {
  name        = "${var.env_id}-cf-ssh-lb"
  description = "CF SSH"
  vpc_id      = aws_vpc.vpc.id

  ingress {
    protocol    = "tcp"
    from_port   = 2222
    to_port     = 2222
    cidr_blocks = ["0.0.0.0/0"]
  }
}

resource "aws_elb" "cf_ssh_lb" {
  name            = "${var.short_env_id}-cf-ssh-lb"
  subnets         = aws_subnet.lb_subnets[*].id
  security_groups = [aws_security_group.cf_ssh_lb_security_group.id]

  health_check {
    healthy_threshold   = 5
    unhealthy_threshold = 2
    interval            = 12
    timeout             = 2
    target              = "TCP:2222"
  }

  listener {
    instance_port     = 2222
    instance_protocol = "tcp"
    lb_port           = 2222
    lb_protocol       = "tcp"
  }
}

resource "aws_security_group" "cf_tcp_lb_security_group" {
  name        = "${var.env_id}-cf-tcp-lb"
  description = "CF TCP"
  vpc_id      = aws_vpc.vpc.id

  ingress {
    protocol    = "tcp"
    from_port   = 1024
    to_port     = 1123
    cidr_blocks = ["0.0.0.0/0"]
  }
}

resource "aws_elb" "cf_tcp_lb" {
  name            = "${var.short_env_id}-cf-tcp-lb"
  subnets         = aws_subnet.lb_subnets[*].id
  security_groups = [aws_security_group.cf_tcp_lb_security_group.id]

  health_check {
    healthy_threshold   = 6
    unhealthy_threshold = 3
    interval            = 5
    timeout             = 3
    target              = "tcp:80"
  }

  listener {
    instance_port     = 1024
    instance_protocol = "tcp"
    lb_port           = 1024
    lb_protocol       = "tcp"
  }
}

resource "aws_elb" "cf_ws_lb" {
  name            = "${var.short_env_id}-cf-ws-lb"
  subnets         = aws_subnet.lb_subnets[*].id
  security_groups = [aws_security_group.cf_router_lb_security_group.id]

  health_check {
    healthy_threshold   = 5
    unhealthy_threshold = 2
    interval            = 12
    timeout             = 2
    target              = "tcp:80"
  }

  listener {
    instance_port     = 80
    instance_protocol = "tcp"
    lb_port           = 80
    lb_protocol       = "tcp"
  }

  listener {
    instance_port      = 80
    instance_protocol  = "tcp"
    lb_port            = 443
    lb_protocol        = "ssl"
    ssl_certificate_id = aws_iam_server_certificate.lb_cert.arn
  }
}

output "router_backend_service" {
  value = aws_elb.cf_router_lb.name
}

output "ssh_proxy_target_pool" {
  value = aws_elb.cf_ssh_lb.name
}

output "tcp_router_target_pool" {
  value = aws_elb.cf_tcp_lb.name
}

output "ws_target_pool" {
  value = aws_elb.cf_ws_lb.name
}

output "router_lb_ip" {
  value = aws_elb.cf_router_lb.dns_name
}

output "ssh_proxy_lb_ip" {
  value = aws_elb.cf_ssh_lb.dns_name
}

output "tcp_router_lb_ip" {
  value = aws_elb.cf_tcp_lb.dns_name
}

output "ws_lb_ip" {
  value = aws_elb.cf_ws_lb.dns_name
}
"""

CF_DNS_TEMPLATE = """
variable "system_domain" {
  type = string
}

resource "aws_route53_zone" "env_dns_zone" {
  name = var.system_domain

  tags = {
    Name = "${var.env_id}-hosted-zone"
  }
}

resource "aws_route53_record" "wildcard_dns" {
  zone_id = aws_route53_zone.env_dns_zone.id
  name    = "*.${var.system_domain}"
  type    = "CNAME"
  ttl     = 300
  records = [aws_elb.cf_router_lb.dns_name]
}

resource "aws_route53_record" "ssh" {
  zone_id = aws_route53_zone.env_dns_zone.id
  name    = "ssh.${var.system_domain}"
  type    = "CNAME"
  ttl     = 300
  records = [aws_elb.cf_ssh_lb.dns_name]
}

resource "aws_route53_record" "tcp" {
  zone_id = aws_route53_zone.env_dns_zone.id
  name    = "tcp.${var.system_domain}"
  type    = "CNAME"
  ttl     = 300
  records = [aws_elb.cf_tcp_lb.dns_name]
}

resource "aws_route53_record" "ws" {
  zone_id = aws_route53_zone.env_dns_zone.id
  name    = "ws.${var.system_domain}"
  type    = "CNAME"
  ttl     = 300
  records = [aws_elb.cf_ws_lb.dns_name]
}

output "system_domain_dns_servers" {
  value = aws_route53_zone.env_dns_zone.name_servers
}
"""


class TemplateGenerator:
    """Assembles the HCL template for a state."""

    def generate(self, state: State) -> str:
        sections = [BASE_TEMPLATE]

        if state.lb.type == "concourse":
            sections.extend([LB_SUBNETS_TEMPLATE, CONCOURSE_LB_TEMPLATE])
        elif state.lb.type == "cf":
            sections.extend([LB_SUBNETS_TEMPLATE, CF_LB_TEMPLATE])
            if state.lb.domain:
                sections.append(CF_DNS_TEMPLATE)

        return "\n".join(section.strip() + "\n" for section in sections)


class InputGenerator:
    """Builds Terraform input variables for a state."""

    def generate(self, state: State) -> dict[str, str]:
        inputs = {
            "env_id": state.env_id,
            "short_env_id": short_env_id(state.env_id),
            "access_key": state.aws.access_key_id,
            "secret_key": state.aws.secret_access_key,
            "region": state.aws.region,
        }

        if state.lb.type in ("concourse", "cf"):
            inputs["ssl_certificate"] = state.lb.cert
            inputs["ssl_certificate_private_key"] = state.lb.key
            inputs["ssl_certificate_chain"] = state.lb.chain
            inputs["ssl_certificate_name_prefix"] = f"{state.env_id}-{state.lb.type}-"

        if state.lb.type == "cf" and state.lb.domain:
            inputs["system_domain"] = state.lb.domain

        return inputs


def short_env_id(env_id: str) -> str:
    """ELB names are limited to 32 characters including the LB suffix."""
    return env_id[:15].rstrip("-")
