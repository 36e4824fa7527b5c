"""Tests for Terraform template and input generation."""

from __future__ import annotations

import re

from bbl.core.state import LB
from bbl.terraform import templates
from bbl.terraform.templates import InputGenerator, TemplateGenerator, short_env_id


class TestTemplateGenerator:
    """Tests for TemplateGenerator.generate."""

    def test_base_only_without_lb(self, terraform_state):
        template = TemplateGenerator().generate(terraform_state)

        assert 'resource "aws_vpc" "vpc"' in template
        assert 'output "director_address"' in template
        assert "aws_elb" not in template
        assert "aws_iam_server_certificate" not in template

    def test_concourse(self, terraform_state):
        terraform_state.lb = LB(type="concourse")

        template = TemplateGenerator().generate(terraform_state)

        assert 'resource "aws_elb" "concourse_lb"' in template
        assert 'output "concourse_lb_ip"' in template
        assert "cf_router_lb" not in template

    def test_cf_with_domain(self, terraform_state):
        terraform_state.lb = LB(type="cf", domain="cf.example.com")

        template = TemplateGenerator().generate(terraform_state)

        assert 'resource "aws_elb" "cf_router_lb"' in template
        assert 'output "ws_lb_ip"' in template
        assert 'output "system_domain_dns_servers"' in template

    def test_cf_without_domain(self, terraform_state):
        terraform_state.lb = LB(type="cf")

        template = TemplateGenerator().generate(terraform_state)

        assert "aws_route53_zone" not in template


class TestInputGenerator:
    """Tests for InputGenerator.generate."""

    def test_base_inputs(self, terraform_state):
        inputs = InputGenerator().generate(terraform_state)

        assert inputs == {
            "env_id": "some-env-id",
            "short_env_id": "some-env-id",
            "access_key": "some-access-key",
            "secret_key": "some-secret",
            "region": "some-region",
        }

    def test_certificate_inputs(self, terraform_state):
        terraform_state.lb = LB(type="cf", cert="c", key="k", chain="ch", domain="d")

        inputs = InputGenerator().generate(terraform_state)

        assert inputs["ssl_certificate"] == "c"
        assert inputs["ssl_certificate_private_key"] == "k"
        assert inputs["ssl_certificate_chain"] == "ch"
        assert inputs["ssl_certificate_name_prefix"] == "some-env-id-cf-"
        assert inputs["system_domain"] == "d"

    def test_short_env_id(self):
        assert short_env_id("bbl-env-lake-2017-05-30t17-30z") == "bbl-env-lake-20"
        assert short_env_id("bbl-env-lake-2-017") == "bbl-env-lake-2"


class TestTemplateSyntax:
    """The generated HCL uses syntax current terraform releases accept."""

    SECTIONS = [
        templates.BASE_TEMPLATE,
        templates.LB_SUBNETS_TEMPLATE,
        templates.CONCOURSE_LB_TEMPLATE,
        templates.CF_LB_TEMPLATE,
        templates.CF_DNS_TEMPLATE,
    ]

    def test_tags_are_maps(self):
        for section in self.SECTIONS:
            assert "tags {" not in section

    def test_type_constraints_are_bare(self):
        for section in self.SECTIONS:
            assert 'type = "string"' not in section

    def test_no_interpolation_only_strings(self):
        for section in self.SECTIONS:
            assert not re.search(r'=\s*\[?"\$\{[^}]*\}"\]?\s*$', section, re.MULTILINE)
