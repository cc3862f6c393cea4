"""Tests for edge proxy routing rules and Caddyfile generation."""

import pytest

from n8ndock.stack import ConfigError, StackConfig
from n8ndock.topology import RouteRule, generate_caddyfile, route_rules, validate_domain


def test_single_route_rule(sample_config):
    assert route_rules(sample_config) == [RouteRule(domain="n8n.example.com", backend="http://n8n:5678")]


def test_validate_domain_lowercases():
    assert validate_domain("N8N.Example.COM") == "n8n.example.com"


@pytest.mark.parametrize(
    "domain",
    ["localhost", "-bad.example.com", "bad-.example.com", "has space.example.com", "https://n8n.example.com"],
)
def test_validate_domain_rejects(domain):
    with pytest.raises(ConfigError, match="Invalid domain"):
        validate_domain(domain)


def test_validate_domain_unset():
    with pytest.raises(ConfigError, match="domain is not set"):
        route_rules(StackConfig())


def test_caddyfile_site_block():
    rules = [RouteRule(domain="n8n.example.com", backend="http://app:5678")]
    caddyfile = generate_caddyfile(rules)
    assert caddyfile == (
        "n8n.example.com {\n"
        "\treverse_proxy http://app:5678 {\n"
        "\t\tflush_interval -1\n"
        "\t}\n"
        "}\n"
    )


def test_caddyfile_global_email_block(sample_config):
    caddyfile = generate_caddyfile(route_rules(sample_config), email="ops@example.com")
    assert caddyfile.startswith("{\n\temail ops@example.com\n}\n")
    assert "n8n.example.com {" in caddyfile
    assert "reverse_proxy http://n8n:5678" in caddyfile
    assert caddyfile.count("reverse_proxy") == 1
