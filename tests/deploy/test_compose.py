"""Unit tests for docker-compose generation."""

import yaml

from n8ndock.deploy import compose_dict, generate_compose
from n8ndock.topology import build_topology


def test_compose_services_in_declaration_order(sample_config, sample_secrets):
    compose = compose_dict(build_topology(sample_config, sample_secrets))
    assert list(compose["services"]) == ["caddy", "postgres", "redis", "n8n", "n8n-runner"]


def test_compose_volumes_and_network_external(sample_config, sample_secrets):
    compose = compose_dict(build_topology(sample_config, sample_secrets))
    assert compose["volumes"] == {
        "n8n_data": {"external": True, "name": "n8n_data"},
        "postgres_data": {"external": True, "name": "postgres_data"},
        "caddy_data": {"external": True, "name": "caddy_data"},
    }
    assert compose["networks"] == {"n8n-net": {"external": True, "name": "n8n-net"}}


def test_compose_edge_proxy(sample_config, sample_secrets):
    caddy = compose_dict(build_topology(sample_config, sample_secrets))["services"]["caddy"]
    assert caddy["ports"] == ["80:80", "443:443"]
    assert caddy["volumes"] == ["caddy_data:/data", "./Caddyfile:/etc/caddy/Caddyfile:ro"]
    assert "depends_on" not in caddy
    assert caddy["restart"] == "unless-stopped"


def test_compose_only_edge_proxy_publishes_ports(sample_config, sample_secrets):
    services = compose_dict(build_topology(sample_config, sample_secrets))["services"]
    assert [name for name, svc in services.items() if "ports" in svc] == ["caddy"]


def test_compose_healthy_readiness_waits_on_checks(sample_config, sample_secrets):
    services = compose_dict(build_topology(sample_config, sample_secrets), readiness="healthy")["services"]
    assert services["n8n"]["depends_on"] == {
        "postgres": {"condition": "service_healthy"},
        "redis": {"condition": "service_healthy"},
    }
    assert services["n8n-runner"]["depends_on"] == {"n8n": {"condition": "service_healthy"}}


def test_compose_created_readiness_only_waits_for_start(sample_config, sample_secrets):
    services = compose_dict(build_topology(sample_config, sample_secrets), readiness="created")["services"]
    assert services["n8n"]["depends_on"] == {
        "postgres": {"condition": "service_started"},
        "redis": {"condition": "service_started"},
    }


def test_compose_environment_and_healthcheck(sample_config, sample_secrets):
    services = compose_dict(build_topology(sample_config, sample_secrets))["services"]
    assert services["postgres"]["environment"]["POSTGRES_PASSWORD"] == "pw1"
    assert services["n8n-runner"]["environment"]["N8N_RUNNERS_AUTH_TOKEN"] == "tok1"
    assert services["redis"]["command"] == "redis-server --appendonly yes"
    assert services["redis"]["healthcheck"]["test"] == ["CMD", "redis-cli", "ping"]
    assert services["n8n"]["user"] == "1000:1000"
    assert "healthcheck" not in services["n8n-runner"]


def test_generate_compose_is_valid_yaml(sample_config, sample_secrets):
    topology = build_topology(sample_config, sample_secrets)
    text = generate_compose(topology)
    assert yaml.safe_load(text) == compose_dict(topology)
    assert text.startswith("services:\n")
