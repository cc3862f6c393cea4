"""Tests for secret propagation and the consistency check."""

from dataclasses import replace

import pytest

from n8ndock.topology import (
    SECRET_BINDINGS,
    SecretMismatchError,
    build_topology,
    check_secret_consistency,
    consumers,
    secret_env,
)


def test_bindings_cover_every_secret():
    assert set(SECRET_BINDINGS) == {"db_password", "encryption_key", "runners_auth_token"}


def test_consumers():
    assert consumers("runners_auth_token") == [
        ("n8n", "N8N_RUNNERS_AUTH_TOKEN"),
        ("n8n-runner", "N8N_RUNNERS_AUTH_TOKEN"),
    ]
    assert consumers("db_password") == [
        ("postgres", "POSTGRES_PASSWORD"),
        ("n8n", "DB_POSTGRESDB_PASSWORD"),
    ]


def test_secret_env_per_container(sample_secrets):
    assert secret_env(sample_secrets, "postgres") == [("POSTGRES_PASSWORD", "pw1")]
    assert secret_env(sample_secrets, "n8n-runner") == [("N8N_RUNNERS_AUTH_TOKEN", "tok1")]
    assert secret_env(sample_secrets, "redis") == []


def test_every_consumer_holds_the_same_value(sample_config, sample_secrets):
    topology = build_topology(sample_config, sample_secrets)
    for name, bindings in SECRET_BINDINGS.items():
        values = {topology.container(c).env[var] for c, var in bindings}
        assert values == {sample_secrets.get(name)}


def test_rotation_reaches_every_consumer(sample_config, sample_secrets):
    rotated = sample_secrets.rotate("runners_auth_token", "tok2")
    topology = build_topology(sample_config, rotated)
    assert topology.container("n8n").env["N8N_RUNNERS_AUTH_TOKEN"] == "tok2"
    assert topology.container("n8n-runner").env["N8N_RUNNERS_AUTH_TOKEN"] == "tok2"


def _with_runner_env(topology, environment):
    containers = tuple(
        replace(c, environment=environment) if c.name == "n8n-runner" else c for c in topology.containers
    )
    return replace(topology, containers=containers)


def test_consistency_detects_divergent_value(sample_config, sample_secrets):
    topology = build_topology(sample_config, sample_secrets)
    tampered = _with_runner_env(topology, (("N8N_RUNNERS_AUTH_TOKEN", "stale"),))
    with pytest.raises(SecretMismatchError, match="n8n-runner"):
        check_secret_consistency(tampered, sample_secrets)


def test_consistency_detects_missing_injection(sample_config, sample_secrets):
    topology = build_topology(sample_config, sample_secrets)
    tampered = _with_runner_env(topology, ())
    with pytest.raises(SecretMismatchError, match="not injected"):
        check_secret_consistency(tampered, sample_secrets)
