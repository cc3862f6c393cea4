"""Secret propagation: which container env vars receive which secret."""

from n8ndock.stack.types import Secrets
from n8ndock.topology.services import N8N, POSTGRES, RUNNER
from n8ndock.topology.types import Topology, TopologyError


class SecretMismatchError(TopologyError):
    """A secret consumer is missing the value or holds a different one."""


# secret name -> (container, env var) pairs that must all receive the same value
SECRET_BINDINGS = {
    "db_password": [
        (POSTGRES, "POSTGRES_PASSWORD"),
        (N8N, "DB_POSTGRESDB_PASSWORD"),
    ],
    "encryption_key": [
        (N8N, "N8N_ENCRYPTION_KEY"),
    ],
    "runners_auth_token": [
        (N8N, "N8N_RUNNERS_AUTH_TOKEN"),
        (RUNNER, "N8N_RUNNERS_AUTH_TOKEN"),
    ],
}


def consumers(name):
    """(container, env var) pairs bound to a secret."""
    return list(SECRET_BINDINGS[name])


def secret_env(secrets: Secrets, container: str) -> list[tuple[str, str]]:
    """Env pairs carrying secrets into one container, in binding order."""
    env = []
    for name, bindings in SECRET_BINDINGS.items():
        for target, var in bindings:
            if target == container:
                env.append((var, secrets.get(name)))
    return env


def check_secret_consistency(topology: Topology, secrets: Secrets):
    """Verify every binding in the topology holds the single source value.

    Raises:
        SecretMismatchError: naming the first offending container/env var.
    """
    for name, bindings in SECRET_BINDINGS.items():
        expected = secrets.get(name)
        for container, var in bindings:
            env = topology.container(container).env
            if var not in env:
                raise SecretMismatchError(f"Secret '{name}' not injected into {container} ({var})")
            if env[var] != expected:
                raise SecretMismatchError(f"Secret '{name}' in {container} ({var}) differs from its configured value")
