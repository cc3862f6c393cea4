"""Secret storage: per-stack secrets file, env var and flag overrides."""

import os

import yaml

from n8ndock.redact import register_secret
from n8ndock.stack.types import SECRET_NAMES, ConfigError, Secrets

# Env var consulted for each secret (wins over the secrets file)
SECRET_ENV_VARS = {
    "db_password": "N8NDOCK_DB_PASSWORD",
    "encryption_key": "N8NDOCK_ENCRYPTION_KEY",
    "runners_auth_token": "N8NDOCK_RUNNERS_AUTH_TOKEN",
}


def secrets_path(stack_dir, stack=None):
    """Path of the secrets file for a stack (.secrets.yaml or .secrets.<stack>.yaml)."""
    name = ".secrets.yaml" if stack is None else f".secrets.{stack}.yaml"
    return os.path.join(stack_dir, name)


def _read_secrets_file(path):
    if not os.path.isfile(path):
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping of secret names to values")
    unknown = set(data) - set(SECRET_NAMES)
    if unknown:
        raise ConfigError(f"{path}: unknown secret(s): {', '.join(sorted(unknown))}")
    return {k: str(v) for k, v in data.items() if v is not None}


def load_secrets(stack_dir, stack=None, overrides=None):
    """Resolve secrets: file < environment < explicit overrides.

    Every resolved value is registered with the log redaction filter.
    Returns an immutable Secrets; completeness is not checked here.
    """
    values = _read_secrets_file(secrets_path(stack_dir, stack))

    for name, var in SECRET_ENV_VARS.items():
        env_value = os.environ.get(var)
        if env_value:
            values[name] = env_value

    for name, value in (overrides or {}).items():
        if name not in SECRET_NAMES:
            raise ConfigError(f"Unknown secret '{name}'")
        if value:
            values[name] = value

    for value in values.values():
        register_secret(value)

    return Secrets(**values)


def set_secret_value(stack_dir, name, value, stack=None):
    """Store one secret in the stack's secrets file (mode 0600)."""
    if name not in SECRET_NAMES:
        raise ConfigError(f"Unknown secret '{name}'. Known secrets: {', '.join(SECRET_NAMES)}")
    if not value:
        raise ConfigError(f"Secret '{name}' must not be empty")

    path = secrets_path(stack_dir, stack)
    data = _read_secrets_file(path)
    data[name] = value
    register_secret(value)

    os.makedirs(stack_dir, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    os.chmod(path, 0o600)
