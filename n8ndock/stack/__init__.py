"""Stack configuration: stack.yaml loading, named stacks, and secrets."""

from n8ndock.stack.secrets import (
    SECRET_ENV_VARS,
    load_secrets,
    secrets_path,
    set_secret_value,
)
from n8ndock.stack.stack import (
    CONFIG_KEYS,
    deep_merge,
    dot_to_nested,
    get_config_value,
    load_stack,
    set_config_value,
)
from n8ndock.stack.types import (
    SECRET_NAMES,
    ConfigError,
    DatabaseConfig,
    ImagesConfig,
    RemoteConfig,
    Secrets,
    StackConfig,
)

__all__ = [
    "CONFIG_KEYS",
    "ConfigError",
    "DatabaseConfig",
    "ImagesConfig",
    "RemoteConfig",
    "SECRET_ENV_VARS",
    "SECRET_NAMES",
    "Secrets",
    "StackConfig",
    "deep_merge",
    "dot_to_nested",
    "get_config_value",
    "load_secrets",
    "load_stack",
    "secrets_path",
    "set_config_value",
    "set_secret_value",
]
