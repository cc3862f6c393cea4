"""Stack loading, deep merge, and config mutation."""

import os

import yaml

from n8ndock.stack.types import ConfigError, ImagesConfig, StackConfig

STACK_FILE = "stack.yaml"

# Dotted keys accepted by set_config_value(); value converters where not str.
CONFIG_KEYS = {
    "domain": str,
    "acme_email": str,
    "timezone": str,
    "readiness": str,
    "executions_mode": str,
    "database.name": str,
    "database.user": str,
    "remote.server": str,
    "remote.ssh_key": str,
    "remote.ssh_port": int,
    **{f"images.{name}": str for name in ImagesConfig.__dataclass_fields__},
}


def deep_merge(base, override):
    """Recursive dict merge. Override wins for scalars."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def dot_to_nested(key, value):
    """Expand 'remote.server' -> {'remote': {'server': value}}."""
    parts = key.split(".")
    nested = value
    for part in reversed(parts):
        nested = {part: nested}
    return nested


def _stack_path(stack_dir):
    return os.path.join(stack_dir, STACK_FILE)


def load_raw_stack(stack_dir):
    """Read stack.yaml as a dict (empty dict if the file is empty)."""
    path = _stack_path(stack_dir)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Stack file not found: {path}")
    with open(path) as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")
    return config


def resolve_stack_dict(config, stack=None):
    """Merge the named stack's overrides onto the base config."""
    config = dict(config)
    stacks = config.pop("stacks", None) or {}

    if stack is not None:
        if stack not in stacks:
            available = ", ".join(sorted(stacks.keys())) if stacks else "none"
            raise ValueError(f"Unknown stack '{stack}'. Available stacks: {available}")
        config = deep_merge(config, stacks[stack] or {})

    return config


def load_stack(stack_dir, stack=None):
    """Load stack.yaml from stack_dir, optionally deep-merging a named stack.

    Returns a StackConfig dataclass.
    """
    config = resolve_stack_dict(load_raw_stack(stack_dir), stack)
    return StackConfig.from_dict(config, stack=stack)


def _check_key(key):
    if key not in CONFIG_KEYS:
        known = ", ".join(sorted(CONFIG_KEYS))
        raise ConfigError(f"Unknown config key '{key}'. Known keys: {known}")


def _convert(key, value):
    _check_key(key)
    try:
        return CONFIG_KEYS[key](value)
    except ValueError as e:
        raise ConfigError(f"Invalid value for '{key}': {value!r}") from e


def set_config_value(stack_dir, key, value, stack=None):
    """Write one dotted config key into stack.yaml (base or named stack section)."""
    path = _stack_path(stack_dir)
    config = load_raw_stack(stack_dir) if os.path.isfile(path) else {}
    converted = _convert(key, value)

    update = dot_to_nested(key, converted)
    if stack is None:
        config = deep_merge(config, update)
    else:
        stacks = config.get("stacks") or {}
        stacks[stack] = deep_merge(stacks.get(stack) or {}, update)
        config["stacks"] = stacks

    os.makedirs(stack_dir, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(config, f, sort_keys=False)


def get_config_value(stack_dir, key, stack=None):
    """Read one dotted key from the resolved stack config (None if unset)."""
    _check_key(key)
    node = resolve_stack_dict(load_raw_stack(stack_dir), stack)
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node
