"""Unit tests for stack loading, deep merge, and config mutation."""

import pytest
import yaml

from n8ndock.stack import (
    ConfigError,
    StackConfig,
    deep_merge,
    dot_to_nested,
    get_config_value,
    load_stack,
    set_config_value,
)

# ── deep_merge ──────────────────────────────────────────────────────


def test_deep_merge_scalars_override_wins():
    assert deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}


def test_deep_merge_nested_dicts():
    base = {"remote": {"server": "a", "ssh_port": 22}}
    override = {"remote": {"ssh_port": 2222}}
    assert deep_merge(base, override) == {"remote": {"server": "a", "ssh_port": 2222}}


def test_deep_merge_does_not_mutate_base():
    base = {"a": {"b": 1}}
    deep_merge(base, {"a": {"b": 2}})
    assert base == {"a": {"b": 1}}


def test_dot_to_nested():
    assert dot_to_nested("remote.server", "x@y") == {"remote": {"server": "x@y"}}
    assert dot_to_nested("domain", "d") == {"domain": "d"}


# ── load_stack ──────────────────────────────────────────────────────


def test_load_stack_returns_config(tmp_stack_dir):
    config = load_stack(tmp_stack_dir)
    assert isinstance(config, StackConfig)
    assert config.domain == "n8n.example.com"
    assert config.acme_email == "ops@example.com"
    assert config.images.n8n == "n8nio/n8n:1.100.0"
    # Unset images keep their defaults
    assert config.images.postgres == "postgres:16"
    assert config.remote.server == "deploy@10.0.0.5"
    assert config.remote.ssh_port == 22
    assert config.readiness == "healthy"
    assert config.executions_mode == "regular"
    assert config.stack is None


def test_load_stack_named_stack_deep_merge(tmp_stack_dir):
    config = load_stack(tmp_stack_dir, stack="staging")
    assert config.domain == "staging.example.com"
    assert config.remote.ssh_port == 2222
    # Inherited from the base
    assert config.remote.server == "deploy@10.0.0.5"
    assert config.images.n8n == "n8nio/n8n:1.100.0"
    assert config.stack == "staging"


def test_load_stack_unknown_stack(tmp_stack_dir):
    with pytest.raises(ValueError, match="Unknown stack 'prod'. Available stacks: lazy, staging"):
        load_stack(tmp_stack_dir, stack="prod")


def test_load_stack_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_stack(str(tmp_path))


def test_load_stack_rejects_bad_readiness(tmp_path):
    with open(tmp_path / "stack.yaml", "w") as f:
        yaml.dump({"domain": "a.example.com", "readiness": "eventually"}, f)
    with pytest.raises(ConfigError, match="readiness"):
        load_stack(str(tmp_path))


def test_load_stack_rejects_bad_executions_mode(tmp_path):
    with open(tmp_path / "stack.yaml", "w") as f:
        yaml.dump({"domain": "a.example.com", "executions_mode": "workers"}, f)
    with pytest.raises(ConfigError, match="executions_mode must be one of regular, queue"):
        load_stack(str(tmp_path))


def test_load_stack_rejects_unknown_image_key(tmp_path):
    with open(tmp_path / "stack.yaml", "w") as f:
        yaml.dump({"images": {"mysql": "mysql:8"}}, f)
    with pytest.raises(ConfigError, match="mysql"):
        load_stack(str(tmp_path))


def test_stack_config_is_immutable(tmp_stack_dir):
    config = load_stack(tmp_stack_dir)
    with pytest.raises(AttributeError):
        config.domain = "other.example.com"


def test_example_stack_loads(stacks_dir):
    config = load_stack(f"{stacks_dir}/n8n", stack="pinned")
    assert config.readiness == "created"
    assert config.images.runners == "n8nio/runners:1.110.1"


# ── set_config_value / get_config_value ─────────────────────────────


def test_set_config_value_creates_file(tmp_path):
    set_config_value(str(tmp_path), "domain", "n8n.example.org")
    set_config_value(str(tmp_path), "remote.ssh_port", "2200")

    with open(tmp_path / "stack.yaml") as f:
        raw = yaml.safe_load(f)
    assert raw == {"domain": "n8n.example.org", "remote": {"ssh_port": 2200}}


def test_set_config_value_named_stack(tmp_stack_dir):
    set_config_value(tmp_stack_dir, "images.n8n", "n8nio/n8n:2.0.0", stack="staging")

    assert load_stack(tmp_stack_dir, stack="staging").images.n8n == "n8nio/n8n:2.0.0"
    assert load_stack(tmp_stack_dir).images.n8n == "n8nio/n8n:1.100.0"


def test_set_config_value_unknown_key(tmp_path):
    with pytest.raises(ConfigError, match="Unknown config key"):
        set_config_value(str(tmp_path), "remote.password", "x")


def test_set_config_value_bad_int(tmp_path):
    with pytest.raises(ConfigError, match="remote.ssh_port"):
        set_config_value(str(tmp_path), "remote.ssh_port", "twenty-two")


def test_get_config_value(tmp_stack_dir):
    assert get_config_value(tmp_stack_dir, "remote.server") == "deploy@10.0.0.5"
    assert get_config_value(tmp_stack_dir, "domain", stack="staging") == "staging.example.com"
    assert get_config_value(tmp_stack_dir, "database.name") is None
