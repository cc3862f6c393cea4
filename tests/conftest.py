"""Shared pytest fixtures for all test modules."""

import os
import subprocess
import sys

import pytest
import yaml

import n8ndock.redact as redact_module
from n8ndock.stack import Secrets, StackConfig

PROJECT_ROOT = os.path.normpath(os.path.join(os.path.dirname(__file__), ".."))
STACKS_DIR = os.path.join(PROJECT_ROOT, "stacks")

SECRET_ENV = {
    "N8NDOCK_DB_PASSWORD": "pw1-long-enough",
    "N8NDOCK_ENCRYPTION_KEY": "key1-long-enough",
    "N8NDOCK_RUNNERS_AUTH_TOKEN": "tok1-long-enough",
}


@pytest.fixture(scope="session")
def project_root():
    """Absolute path to the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def stacks_dir():
    """Absolute path to the stacks/ directory."""
    return STACKS_DIR


@pytest.fixture(scope="session")
def run_cli(project_root):
    """Return a callable that invokes the n8ndock CLI as a subprocess.

    Secret env vars are stripped unless passed explicitly via env=.
    """

    def _run(*args, env=None):
        full_env = {k: v for k, v in os.environ.items() if not k.startswith("N8NDOCK_")}
        full_env.update(env or {})
        result = subprocess.run(
            [sys.executable, "-m", "n8ndock.n8ndock", *args],
            capture_output=True,
            text=True,
            cwd=project_root,
            env=full_env,
        )
        return result.returncode, result.stdout, result.stderr

    return _run


@pytest.fixture(autouse=True)
def _clean_secret_state(monkeypatch):
    """Isolate tests from the caller's N8NDOCK_* env and the redaction cache."""
    for var in redact_module._SECRET_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    redact_module._registered.clear()
    redact_module._patterns = None
    yield
    redact_module._registered.clear()
    redact_module._patterns = None


# ── Unit-test fixtures ──────────────────────────────────────────────


@pytest.fixture
def stack_dict():
    """A raw stack.yaml mapping with two named stacks."""
    return {
        "domain": "n8n.example.com",
        "acme_email": "ops@example.com",
        "timezone": "UTC",
        "images": {"n8n": "n8nio/n8n:1.100.0"},
        "remote": {"server": "deploy@10.0.0.5"},
        "stacks": {
            "staging": {
                "domain": "staging.example.com",
                "remote": {"ssh_port": 2222},
            },
            "lazy": {"readiness": "created"},
        },
    }


@pytest.fixture
def tmp_stack_dir(tmp_path, stack_dict):
    """Create a temp directory with a sample stack.yaml."""
    with open(tmp_path / "stack.yaml", "w") as f:
        yaml.dump(stack_dict, f)
    return str(tmp_path)


@pytest.fixture
def sample_config():
    return StackConfig.from_dict({"domain": "n8n.example.com", "timezone": "UTC"})


@pytest.fixture
def sample_secrets():
    return Secrets(db_password="pw1", encryption_key="key1", runners_auth_token="tok1")


class CommandRecorder:
    """Fake run_cmd/write_file pair that records every call.

    responses maps a command prefix to the returncode it should get;
    anything unmatched succeeds.
    """

    def __init__(self, responses=None):
        self.commands = []
        self.files = {}
        self.copied = []
        self.fetched = []
        self.responses = responses or {}

    async def run_cmd(self, command, stream=True, timeout=600, log_output=False):
        self.commands.append(command)
        for prefix, rc in self.responses.items():
            if command.startswith(prefix):
                return rc, "", ""
        return 0, "", ""

    async def write_file(self, path, content):
        self.files[path] = content
        return True

    async def copy_file(self, local_path, name):
        self.copied.append((local_path, name))
        return True

    async def fetch_file(self, name, local_path):
        self.fetched.append((name, local_path))
        return True

    def index(self, prefix):
        """Position of the first command starting with prefix."""
        for i, command in enumerate(self.commands):
            if command.startswith(prefix):
                return i
        raise AssertionError(f"no command starting with {prefix!r} in {self.commands}")


@pytest.fixture
def recorder():
    return CommandRecorder()


@pytest.fixture
def make_recorder():
    return CommandRecorder
