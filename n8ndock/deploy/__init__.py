"""Deploy library: compose generation, apply/teardown orchestration, backups."""

from n8ndock.deploy.backup import (
    BackupError,
    run_backup,
    run_restore,
    validate_archive,
)
from n8ndock.deploy.compose import compose_dict, generate_compose
from n8ndock.deploy.endpoint import check_endpoint
from n8ndock.deploy.orchestrate import (
    apply,
    ensure_storage,
    run_apply,
    run_teardown,
    teardown,
)
from n8ndock.deploy.params import DeployParams

__all__ = [
    "BackupError",
    "DeployParams",
    "apply",
    "check_endpoint",
    "compose_dict",
    "ensure_storage",
    "generate_compose",
    "run_apply",
    "run_backup",
    "run_restore",
    "run_teardown",
    "teardown",
    "validate_archive",
]
