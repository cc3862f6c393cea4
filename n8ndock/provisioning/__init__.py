"""Deploy host access: SSH transport, reachability, and host provisioning."""

from n8ndock.provisioning.remote import provision_remote
from n8ndock.provisioning.ssh import wait_for_ssh
from n8ndock.provisioning.ssh_transport import (
    REMOTE_DEPLOY_DIR,
    make_copy_file,
    make_fetch_file,
    make_run_cmd,
    make_write_file,
    remote_command,
    ssh_base_args,
)

__all__ = [
    "REMOTE_DEPLOY_DIR",
    "make_copy_file",
    "make_fetch_file",
    "make_run_cmd",
    "make_write_file",
    "provision_remote",
    "remote_command",
    "ssh_base_args",
    "wait_for_ssh",
]
