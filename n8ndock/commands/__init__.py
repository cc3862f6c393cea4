"""Shared CLI helpers: stack/secret arguments and transport selection."""

import logging
import os
import sys
from dataclasses import dataclass
from typing import Callable

from n8ndock.deploy import local as local_transport
from n8ndock.provisioning import ssh_transport
from n8ndock.stack import load_secrets, load_stack
from n8ndock.topology import build_topology
from n8ndock.topology.types import TopologyError

logger = logging.getLogger(__name__)


def add_stack_args(parser):
    """--dir / --stack, common to every command that reads stack.yaml."""
    parser.add_argument("--dir", default=".", help="Stack directory containing stack.yaml (default: .)")
    parser.add_argument("--stack", default=None, help="Named stack to merge over the base config (e.g. prod)")


def add_secret_args(parser):
    parser.add_argument("--db-password", default=None, help="Database password (default: secrets file or $N8NDOCK_DB_PASSWORD)")
    parser.add_argument("--encryption-key", default=None, help="n8n encryption key (default: secrets file or $N8NDOCK_ENCRYPTION_KEY)")
    parser.add_argument(
        "--runners-auth-token",
        default=None,
        help="Task runner auth token (default: secrets file or $N8NDOCK_RUNNERS_AUTH_TOKEN)",
    )


def add_ssh_args(parser, required=False):
    parser.add_argument("--server", required=required, default=None, help="SSH address (user@host); default: remote.server")
    parser.add_argument("--ssh-key", default=None, help="SSH key path (default: remote.ssh_key)")
    parser.add_argument("--ssh-port", type=int, default=None, help="SSH port (default: remote.ssh_port)")


def load_stack_or_exit(args):
    """Load the StackConfig named by --dir/--stack, exiting 1 on error."""
    try:
        return load_stack(args.dir, stack=args.stack)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


def load_topology_or_exit(args, config):
    """Resolve secrets and build the validated topology, exiting 1 on error."""
    overrides = {
        "db_password": getattr(args, "db_password", None),
        "encryption_key": getattr(args, "encryption_key", None),
        "runners_auth_token": getattr(args, "runners_auth_token", None),
    }
    try:
        secrets = load_secrets(args.dir, stack=args.stack, overrides=overrides)
        return secrets, build_topology(config, secrets)
    except (TopologyError, ValueError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


def resolve_ssh_target(args, config):
    """(server, ssh_key, ssh_port) from flags, falling back to remote.* config."""
    server = args.server or config.remote.server
    ssh_key = args.ssh_key or config.remote.ssh_key
    ssh_port = args.ssh_port or config.remote.ssh_port
    return server, ssh_key, ssh_port


@dataclass
class Transport:
    """Callables bound to one deploy host."""

    run_cmd: Callable
    write_file: Callable
    copy_file: Callable
    fetch_file: Callable
    host: str


def make_transport(args, config) -> Transport:
    """SSH when a server is known (and --local is not set), local otherwise."""
    server, ssh_key, ssh_port = resolve_ssh_target(args, config)
    dry_run = args.dry_run
    if server and not getattr(args, "local", False):
        return Transport(
            run_cmd=ssh_transport.make_run_cmd(server, ssh_key, ssh_port, dry_run=dry_run),
            write_file=ssh_transport.make_write_file(server, ssh_key, ssh_port, dry_run=dry_run),
            copy_file=ssh_transport.make_copy_file(server, ssh_key, ssh_port, dry_run=dry_run),
            fetch_file=ssh_transport.make_fetch_file(server, ssh_key, ssh_port, dry_run=dry_run),
            host=server.split("@")[-1],
        )

    deploy_dir = os.path.abspath(args.dir)
    return Transport(
        run_cmd=local_transport.make_run_cmd(deploy_dir, dry_run=dry_run),
        write_file=local_transport.make_write_file(deploy_dir, dry_run=dry_run),
        copy_file=local_transport.make_copy_file(deploy_dir, dry_run=dry_run),
        fetch_file=local_transport.make_fetch_file(deploy_dir, dry_run=dry_run),
        host="localhost",
    )
