"""SSH deploy target: provisions the host, then applies via SSH + SCP."""

import asyncio
import logging
import socket
import sys

from n8ndock.commands import (
    add_secret_args,
    add_ssh_args,
    add_stack_args,
    load_stack_or_exit,
    load_topology_or_exit,
    resolve_ssh_target,
)
from n8ndock.deploy.params import DeployParams
from n8ndock.deploy.orchestrate import apply, teardown
from n8ndock.provisioning.remote import provision_remote
from n8ndock.provisioning.ssh import wait_for_ssh

logger = logging.getLogger(__name__)


async def _resolve(name):
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(name, None, type=socket.SOCK_STREAM)
    except socket.gaierror:
        return set()
    return {info[4][0] for info in infos}


async def warn_if_dns_mismatch(domain, host):
    """Log a warning when the domain does not resolve to the deploy host.

    Certificate issuance needs this, but it is not enforced: DNS may still be
    propagating, or the host may sit behind NAT.
    """
    domain_ips = await _resolve(domain)
    if not domain_ips:
        logger.warning(f"WARNING: {domain} does not resolve yet; certificate issuance will fail until it does.")
        return False
    host_ips = await _resolve(host)
    if host_ips and not domain_ips & host_ips:
        logger.warning(
            f"WARNING: {domain} resolves to {', '.join(sorted(domain_ips))}, "
            f"but {host} is {', '.join(sorted(host_ips))}."
        )
        return False
    return True


def handle_ssh(args):
    """Handle the SSH deploy target."""
    asyncio.run(_handle_ssh(args))


async def _handle_ssh(args):
    config = load_stack_or_exit(args)
    server, ssh_key, ssh_port = resolve_ssh_target(args, config)
    if not server:
        logger.error("Error: no server given. Pass --server or run 'n8ndock config set remote.server user@host'.")
        sys.exit(1)

    dry_run = args.dry_run
    params = DeployParams(
        server=server,
        ssh_key=ssh_key,
        ssh_port=ssh_port,
        config=config,
        dry_run=dry_run,
        delete_volumes=args.delete_volumes,
        check_endpoint=args.check_endpoint,
    )

    if not dry_run and not await wait_for_ssh(server, ssh_key, ssh_port):
        sys.exit(1)

    if not await provision_remote(server, ssh_key, ssh_port, dry_run=dry_run):
        logger.error(f"Failed to prepare {server}")
        sys.exit(1)

    if args.teardown:
        if not await teardown(params):
            sys.exit(1)
        return

    params.secrets, _ = load_topology_or_exit(args, config)

    if not dry_run:
        await warn_if_dns_mismatch(config.domain, params.host)

    if not await apply(params):
        sys.exit(1)


def register_ssh_target(subparsers):
    """Register the SSH deploy target."""
    parser = subparsers.add_parser("ssh", help="Deploy via SSH to a remote server")
    add_stack_args(parser)
    add_secret_args(parser)
    add_ssh_args(parser)
    parser.add_argument("--teardown", action="store_true", help="Stop containers instead of deploying")
    parser.add_argument("--delete-volumes", action="store_true", help="With --teardown: also delete the data volumes")
    parser.add_argument("--check-endpoint", action="store_true", help="Probe https://<domain>/healthz after start-up")
    parser.add_argument("--dry-run", action="store_true", help="Print commands without executing")
    parser.set_defaults(func=handle_ssh)
