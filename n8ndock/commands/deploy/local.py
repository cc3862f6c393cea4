"""Local deploy target: runs docker compose directly on this machine."""

import asyncio
import logging
import os
import sys

from n8ndock.commands import add_secret_args, add_stack_args, load_stack_or_exit, load_topology_or_exit
from n8ndock.deploy.local import make_run_cmd, make_write_file
from n8ndock.deploy.orchestrate import run_apply, run_teardown

logger = logging.getLogger(__name__)


def handle_local(args):
    """Handle the local deploy target."""
    asyncio.run(_handle_local(args))


async def _handle_local(args):
    # Deploy directory is the stack directory itself
    deploy_dir = os.path.abspath(args.dir)
    dry_run = args.dry_run

    run_cmd = make_run_cmd(deploy_dir, dry_run=dry_run)
    write_file = make_write_file(deploy_dir, dry_run=dry_run)

    if args.teardown:
        if not await run_teardown(run_cmd, delete_volumes=args.delete_volumes):
            sys.exit(1)
        return

    config = load_stack_or_exit(args)
    _, topology = load_topology_or_exit(args, config)

    success = await run_apply(
        run_cmd=run_cmd,
        write_file=write_file,
        topology=topology,
        config=config,
        host="localhost",
        dry_run=dry_run,
        endpoint_check=args.check_endpoint,
    )

    if not success:
        sys.exit(1)


def register_local_target(subparsers):
    """Register the local deploy target."""
    parser = subparsers.add_parser("local", help="Deploy on this machine via docker compose")
    add_stack_args(parser)
    add_secret_args(parser)
    parser.add_argument("--teardown", action="store_true", help="Stop containers instead of deploying")
    parser.add_argument("--delete-volumes", action="store_true", help="With --teardown: also delete the data volumes")
    parser.add_argument("--check-endpoint", action="store_true", help="Probe https://<domain>/healthz after start-up")
    parser.add_argument("--dry-run", action="store_true", help="Print commands without executing")
    parser.set_defaults(func=handle_local)
