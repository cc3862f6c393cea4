"""Backup and restore commands for the n8n and Postgres volumes."""

import asyncio
import logging
import os
import sys
from datetime import datetime

from n8ndock.commands import (
    add_secret_args,
    add_ssh_args,
    add_stack_args,
    load_stack_or_exit,
    load_topology_or_exit,
    make_transport,
)
from n8ndock.deploy.backup import BackupError, run_backup, run_restore
from n8ndock.deploy.orchestrate import run_apply

logger = logging.getLogger(__name__)


def default_archive_name(stack=None):
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    prefix = f"n8n-{stack}" if stack else "n8n"
    return f"{prefix}-backup-{stamp}.tar.gz"


def handle_backup(args):
    """Handle the backup command."""
    asyncio.run(_handle_backup(args))


async def _handle_backup(args):
    config = load_stack_or_exit(args)
    transport = make_transport(args, config)

    archive_name = default_archive_name(config.stack)
    dest = os.path.abspath(args.output or archive_name)
    logger.info(f"Backing up {transport.host} -> {dest}")

    try:
        ok = await run_backup(transport.run_cmd, transport.fetch_file, archive_name, dest, online=args.online, dry_run=args.dry_run)
    except BackupError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    if not ok:
        sys.exit(1)


def handle_restore(args):
    """Handle the restore command."""
    asyncio.run(_handle_restore(args))


async def _handle_restore(args):
    config = load_stack_or_exit(args)
    _, topology = load_topology_or_exit(args, config)
    transport = make_transport(args, config)
    logger.info(f"Restoring {args.archive} on {transport.host}")

    try:
        ok = await run_restore(transport.run_cmd, transport.copy_file, args.archive, replace=args.replace, dry_run=args.dry_run)
    except BackupError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    if not ok:
        sys.exit(1)

    # Bring the stack back up on the restored volumes
    if not await run_apply(transport.run_cmd, transport.write_file, topology, config, transport.host, dry_run=args.dry_run):
        sys.exit(1)


def _add_target_args(parser):
    add_stack_args(parser)
    add_ssh_args(parser)
    parser.add_argument("--local", action="store_true", help="Use the local Docker host even if remote.server is set")
    parser.add_argument("--dry-run", action="store_true", help="Print commands without executing")


def register_backup_command(subparsers):
    """Register the backup subcommand."""
    parser = subparsers.add_parser("backup", help="Archive the n8n and Postgres volumes")
    _add_target_args(parser)
    parser.add_argument("--output", "-o", default=None, help="Local archive path (default: n8n-backup-<timestamp>.tar.gz)")
    parser.add_argument("--online", action="store_true", help="Do not stop the stack while archiving")
    parser.set_defaults(func=handle_backup)


def register_restore_command(subparsers):
    """Register the restore subcommand."""
    parser = subparsers.add_parser("restore", help="Restore volumes from a backup archive and restart the stack")
    parser.add_argument("archive", help="Archive created by 'n8ndock backup'")
    _add_target_args(parser)
    add_secret_args(parser)
    parser.add_argument("--replace", action="store_true", help="Delete existing data volumes before restoring")
    parser.set_defaults(func=handle_restore)
