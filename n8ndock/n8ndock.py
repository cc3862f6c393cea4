#!/usr/bin/env python3
"""n8n stack deployment tool: CLI entrypoint."""

import argparse

from n8ndock.commands.backup import register_backup_command, register_restore_command
from n8ndock.commands.config import register_config_command
from n8ndock.commands.deploy.local import register_local_target
from n8ndock.commands.deploy.ssh import register_ssh_target
from n8ndock.commands.preview import register_preview_command
from n8ndock.logging_setup import setup_cli_logging


def main():
    parser = argparse.ArgumentParser(description="Deploy n8n with Caddy, Postgres, Redis and task runners")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # deploy subcommand with target sub-subcommands
    deploy_parser = subparsers.add_parser("deploy", help="Apply the stack to a Docker host")
    deploy_subparsers = deploy_parser.add_subparsers(dest="target", required=True)

    register_local_target(deploy_subparsers)
    register_ssh_target(deploy_subparsers)

    # config, preview, backup, restore subcommands
    register_config_command(subparsers)
    register_preview_command(subparsers)
    register_backup_command(subparsers)
    register_restore_command(subparsers)

    args = parser.parse_args()
    setup_cli_logging()
    args.func(args)


if __name__ == "__main__":
    main()
