"""Config command: set and read stack settings and secrets."""

import logging
import sys

from n8ndock.commands import add_stack_args
from n8ndock.stack import (
    SECRET_NAMES,
    get_config_value,
    load_secrets,
    set_config_value,
    set_secret_value,
)

logger = logging.getLogger(__name__)


def handle_config_set(args):
    try:
        if args.secret:
            set_secret_value(args.dir, args.key, args.value, stack=args.stack)
            logger.info(f"Secret '{args.key}' stored.")
        else:
            set_config_value(args.dir, args.key, args.value, stack=args.stack)
            logger.info(f"{args.key} = {args.value}")
    except ValueError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


def handle_config_get(args):
    try:
        if args.key in SECRET_NAMES:
            secrets = load_secrets(args.dir, stack=args.stack)
            logger.info("[secret]" if secrets.get(args.key) else "(unset)")
            return
        value = get_config_value(args.dir, args.key, stack=args.stack)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    logger.info("(unset)" if value is None else str(value))


def register_config_command(subparsers):
    """Register the config subcommand (set/get)."""
    parser = subparsers.add_parser("config", help="Set or read stack configuration")
    config_subparsers = parser.add_subparsers(dest="action", required=True)

    set_parser = config_subparsers.add_parser("set", help="Set a config value (or a secret with --secret)")
    set_parser.add_argument("key", help="Dotted key, e.g. domain, remote.server, images.n8n, or a secret name")
    set_parser.add_argument("value", help="Value to store")
    set_parser.add_argument("--secret", action="store_true", help=f"Store in the secrets file ({', '.join(SECRET_NAMES)})")
    add_stack_args(set_parser)
    set_parser.set_defaults(func=handle_config_set)

    get_parser = config_subparsers.add_parser("get", help="Print a config value (secrets are masked)")
    get_parser.add_argument("key", help="Dotted key or secret name")
    add_stack_args(get_parser)
    get_parser.set_defaults(func=handle_config_get)
