"""Preview command: show the ordered plan and the files an apply would write."""

import logging

from n8ndock.commands import add_secret_args, add_stack_args, load_stack_or_exit, load_topology_or_exit
from n8ndock.deploy.compose import generate_compose
from n8ndock.topology.graph import build_graph, topological_layers
from n8ndock.topology.routing import generate_caddyfile, route_rules

logger = logging.getLogger(__name__)


def handle_preview(args):
    """Handle the preview command."""
    config = load_stack_or_exit(args)
    _, topology = load_topology_or_exit(args, config)
    graph = build_graph(topology)

    label = config.stack or "default"
    logger.info(f"Stack: {label} ({config.domain})")
    logger.info(f"Readiness: {config.readiness}")
    logger.info("")
    logger.info("Plan:")
    for i, layer in enumerate(topological_layers(graph), start=1):
        for node in layer:
            preds = list(graph.predecessors(node))
            after = f"  (after {', '.join(preds)})" if preds else ""
            logger.info(f"  {i}. {node}{after}")

    logger.info("")
    logger.info("Routes:")
    rules = route_rules(config)
    for rule in rules:
        logger.info(f"  {rule.domain} -> {rule.backend}")

    if args.show_files:
        logger.info("\n--- docker-compose.yaml ---")
        logger.info(generate_compose(topology, config.readiness))
        logger.info("--- Caddyfile ---")
        logger.info(generate_caddyfile(rules, email=config.acme_email))


def register_preview_command(subparsers):
    """Register the preview subcommand."""
    parser = subparsers.add_parser("preview", help="Show the deployment plan without applying it")
    add_stack_args(parser)
    add_secret_args(parser)
    parser.add_argument("--show-files", action="store_true", help="Also print the generated compose file and Caddyfile")
    parser.set_defaults(func=handle_preview)
