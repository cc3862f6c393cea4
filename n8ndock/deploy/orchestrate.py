"""Deploy orchestration: run_apply, run_teardown, apply, teardown."""

import logging

from n8ndock.deploy.compose import generate_compose
from n8ndock.deploy.endpoint import check_endpoint
from n8ndock.deploy.params import DeployParams
from n8ndock.provisioning.ssh_transport import make_run_cmd, make_write_file
from n8ndock.stack.types import StackConfig
from n8ndock.topology import services as svc
from n8ndock.topology.declare import build_topology
from n8ndock.topology.graph import container_layers
from n8ndock.topology.routing import generate_caddyfile, route_rules
from n8ndock.topology.types import Topology

logger = logging.getLogger(__name__)

UP_WAIT_TIMEOUT = 600


async def _ensure_resource(run_cmd, kind, name, dry_run=False):
    """Create a docker volume/network only if it does not exist yet."""
    rc, _, _ = await run_cmd(f"docker {kind} inspect {name}", stream=False, timeout=60)
    if rc == 0 and not dry_run:
        logger.info(f"  {kind} {name}: exists")
        return True
    logger.info(f"  {kind} {name}: creating")
    rc, _, _ = await run_cmd(f"docker {kind} create {name}", timeout=60, log_output=True)
    if rc != 0:
        logger.error(f"Failed to create {kind} {name}")
        return False
    return True


async def ensure_storage(run_cmd, topology: Topology, dry_run=False):
    """Create the network and named volumes that are missing. Idempotent."""
    for net in topology.network_names:
        if not await _ensure_resource(run_cmd, "network", net, dry_run):
            return False
    for vol in topology.volume_names:
        if not await _ensure_resource(run_cmd, "volume", vol, dry_run):
            return False
    return True


def up_command(services, readiness="healthy"):
    """docker compose up for one start-up layer."""
    wait = f" --wait --wait-timeout {UP_WAIT_TIMEOUT}" if readiness == "healthy" else ""
    return f"docker compose up -d{wait} {' '.join(services)}"


async def run_apply(run_cmd, write_file, topology: Topology, config: StackConfig, host, dry_run=False, endpoint_check=False):
    """Shared apply orchestration.

    Args:
        run_cmd: async callable(command, stream=True, timeout=600, log_output=False) -> (returncode, stdout, stderr)
        write_file: async callable(path, content) -> bool - writes file to target
        topology: validated Topology from build_topology()
        config: the StackConfig the topology was built from
        host: hostname/IP for endpoint display
        dry_run: if True, commands are logged instead of executed
        endpoint_check: if True, probe the public URL after start-up
    """
    rules = route_rules(config)

    # Generate and write compose file and Caddyfile
    files = {
        svc.COMPOSE_FILE: generate_compose(topology, config.readiness),
        svc.CADDYFILE: generate_caddyfile(rules, email=config.acme_email),
    }
    for name, content in files.items():
        if not await write_file(name, content):
            logger.error(f"Failed to write {name}")
            return False

    # Step 1: Pull images
    logger.info("Pulling images...")
    rc, _, _ = await run_cmd("docker compose pull", timeout=1800, log_output=True)
    if rc != 0:
        logger.error("Failed to pull images")
        return False

    # Step 2: Network and volumes (never recreated)
    logger.info("Ensuring network and volumes...")
    if not await ensure_storage(run_cmd, topology, dry_run):
        return False

    # Step 3: Start containers layer by layer; a failed layer stops the rollout
    layers = container_layers(topology)
    for i, layer in enumerate(layers, start=1):
        logger.info(f"Starting layer {i}/{len(layers)}: {', '.join(layer)}")
        rc, _, _ = await run_cmd(up_command(layer, config.readiness), timeout=UP_WAIT_TIMEOUT + 60, log_output=True)
        if rc != 0:
            logger.error(f"Failed to start {', '.join(layer)}; dependents were not started")
            logger.error("Container logs:")
            await run_cmd(f"docker compose logs --tail=100 {' '.join(layer)}", timeout=60, log_output=True)
            return False

    # Step 4: Print endpoint info
    status = "dry-run (not deployed)" if dry_run else "deployed"
    logger.info(f"\nEndpoint: {config.public_url}")
    logger.info(f"Host: {host}")
    logger.info(f"Routes: {', '.join(f'{r.domain} -> {r.backend}' for r in rules)}")
    logger.info(f"Containers: {len(topology.containers)}")
    logger.info(f"Status: {status}")

    # Step 5: Optional public probe (DNS and certificate issuance are external)
    if endpoint_check and not dry_run:
        logger.info("\nChecking public endpoint...")
        if not await check_endpoint(f"{config.public_url}healthz"):
            logger.error("Public endpoint is not reachable. Check that DNS points at the host and ports 80/443 are open.")
            return False

    return True


async def run_teardown(run_cmd, delete_volumes=False):
    """Tear down: docker compose down. Volumes stay unless delete_volumes is set."""
    volumes = list(svc.VOLUMES)
    logger.info("Tearing down...")
    rc, _, _ = await run_cmd("docker compose down", timeout=300, log_output=True)
    if rc != 0:
        logger.error("Teardown failed.")
        return False

    await run_cmd(f"docker network rm {svc.NETWORK}", timeout=60, log_output=True)

    if delete_volumes:
        logger.info(f"Deleting volumes: {', '.join(volumes)}")
        rc, _, _ = await run_cmd(f"docker volume rm {' '.join(volumes)}", timeout=120, log_output=True)
        if rc != 0:
            logger.error("Failed to delete volumes.")
            return False
    else:
        logger.info(f"Volumes kept: {', '.join(volumes)}")

    logger.info("Teardown complete.")
    return True


async def apply(params: DeployParams) -> bool:
    """Apply the stack to a server via SSH. Single entry point."""
    topology = build_topology(params.config, params.secrets)
    run_cmd = make_run_cmd(params.server, params.ssh_key, params.ssh_port, dry_run=params.dry_run)
    write_file = make_write_file(params.server, params.ssh_key, params.ssh_port, dry_run=params.dry_run)
    return await run_apply(
        run_cmd,
        write_file,
        topology,
        params.config,
        params.host,
        params.dry_run,
        endpoint_check=params.check_endpoint,
    )


async def teardown(params: DeployParams) -> bool:
    """Tear down containers on a server."""
    run_cmd = make_run_cmd(params.server, params.ssh_key, params.ssh_port, dry_run=params.dry_run)
    return await run_teardown(run_cmd, delete_volumes=params.delete_volumes)
