"""Docker Compose generation from a topology declaration."""

import yaml

from n8ndock.topology.types import ContainerDecl, HealthCheck, Topology


def _healthcheck(check: HealthCheck) -> dict:
    return {
        "test": list(check.test),
        "interval": check.interval,
        "timeout": check.timeout,
        "retries": check.retries,
        "start_period": check.start_period,
    }


def _depends_on(decl: ContainerDecl, topology: Topology, readiness: str) -> dict:
    """depends_on block; waits for health only where the dependency has a check."""
    depends = {}
    for dep in decl.depends_on:
        has_check = topology.container(dep).healthcheck is not None
        condition = "service_healthy" if readiness == "healthy" and has_check else "service_started"
        depends[dep] = {"condition": condition}
    return depends


def _service(decl: ContainerDecl, topology: Topology, readiness: str) -> dict:
    service = {
        "image": decl.image,
        "container_name": decl.name,
        "restart": decl.restart,
    }
    if decl.user:
        service["user"] = decl.user
    if decl.command:
        service["command"] = decl.command
    if decl.ports:
        service["ports"] = [str(p) for p in decl.ports]
    if decl.mounts:
        service["volumes"] = [str(m) for m in decl.mounts]
    if decl.environment:
        service["environment"] = {key: value for key, value in decl.environment}
    if decl.depends_on:
        service["depends_on"] = _depends_on(decl, topology, readiness)
    service["networks"] = list(decl.networks)
    if decl.healthcheck:
        service["healthcheck"] = _healthcheck(decl.healthcheck)
    return service


def compose_dict(topology: Topology, readiness: str = "healthy") -> dict:
    """Compose document as a dict.

    Volumes and networks are external: they are created (once) ahead of
    `docker compose up` and are never removed by `docker compose down`.
    """
    return {
        "services": {decl.name: _service(decl, topology, readiness) for decl in topology.containers},
        "volumes": {vol.name: {"external": True, "name": vol.name} for vol in topology.volumes},
        "networks": {net.name: {"external": True, "name": net.name} for net in topology.networks},
    }


def generate_compose(topology: Topology, readiness: str = "healthy") -> str:
    """Build docker-compose.yaml string from a validated topology."""
    return yaml.safe_dump(compose_dict(topology, readiness), sort_keys=False, default_flow_style=False)
