"""Structural invariants of a topology declaration."""

from collections import Counter

from n8ndock.topology.graph import build_graph, topological_layers
from n8ndock.topology.services import CADDY, N8N, POSTGRES, PUBLIC_PORTS, REDIS, RUNNER
from n8ndock.topology.types import Topology, TopologyError

# Ordering edges the stack cannot run without
REQUIRED_EDGES = {
    N8N: (POSTGRES, REDIS),
    RUNNER: (N8N,),
}


def _check_unique(kind, names):
    dupes = sorted(name for name, count in Counter(names).items() if count > 1)
    if dupes:
        raise TopologyError(f"Duplicate {kind} name(s): {', '.join(dupes)}")


def _check_public_ports(topology: Topology):
    public = topology.public_containers()
    if len(public) != 1:
        names = ", ".join(c.name for c in public) or "none"
        raise TopologyError(f"Exactly one container may bind public ports, found: {names}")

    edge = public[0]
    if edge.name != CADDY:
        raise TopologyError(f"Only the edge proxy ({CADDY}) may bind public ports, not '{edge.name}'")
    host_ports = sorted(p.host_port for p in edge.ports)
    if host_ports != sorted(PUBLIC_PORTS):
        raise TopologyError(f"Edge proxy must bind exactly ports {PUBLIC_PORTS}, got {tuple(host_ports)}")
    if edge.depends_on:
        raise TopologyError(f"Edge proxy must not wait on other containers, found: {', '.join(edge.depends_on)}")


def _check_references(topology: Topology):
    volumes = set(topology.volume_names)
    networks = set(topology.network_names)
    containers = set(topology.container_names)

    for decl in topology.containers:
        for vol in decl.volume_names:
            if vol not in volumes:
                raise TopologyError(f"{decl.name} mounts undeclared volume '{vol}'")
        for net in decl.networks:
            if net not in networks:
                raise TopologyError(f"{decl.name} joins undeclared network '{net}'")
        if not decl.networks:
            raise TopologyError(f"{decl.name} is not attached to any network")
        for dep in decl.depends_on:
            if dep not in containers:
                raise TopologyError(f"{decl.name} depends on unknown container '{dep}'")


def _check_required_edges(topology: Topology):
    for name, required in REQUIRED_EDGES.items():
        if name not in topology.container_names:
            raise TopologyError(f"Topology is missing the '{name}' container")
        decl = topology.container(name)
        missing = [dep for dep in required if dep not in decl.depends_on]
        if missing:
            raise TopologyError(f"{name} must depend on {', '.join(missing)}")


def validate_topology(topology: Topology) -> Topology:
    """Raise TopologyError (or CycleError) if any invariant is violated."""
    _check_unique("volume", topology.volume_names)
    _check_unique("network", topology.network_names)
    _check_unique("container", topology.container_names)
    _check_references(topology)
    _check_public_ports(topology)
    _check_required_edges(topology)
    topological_layers(build_graph(topology))
    return topology
