"""Topology declaration: resources, dependency ordering, secrets, routing."""

from n8ndock.topology.declare import build_topology
from n8ndock.topology.graph import (
    CycleError,
    build_graph,
    container_layers,
    dependency_graph,
    plan_order,
    topological_layers,
    topological_order,
)
from n8ndock.topology.routing import RouteRule, generate_caddyfile, route_rules, validate_domain
from n8ndock.topology.secrets import (
    SECRET_BINDINGS,
    SecretMismatchError,
    check_secret_consistency,
    consumers,
    secret_env,
)
from n8ndock.topology.types import (
    ContainerDecl,
    HealthCheck,
    Mount,
    Network,
    PortBinding,
    Topology,
    TopologyError,
    Volume,
)
from n8ndock.topology.validate import validate_topology

__all__ = [
    "ContainerDecl",
    "CycleError",
    "HealthCheck",
    "Mount",
    "Network",
    "PortBinding",
    "RouteRule",
    "SECRET_BINDINGS",
    "SecretMismatchError",
    "Topology",
    "TopologyError",
    "Volume",
    "build_graph",
    "build_topology",
    "check_secret_consistency",
    "consumers",
    "container_layers",
    "dependency_graph",
    "generate_caddyfile",
    "plan_order",
    "route_rules",
    "secret_env",
    "topological_layers",
    "topological_order",
    "validate_domain",
    "validate_topology",
]
