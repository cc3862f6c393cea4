"""Dependency graph over topology resources: ordering, layering, cycle detection."""

import networkx as nx

from n8ndock.topology.types import Topology, TopologyError


class CycleError(TopologyError):
    """The dependency graph contains at least one cycle."""

    def __init__(self, members):
        self.members = list(members)
        super().__init__(f"Dependency cycle detected among: {', '.join(self.members)}")


def volume_node(name):
    return f"volume:{name}"


def network_node(name):
    return f"network:{name}"


def container_node(name):
    return f"container:{name}"


def dependency_graph(predecessors: dict[str, list[str]]) -> nx.DiGraph:
    """Build a DiGraph with an edge pred -> node for every listed predecessor.

    Node insertion order follows the mapping, which is what the layering
    uses to break ties.

    Raises:
        TopologyError: a predecessor is not a key of the mapping.
    """
    graph = nx.DiGraph()
    graph.add_nodes_from(predecessors)
    for node, preds in predecessors.items():
        for pred in preds:
            if pred not in graph:
                raise TopologyError(f"'{node}' depends on unknown resource '{pred}'")
            graph.add_edge(pred, node)
    return graph


def build_graph(topology: Topology) -> nx.DiGraph:
    """Dependency graph of every volume, network and container.

    Declaration order (volumes, networks, containers) is kept as node order.
    Containers point back at the volumes they mount, the networks they join
    and the containers they depend on.
    """
    predecessors: dict[str, list[str]] = {}
    for vol in topology.volumes:
        predecessors[volume_node(vol.name)] = []
    for net in topology.networks:
        predecessors[network_node(net.name)] = []
    for decl in topology.containers:
        preds = [volume_node(v) for v in decl.volume_names]
        preds += [network_node(n) for n in decl.networks]
        preds += [container_node(d) for d in decl.depends_on]
        predecessors[container_node(decl.name)] = preds
    return dependency_graph(predecessors)


def topological_layers(graph: nx.DiGraph) -> list[list[str]]:
    """Group nodes into generations; each layer depends only on earlier ones.

    Within a layer nodes keep their insertion order so plans are deterministic.

    Raises:
        CycleError: the graph is not a DAG.
    """
    position = {node: i for i, node in enumerate(graph.nodes)}
    try:
        generations = list(nx.topological_generations(graph))
    except nx.NetworkXUnfeasible:
        cycle = nx.find_cycle(graph)
        raise CycleError(sorted({u for u, _ in cycle})) from None
    return [sorted(layer, key=position.__getitem__) for layer in generations]


def topological_order(graph: nx.DiGraph) -> list[str]:
    """Flatten topological_layers() into a single deterministic order."""
    return [node for layer in topological_layers(graph) for node in layer]


def plan_order(topology: Topology) -> list[str]:
    """Ordered evaluation trace of the whole topology."""
    return topological_order(build_graph(topology))


def container_layers(topology: Topology) -> list[list[str]]:
    """Container names grouped into start-up layers (volumes/networks stripped)."""
    layers = []
    for layer in topological_layers(build_graph(topology)):
        names = [node.split(":", 1)[1] for node in layer if node.startswith("container:")]
        if names:
            layers.append(names)
    return layers
