"""Tests for dependency graph ordering, layering, and cycle detection."""

import networkx as nx
import pytest

from n8ndock.topology import (
    ContainerDecl,
    CycleError,
    Mount,
    Network,
    Topology,
    TopologyError,
    Volume,
    build_graph,
    build_topology,
    container_layers,
    dependency_graph,
    plan_order,
    topological_layers,
    topological_order,
)


def test_dependency_graph_edges_point_at_dependents():
    graph = dependency_graph({"a": [], "b": ["a"]})
    assert isinstance(graph, nx.DiGraph)
    assert list(graph.edges) == [("a", "b")]


def test_layers_simple_chain():
    graph = dependency_graph({"a": [], "b": ["a"], "c": ["b"]})
    assert topological_layers(graph) == [["a"], ["b"], ["c"]]


def test_layers_ties_follow_insertion_order():
    graph = dependency_graph({"z": [], "y": [], "w": [], "x": ["z", "y"]})
    assert topological_layers(graph) == [["z", "y", "w"], ["x"]]
    assert topological_order(graph) == ["z", "y", "w", "x"]


def test_layers_forward_reference():
    graph = dependency_graph({"app": ["db"], "db": []})
    assert topological_layers(graph) == [["db"], ["app"]]


def test_unknown_predecessor():
    with pytest.raises(TopologyError, match="unknown resource 'ghost'"):
        dependency_graph({"a": ["ghost"]})


def test_layers_cycle_reports_members():
    graph = dependency_graph({"root": [], "a": ["root", "c"], "b": ["a"], "c": ["b"], "tail": ["c"]})
    with pytest.raises(CycleError) as exc_info:
        topological_layers(graph)
    assert exc_info.value.members == ["a", "b", "c"]
    assert "a, b, c" in str(exc_info.value)


def test_cycle_error_is_topology_error():
    with pytest.raises(TopologyError):
        topological_layers(dependency_graph({"a": ["a"]}))


def test_build_graph_edges():
    topology = Topology(
        volumes=(Volume("data"),),
        networks=(Network("net"),),
        containers=(
            ContainerDecl(name="db", image="db:1", mounts=(Mount("data", "/d"),), networks=("net",)),
            ContainerDecl(
                name="web",
                image="web:1",
                mounts=(Mount("./conf", "/conf", bind=True),),
                networks=("net",),
                depends_on=("db",),
            ),
        ),
    )
    graph = build_graph(topology)
    assert list(graph.nodes) == ["volume:data", "network:net", "container:db", "container:web"]
    assert list(graph.predecessors("container:db")) == ["volume:data", "network:net"]
    # Bind mounts are not graph nodes
    assert list(graph.predecessors("container:web")) == ["network:net", "container:db"]


# ── the n8n stack ───────────────────────────────────────────────────


def test_plan_order_storage_before_containers(sample_config, sample_secrets):
    order = plan_order(build_topology(sample_config, sample_secrets))
    assert order[:4] == ["volume:n8n_data", "volume:postgres_data", "volume:caddy_data", "network:n8n-net"]

    pos = {node: i for i, node in enumerate(order)}
    assert pos["container:postgres"] < pos["container:n8n"]
    assert pos["container:redis"] < pos["container:n8n"]
    assert pos["container:n8n"] < pos["container:n8n-runner"]
    assert pos["volume:n8n_data"] < pos["container:n8n"]


def test_plan_order_is_deterministic(sample_config, sample_secrets):
    first = plan_order(build_topology(sample_config, sample_secrets))
    second = plan_order(build_topology(sample_config, sample_secrets))
    assert first == second


def test_container_layers(sample_config, sample_secrets):
    layers = container_layers(build_topology(sample_config, sample_secrets))
    assert layers == [["caddy", "postgres", "redis"], ["n8n"], ["n8n-runner"]]
