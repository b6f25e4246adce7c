"""Shared fixtures: a small jQuery plugin graph and an order checker."""

import pytest

from loadorganizer.graph import CapabilityGraph


@pytest.fixture
def script_graph():
    graph = CapabilityGraph()
    graph.register("jquery", ["jq"])
    graph.register("jquery-ui", ["jqui"], ["jq"])
    graph.register("bootstrap", ["bs"], ["jq"])
    graph.register("backbone", ["bb"], ["jq"])
    graph.register("fancytree", ["ft"], ["jqui"])
    graph.register("datatables", ["dt"], ["jq"])
    return graph


@pytest.fixture
def bundle_graph(script_graph):
    script_graph.register("bundle", ["jq", "jqui", "bs"])
    return script_graph


def _check_load_order(graph, order):
    assert len(order) == len(set(order)), f"duplicates in {order}"
    for n, source in enumerate(order):
        before = [graph[s] for s in order[:n]]
        for need in graph[source].requires:
            assert any(m.supports(need) for m in before), f"{source} loads before a provider of {need}"


@pytest.fixture
def check_load_order():
    """Assert every module follows providers of all its requirements, without duplicates."""
    return _check_load_order
