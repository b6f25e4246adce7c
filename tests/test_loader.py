"""Tests for descriptor loading from JSON files and MongoDB-style collections."""

import json

import pytest

from loadorganizer.exceptions import DescriptorError
from loadorganizer.graph import CapabilityGraph
from loadorganizer.loader import configure, iter_requests, load_descriptor, load_graph_from_collection

SCRIPTS = {
    "jquery": {"provides": ["jq"], "requires": []},
    "jquery-ui": {"provides": ["jqui"], "requires": ["jq"]},
    "bundle": {"provides": ["jq", "jqui"]},
}


class FakeCursor(list):
    def batch_size(self, n):
        return self


class FakeCollection:
    name = "modules"

    def __init__(self, docs):
        self.docs = docs
        self.queries = []

    def find(self, query, projection):
        self.queries.append((query, projection))
        return FakeCursor(self.docs)


def test_configure_registers_in_order():
    graph = configure(SCRIPTS)
    assert [m.source for m in graph] == ["jquery", "jquery-ui", "bundle"]
    assert graph["bundle"].requires == ()
    assert graph["jquery-ui"].requires == ("jq",)


def test_configure_into_existing_graph():
    graph = CapabilityGraph()
    graph.register("zepto", ["jq"])
    assert configure(SCRIPTS, graph) is graph
    assert len(graph) == 4


@pytest.mark.parametrize(
    "entry",
    [
        {"provides": "jq"},
        {"provides": ["jq", 3]},
        {"provides": ["jq"], "requires": {"jq": 1}},
        ["jq"],
    ],
)
def test_configure_rejects_malformed_entries(entry):
    with pytest.raises(DescriptorError):
        configure({"broken": entry})


def test_load_descriptor(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"scripts": SCRIPTS}))
    graph = load_descriptor(str(path))
    assert graph["bundle"].provides == ("jq", "jqui")


def test_load_descriptor_accepts_modules_key(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"modules": SCRIPTS}))
    assert len(load_descriptor(str(path))) == 3


@pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"other": {}}'])
def test_load_descriptor_errors(tmp_path, content):
    path = tmp_path / "config.json"
    path.write_text(content)
    with pytest.raises(DescriptorError):
        load_descriptor(str(path))


def test_load_graph_from_collection():
    coll = FakeCollection(
        [
            {"src": "jquery", "provides": ["jq"]},
            {"_id": "jquery-ui", "provides": ["jqui"], "requires": ["jq"]},
        ]
    )
    graph = load_graph_from_collection(coll)

    assert [m.source for m in graph] == ["jquery", "jquery-ui"]
    assert graph["jquery-ui"].requires == ("jq",)
    assert coll.queries == [({}, {"src": 1, "provides": 1, "requires": 1})]


def test_load_graph_from_collection_requires_a_source():
    with pytest.raises(DescriptorError):
        load_graph_from_collection(FakeCollection([{"provides": ["jq"]}]))


def test_iter_requests():
    lines = ['["jq", "bb"]', "", '{"head": ["jq"], "bottom": ["ft"]}', '{"head": ["bs"]}']
    assert list(iter_requests(lines)) == [
        {"head": [], "bottom": ["jq", "bb"]},
        {"head": ["jq"], "bottom": ["ft"]},
        {"head": ["bs"], "bottom": []},
    ]


def test_iter_requests_rejects_bad_lines():
    with pytest.raises(DescriptorError):
        list(iter_requests(["42"]))
    with pytest.raises(DescriptorError):
        list(iter_requests(["[1"]))
