"""Tests for LoadQueue, ResolutionRunner and resolve_one."""

import pytest

from loadorganizer.entrypoint import LoadQueue, Position, ResolutionRunner, resolve_one
from loadorganizer.exceptions import UnregisteredCapability, UnresolvableIds

REQUEST = ["jq", "jqui", "bs", "bb", "ft", "dt"]


def test_queue_rejects_unregistered_ids(script_graph):
    queue = LoadQueue(script_graph)
    queue.queue("jq")
    with pytest.raises(UnregisteredCapability) as exc:
        queue.queue("somefeature")
    assert exc.value.capability == "somefeature"
    # already queued ids are kept
    assert queue.queued == ("jq",)


def test_queue_is_duplicate_free_and_chainable(script_graph):
    queue = LoadQueue(script_graph)
    queue.queue("jq").queue("bs").queue("jq").queue("bb").queue("bs")
    assert queue.group(Position.BOTTOM) == ("jq", "bs", "bb")
    assert len(queue) == 3


def test_queue_head_takes_precedence(script_graph):
    queue = LoadQueue(script_graph)
    queue.queue("jq").queue("bb")
    queue.queue("jq", Position.HEAD)
    queue.queue("jq", Position.BOTTOM)

    assert queue.group(Position.HEAD) == ("jq",)
    assert queue.group(Position.BOTTOM) == ("bb",)
    assert queue.queued == ("jq", "bb")


def test_runner_resolves_with_timing(bundle_graph):
    result = ResolutionRunner(bundle_graph).resolve(REQUEST)
    assert result.modules == ("bundle", "backbone", "fancytree", "datatables")
    assert result.groups[Position.BOTTOM] == result.modules
    assert result.elapsed_ms >= 0


def test_runner_without_optimization(bundle_graph):
    result = ResolutionRunner(bundle_graph, optimize=False).resolve(REQUEST)
    assert result.modules == ("jquery", "jquery-ui", "bootstrap", "backbone", "fancytree", "datatables")


def test_runner_resolves_groups_head_first(script_graph, check_load_order):
    runner = ResolutionRunner(script_graph)
    queue = runner.new_queue().extend(["ft", "dt"]).queue("jq", Position.HEAD)
    result = runner.resolve_queue(queue)

    assert result.groups[Position.HEAD] == ("jquery",)
    assert result.groups[Position.BOTTOM] == ("jquery", "jquery-ui", "fancytree", "datatables")
    assert result.modules == ("jquery", "jquery-ui", "fancytree", "datatables")
    check_load_order(script_graph, result.modules)


def test_runner_skips_empty_groups(script_graph):
    runner = ResolutionRunner(script_graph)
    result = runner.resolve_queue(runner.new_queue().queue("bb"))
    assert Position.HEAD not in result.groups
    assert result.modules == ("jquery", "backbone")


def test_runner_freezes_graph(script_graph):
    runner = ResolutionRunner(script_graph)
    assert runner.graph is script_graph
    assert script_graph.frozen


def test_runner_propagates_failures(script_graph):
    with pytest.raises(UnresolvableIds):
        ResolutionRunner(script_graph).resolve(["jq", "nope"])


def test_resolve_one(bundle_graph):
    assert resolve_one(bundle_graph, REQUEST) == ("bundle", "backbone", "fancytree", "datatables")


def test_resolve_one_simple(script_graph):
    assert resolve_one(script_graph, ["ft"], optimize=False) == ("jquery", "jquery-ui", "fancytree")
