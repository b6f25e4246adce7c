"""Tests for Module, Candidate and UsageRecord."""

from loadorganizer.structures import Candidate, Module, UsageRecord, unique


def test_unique_keeps_first_occurrence():
    assert unique(["b", "a", "b", "c", "a"]) == ("b", "a", "c")


def test_module_dedupes_provides_and_requires():
    module = Module("kit", ("a", "b", "a"), ("x", "x"))
    assert module.provides == ("a", "b")
    assert module.requires == ("x",)


def test_module_flags():
    assert not Module("jquery", ("jq",)).is_complex
    assert not Module("jquery", ("jq",)).is_compound
    assert Module("jquery-ui", ("jqui",), ("jq",)).is_complex
    assert Module("bundle", ("jq", "jqui")).is_compound


def test_module_identity_is_the_source():
    assert Module("jquery", ("jq",)) == Module("jquery", ("jq", "other"))
    assert Module("jquery", ("jq",)) != Module("zepto", ("jq",))
    assert len({Module("jquery", ("jq",)), Module("jquery", ())}) == 1
    assert str(Module("jquery", ("jq",))) == "jquery"


def test_module_context_helpers():
    module = Module("datatables", ("dt", "dt-css"), ("jq",))
    assert module.supports("dt")
    assert module.depends_on("jq")
    assert not module.depends_on("dt")
    assert module.adds_complexity(["dt"])
    assert not module.adds_complexity(["jq", "dt"])
    assert module.matches(["dt-css", "zz", "dt"]) == ("dt", "dt-css")


def test_accepts_uses_predecessors_then_candidate():
    jquery = Module("jquery", ("jq",))
    ui = Module("jquery-ui", ("jqui",), ("jq",))
    bundle = Module("bundle", ("jq", "jqui"))
    tree = Module("fancytree", ("ft",), ("jqui", "jq"))

    assert tree.accepts([jquery, ui])
    assert not tree.accepts([jquery])
    assert tree.accepts([jquery], bundle)
    assert not tree.accepts([], Module("other", ("jq",)))
    assert jquery.accepts([])


def test_candidate_weight():
    candidate = Candidate(Module("fancytree", ("ft",), ("jqui",)), 1, 1, ("jqui",))
    assert candidate.source == "fancytree"
    assert candidate.weight == 0


def test_usage_record_signature_ignores_source():
    a = UsageRecord("a", ("x", "y"), ("y",), ("y",))
    b = UsageRecord("b", ("x", "y"), ("y",), ("y",))
    assert a != b
    assert a.signature == b.signature
