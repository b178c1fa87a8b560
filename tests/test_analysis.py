"""Tests for cycle detection over module edges."""

from nestbuild.analysis import cycle_diagnostics, find_cycles
from nestbuild.model import DiagnosticKind, Module


def _modules(edges):
    modules = {}
    for src, targets in edges.items():
        modules[src] = Module(src, "b", "", module_dependencies=set(targets))
    return modules


def test_no_cycles():
    assert find_cycles(_modules({"a": ["b"], "b": ["c"], "c": []})) == []


def test_two_node_cycle():
    assert find_cycles(_modules({"a": ["b"], "b": ["a"], "c": ["a"]})) == [["a", "b"]]


def test_edges_to_unknown_modules_are_ignored():
    assert find_cycles(_modules({"a": ["zzz"]})) == []


def test_cycle_diagnostics():
    [d] = cycle_diagnostics(_modules({"x": ["y"], "y": ["z"], "z": ["x"]}))
    assert d.kind is DiagnosticKind.DEPENDENCY_CYCLE
    assert d.module_id == "x"
    assert d.message == "Module dependency cycle: x -> y -> z -> x"


def test_self_loop_is_not_a_cycle():
    assert find_cycles(_modules({"a": ["a"], "b": []})) == []


def test_two_separate_cycles_are_sorted():
    modules = _modules({"d": ["c"], "c": ["d"], "b": ["a"], "a": ["b"], "e": ["a", "c"]})
    assert find_cycles(modules) == [["a", "b"], ["c", "d"]]


def test_long_chain_does_not_exhaust_recursion():
    ids = [f"m{i:05d}" for i in range(5000)]
    edges = {mid: [nxt] for mid, nxt in zip(ids, ids[1:])}
    edges[ids[-1]] = [ids[0]]
    [cycle] = find_cycles(_modules(edges))
    assert cycle == ids
