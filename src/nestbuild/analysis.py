"""Post-resolution graph analysis (cycle detection)."""

from __future__ import annotations

from collections.abc import Iterator

from nestbuild.model import Diagnostic, DiagnosticKind, Module


def find_cycles(modules: dict[str, Module]) -> list[list[str]]:
    """Return strongly-connected components of size ≥ 2 using Tarjan's algorithm.

    Each returned list is a sorted group of module ids that are mutually
    reachable via ``module_dependencies``. Modules outside any cycle are
    omitted. Iteration order is sorted so results are stable across runs.
    The walk keeps an explicit stack, so long dependency chains do not hit
    the interpreter's recursion limit.
    """
    index: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    sccs: list[list[str]] = []
    work: list[tuple[str, Iterator[str]]] = []

    def _push(v: str) -> None:
        index[v] = lowlink[v] = len(index)
        stack.append(v)
        on_stack.add(v)
        successors = (w for w in sorted(modules[v].module_dependencies) if w in modules)
        work.append((v, successors))

    for root in sorted(modules):
        if root in index:
            continue
        _push(root)
        while work:
            v, successors = work[-1]
            for w in successors:
                if w not in index:
                    _push(w)
                    break
                if w in on_stack:
                    lowlink[v] = min(lowlink[v], index[w])
            else:
                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[v])
                if lowlink[v] == index[v]:
                    scc: list[str] = []
                    while True:
                        w = stack.pop()
                        on_stack.discard(w)
                        scc.append(w)
                        if w == v:
                            break
                    if len(scc) >= 2:
                        sccs.append(sorted(scc))

    return sorted(sccs)


def cycle_diagnostics(modules: dict[str, Module]) -> list[Diagnostic]:
    return [
        Diagnostic(
            cycle[0],
            DiagnosticKind.DEPENDENCY_CYCLE,
            "Module dependency cycle: " + " -> ".join(cycle + [cycle[0]]),
        )
        for cycle in find_cycles(modules)
    ]
