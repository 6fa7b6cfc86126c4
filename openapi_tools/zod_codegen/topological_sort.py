"""Dependency ordering for named schema declarations."""

from __future__ import annotations

from typing import Iterable, Mapping


def topological_sort(graph: Mapping[str, Iterable[str]]) -> list[str]:
    """Order nodes so each one follows the nodes it depends on.

    Every key and every dependency appears exactly once. Edges closing a
    cycle are ignored, so members of a cycle keep first-encountered order.

    Examples:
        >>> topological_sort({"User": ["Middle"], "Middle": ["User"]})
        ['Middle', 'User']
        >>> topological_sort({"a": ["b"], "b": ["c"]})
        ['c', 'b', 'a']
    """
    ordered: list[str] = []
    temporary: set[str] = set()
    permanent: set[str] = set()

    def visit(node: str) -> None:
        if node in permanent:
            return
        if node in temporary:
            return  # cycle, ignore
        temporary.add(node)
        for dependency in graph.get(node, ()):
            visit(dependency)
        temporary.discard(node)
        permanent.add(node)
        ordered.append(node)

    for node in graph:
        visit(node)
    return ordered
