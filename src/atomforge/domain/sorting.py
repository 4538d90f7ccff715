"""
Topological ordering of atoms (Kahn's algorithm).

The sorter is a pure function: it never mutates its input and keeps no
state between calls. Ties between ready atoms are broken by input order so
that a fixed input always produces the same build order.
"""

from collections import deque
from collections.abc import Iterable, Sequence

from atomforge.domain.models import Atom, CycleDetected, Ordered, SortResult


def topological_sort(atoms: Sequence[Atom]) -> SortResult:
    """
    Order atoms so that every atom follows all of its dependencies.

    Dependencies on ids that are not part of ``atoms`` are forward
    references: they add no edge, never block an atom and never appear in
    the output.

    Args:
        atoms: Atoms to order; ids must be unique

    Returns:
        Ordered with the linearized atoms, or CycleDetected carrying one
        concrete cycle among the atoms that could not be ordered

    Raises:
        ValueError: If two atoms share an id
    """
    by_id: dict[str, Atom] = {}
    for atom in atoms:
        if atom.atom_id in by_id:
            raise ValueError(f"Duplicate atom id: {atom.atom_id}")
        by_id[atom.atom_id] = atom

    # A self-dependency is a cycle of length one
    for atom in atoms:
        if atom.atom_id in atom.dependencies:
            return CycleDetected(cycle=(atom.atom_id, atom.atom_id))

    edges = {atom.atom_id: _present_dependencies(atom, by_id) for atom in atoms}

    in_degree = {atom_id: len(deps) for atom_id, deps in edges.items()}
    dependents: dict[str, list[str]] = {atom_id: [] for atom_id in by_id}
    for atom in atoms:
        for dep_id in edges[atom.atom_id]:
            dependents[dep_id].append(atom.atom_id)

    queue = deque(atom.atom_id for atom in atoms if in_degree[atom.atom_id] == 0)
    ordered: list[Atom] = []

    while queue:
        current = queue.popleft()
        ordered.append(by_id[current])
        for dependent in dependents[current]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(ordered) == len(atoms):
        return Ordered(atoms=tuple(ordered))

    done = {atom.atom_id for atom in ordered}
    remaining = [atom.atom_id for atom in atoms if atom.atom_id not in done]
    return CycleDetected(cycle=find_cycle(remaining, edges))


def _present_dependencies(atom: Atom, by_id: dict[str, Atom]) -> tuple[str, ...]:
    """Distinct dependency ids that resolve inside the working set."""
    seen: dict[str, None] = {}
    for dep_id in atom.dependencies:
        if dep_id in by_id:
            seen.setdefault(dep_id, None)
    return tuple(seen)


def find_cycle(
    node_ids: Iterable[str], edges: dict[str, tuple[str, ...]]
) -> tuple[str, ...]:
    """
    Extract one cycle from a dependency graph with an iterative DFS.

    Only edges between ``node_ids`` are followed. A node counts as closing a
    cycle only while it is still on the current DFS path, so diamond-shaped
    sharing between branches is not mistaken for a cycle.

    Args:
        node_ids: Nodes to search, in the order DFS roots are tried
        edges: Node id -> dependency ids

    Returns:
        Closed id sequence (first == last), or () if the nodes are acyclic
    """
    nodes = list(node_ids)
    scope = set(nodes)
    visited: set[str] = set()

    for root in nodes:
        if root in visited:
            continue

        path = [root]
        on_path = {root}
        visited.add(root)
        stack = [iter(_scoped(edges, root, scope))]

        while stack:
            advanced = False
            for dep_id in stack[-1]:
                if dep_id in on_path:
                    start = path.index(dep_id)
                    return (*path[start:], dep_id)
                if dep_id not in visited:
                    visited.add(dep_id)
                    on_path.add(dep_id)
                    path.append(dep_id)
                    stack.append(iter(_scoped(edges, dep_id, scope)))
                    advanced = True
                    break

            if not advanced:
                stack.pop()
                on_path.discard(path.pop())

    return ()


def _scoped(
    edges: dict[str, tuple[str, ...]], node_id: str, scope: set[str]
) -> list[str]:
    return [dep_id for dep_id in edges.get(node_id, ()) if dep_id in scope]
