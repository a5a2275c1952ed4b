"""Task graph construction and cycle detection."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Optional

from rich.markup import escape

from brec.logging import Logger, NullLogger
from brec.recipe import Payload, Recipe, call_payload

NameResolver = Callable[[Recipe], Optional[str]]


class GraphError(Exception):
    """Base class for structural errors in the task graph."""

    def __init__(self, message: str, name: str | None = None) -> None:
        super().__init__(message)
        self.name = name


class DuplicateNodeError(GraphError):
    """Raised when two nodes are registered under the same name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Node with name '{name}' already exists.", name)


class UnresolvedNameError(GraphError):
    """Raised when a reachable recipe has no exported name."""

    pass


class CycleError(GraphError):
    """Raised when a dependency cycle is detected."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Cycle detected involving recipe '{name}'", name)


@dataclass(frozen=True)
class TaskNode:
    """A named unit in the task graph."""

    name: str
    deps: frozenset[str]
    payload: Payload


class TaskGraph:
    """Name-addressed collection of task nodes and their dependency edges."""

    def __init__(self) -> None:
        self._nodes: dict[str, TaskNode] = {}

    def add_node(self, name: str, deps: Iterable[str], payload: Payload) -> TaskNode:
        """Register a node.

        Args:
            name: Unique node name
            deps: Names of the nodes this one depends on
            payload: Work to run once all deps have completed

        Returns:
            The new node

        Raises:
            DuplicateNodeError: If a node with this name already exists
        """
        if name in self._nodes:
            raise DuplicateNodeError(name)
        node = TaskNode(name=name, deps=frozenset(deps), payload=payload)
        self._nodes[name] = node
        return node

    def get(self, name: str) -> TaskNode | None:
        return self._nodes.get(name)

    def names(self) -> list[str]:
        return list(self._nodes.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._nodes

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)


def build_task_graph(
    root: Recipe, name_of: NameResolver, logger: Logger | None = None
) -> TaskGraph:
    """Flatten a recipe and its transitive dependencies into a task graph.

    Recipes are deduplicated by identity, so a recipe shared by several
    dependents becomes a single node.

    Args:
        root: Recipe to start from
        name_of: Returns the exported name of a recipe, or None if it has none
        logger: Receives a start notification whenever a node's payload runs

    Returns:
        Graph containing root and everything it depends on

    Raises:
        UnresolvedNameError: If root or any dependency has no exported name
        DuplicateNodeError: If two distinct recipes resolve to the same name
    """
    if logger is None:
        logger = NullLogger()

    graph = TaskGraph()
    visited: set[int] = set()

    def resolve(recipe: Recipe, referrer: str | None) -> str:
        name = name_of(recipe)
        if name:
            return name
        if referrer is None:
            raise UnresolvedNameError(
                f"Recipe {_describe(recipe)} is not an exported recipe in the brec file."
            )
        raise UnresolvedNameError(
            f"Dependency of '{referrer}' is not an exported recipe in the brec file. "
            "All recipes (including dependencies) must be exported.",
            referrer,
        )

    def visit(recipe: Recipe, referrer: str | None) -> None:
        if id(recipe) in visited:
            return
        visited.add(id(recipe))

        name = resolve(recipe, referrer)

        # Add deps first
        for dep in recipe.deps:
            visit(dep, name)

        dep_names = [resolve(dep, name) for dep in recipe.deps]
        graph.add_node(name, dep_names, _announce(name, recipe.run, logger))
        logger.trace(f"Added node '{name}' (deps: {', '.join(dep_names) or 'none'})")

    visit(root, None)
    logger.debug(f"Task graph has {len(graph)} node(s): {', '.join(graph.names())}")
    return graph


def _describe(recipe: Recipe) -> str:
    """Identify a recipe that has no name, for error messages."""
    if recipe.description:
        return f"'{recipe.description}'"
    run = recipe.run
    return f"with payload {getattr(run, '__qualname__', None) or repr(run)}"


def _announce(name: str, payload: Payload, logger: Logger) -> Payload:
    """Wrap a payload so it reports its start before running."""

    async def announce_then_run():
        logger.info(f"[cyan]▶ {escape(name)}[/cyan]")
        return await call_payload(payload)

    return announce_then_run


def detect_cycles(graph: TaskGraph) -> None:
    """Check that the graph has no dependency cycles.

    Uses a depth-first search that tracks the nodes on the current path.
    Dependency names missing from the graph are skipped; the scheduler
    reports those when it reaches them.

    Raises:
        CycleError: If a cycle exists, naming the node where it was re-entered
    """
    finished: set[str] = set()
    on_path: set[str] = set()

    def visit(name: str) -> None:
        if name in on_path:
            raise CycleError(name)
        if name in finished:
            return

        on_path.add(name)
        node = graph.get(name)
        if node is not None:
            for dep in sorted(node.deps):
                visit(dep)
        on_path.remove(name)
        finished.add(name)

    for name in graph:
        visit(name)
