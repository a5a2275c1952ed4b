"""Concurrent execution of a task graph."""

from __future__ import annotations

import asyncio
import enum

from brec.graph import TaskGraph, TaskNode, detect_cycles
from brec.logging import Logger, NullLogger
from brec.recipe import call_payload


class ExecutionError(Exception):
    """Raised when running the task graph fails."""

    pass


class PayloadError(ExecutionError):
    """Raised when a node's payload fails."""

    def __init__(self, name: str, cause: BaseException | None = None) -> None:
        if cause is None:
            message = f"Recipe '{name}' failed: payload returned failure"
        else:
            message = f"Recipe '{name}' failed: {cause}"
        super().__init__(message)
        self.name = name
        self.cause = cause


class MissingDependencyError(ExecutionError):
    """Raised when a node depends on a name that is not in the graph."""

    def __init__(self, name: str, dependent: str) -> None:
        super().__init__(f"Dependency '{name}' of '{dependent}' not found.")
        self.name = name
        self.dependent = dependent


class NodeState(enum.Enum):
    """Lifecycle of a node during a run."""

    PENDING = "pending"
    WAITING = "waiting"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Scheduler:
    """Runs every node of a task graph exactly once.

    Each node gets a single asyncio task, created the first time anything asks
    for it. A node's task waits on the tasks of all its dependencies, then runs
    the node's payload, so nodes that share a dependency all wait on the same
    task. Independent branches make progress concurrently.
    """

    def __init__(self, graph: TaskGraph, logger: Logger | None = None) -> None:
        """Initialize scheduler.

        Args:
            graph: Graph to execute. It is only read, never modified.
            logger: Logger for progress and diagnostics
        """
        self.graph = graph
        self.logger = logger if logger is not None else NullLogger()
        self.states: dict[str, NodeState] = {name: NodeState.PENDING for name in graph}
        self._handles: dict[str, asyncio.Task] = {}

    async def run(self) -> None:
        """Execute the graph.

        Cycle detection runs first, so a cyclic graph fails before any payload
        starts. On failure, work that has already been scheduled is allowed to
        finish before the first failure is raised.

        Raises:
            CycleError: If the graph contains a cycle
            PayloadError: If a payload fails
            MissingDependencyError: If a node depends on an unknown name
        """
        detect_cycles(self.graph)

        self._handles = {}
        self.states = {name: NodeState.PENDING for name in self.graph}
        handles = [self._handle(name) for name in self.graph]
        if not handles:
            return

        try:
            await asyncio.gather(*handles)
        except ExecutionError as first:
            await self._settle(first)
            raise
        finally:
            self._handles = {}

    def _handle(self, name: str) -> asyncio.Task:
        """Get the task for a node, creating it on first request."""
        handle = self._handles.get(name)
        if handle is not None:
            return handle

        node = self.graph.get(name)
        if node is None:
            raise KeyError(name)

        # No await between creating and storing the handle
        handle = asyncio.ensure_future(self._execute(node))
        self._handles[name] = handle
        return handle

    async def _execute(self, node: TaskNode) -> None:
        self.states[node.name] = NodeState.WAITING
        try:
            await self._wait_for_deps(node)

            self.states[node.name] = NodeState.RUNNING
            self.logger.trace(f"Starting '{node.name}'")
            try:
                result = await call_payload(node.payload)
            except Exception as e:
                raise PayloadError(node.name, e) from e
            if result is False:
                raise PayloadError(node.name)
        except BaseException:
            self.states[node.name] = NodeState.FAILED
            raise

        self.states[node.name] = NodeState.COMPLETED
        self.logger.trace(f"Completed '{node.name}'")

    async def _wait_for_deps(self, node: TaskNode) -> None:
        deps = []
        for dep_name in sorted(node.deps):
            if dep_name not in self.graph:
                raise MissingDependencyError(dep_name, node.name)
            deps.append(self._handle(dep_name))
        if deps:
            await asyncio.gather(*deps)

    async def _settle(self, first: BaseException) -> None:
        """Wait for every scheduled handle to finish and log further failures."""
        seen = {id(first)}
        while True:
            pending = [h for h in self._handles.values() if not h.done()]
            if not pending:
                break
            await asyncio.wait(pending)

        for name, handle in self._handles.items():
            if handle.cancelled():
                continue
            error = handle.exception()
            if error is not None and id(error) not in seen:
                seen.add(id(error))
                self.logger.debug(f"Additional failure in '{name}': {error}")


def run_graph(graph: TaskGraph, logger: Logger | None = None) -> None:
    """Run a task graph to completion on a fresh event loop.

    Raises:
        CycleError: If the graph contains a cycle
        ExecutionError: If any node fails
    """
    asyncio.run(Scheduler(graph, logger).run())
