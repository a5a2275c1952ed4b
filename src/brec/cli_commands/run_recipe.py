"""Run recipe command implementation."""

from __future__ import annotations

import typer
from rich.markup import escape
from rich.tree import Tree

from brec.cli_commands import status_symbol
from brec.cli_commands.list_recipes import list_recipes
from brec.graph import GraphError, TaskGraph, build_task_graph, detect_cycles
from brec.loader import Cookbook, UnknownUnitError
from brec.logging import Logger, LogLevel
from brec.scheduler import ExecutionError, run_graph


def run_recipe(logger: Logger, cookbook: Cookbook, recipe_name: str) -> None:
    """
    Run a recipe together with everything it depends on.

    The graph is built and checked for cycles before anything runs, so
    structural errors never leave side effects behind. Errors are logged at
    FATAL so they show at every log level.

    Args:
    logger: Logger interface for output
    cookbook: Recipes exported by the recipe file
    recipe_name: Name of the recipe to run

    Raises:
    typer.Exit: With status 1 on any structural error or recipe failure
    """
    try:
        target = cookbook.require(recipe_name)
    except UnknownUnitError as e:
        logger.fatal(f"[red]Error: {escape(str(e))}[/red]")
        logger.info("\nAvailable recipes:")
        list_recipes(logger, cookbook)
        raise typer.Exit(1)

    try:
        graph = build_task_graph(target, cookbook.name_of, logger)
        detect_cycles(graph)
    except GraphError as e:
        logger.fatal(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if logger.is_enabled(LogLevel.DEBUG):
        logger.debug(_build_rich_tree(graph, recipe_name))

    try:
        run_graph(graph, logger)
    except ExecutionError as e:
        # The error already names the recipe that failed
        logger.fatal(f"[red]{status_symbol(False)} {escape(str(e))}[/red]")
        raise typer.Exit(1)

    logger.info(
        f"[green]{status_symbol(True)} Recipe '{escape(recipe_name)}' completed successfully[/green]"
    )


def _build_rich_tree(graph: TaskGraph, name: str) -> Tree:
    """Dependency tree below name, for the DEBUG run plan. The graph must be acyclic."""
    tree = Tree(f"[cyan]{escape(name)}[/cyan]")
    node = graph.get(name)
    if node is not None:
        for dep in sorted(node.deps):
            tree.add(_build_rich_tree(graph, dep))
    return tree
