"""Command-line interface for brec."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from brec import __version__
from brec.cli_commands.list_recipes import list_recipes
from brec.cli_commands.run_recipe import run_recipe
from brec.config import ConfigError, Settings, load_settings
from brec.console_logger import ConsoleLogger
from brec.loader import RecipeFileError, load_cookbook
from brec.logging import Logger, LogLevel
from brec.shell import TaskOutputTypes, set_default_output

app = typer.Typer(
    help="brec - run recipes and their dependencies, concurrently",
    add_completion=False,
)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"brec version {__version__}")
        raise typer.Exit()


def _make_logger(settings: Settings, log_level: Optional[str]) -> Logger:
    """Build the console logger, with the CLI flag taking precedence over config."""
    level = settings.log_level
    if log_level is not None:
        try:
            level = LogLevel.from_name(log_level)
        except ValueError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(1)
    return ConsoleLogger(console, level)


def _resolve_task_output(settings: Settings, task_output: Optional[str]) -> TaskOutputTypes:
    if task_output is None:
        return settings.task_output
    try:
        return TaskOutputTypes(task_output.lower())
    except ValueError:
        valid = ", ".join(t.value for t in TaskOutputTypes)
        console.print(f"[red]Error: Invalid task output '{escape(task_output)}' (expected one of: {valid})[/red]")
        raise typer.Exit(1)


@app.command()
def main(
    recipe_name: Optional[str] = typer.Argument(
        None, help="Recipe to run. Lists available recipes when omitted."
    ),
    list_recipes_flag: bool = typer.Option(
        False, "--list", "-l", help="List available recipes and exit."
    ),
    tasks_file: Optional[str] = typer.Option(
        None, "--file", "-f", help="Recipe file to use instead of searching for brec.py."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-L", help="fatal, error, warn, info, debug or trace."
    ),
    task_output: Optional[str] = typer.Option(
        None, "--task-output", "-O", help="Shell output to show: all, out, err or none."
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Run RECIPE and everything it depends on."""
    try:
        settings = load_settings()
    except ConfigError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    logger = _make_logger(settings, log_level)
    set_default_output(_resolve_task_output(settings, task_output))
    logger.debug(f"Settings: {settings}")

    try:
        recipe_path, cookbook = load_cookbook(tasks_file)
    except RecipeFileError as e:
        logger.fatal(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    logger.debug(f"Loaded {len(cookbook)} recipe(s) from {recipe_path}")

    if recipe_name is None or list_recipes_flag:
        list_recipes(logger, cookbook)
        return

    run_recipe(logger, cookbook, recipe_name)


if __name__ == "__main__":
    app()
