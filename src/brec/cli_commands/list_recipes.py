from __future__ import annotations

from rich.markup import escape
from rich.table import Table

from brec.loader import Cookbook
from brec.logging import Logger


def list_recipes(logger: Logger, cookbook: Cookbook) -> None:
    """
    List all available recipes with descriptions, in export order.
    """
    names = cookbook.names()
    max_name_len = max((len(name) for name in names), default=0)

    # Borderless two-column table, indented under the heading
    table = Table(show_edge=False, show_header=False, box=None, padding=(0, 2))
    table.add_column("Recipe", style="bold cyan", no_wrap=True, width=max_name_len)
    table.add_column("Description", style="white", max_width=80)

    for name, recipe in cookbook.items():
        table.add_row(escape(name), escape(recipe.description))

    logger.info(table)
