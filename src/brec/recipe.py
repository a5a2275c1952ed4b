"""Recipe definitions: the units of work declared in a brec.py file."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

# A payload is called with no arguments. It may return an awaitable, which is
# awaited. Raising, or returning exactly False, marks the payload as failed.
Payload = Callable[[], Union[Awaitable[Any], Any]]


@dataclass(frozen=True, eq=False)
class Recipe:
    """An immutable, schedulable piece of work.

    Recipes compare and hash by identity: two recipes are the same unit only
    when they are the same object, even if every field matches.
    """

    description: str
    run: Payload
    deps: tuple[Recipe, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate the payload and normalise deps to a tuple."""
        if not callable(self.run):
            raise TypeError(f"Recipe payload must be callable, got {type(self.run).__name__}")

        deps = tuple(self.deps)
        for dep in deps:
            if not isinstance(dep, Recipe):
                raise TypeError(
                    f"Recipe dependencies must be recipes, got {type(dep).__name__}"
                )
        object.__setattr__(self, "deps", deps)


def recipe(
    description_or_run: str | Payload,
    run_or_deps: Payload | Iterable[Recipe] | None = None,
    deps: Iterable[Recipe] | None = None,
) -> Recipe:
    """Declare a recipe.

    Two call forms are accepted::

        recipe("Build the project", build_fn, [clean])
        recipe(build_fn, [clean])

    Args:
        description_or_run: Description text, or the payload when no
            description is given
        run_or_deps: The payload (first form) or the dependencies (second form)
        deps: Dependencies (first form only)

    Returns:
        A new Recipe

    Raises:
        TypeError: If the arguments do not match either call form
    """
    if callable(description_or_run):
        if deps is not None:
            raise TypeError("recipe(run, deps) takes no third argument")
        return Recipe(description="", run=description_or_run, deps=tuple(run_or_deps or ()))

    if not isinstance(description_or_run, str):
        raise TypeError(
            f"recipe() expects a description or a payload, got {type(description_or_run).__name__}"
        )
    if run_or_deps is None:
        raise TypeError(f"Recipe '{description_or_run}' has no payload")

    return Recipe(description=description_or_run, run=run_or_deps, deps=tuple(deps or ()))


async def call_payload(payload: Payload) -> Any:
    """Invoke a payload on the running loop and wait for it to finish.

    Plain callables are called directly on the loop thread; if they hand back
    an awaitable, that is awaited. A blocking plain payload holds up every
    other branch until it returns. Overlap comes from payloads that await,
    such as coroutine functions or ``sh()``.

    Returns:
        Whatever the payload produced
    """
    result = payload()
    if inspect.isawaitable(result):
        result = await result
    return result


def is_recipe(value: object) -> bool:
    return isinstance(value, Recipe)


def is_recipes(value: object) -> bool:
    """Check whether value is a non-empty mapping of names to recipes."""
    if not isinstance(value, Mapping) or not value:
        return False
    return all(isinstance(key, str) and is_recipe(v) for key, v in value.items())
