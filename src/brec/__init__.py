"""brec - a minimal task runner with concurrent dependency execution."""

__version__ = "0.1.0"

from brec.graph import (
    CycleError,
    DuplicateNodeError,
    GraphError,
    TaskGraph,
    TaskNode,
    UnresolvedNameError,
    build_task_graph,
    detect_cycles,
)
from brec.loader import (
    ConfigDiscoveryError,
    Cookbook,
    NoUnitsError,
    RecipeFileError,
    RecipeLoadError,
    UnknownUnitError,
    find_recipe_file,
    load_cookbook,
)
from brec.recipe import Recipe, is_recipe, is_recipes, recipe
from brec.scheduler import (
    ExecutionError,
    MissingDependencyError,
    NodeState,
    PayloadError,
    Scheduler,
    run_graph,
)
from brec.shell import ShellError, TaskOutputTypes, sh

__all__ = [
    "__version__",
    "CycleError",
    "DuplicateNodeError",
    "GraphError",
    "TaskGraph",
    "TaskNode",
    "UnresolvedNameError",
    "build_task_graph",
    "detect_cycles",
    "ConfigDiscoveryError",
    "Cookbook",
    "NoUnitsError",
    "RecipeFileError",
    "RecipeLoadError",
    "UnknownUnitError",
    "find_recipe_file",
    "load_cookbook",
    "Recipe",
    "is_recipe",
    "is_recipes",
    "recipe",
    "ExecutionError",
    "MissingDependencyError",
    "NodeState",
    "PayloadError",
    "Scheduler",
    "run_graph",
    "ShellError",
    "TaskOutputTypes",
    "sh",
]
