"""Discovery and loading of the user's brec.py recipe file."""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import Iterator

from brec.recipe import Recipe, is_recipe, is_recipes

RECIPE_FILES = ("brec.py",)

# Attribute holding a name -> Recipe mapping in the recipe file
RECIPES_EXPORT = "RECIPES"


class RecipeFileError(Exception):
    """Base class for problems finding or loading the recipe file."""

    pass


class ConfigDiscoveryError(RecipeFileError):
    """Raised when no recipe file can be found."""

    pass


class RecipeLoadError(RecipeFileError):
    """Raised when the recipe file cannot be imported."""

    pass


class NoUnitsError(RecipeFileError):
    """Raised when the recipe file exports no recipes."""

    pass


class UnknownUnitError(RecipeFileError):
    """Raised when a requested recipe name does not exist."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown recipe '{name}'")
        self.name = name


class Cookbook:
    """The named recipes exported by a recipe file.

    Keeps names in export order and supports reverse lookup of a recipe's
    name by object identity.
    """

    def __init__(self) -> None:
        self._recipes: dict[str, Recipe] = {}
        self._names: dict[int, str] = {}

    def add(self, name: str, recipe: Recipe) -> None:
        """Register a recipe under a name.

        A recipe exported under several names keeps the first one as its
        graph name; every name can still be requested.

        Raises:
            ValueError: If the name is already taken by a different recipe
        """
        existing = self._recipes.get(name)
        if existing is not None and existing is not recipe:
            raise ValueError(f"Recipe name '{name}' is exported twice")
        self._recipes[name] = recipe
        self._names.setdefault(id(recipe), name)

    def get(self, name: str) -> Recipe | None:
        return self._recipes.get(name)

    def require(self, name: str) -> Recipe:
        """Get a recipe by name.

        Raises:
            UnknownUnitError: If no recipe has this name
        """
        recipe = self._recipes.get(name)
        if recipe is None:
            raise UnknownUnitError(name)
        return recipe

    def name_of(self, recipe: Recipe) -> str | None:
        # Registered recipes stay referenced by _recipes, so their ids are stable
        return self._names.get(id(recipe))

    def names(self) -> list[str]:
        return list(self._recipes.keys())

    def items(self) -> Iterator[tuple[str, Recipe]]:
        return iter(self._recipes.items())

    def __contains__(self, name: object) -> bool:
        return name in self._recipes

    def __len__(self) -> int:
        return len(self._recipes)


def find_recipe_file(start_dir: Path | None = None) -> Path | None:
    """Find a recipe file in the start directory or its parents.

    Args:
        start_dir: Directory to start searching from (defaults to cwd)

    Returns:
        Path to the recipe file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = start_dir.resolve()

    while True:
        for filename in RECIPE_FILES:
            recipe_path = current / filename
            if recipe_path.is_file():
                return recipe_path

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_recipe_module(path: Path) -> ModuleType:
    """Import a recipe file as a module.

    The file's directory is on sys.path while it is imported, so helpers
    living next to brec.py can be imported from it.

    Raises:
        RecipeLoadError: If the file cannot be imported
    """
    module_name = f"_brec_recipes_{abs(hash(str(path.resolve())))}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise RecipeLoadError(f"Cannot load recipe file: {path}")

    module = importlib.util.module_from_spec(spec)
    project_dir = str(path.parent.resolve())
    sys.path.insert(0, project_dir)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise RecipeLoadError(f"Error loading {path}: {e}") from e
    finally:
        try:
            sys.path.remove(project_dir)
        except ValueError:
            pass

    return module


def collect_recipes(module: ModuleType) -> Cookbook:
    """Collect the recipes a module exports.

    A RECIPES mapping contributes its entries under their keys. Any other
    public attribute holding a Recipe contributes under the attribute name.
    """
    cookbook = Cookbook()

    for name, value in vars(module).items():
        if name.startswith("_"):
            continue
        if name == RECIPES_EXPORT and is_recipes(value):
            for recipe_name, recipe in value.items():
                cookbook.add(recipe_name, recipe)
        elif is_recipe(value):
            cookbook.add(name, value)

    return cookbook


def load_cookbook(
    tasks_file: str | Path | None = None, start_dir: Path | None = None
) -> tuple[Path, Cookbook]:
    """Locate, import and scan the recipe file.

    Args:
        tasks_file: Explicit recipe file; searched for when omitted
        start_dir: Where the search starts (defaults to cwd)

    Returns:
        The recipe file path and the recipes it exports

    Raises:
        ConfigDiscoveryError: If no recipe file is found
        RecipeLoadError: If the file fails to import or exports a name twice
        NoUnitsError: If the file exports no recipes
    """
    if tasks_file is not None:
        path = Path(tasks_file)
        if not path.is_file():
            raise ConfigDiscoveryError(f"Recipe file not found: {tasks_file}")
    else:
        path = find_recipe_file(start_dir)
        if path is None:
            where = start_dir if start_dir is not None else Path.cwd()
            raise ConfigDiscoveryError(f"No {' or '.join(RECIPE_FILES)} found in {where}")

    module = load_recipe_module(path)
    try:
        cookbook = collect_recipes(module)
    except ValueError as e:
        raise RecipeLoadError(f"Error in {path}: {e}") from e

    if len(cookbook) == 0:
        raise NoUnitsError(f"No recipes found in {path}")

    return path, cookbook
