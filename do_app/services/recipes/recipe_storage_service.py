"""
Saved recipes ("cookbook").

Recipes are kept as one JSON list in the local store. Names are unique
case-insensitively.
"""

import logging
import re
from typing import List

from do_app.schemas.recipes import Recipe, RecipeStep
from do_common.storage import JSONStore

logger = logging.getLogger(__name__)


RECIPES_KEY = "savedRecipes"

_HEADER = re.compile(r"^\d+\.|^\*\*")
_NAME_MARKUP = re.compile(r"^\d+\.\s*|^\*\*|\*\*$")
_BULLET = re.compile(r"^[-•]\s*(.+)$")
_QUANTITY = re.compile(
    r"(\d+\s*(?:cups?|tbsp|tsp|oz|g|lb|kg|ml|l|pieces?|cloves?)\s+[^,\n]+)",
    re.IGNORECASE,
)


# =============================================================================
# Parsing
# =============================================================================

def _ingredients(text: str) -> List[str]:
    found = []
    for line in text.splitlines():
        bullet = _BULLET.match(line.strip())
        if bullet:
            found.append(bullet.group(1).strip())
    found.extend(match.strip() for match in _QUANTITY.findall(text))

    seen = set()
    unique = []
    for item in found:
        if item and len(item) < 100 and item.lower() not in seen:
            seen.add(item.lower())
            unique.append(item)
    return unique


def _steps(lines: List[str]) -> List[RecipeStep]:
    steps = []
    for line in lines:
        if _HEADER.match(line) or _BULLET.match(line) or len(line) <= 10:
            continue
        steps.append(RecipeStep(number=len(steps) + 1, instruction=line))
    return steps


def recipes_from_suggestions(suggestions: List[str], analysis: str = "") -> List[Recipe]:
    """
    Turn Genie meal suggestions into recipes.

    The first line of a suggestion is the name (list numbering and bold
    markers removed); bullet lines and "2 cups rice" style phrases are
    ingredients; remaining longer lines are steps. Suggestions with a
    name already seen are skipped.

    Args:
        suggestions: Suggestion texts
        analysis: Reply text, used as the description

    Returns:
        Parsed recipes in suggestion order
    """
    recipes = []
    seen = set()

    for suggestion in suggestions:
        lines = [line.strip() for line in suggestion.splitlines() if line.strip()]
        if not lines:
            continue

        name = _NAME_MARKUP.sub("", lines[0]).strip()
        name = _NAME_MARKUP.sub("", name).strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())

        recipes.append(Recipe(
            name=name,
            description=analysis or "A delicious recipe",
            ingredients=_ingredients(suggestion),
            steps=_steps(lines[1:]),
        ))

    return recipes


# =============================================================================
# Storage
# =============================================================================

class RecipeStorageService:
    """
    Local cookbook.

    Attributes:
        saved_recipes: Recipes in the order they were saved
    """

    def __init__(self, store: JSONStore):
        self._store = store
        self.saved_recipes: List[Recipe] = self._load()

    def save_recipe(self, recipe: Recipe) -> bool:
        """
        Save a recipe unless one with the same name exists.

        Returns:
            True if the recipe was added
        """
        name = recipe.name.lower()
        if any(saved.name.lower() == name for saved in self.saved_recipes):
            logger.info(f"Recipe '{recipe.name}' already saved")
            return False

        self.saved_recipes.append(recipe)
        self._persist()
        logger.info(f"Saved recipe: {recipe.name}")
        return True

    def delete_recipe(self, recipe_id: str) -> None:
        self.saved_recipes = [r for r in self.saved_recipes if r.id != recipe_id]
        self._persist()

    def find_by_name(self, name: str) -> List[Recipe]:
        return [r for r in self.saved_recipes if r.name == name]

    def search_recipes(self, query: str) -> List[Recipe]:
        """Case-insensitive match on name, description or any ingredient."""
        needle = query.lower()
        return [
            recipe for recipe in self.saved_recipes
            if needle in recipe.name.lower()
            or needle in recipe.description.lower()
            or any(needle in ingredient.lower() for ingredient in recipe.ingredients)
        ]

    def _load(self) -> List[Recipe]:
        recipes = []
        for raw in self._store.get(RECIPES_KEY, []) or []:
            try:
                recipes.append(Recipe.model_validate(raw))
            except ValueError:
                logger.warning("Skipping unreadable saved recipe")
        return recipes

    def _persist(self) -> None:
        self._store.set(RECIPES_KEY, [r.model_dump(mode="json") for r in self.saved_recipes])
