"""
Grocery lists generated from recipes and meal plans.
"""

import logging
from typing import Optional, List, Dict, Tuple

from do_app.schemas.recipes import (
    GroceryIngredient,
    GroceryList,
    GroceryListItem,
    MealPlanMeal,
    Recipe,
)
from do_common.storage import JSONStore

logger = logging.getLogger(__name__)


LISTS_KEY = "savedGroceryLists"
MEAL_PLAN_LIST_NAME = "Meal Plan Grocery List"

_CATEGORY_KEYWORDS = (
    ("protein", ("chicken", "beef", "pork", "fish", "turkey", "egg")),
    ("carbohydrate", ("rice", "pasta", "bread", "potato")),
    ("vegetable", ("broccoli", "spinach", "lettuce", "carrot")),
    ("fruit", ("apple", "banana", "berry", "orange")),
    ("dairy", ("milk", "cheese", "yogurt")),
    ("fat", ("oil", "butter", "avocado")),
)


def infer_category(name: str) -> str:
    lowered = name.lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return "other"


def parse_ingredient(text: str) -> Tuple[str, float, str]:
    """
    Split "200 g chicken breast" into (name, amount, unit).

    Text that doesn't start with a number is one item of itself; "2 eggs"
    is two items of "eggs".

    Returns:
        (name, amount, unit)
    """
    cleaned = text.strip()
    parts = cleaned.split()

    try:
        amount = float(parts[0]) if parts else None
    except ValueError:
        amount = None

    if amount is None:
        return cleaned, 1.0, "item"
    if len(parts) == 1:
        return "", amount, "item"
    if len(parts) == 2:
        return parts[1], amount, "item"
    return " ".join(parts[2:]), amount, parts[1]


def _item(name: str, amount: float, unit: str, category: str) -> GroceryListItem:
    return GroceryListItem(
        ingredient=GroceryIngredient(name=name, amount=amount, unit=unit, category=category),
    )


class GroceryListService:
    """
    Builds and stores grocery lists.

    Attributes:
        saved_lists: Lists in the order they were saved
    """

    def __init__(self, store: JSONStore):
        self._store = store
        self.saved_lists: List[GroceryList] = self._load()

    # =========================================================================
    # Generation
    # =========================================================================

    def generate_from_recipes(self, recipes: List[Recipe], name: str = "Grocery List") -> GroceryList:
        """
        Aggregate the ingredients of several recipes into one list.

        Ingredients with the same name (ignoring case) are summed; the
        first unit seen is kept and the category is inferred from the name.

        Args:
            recipes: Recipes to shop for
            name: List name

        Returns:
            Unsaved GroceryList
        """
        totals: Dict[str, List] = {}

        for recipe in recipes:
            for text in recipe.ingredients:
                ingredient, amount, unit = parse_ingredient(text)
                key = ingredient.lower()
                if key in totals:
                    totals[key][0] += amount
                else:
                    totals[key] = [amount, unit]

        items = [
            _item(key.title(), amount, unit, infer_category(key))
            for key, (amount, unit) in totals.items()
        ]
        return GroceryList(name=name, items=items)

    def generate_from_meal_plan(
        self,
        meals: List[MealPlanMeal],
        recipes: Optional[List[Recipe]] = None,
    ) -> GroceryList:
        """
        Grocery list for a meal plan.

        Meals are matched to recipes by exact name. Without any match the
        list has one serving per meal instead.
        """
        by_name = {recipe.name: recipe for recipe in recipes or []}
        matched = [by_name[meal.name] for meal in meals if meal.name in by_name]

        if matched:
            return self.generate_from_recipes(matched, MEAL_PLAN_LIST_NAME)

        items = [_item(meal.name, 1.0, "serving", "other") for meal in meals]
        return GroceryList(name=MEAL_PLAN_LIST_NAME, items=items)

    # =========================================================================
    # Storage
    # =========================================================================

    def save_list(self, grocery_list: GroceryList) -> None:
        self.saved_lists.append(grocery_list)
        self._persist()

    def delete_list(self, list_id: str) -> None:
        self.saved_lists = [gl for gl in self.saved_lists if gl.id != list_id]
        self._persist()

    def toggle_item(self, list_id: str, item_id: str) -> Optional[bool]:
        """
        Check or uncheck an item on a saved list.

        Returns:
            The item's new checked state, or None if not found
        """
        for grocery_list in self.saved_lists:
            if grocery_list.id != list_id:
                continue
            for item in grocery_list.items:
                if item.id == item_id:
                    item.isChecked = not item.isChecked
                    self._persist()
                    return item.isChecked
        return None

    def _load(self) -> List[GroceryList]:
        lists = []
        for raw in self._store.get(LISTS_KEY, []) or []:
            try:
                lists.append(GroceryList.model_validate(raw))
            except ValueError:
                logger.warning("Skipping unreadable grocery list")
        return lists

    def _persist(self) -> None:
        self._store.set(LISTS_KEY, [gl.model_dump(mode="json") for gl in self.saved_lists])
