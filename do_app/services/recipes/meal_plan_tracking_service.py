"""
Meal plan tracking.

Saves Genie meal plans: every meal goes into the food log and the plan
itself is kept on the device as a nutrition-style "meal_plan" record.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, List

from do_app.schemas.actions import MealPlanAction
from do_app.schemas.nutrition import normalize_meal_type
from do_app.schemas.recipes import MealPlanMeal, SavedMealPlan, SavedMealPlanMeal
from do_app.services.nutrition.food_tracking_service import FoodTrackingService
from do_common.storage import JSONStore
from do_common.utils import ClientException, as_utc

logger = logging.getLogger(__name__)


PLANS_KEY = "savedMealPlans"
FALLBACK_MEAL_TYPE = "Breakfast"


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class MealPlanTrackingService:
    """Meal plans saved from Genie, newest last."""

    def __init__(self, food_tracking: FoodTrackingService, store: JSONStore):
        self._food_tracking = food_tracking
        self._store = store

    async def save_meal_plan(
        self,
        plan_name: str,
        duration: int,
        start_date: datetime,
        meals: List[MealPlanMeal],
        plan_text: Optional[str] = None,
    ) -> SavedMealPlan:
        """
        Save a meal plan and log each of its meals.

        A plan of N days ends N - 1 days after it starts. Meals with an
        unknown meal type are logged as breakfast; a meal that fails to
        save is logged as an error and the rest continue.

        Args:
            plan_name: Display name
            duration: Length in days
            start_date: First day of the plan
            meals: Meals in the plan
            plan_text: Genie's free-text plan

        Returns:
            The stored plan record
        """
        start_date = as_utc(start_date)
        end_date = start_date + timedelta(days=max(duration - 1, 0))
        start = _iso(start_date)

        plan = SavedMealPlan(
            consumedAt=start,
            createdAt=_iso(datetime.now(timezone.utc)),
            planName=plan_name,
            startDate=start,
            endDate=_iso(end_date),
            meals=[
                SavedMealPlanMeal(
                    date=start,
                    mealType=meal.mealType,
                    recipeName=meal.name,
                    calories=meal.calories or 0,
                    protein=meal.protein or 0,
                    carbs=meal.carbs or 0,
                    fat=meal.fat or 0,
                )
                for meal in meals
            ],
            totalCalories=sum(meal.calories or 0 for meal in meals),
            totalProtein=sum(meal.protein or 0 for meal in meals),
            totalCarbs=sum(meal.carbs or 0 for meal in meals),
            totalFat=sum(meal.fat or 0 for meal in meals),
            planText=plan_text or "",
        )

        logger.info(f"Saving meal plan: {plan_name} with {len(meals)} meals")

        for meal in meals:
            try:
                await self._food_tracking.log_food(
                    name=meal.name,
                    meal_type=normalize_meal_type(meal.mealType) or FALLBACK_MEAL_TYPE,
                    calories=meal.calories or 0,
                    protein=meal.protein or 0,
                    carbs=meal.carbs or 0,
                    fat=meal.fat or 0,
                    notes=f"From meal plan: {plan_name}",
                    source="ai",
                    meal_plan_id=plan.nutritionId,
                )
            except ClientException as e:
                logger.error(f"Error saving meal {meal.name}: {e.message}")

        plans = self.load_meal_plans()
        plans.append(plan)
        self._store.set(PLANS_KEY, [saved.model_dump() for saved in plans])

        return plan

    async def save_from_action(
        self,
        action: MealPlanAction,
        plan_name: Optional[str] = None,
        start_date: Optional[datetime] = None,
    ) -> SavedMealPlan:
        """Save the plan carried by a meal_plan action, starting today by default."""
        return await self.save_meal_plan(
            plan_name=plan_name or f"{action.duration}-Day Meal Plan",
            duration=action.duration,
            start_date=start_date or datetime.now(timezone.utc),
            meals=action.meals or [],
            plan_text=action.planText,
        )

    def load_meal_plans(self) -> List[SavedMealPlan]:
        plans = []
        for raw in self._store.get(PLANS_KEY, []) or []:
            try:
                plans.append(SavedMealPlan.model_validate(raw))
            except ValueError:
                logger.warning("Skipping unreadable saved meal plan")
        return plans
