"""
Pydantic models for the parsed payloads of Genie actions.

Each model is what a handler produces after validating the untyped
`data` dict of a GenieAction.
"""

from typing import Optional, List, Dict, Any

from pydantic import BaseModel, Field

from do_app.schemas.recipes import MealPlanMeal, Recipe


AMBIENT_SOUNDS = ("ocean", "rain", "forest", "zen", "white_noise", "story", "motivation")

WORKOUT_CREATION_MOVEMENT = "movement"
WORKOUT_CREATION_SESSION = "session"
WORKOUT_CREATION_PLAN = "plan"


# =============================================================================
# Wellness
# =============================================================================

class MeditationAction(BaseModel):
    duration: int = Field(..., description="minutes, 3-30")
    focus: str = "stress"
    focusCategory: str = "Stress"
    isMotivation: bool = False
    script: str
    playAudio: bool = True
    audioUrl: Optional[str] = None
    audioDuration: Optional[int] = Field(default=None, description="seconds")
    ambientSoundType: str = "ocean"


class BedtimeStoryAction(BaseModel):
    title: str = "Bedtime Story"
    story: str = ""
    storyType: str = "bedtime"
    audience: str = "adult"
    tone: str = "calming"
    duration: int = 10
    playAudio: bool = True
    audioUrl: Optional[str] = None
    audioDuration: Optional[float] = None
    ambientSoundType: Optional[str] = None


class MotivationAction(BaseModel):
    title: str = "Motivational Session"
    script: str
    duration: int = 10
    playAudio: bool = True
    audioUrl: Optional[str] = None
    audioDuration: Optional[float] = None
    ambientSoundType: str = "motivation"


class VisionBoardAction(BaseModel):
    title: str = "My Vision Board"
    goals: List[str] = Field(default_factory=list)
    affirmations: List[str] = Field(default_factory=list)
    description: str = ""
    theme: str = "general"


class ManifestationAction(BaseModel):
    intention: str = ""
    steps: List[str] = Field(default_factory=list)
    visualization: str = ""
    timeframe: str = "ongoing"
    affirmations: List[str] = Field(default_factory=list)


class AffirmationAction(BaseModel):
    affirmations: List[str] = Field(default_factory=list)
    category: str = "general"
    frequency: str = "daily"
    description: str = ""


# =============================================================================
# Workouts
# =============================================================================

class EquipmentAction(BaseModel):
    name: str
    description: str
    category: str = "other"


class VideoResult(BaseModel):
    videoId: str
    title: str
    thumbnail: Optional[str] = None
    channel: str = "YouTube"
    url: str


class VideoResultsAction(BaseModel):
    query: str
    videos: List[VideoResult] = Field(default_factory=list)


class FormFeedbackAction(BaseModel):
    analysis: str = ""
    recommendations: List[str] = Field(default_factory=list)


class WorkoutCreationAction(BaseModel):
    """
    A movement, session or plan Genie proposes to create.

    Only the fields for the given type are set.
    """
    type: str = Field(..., description="movement | session | plan")
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    equipmentNeeded: bool = False
    tags: List[str] = Field(default_factory=list)

    movement1Name: Optional[str] = None
    movement2Name: Optional[str] = None
    isSingle: Optional[bool] = None
    isTimed: Optional[bool] = None
    firstSectionSets: Optional[List[Dict[str, Any]]] = None
    secondSectionSets: Optional[List[Dict[str, Any]]] = None
    weavedSets: Optional[List[Dict[str, Any]]] = None
    templateSets: Optional[List[Dict[str, Any]]] = None

    movements: Optional[List["WorkoutCreationAction"]] = None

    isDayOfTheWeekPlan: Optional[bool] = None
    sessions: Optional[Dict[str, str]] = None


# =============================================================================
# Food
# =============================================================================

class Macros(BaseModel):
    protein: float = 0
    carbs: float = 0
    fat: float = 0


class NutritionAction(BaseModel):
    calories: int
    macros: Macros
    foods: List[str] = Field(default_factory=list)
    analysis: str = ""


class MealPlanAction(BaseModel):
    duration: int = Field(..., description="days")
    meals: Optional[List[MealPlanMeal]] = None
    planText: str = ""


class MealSuggestionsAction(BaseModel):
    suggestions: List[str] = Field(default_factory=list)
    recipes: List[Recipe] = Field(default_factory=list)
    analysis: str = ""


class RestaurantSearchAction(BaseModel):
    requiresLocation: bool = False
    query: str = ""
    suggestions: List[str] = Field(default_factory=list)


class PreferencesUpdatedAction(BaseModel):
    message: str = ""
    likes: List[str] = Field(default_factory=list)
    dislikes: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    restrictions: List[str] = Field(default_factory=list)


class CookbookAction(BaseModel):
    pass
