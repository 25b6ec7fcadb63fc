"""
Wellness action handlers: meditation, stories, motivation and
manifestation tools.
"""

from typing import Optional, Dict, Any

from do_app.schemas.actions import (
    AffirmationAction,
    BedtimeStoryAction,
    ManifestationAction,
    MeditationAction,
    MotivationAction,
    VisionBoardAction,
)
from ..base import ActionHandler, bool_value, float_value, int_value, str_value, string_list


MIN_MEDITATION_MINUTES = 3
MAX_MEDITATION_MINUTES = 30

_AMBIENT_ALIASES = {
    "ocean": "ocean",
    "rain": "rain",
    "forest": "forest",
    "zen": "zen",
    "white_noise": "white_noise",
    "whitenoise": "white_noise",
    "white noise": "white_noise",
}

_FOCUS_AMBIENT = {
    "stress": "ocean",
    "anxiety": "ocean",
    "sleep": "rain",
    "rest": "rain",
    "focus": "zen",
    "concentration": "zen",
    "motivation": "forest",
    "energy": "forest",
}


def ambient_for_focus(focus: str, is_motivation: bool = False) -> str:
    if is_motivation:
        return "forest"
    return _FOCUS_AMBIENT.get(focus.lower(), "ocean")


def ambient_alias(value: Optional[str]) -> Optional[str]:
    """Canonical ambient sound name, or None if not recognised."""
    if value is None:
        return None
    return _AMBIENT_ALIASES.get(value.lower())


class MeditationHandler(ActionHandler):
    """
    Guided meditation generated by Genie.

    Requires a duration of 3 to 30 minutes and a non-empty script. The
    ambient sound is the one Genie asked for when recognised, otherwise
    it is picked from the focus.
    """

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "meditation"

    async def handle(self, data: Dict[str, Any]) -> MeditationAction:
        duration = int_value(data.get("duration"))
        script = str_value(data.get("script"))

        missing = []
        if duration is None or not MIN_MEDITATION_MINUTES <= duration <= MAX_MEDITATION_MINUTES:
            missing.append("duration")
        if not script:
            missing.append("script")
        if missing:
            raise self.reject(data, missing)

        focus = str_value(data.get("focus")) or "stress"
        is_motivation = bool_value(data.get("isMotivation"), False)
        ambient = ambient_alias(str_value(data.get("ambientSoundType")))

        return MeditationAction(
            duration=duration,
            focus=focus,
            focusCategory=str_value(data.get("focusCategory")) or focus.capitalize(),
            isMotivation=is_motivation,
            script=script,
            playAudio=bool_value(data.get("playAudio"), True),
            audioUrl=str_value(data.get("audioUrl")),
            audioDuration=int_value(data.get("audioDuration")),
            ambientSoundType=ambient or ambient_for_focus(focus, is_motivation),
        )


class BedtimeStoryHandler(ActionHandler):
    """Bedtime story. Every field has a default."""

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "bedtime_story"

    async def handle(self, data: Dict[str, Any]) -> BedtimeStoryAction:
        play_audio = bool_value(data.get("playAudio"), True)
        ambient = ambient_alias(str_value(data.get("ambientSoundType"))) or "story"

        return BedtimeStoryAction(
            title=str_value(data.get("title")) or "Bedtime Story",
            story=str_value(data.get("story")) or "",
            storyType=str_value(data.get("storyType")) or "bedtime",
            audience=str_value(data.get("audience")) or "adult",
            tone=str_value(data.get("tone")) or "calming",
            duration=int_value(data.get("duration")) or 10,
            playAudio=play_audio,
            audioUrl=str_value(data.get("audioUrl")),
            audioDuration=float_value(data.get("audioDuration")),
            ambientSoundType=ambient if play_audio else None,
        )


class MotivationHandler(ActionHandler):
    """Motivational talk. Requires a script."""

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "motivation"

    async def handle(self, data: Dict[str, Any]) -> MotivationAction:
        script = str_value(data.get("script"))
        if not script:
            raise self.reject(data, ["script"])

        ambient = (str_value(data.get("ambientSoundType")) or "motivation").lower()

        return MotivationAction(
            title=str_value(data.get("title")) or "Motivational Session",
            script=script,
            duration=_minutes(data.get("duration"), default=10),
            playAudio=bool_value(data.get("playAudio"), True),
            audioUrl=str_value(data.get("audioUrl")),
            audioDuration=float_value(data.get("audioDuration")),
            ambientSoundType="forest" if ambient == "forest" else "motivation",
        )


def _minutes(value: Any, default: int) -> int:
    number = int_value(value)
    if number is not None:
        return number
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    return default


class VisionBoardHandler(ActionHandler):

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "vision_board"

    async def handle(self, data: Dict[str, Any]) -> VisionBoardAction:
        return VisionBoardAction(
            title=str_value(data.get("title")) or "My Vision Board",
            goals=string_list(data.get("goals")),
            affirmations=string_list(data.get("affirmations")),
            description=str_value(data.get("description")) or "",
            theme=str_value(data.get("theme")) or "general",
        )


class ManifestationHandler(ActionHandler):

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "manifestation"

    async def handle(self, data: Dict[str, Any]) -> ManifestationAction:
        return ManifestationAction(
            intention=str_value(data.get("intention")) or "",
            steps=string_list(data.get("steps")),
            visualization=str_value(data.get("visualization")) or "",
            timeframe=str_value(data.get("timeframe")) or "ongoing",
            affirmations=string_list(data.get("affirmations")),
        )


class AffirmationHandler(ActionHandler):

    @property
    def action_type(self) -> str:
        """Return action type identifier."""
        return "affirmation"

    async def handle(self, data: Dict[str, Any]) -> AffirmationAction:
        return AffirmationAction(
            affirmations=string_list(data.get("affirmations")),
            category=str_value(data.get("category")) or "general",
            frequency=str_value(data.get("frequency")) or "daily",
            description=str_value(data.get("description")) or "",
        )
