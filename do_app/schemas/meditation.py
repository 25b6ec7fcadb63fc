"""
Pydantic models for meditation tracking and the meditation library.
"""

from datetime import datetime
from typing import Optional, List, Dict, Tuple

from pydantic import BaseModel, Field, field_validator

from do_common.utils.dates import as_utc


MEDITATION_SOURCES = ("manual", "ai", "guided")


class MeditationSession(BaseModel):
    """A completed or abandoned meditation, stored locally and on the backend."""
    id: str
    userId: str = ""
    type: str = "mindfulness"
    plannedDuration: float = Field(..., description="seconds")
    actualDuration: float = Field(default=0, description="seconds")
    guided: bool = True
    notes: Optional[str] = None
    startTime: datetime
    endTime: Optional[datetime] = None
    completed: bool = False
    rating: Optional[int] = None
    source: str = Field(default="manual", description="manual | ai | guided")
    aiGenerated: bool = False
    scriptId: Optional[str] = None

    @field_validator("startTime", "endTime")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @property
    def actual_minutes(self) -> int:
        return int(self.actualDuration // 60)

    @property
    def focus(self) -> Optional[str]:
        """Focus recorded in notes ("Stress • 10 min")."""
        if self.notes and "•" in self.notes:
            return self.notes.split("•")[0].strip() or None
        return None


class MeditationTrends(BaseModel):
    averageMinutesPerDay: int
    totalSessions: int
    completionRate: float
    dailyMinutes: List[Tuple[str, int]] = Field(default_factory=list)
    typeDistribution: Dict[str, int] = Field(default_factory=dict)
    consistency: float


class MeditationInsights(BaseModel):
    totalMinutes: int
    totalSessions: int
    completedSessions: int
    favoriteType: Optional[str] = None
    bestTimeOfDay: str = "Morning"
    averageRating: float = 0
    longestStreak: int = 0
    currentStreak: int = 0


class WeeklyMeditationStats(BaseModel):
    totalSessions: int
    completedSessions: int
    totalMinutes: int
    averageMinutesPerDay: float
    consistency: float


class LibraryMeditation(BaseModel):
    """Pre-recorded meditation from the library Lambda."""
    meditationId: str
    title: str
    category: str = ""
    technique: str = ""
    duration: int = Field(default=0, description="minutes")
    description: Optional[str] = None
    script: str = ""
    tags: Optional[List[str]] = None
    difficulty: Optional[str] = None
    audioUrl: Optional[str] = None
    featured: Optional[bool] = None


class MeditationLibrary(BaseModel):
    meditations: List[LibraryMeditation] = Field(default_factory=list)
    featured: Optional[List[LibraryMeditation]] = None
    total: int = 0
