"""Core Data Models - Pydantic models for type safety.

All models are value objects; the only behavior is validation of their
invariants. Engines produce new instances instead of mutating old ones.
"""

from datetime import datetime
from datetime import date as DateType
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ActivityLevel(str, Enum):
    """How active the user is, with the calorie multiplier for each level."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"

    @property
    def multiplier(self) -> float:
        return _ACTIVITY_MULTIPLIERS[self]


_ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHT: 1.375,
    ActivityLevel.MODERATE: 1.55,
    ActivityLevel.ACTIVE: 1.725,
    ActivityLevel.VERY_ACTIVE: 1.9,
}


class MeasurementUnit(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


class IntakeType(str, Enum):
    """Category of an intake entry. Units: ml, g and kcal respectively."""

    WATER = "water"
    PROTEIN = "protein"
    CALORIES = "calories"


class AchievementCategory(str, Enum):
    STREAK = "streak"
    TOTAL_WATER = "total_water"
    TOTAL_PROTEIN = "total_protein"
    TOTAL_CALORIES = "total_calories"
    CONSISTENCY = "consistency"


class User(BaseModel):
    """User record stored in Firestore."""

    user_id: str = Field(min_length=1)
    email: str = ""
    display_name: str = ""
    weight: float = Field(default=0.0, ge=0, description="Body weight in kg")
    activity_level: ActivityLevel = ActivityLevel.MODERATE
    water_goal: int = Field(default=2000, ge=0, description="Daily water target in ml")
    protein_goal: int = Field(default=100, ge=0, description="Daily protein target in grams")
    calorie_goal: int = Field(default=2000, ge=0, description="Daily calorie target in kcal")
    unit: MeasurementUnit = MeasurementUnit.METRIC
    reminder_enabled: bool = True
    reminder_interval: int = Field(default=120, gt=0, description="Minutes between reminders")
    start_time: str = Field(default="08:00", pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(default="22:00", pattern=r"^\d{2}:\d{2}$")
    api_key_hash: Optional[str] = Field(
        default=None, description="SHA256 hash of API key - never store plaintext"
    )
    created_at: datetime = Field(default_factory=datetime.utcnow)
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    streak_date: Optional[DateType] = Field(
        default=None, description="Day the current streak was last evaluated for"
    )
    streak_base: int = Field(
        default=0, ge=0, description="Streak carried into streak_date before it was evaluated"
    )
    total_water_consumed: int = Field(default=0, ge=0, description="Lifetime water in ml")
    total_protein_consumed: int = Field(default=0, ge=0, description="Lifetime protein in grams")
    total_calories_consumed: int = Field(default=0, ge=0, description="Lifetime kcal")

    @model_validator(mode="after")
    def _longest_covers_current(self) -> "User":
        if self.longest_streak < self.current_streak:
            raise ValueError("longest_streak must be >= current_streak")
        return self

    def goal_for(self, intake_type: IntakeType) -> int:
        return {
            IntakeType.WATER: self.water_goal,
            IntakeType.PROTEIN: self.protein_goal,
            IntakeType.CALORIES: self.calorie_goal,
        }[intake_type]

    def lifetime_total(self, intake_type: IntakeType) -> int:
        return {
            IntakeType.WATER: self.total_water_consumed,
            IntakeType.PROTEIN: self.total_protein_consumed,
            IntakeType.CALORIES: self.total_calories_consumed,
        }[intake_type]


class IntakeEntry(BaseModel):
    """A single recorded addition of water, protein or calories."""

    model_config = ConfigDict(frozen=True)

    amount: int = Field(ge=1, description="Amount in the category's unit")
    time: str = Field(pattern=r"^\d{2}:\d{2}$", description="Time of day (HH:MM)")
    timestamp: datetime
    type: IntakeType
    note: str = ""


# Field names per category, shared by DailyLog and the ledger.
ENTRY_FIELDS = {
    IntakeType.WATER: "water_entries",
    IntakeType.PROTEIN: "protein_entries",
    IntakeType.CALORIES: "calorie_entries",
}
TOTAL_FIELDS = {
    IntakeType.WATER: "total_water",
    IntakeType.PROTEIN: "total_protein",
    IntakeType.CALORIES: "total_calories",
}


class DailyLog(BaseModel):
    """A user's intake for one calendar day, with the goals in effect that day."""

    user_id: str
    log_date: DateType = Field(description="Date of this log (YYYY-MM-DD)")
    water_entries: list[IntakeEntry] = Field(default_factory=list)
    protein_entries: list[IntakeEntry] = Field(default_factory=list)
    calorie_entries: list[IntakeEntry] = Field(default_factory=list)
    total_water: int = Field(default=0, ge=0)
    total_protein: int = Field(default=0, ge=0)
    total_calories: int = Field(default=0, ge=0)
    water_goal: int = Field(default=0, ge=0)
    protein_goal: int = Field(default=0, ge=0)
    calorie_goal: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def _totals_match_entries(self) -> "DailyLog":
        for intake_type, entries_field in ENTRY_FIELDS.items():
            entries = getattr(self, entries_field)
            if any(e.type != intake_type for e in entries):
                raise ValueError(f"{entries_field} contains entries of another type")
            if sum(e.amount for e in entries) != getattr(self, TOTAL_FIELDS[intake_type]):
                raise ValueError(f"{TOTAL_FIELDS[intake_type]} does not match its entries")
        return self

    def entries_for(self, intake_type: IntakeType) -> list[IntakeEntry]:
        return getattr(self, ENTRY_FIELDS[intake_type])

    def total_for(self, intake_type: IntakeType) -> int:
        return getattr(self, TOTAL_FIELDS[intake_type])


class AchievementTemplate(BaseModel):
    """Static definition of an unlockable milestone."""

    model_config = ConfigDict(frozen=True)

    achievement_id: str = Field(min_length=1)
    title: str
    description: str
    icon: str = ""
    requirement: int = Field(ge=0)
    category: AchievementCategory


class AchievementRecord(BaseModel):
    """A template as seen by one user, locked or unlocked."""

    achievement_id: str = Field(min_length=1)
    title: str
    description: str
    icon: str = ""
    requirement: int = Field(ge=0)
    category: AchievementCategory
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None

    @classmethod
    def from_template(
        cls, template: AchievementTemplate, unlocked_at: datetime | None = None
    ) -> "AchievementRecord":
        return cls(
            **template.model_dump(),
            is_unlocked=unlocked_at is not None,
            unlocked_at=unlocked_at,
        )


class ValidationResult(BaseModel):
    """Outcome of validating a proposed intake."""

    ok: bool
    reason: Optional[str] = None
