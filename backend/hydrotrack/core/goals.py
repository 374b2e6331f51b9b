"""Goal Calculations - Recommended daily goals and profile edit rules.

All functions are pure: same input always produces same output, no side effects.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import ActivityLevel, User


WATER_ML_PER_KG = 35
PROTEIN_G_PER_KG = 1.6

# Fixed reference height (cm) and age (years) for the resting-energy estimate
REFERENCE_HEIGHT_CM = 170
REFERENCE_AGE = 30


class GoalRecommendation(BaseModel):
    """Daily goals derived from body weight and activity."""

    water_goal: int
    protein_goal: int
    calorie_goal: int


def estimate_bmr(weight: float) -> float:
    """Mifflin-St Jeor resting energy with reference height and age."""
    return 10 * weight + 6.25 * REFERENCE_HEIGHT_CM - 5 * REFERENCE_AGE + 5


def recommend_goals(weight: float, activity_level: ActivityLevel) -> GoalRecommendation:
    """Recommend daily goals for a body weight in kg.

    Args:
        weight: Body weight in kg
        activity_level: Activity level supplying the calorie multiplier

    Returns:
        GoalRecommendation with whole-unit goals (truncated)
    """
    return GoalRecommendation(
        water_goal=int(weight * WATER_ML_PER_KG),
        protein_goal=int(weight * PROTEIN_G_PER_KG),
        calorie_goal=int(estimate_bmr(weight) * activity_level.multiplier),
    )


class ProfileUpdate(BaseModel):
    """A profile edit as submitted by the user.

    With auto_calculate set, the goals are filled from recommend_goals for the
    submitted weight and activity level before the goal bounds are checked.
    """

    display_name: str = Field(min_length=2, max_length=50)
    weight: float = Field(ge=30.0, le=300.0, description="Body weight in kg")
    activity_level: ActivityLevel = ActivityLevel.MODERATE
    water_goal: int = Field(ge=500, le=5000)
    protein_goal: int = Field(ge=20, le=300)
    calorie_goal: int = Field(ge=1000, le=5000)
    auto_calculate: bool = False
    reminder_enabled: Optional[bool] = None
    reminder_interval: Optional[int] = Field(default=None, gt=0)
    start_time: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    end_time: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$")

    @field_validator("display_name", mode="before")
    @classmethod
    def _strip_name(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @model_validator(mode="before")
    @classmethod
    def _fill_recommended_goals(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not data.get("auto_calculate"):
            return data
        try:
            weight = float(data["weight"])
            level = ActivityLevel(data.get("activity_level", ActivityLevel.MODERATE))
        except (KeyError, TypeError, ValueError):
            # Leave it to the field validators to report the bad weight/level
            return data
        return {**data, **recommend_goals(weight, level).model_dump()}


def apply_profile_update(user: User, update: ProfileUpdate) -> User:
    """Return the user with the profile edit applied.

    Goal changes only affect logs created afterwards; each daily log keeps
    its own goal snapshot.
    """
    changes: dict[str, object] = {
        "display_name": update.display_name,
        "weight": update.weight,
        "activity_level": update.activity_level,
        "water_goal": update.water_goal,
        "protein_goal": update.protein_goal,
        "calorie_goal": update.calorie_goal,
    }
    for field in ("reminder_enabled", "reminder_interval", "start_time", "end_time"):
        value = getattr(update, field)
        if value is not None:
            changes[field] = value

    return user.model_copy(update=changes)
