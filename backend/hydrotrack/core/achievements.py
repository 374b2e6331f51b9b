"""Achievement Rules - The template catalog and unlock predicates.

All functions are pure: same input always produces same output, no side effects.
"""

from typing import Iterable

from .models import (
    AchievementCategory,
    AchievementRecord,
    AchievementTemplate,
    DailyLog,
    User,
)


ACHIEVEMENT_CATALOG: tuple[AchievementTemplate, ...] = (
    AchievementTemplate(
        achievement_id="streak_7",
        title="Week Warrior",
        description="Achieve a 7-day hydration streak",
        icon="Fire",
        requirement=7,
        category=AchievementCategory.STREAK,
    ),
    AchievementTemplate(
        achievement_id="streak_30",
        title="Monthly Master",
        description="Achieve a 30-day hydration streak",
        icon="Muscle",
        requirement=30,
        category=AchievementCategory.STREAK,
    ),
    AchievementTemplate(
        achievement_id="streak_100",
        title="Century Champion",
        description="Achieve a 100-day hydration streak",
        icon="Crown",
        requirement=100,
        category=AchievementCategory.STREAK,
    ),
    AchievementTemplate(
        achievement_id="water_1000l",
        title="1000L Club",
        description="Drink 1000 liters of water lifetime",
        icon="Water Drop",
        requirement=1_000_000,  # ml
        category=AchievementCategory.TOTAL_WATER,
    ),
    AchievementTemplate(
        achievement_id="protein_10kg",
        title="Protein Pro",
        description="Consume 10kg of protein lifetime",
        icon="Meat",
        requirement=10_000,  # grams
        category=AchievementCategory.TOTAL_PROTEIN,
    ),
    AchievementTemplate(
        achievement_id="consistency_30",
        title="Consistency King",
        description="Hit all goals for 30 days straight",
        icon="Star",
        requirement=30,
        category=AchievementCategory.CONSISTENCY,
    ),
)


def requirement_met(template: AchievementTemplate, user: User, today_log: DailyLog) -> bool:
    """Evaluate a template's unlock predicate against the user's statistics.

    Args:
        template: Achievement to evaluate
        user: Freshest user snapshot (streak and lifetime totals)
        today_log: Today's log

    Returns:
        True if the requirement is reached
    """
    category = template.category
    if category == AchievementCategory.STREAK:
        return user.current_streak >= template.requirement
    if category == AchievementCategory.TOTAL_WATER:
        return user.total_water_consumed >= template.requirement
    if category == AchievementCategory.TOTAL_PROTEIN:
        return user.total_protein_consumed >= template.requirement
    if category == AchievementCategory.TOTAL_CALORIES:
        return user.total_calories_consumed >= template.requirement
    # Consistency has no agreed predicate yet; it stays locked.
    return False


def find_newly_unlocked(
    catalog: Iterable[AchievementTemplate],
    user: User,
    today_log: DailyLog,
    unlocked_ids: set[str],
) -> list[AchievementTemplate]:
    """Templates not yet unlocked whose requirement is now met, in catalog order."""
    return [
        template
        for template in catalog
        if template.achievement_id not in unlocked_ids
        and requirement_met(template, user, today_log)
    ]


def merge_with_catalog(
    catalog: Iterable[AchievementTemplate], records: list[AchievementRecord]
) -> list[AchievementRecord]:
    """List every catalog entry, using the user's unlock record where one exists."""
    by_id = {r.achievement_id: r for r in records}
    return [
        by_id.get(t.achievement_id) or AchievementRecord.from_template(t)
        for t in catalog
    ]
