"""
Achievement rule engine: derive new unlocks from the updated aggregate and the new workout.

Rules run in a fixed order and independently (several may fire for one workout):
first workout, workout-count ladder (exact match), single-workout distance thresholds,
streak ladder (exact match), first workout of an activity type. Earned types are read
once before evaluation; a rule whose template is missing is logged and reported in
EvaluationResult.skipped while the other rules continue.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from trainingapp.core.errors import AchievementCatalogError
from trainingapp.models.achievement import Achievement
from trainingapp.schemas.stats import AggregateStats, WorkoutSnapshot
from trainingapp.services.achievement_catalog import (
    ACTIVITY_FIRSTS,
    DEFAULT_CATALOG,
    DISTANCE_MILESTONES,
    STREAK_MILESTONES,
    WORKOUT_COUNT_MILESTONES,
    AchievementCatalog,
)

logger = logging.getLogger(__name__)


@dataclass
class UnlockedAchievement:
    """A new unlock, materialized from its template; not yet persisted."""

    user_id: int
    type: str
    title: str
    emoji: str
    description: str
    category: str
    rarity: str
    points: int
    trigger_value: float
    workout_id: int | None
    workout_type: str | None
    progress_current: float
    progress_target: float
    progress_percentage: float = 100.0

    def to_model(self) -> Achievement:
        return Achievement(
            user_id=self.user_id,
            type=self.type,
            title=self.title,
            emoji=self.emoji,
            description=self.description,
            category=self.category,
            rarity=self.rarity,
            points=self.points,
            trigger_value=self.trigger_value,
            workout_id=self.workout_id,
            workout_type=self.workout_type,
            progress_current=self.progress_current,
            progress_target=self.progress_target,
            progress_percentage=self.progress_percentage,
        )


@dataclass
class EvaluationResult:
    unlocked: list[UnlockedAchievement] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # type keys whose template was missing


@dataclass(frozen=True)
class _Candidate:
    key: str
    trigger_value: float
    target: float


class AchievementRuleEngine:
    def __init__(self, catalog: AchievementCatalog = DEFAULT_CATALOG) -> None:
        self.catalog = catalog
        self._rules: tuple[Callable[[WorkoutSnapshot, AggregateStats], Iterable[_Candidate]], ...] = (
            self._first_workout,
            self._workout_count,
            self._distance,
            self._streak,
            self._activity_first,
        )

    # Rules ---------------------------------------------------------------

    @staticmethod
    def _first_workout(workout: WorkoutSnapshot, stats: AggregateStats) -> Iterable[_Candidate]:
        if stats.workouts == 1:
            yield _Candidate("first_workout", 1, 1)

    @staticmethod
    def _workout_count(workout: WorkoutSnapshot, stats: AggregateStats) -> Iterable[_Candidate]:
        for count, key in WORKOUT_COUNT_MILESTONES:
            if stats.workouts == count:
                yield _Candidate(key, count, count)

    @staticmethod
    def _distance(workout: WorkoutSnapshot, stats: AggregateStats) -> Iterable[_Candidate]:
        distance = workout.distance_m or 0.0
        for threshold, key in DISTANCE_MILESTONES:
            if distance >= threshold:
                yield _Candidate(key, distance, threshold)

    @staticmethod
    def _streak(workout: WorkoutSnapshot, stats: AggregateStats) -> Iterable[_Candidate]:
        for days, key in STREAK_MILESTONES:
            if stats.current_streak == days:
                yield _Candidate(key, days, days)

    @staticmethod
    def _activity_first(workout: WorkoutSnapshot, stats: AggregateStats) -> Iterable[_Candidate]:
        for workout_type, key in ACTIVITY_FIRSTS:
            if workout.type == workout_type:
                yield _Candidate(key, 1, 1)

    # Evaluation ------------------------------------------------------------

    def evaluate(
        self,
        user_id: int,
        workout: WorkoutSnapshot,
        stats: AggregateStats,
        earned_types: set[str],
        workout_id: int | None = None,
    ) -> EvaluationResult:
        result = EvaluationResult()
        fired: set[str] = set()
        for rule in self._rules:
            for candidate in rule(workout, stats):
                if candidate.key in earned_types or candidate.key in fired:
                    continue
                try:
                    template = self.catalog[candidate.key]
                except AchievementCatalogError as e:
                    logger.error("Achievement rule skipped for user %s: %s", user_id, e.message)
                    result.skipped.append(candidate.key)
                    continue
                fired.add(candidate.key)
                result.unlocked.append(
                    UnlockedAchievement(
                        user_id=user_id,
                        type=template.key,
                        title=template.title,
                        emoji=template.emoji,
                        description=template.description,
                        category=template.category.value,
                        rarity=template.rarity.value,
                        points=template.points,
                        trigger_value=float(candidate.trigger_value),
                        workout_id=workout_id,
                        workout_type=workout.type,
                        progress_current=float(candidate.target),
                        progress_target=float(candidate.target),
                    )
                )
        return result


async def earned_achievement_types(session: AsyncSession, user_id: int) -> set[str]:
    r = await session.execute(select(Achievement.type).where(Achievement.user_id == user_id))
    return {row[0] for row in r.all()}


async def unlock_achievements(
    session: AsyncSession,
    engine: AchievementRuleEngine,
    user_id: int,
    workout_id: int | None,
    workout: WorkoutSnapshot,
    stats: AggregateStats,
) -> tuple[list[Achievement], list[str]]:
    """Evaluate rules for one workout and batch-insert the unlocks (flush only; caller commits)."""
    earned = await earned_achievement_types(session, user_id)
    result = engine.evaluate(user_id, workout, stats, earned, workout_id=workout_id)
    rows = [u.to_model() for u in result.unlocked]
    if rows:
        session.add_all(rows)
        await session.flush()
        logger.info("User %s unlocked achievements: %s", user_id, ", ".join(r.type for r in rows))
    return rows, result.skipped
