"""Achievement templates: immutable reference data keyed by achievement type."""

from dataclasses import asdict, dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping

from trainingapp.core.errors import AchievementCatalogError


class Category(str, Enum):
    DISTANCE = "distance"
    DURATION = "duration"
    CONSISTENCY = "consistency"
    STRENGTH = "strength"
    MILESTONE = "milestone"
    SOCIAL = "social"
    TECHNIQUE = "technique"


class Rarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


@dataclass(frozen=True)
class AchievementTemplate:
    key: str
    title: str
    emoji: str
    description: str
    category: Category
    rarity: Rarity
    points: int

    def to_dict(self) -> dict:
        d = asdict(self)
        d["category"] = self.category.value
        d["rarity"] = self.rarity.value
        return d


# Ladders evaluated by the rule engine; every key must have a template below.
WORKOUT_COUNT_MILESTONES: tuple[tuple[int, str], ...] = (
    (10, "workouts_10"),
    (50, "workouts_50"),
    (100, "workouts_100"),
    (250, "workouts_250"),
    (500, "workouts_500"),
)
DISTANCE_MILESTONES: tuple[tuple[float, str], ...] = (
    (5000, "distance_5k"),
    (10000, "distance_10k"),
    (21097, "distance_half_marathon"),
    (42195, "distance_marathon"),
)
STREAK_MILESTONES: tuple[tuple[int, str], ...] = (
    (3, "streak_3_days"),
    (7, "streak_7_days"),
    (14, "streak_14_days"),
    (30, "streak_30_days"),
    (60, "streak_60_days"),
    (100, "streak_100_days"),
)
ACTIVITY_FIRSTS: tuple[tuple[str, str], ...] = (
    ("Swimming", "swimming_first"),
    ("Cycling", "cycling_first"),
)

_TEMPLATES = (
    AchievementTemplate("first_workout", "First Steps", "🎯", "Complete your first workout",
                        Category.MILESTONE, Rarity.COMMON, 10),
    AchievementTemplate("workouts_10", "Getting Serious", "💪", "Complete 10 workouts",
                        Category.MILESTONE, Rarity.COMMON, 25),
    AchievementTemplate("workouts_50", "Dedicated", "🏅", "Complete 50 workouts",
                        Category.MILESTONE, Rarity.RARE, 50),
    AchievementTemplate("workouts_100", "Centurion", "💯", "Complete 100 workouts",
                        Category.MILESTONE, Rarity.EPIC, 100),
    AchievementTemplate("workouts_250", "Relentless", "🔱", "Complete 250 workouts",
                        Category.MILESTONE, Rarity.EPIC, 200),
    AchievementTemplate("workouts_500", "Living Legend", "👑", "Complete 500 workouts",
                        Category.MILESTONE, Rarity.LEGENDARY, 400),
    AchievementTemplate("distance_5k", "5K Finisher", "🏃", "Cover 5 km in a single workout",
                        Category.DISTANCE, Rarity.COMMON, 20),
    AchievementTemplate("distance_10k", "10K Crusher", "🔥", "Cover 10 km in a single workout",
                        Category.DISTANCE, Rarity.RARE, 40),
    AchievementTemplate("distance_half_marathon", "Half Marathoner", "🥈", "Cover 21.1 km in a single workout",
                        Category.DISTANCE, Rarity.EPIC, 80),
    AchievementTemplate("distance_marathon", "Marathoner", "🥇", "Cover 42.2 km in a single workout",
                        Category.DISTANCE, Rarity.LEGENDARY, 150),
    AchievementTemplate("streak_3_days", "On a Roll", "⚡", "Work out 3 days in a row",
                        Category.CONSISTENCY, Rarity.COMMON, 15),
    AchievementTemplate("streak_7_days", "Week Warrior", "📅", "Work out 7 days in a row",
                        Category.CONSISTENCY, Rarity.RARE, 35),
    AchievementTemplate("streak_14_days", "Fortnight Fighter", "🛡️", "Work out 14 days in a row",
                        Category.CONSISTENCY, Rarity.RARE, 60),
    AchievementTemplate("streak_30_days", "Monthly Master", "🏆", "Work out 30 days in a row",
                        Category.CONSISTENCY, Rarity.EPIC, 120),
    AchievementTemplate("streak_60_days", "Unstoppable", "🚀", "Work out 60 days in a row",
                        Category.CONSISTENCY, Rarity.EPIC, 200),
    AchievementTemplate("streak_100_days", "Iron Will", "💎", "Work out 100 days in a row",
                        Category.CONSISTENCY, Rarity.LEGENDARY, 350),
    AchievementTemplate("swimming_first", "Making Waves", "🏊", "Log your first swim",
                        Category.TECHNIQUE, Rarity.COMMON, 15),
    AchievementTemplate("cycling_first", "On Two Wheels", "🚴", "Log your first ride",
                        Category.MILESTONE, Rarity.COMMON, 15),
)


class AchievementCatalog(Mapping[str, AchievementTemplate]):
    """Read-only mapping of type key -> template. Unknown keys raise AchievementCatalogError."""

    def __init__(self, templates: Mapping[str, AchievementTemplate]) -> None:
        self._templates = MappingProxyType(dict(templates))

    def __getitem__(self, key: str) -> AchievementTemplate:
        try:
            return self._templates[key]
        except KeyError:
            raise AchievementCatalogError(key) from None

    def __contains__(self, key: object) -> bool:
        return key in self._templates

    def get(self, key: str, default: AchievementTemplate | None = None) -> AchievementTemplate | None:
        return self._templates.get(key, default)

    def __iter__(self) -> Iterator[str]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def by_category(self, category: str | None = None) -> list[AchievementTemplate]:
        return [t for t in self._templates.values() if category is None or t.category.value == category]


DEFAULT_CATALOG = AchievementCatalog({t.key: t for t in _TEMPLATES})
