"""Pydantic schemas for workout API and the per-type metrics union.

The stored `metrics` document is one variant of `ActivityMetrics`, tagged by `kind`.
Walking and Hiking carry no metrics variant.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, model_validator


class WorkoutType(str, Enum):
    RUNNING = "Running"
    CYCLING = "Cycling"
    SWIMMING = "Swimming"
    GYM = "Gym"
    WALKING = "Walking"
    HIKING = "Hiking"


class Privacy(str, Enum):
    PUBLIC = "public"
    FRIENDS = "friends"
    PRIVATE = "private"


class RunningSplit(BaseModel):
    number: int = Field(..., ge=1)
    distance_m: float = Field(0.0, ge=0)
    time: float = Field(0.0, ge=0, description="Seconds")
    pace: float | None = Field(None, ge=0, description="Seconds per km")
    elevation: float | None = None
    type: Literal["auto", "manual"] = "auto"


class RunningMetrics(BaseModel):
    kind: Literal["running"] = "running"
    distance_m: float = Field(0.0, ge=0)
    avg_pace: float | None = Field(None, ge=0, description="Seconds per km")
    best_pace: float | None = Field(None, ge=0)
    avg_speed: float | None = Field(None, ge=0, description="km/h")
    max_speed: float | None = Field(None, ge=0)
    elevation_gain_m: float = Field(0.0, ge=0)
    avg_heart_rate: float | None = Field(None, ge=0)
    splits: list[RunningSplit] = Field(default_factory=list)


class CyclingMetrics(BaseModel):
    kind: Literal["cycling"] = "cycling"
    distance_m: float = Field(0.0, ge=0)
    avg_speed: float | None = Field(None, ge=0, description="km/h")
    max_speed: float | None = Field(None, ge=0)
    avg_power: float | None = Field(None, ge=0, description="Watts")
    max_power: float | None = Field(None, ge=0)
    normalized_power: float | None = Field(None, ge=0)
    avg_cadence: float | None = Field(None, ge=0)
    elevation_gain_m: float = Field(0.0, ge=0)


class SwimLap(BaseModel):
    lap_number: int = Field(..., ge=1)
    time: float = Field(..., ge=0, description="Seconds")
    stroke_count: int | None = Field(None, ge=0)
    swolf: float | None = Field(None, ge=0)


class SwimmingMetrics(BaseModel):
    kind: Literal["swimming"] = "swimming"
    pool_length_m: float = Field(..., ge=10)
    distance_m: float = Field(0.0, ge=0)
    stroke_type: Literal["Freestyle", "Backstroke", "Breaststroke", "Butterfly", "Mixed"] = "Freestyle"
    laps: list[SwimLap] = Field(default_factory=list)
    avg_swolf: float | None = Field(None, ge=0)
    avg_stroke_rate: float | None = Field(None, ge=0)

    @model_validator(mode="after")
    def _fill_from_laps(self) -> "SwimmingMetrics":
        if not self.distance_m and self.laps:
            self.distance_m = len(self.laps) * self.pool_length_m
        if self.avg_swolf is None:
            swolfs = [lap.swolf for lap in self.laps if lap.swolf]
            if swolfs:
                self.avg_swolf = round(sum(swolfs) / len(swolfs), 1)
        return self


class GymSet(BaseModel):
    set_number: int = Field(..., ge=1)
    reps: int = Field(0, ge=0)
    target_reps: int | None = Field(None, ge=0)
    actual_reps: int | None = Field(None, ge=0)
    weight: float = Field(0.0, ge=0, description="kg")
    rest_time: float | None = Field(None, ge=0, description="Seconds")
    rpe: float | None = Field(None, ge=1, le=10)
    completed: bool = True
    notes: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def _reps_from_actual(self) -> "GymSet":
        # Performed reps count toward totals when only actual_reps was sent
        if not self.reps and self.actual_reps:
            self.reps = self.actual_reps
        return self


class GymExercise(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: Literal["chest", "back", "shoulders", "arms", "legs", "core", "cardio", "full-body"] | None = None
    muscle_groups: list[str] = Field(default_factory=list)
    sets: list[GymSet] = Field(default_factory=list)


class GymMetrics(BaseModel):
    kind: Literal["gym"] = "gym"
    exercises: list[GymExercise] = Field(default_factory=list)

    @property
    def total_sets(self) -> int:
        return sum(len(e.sets) for e in self.exercises)

    @property
    def total_reps(self) -> int:
        return sum(s.reps for e in self.exercises for s in e.sets)

    @property
    def total_volume_kg(self) -> float:
        return sum(s.reps * s.weight for e in self.exercises for s in e.sets)

    @property
    def heaviest_weight(self) -> float:
        return max((s.weight for e in self.exercises for s in e.sets), default=0.0)


ActivityMetrics = Annotated[
    Union[RunningMetrics, CyclingMetrics, SwimmingMetrics, GymMetrics],
    Field(discriminator="kind"),
]

_metrics_adapter: TypeAdapter = TypeAdapter(ActivityMetrics)


def load_metrics(doc: dict | None) -> RunningMetrics | CyclingMetrics | SwimmingMetrics | GymMetrics | None:
    """Parse a stored metrics document back into its variant (None for Walking/Hiking)."""
    if not doc:
        return None
    return _metrics_adapter.validate_python(doc)


def dump_metrics(metrics: BaseModel | None) -> dict | None:
    if metrics is None:
        return None
    return metrics.model_dump(mode="json")


class HeartRateZone(BaseModel):
    zone: int = Field(..., ge=1, le=5)
    duration: float = Field(0.0, ge=0, description="Seconds")
    percentage: float | None = Field(None, ge=0, le=100)


class HeartRate(BaseModel):
    average: float | None = Field(None, ge=0)
    max: float | None = Field(None, ge=0)
    min: float | None = Field(None, ge=0)
    zones: list[HeartRateZone] = Field(default_factory=list)


class Coordinates(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Weather(BaseModel):
    temperature: float | None = None
    conditions: str | None = Field(None, max_length=50)
    humidity: float | None = Field(None, ge=0, le=100)
    wind_speed: float | None = Field(None, ge=0)


class Location(BaseModel):
    city: str | None = Field(None, max_length=100)
    country: str | None = Field(None, max_length=100)
    coordinates: Coordinates | None = None
    weather: Weather | None = None


class WorkoutCreate(BaseModel):
    """Body for creating a workout. Required fields are checked by workout_store.validate_workout
    so that missing ones produce the same 400 message as invalid ones."""

    type: str | None = None
    name: str | None = Field(None, max_length=100)
    start_time: datetime | None = None
    end_time: datetime | None = None
    duration: int | None = Field(None, description="Seconds")
    calories: float = Field(0.0, ge=0)
    notes: str | None = Field(None, max_length=1000)
    privacy: Privacy = Privacy.PUBLIC
    heart_rate: HeartRate | None = None
    location: Location | None = None
    running: dict | None = None
    cycling: dict | None = None
    swimming: dict | None = None
    gym: dict | None = None


class WorkoutUpdate(BaseModel):
    """Body for updating a workout: only name, notes and privacy are editable."""

    name: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=1000)
    privacy: Privacy | None = None


class CommentCreate(BaseModel):
    text: str = Field("", max_length=500)
