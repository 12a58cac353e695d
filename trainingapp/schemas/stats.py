"""Aggregate stats document: totals, streak and per-activity rollups for one user."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class RunningRollup(BaseModel):
    total_runs: int = 0
    total_distance_m: float = 0.0
    total_duration_sec: int = 0
    best_pace: float = 0.0  # s/km, lower is better; 0 = none yet
    longest_run_m: float = 0.0
    fastest_speed: float = 0.0  # km/h
    average_pace: float = 0.0
    average_distance_m: float = 0.0


class CyclingRollup(BaseModel):
    total_rides: int = 0
    total_distance_m: float = 0.0
    total_duration_sec: int = 0
    longest_ride_m: float = 0.0
    max_speed: float = 0.0
    best_power: float = 0.0
    average_speed: float = 0.0  # km/h from sums


class SwimmingRollup(BaseModel):
    total_swims: int = 0
    total_distance_m: float = 0.0
    total_duration_sec: int = 0
    total_laps: int = 0
    longest_swim_m: float = 0.0
    best_swolf: float = 0.0  # lower is better; 0 = none yet
    swolf_total: float = 0.0  # sum of per-swim avg SWOLF
    swolf_samples: int = 0  # swims that reported SWOLF
    average_swolf: float = 0.0


class GymRollup(BaseModel):
    total_sessions: int = 0
    total_duration_sec: int = 0
    total_sets: int = 0
    total_reps: int = 0
    total_volume_kg: float = 0.0
    heaviest_weight: float = 0.0
    average_volume_kg: float = 0.0


class AggregateStats(BaseModel):
    workouts: int = 0
    hours: float = 0.0
    calories: float = 0.0
    total_distance_m: float = 0.0
    total_duration_sec: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_workout_date: date | None = None
    average_workouts_per_week: float = 0.0
    running: RunningRollup = Field(default_factory=RunningRollup)
    cycling: CyclingRollup = Field(default_factory=CyclingRollup)
    swimming: SwimmingRollup = Field(default_factory=SwimmingRollup)
    gym: GymRollup = Field(default_factory=GymRollup)


class WorkoutSnapshot(BaseModel):
    """What the aggregator needs to know about one workout (built from the ORM row)."""

    type: str
    start_time: datetime
    duration_sec: int
    calories: float = 0.0
    distance_m: float = 0.0
    metrics: dict | None = None
