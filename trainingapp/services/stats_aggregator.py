"""
Incremental per-user aggregate stats.

apply_create / apply_delete mutate an AggregateStats in place for one workout.
Best-metric trackers only move in one direction (min for pace/SWOLF, max for speed,
distance, power, weight) and never take a 0 value. Averages are recomputed from the
cumulative sums after every update.

Delete reverses totals and per-activity counts/sums (floored at 0). Best trackers and
streak fields are left as they are: they cannot be reversed without the full history.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable

from trainingapp.schemas.stats import (
    AggregateStats,
    CyclingRollup,
    GymRollup,
    RunningRollup,
    SwimmingRollup,
    WorkoutSnapshot,
)
from trainingapp.schemas.workout import (
    CyclingMetrics,
    GymMetrics,
    RunningMetrics,
    SwimmingMetrics,
    WorkoutType,
    load_metrics,
)

SECONDS_PER_HOUR = 3600.0


def _floor(value: float) -> float:
    return value if value > 0 else 0


def _lower_is_better(current: float, candidate: float | None) -> float:
    if not candidate or candidate <= 0:
        return current
    if current <= 0 or candidate < current:
        return candidate
    return current


def _higher_is_better(current: float, candidate: float | None) -> float:
    if not candidate or candidate <= 0:
        return current
    return max(current, candidate)


def workout_day(start_time: datetime) -> date:
    """Calendar day (UTC) of a workout start."""
    if start_time.tzinfo is None:
        start_time = start_time.replace(tzinfo=timezone.utc)
    return start_time.astimezone(timezone.utc).date()


# ---------------------------------------------------------------------------
# Per-activity rollups
# ---------------------------------------------------------------------------

def _recompute_running(r: RunningRollup) -> None:
    r.average_pace = round(r.total_duration_sec / (r.total_distance_m / 1000.0), 1) if r.total_distance_m > 0 else 0.0
    r.average_distance_m = round(r.total_distance_m / r.total_runs, 1) if r.total_runs > 0 else 0.0


def _update_running(stats: AggregateStats, w: WorkoutSnapshot, sign: int) -> None:
    r = stats.running
    m = load_metrics(w.metrics)
    m = m if isinstance(m, RunningMetrics) else None
    r.total_runs = int(_floor(r.total_runs + sign))
    r.total_distance_m = _floor(r.total_distance_m + sign * w.distance_m)
    r.total_duration_sec = int(_floor(r.total_duration_sec + sign * w.duration_sec))
    if sign > 0:
        pace = m.avg_pace if m and m.avg_pace else None
        if pace is None and w.distance_m > 0:
            pace = w.duration_sec / (w.distance_m / 1000.0)
        r.best_pace = _lower_is_better(r.best_pace, pace)
        r.longest_run_m = _higher_is_better(r.longest_run_m, w.distance_m)
        if m:
            r.fastest_speed = _higher_is_better(r.fastest_speed, m.max_speed or m.avg_speed)
    _recompute_running(r)


def _recompute_cycling(c: CyclingRollup) -> None:
    if c.total_duration_sec > 0:
        c.average_speed = round((c.total_distance_m / 1000.0) / (c.total_duration_sec / SECONDS_PER_HOUR), 2)
    else:
        c.average_speed = 0.0


def _update_cycling(stats: AggregateStats, w: WorkoutSnapshot, sign: int) -> None:
    c = stats.cycling
    m = load_metrics(w.metrics)
    m = m if isinstance(m, CyclingMetrics) else None
    c.total_rides = int(_floor(c.total_rides + sign))
    c.total_distance_m = _floor(c.total_distance_m + sign * w.distance_m)
    c.total_duration_sec = int(_floor(c.total_duration_sec + sign * w.duration_sec))
    if sign > 0:
        c.longest_ride_m = _higher_is_better(c.longest_ride_m, w.distance_m)
        if m:
            c.max_speed = _higher_is_better(c.max_speed, m.max_speed or m.avg_speed)
            c.best_power = _higher_is_better(c.best_power, m.avg_power)
    _recompute_cycling(c)


def _swim_laps(m: SwimmingMetrics | None) -> int:
    if m is None:
        return 0
    if m.laps:
        return len(m.laps)
    return int(m.distance_m // m.pool_length_m) if m.pool_length_m else 0


def _update_swimming(stats: AggregateStats, w: WorkoutSnapshot, sign: int) -> None:
    s = stats.swimming
    m = load_metrics(w.metrics)
    m = m if isinstance(m, SwimmingMetrics) else None
    s.total_swims = int(_floor(s.total_swims + sign))
    s.total_distance_m = _floor(s.total_distance_m + sign * w.distance_m)
    s.total_duration_sec = int(_floor(s.total_duration_sec + sign * w.duration_sec))
    s.total_laps = int(_floor(s.total_laps + sign * _swim_laps(m)))
    swolf = m.avg_swolf if m and m.avg_swolf else None
    if swolf:
        s.swolf_total = _floor(s.swolf_total + sign * swolf)
        s.swolf_samples = int(_floor(s.swolf_samples + sign))
    if sign > 0:
        s.longest_swim_m = _higher_is_better(s.longest_swim_m, w.distance_m)
        s.best_swolf = _lower_is_better(s.best_swolf, swolf)
    # Mean of per-swim SWOLF, kept as sum/count so a delete can take one swim back out
    s.average_swolf = round(s.swolf_total / s.swolf_samples, 1) if s.swolf_samples > 0 else 0.0


def _update_gym(stats: AggregateStats, w: WorkoutSnapshot, sign: int) -> None:
    g = stats.gym
    m = load_metrics(w.metrics)
    m = m if isinstance(m, GymMetrics) else GymMetrics()
    g.total_sessions = int(_floor(g.total_sessions + sign))
    g.total_duration_sec = int(_floor(g.total_duration_sec + sign * w.duration_sec))
    g.total_sets = int(_floor(g.total_sets + sign * m.total_sets))
    g.total_reps = int(_floor(g.total_reps + sign * m.total_reps))
    g.total_volume_kg = _floor(g.total_volume_kg + sign * m.total_volume_kg)
    if sign > 0:
        g.heaviest_weight = _higher_is_better(g.heaviest_weight, m.heaviest_weight)
    g.average_volume_kg = round(g.total_volume_kg / g.total_sessions, 1) if g.total_sessions > 0 else 0.0


ACTIVITY_UPDATERS: dict[str, Callable[[AggregateStats, WorkoutSnapshot, int], None]] = {
    WorkoutType.RUNNING.value: _update_running,
    WorkoutType.CYCLING.value: _update_cycling,
    WorkoutType.SWIMMING.value: _update_swimming,
    WorkoutType.GYM.value: _update_gym,
}


# ---------------------------------------------------------------------------
# Streak and totals
# ---------------------------------------------------------------------------

def update_streak(stats: AggregateStats, start_time: datetime) -> None:
    """Advance the streak from the workout's own start day (not wall-clock time).

    Same day as the last workout: unchanged. Day after: +1. Anything else: reset to 1.
    Backdated or out-of-order submissions therefore reset the streak.
    """
    today = workout_day(start_time)
    prior = stats.last_workout_date
    if prior is None:
        stats.current_streak = 1
    elif prior == today - timedelta(days=1):
        stats.current_streak += 1
    elif prior != today:
        stats.current_streak = 1
    if stats.current_streak > stats.longest_streak:
        stats.longest_streak = stats.current_streak
    stats.last_workout_date = today


def _workouts_per_week(workouts: int, account_created_at: datetime, now: datetime) -> float:
    if account_created_at.tzinfo is None:
        account_created_at = account_created_at.replace(tzinfo=timezone.utc)
    days = max(1.0, (now - account_created_at).total_seconds() / 86400.0)
    return round(workouts / days * 7, 2)


def _apply_totals(stats: AggregateStats, w: WorkoutSnapshot, sign: int) -> None:
    stats.workouts = int(_floor(stats.workouts + sign))
    stats.total_duration_sec = int(_floor(stats.total_duration_sec + sign * w.duration_sec))
    # hours always equals total_duration_sec / 3600
    stats.hours = round(stats.total_duration_sec / SECONDS_PER_HOUR, 4)
    stats.calories = _floor(stats.calories + sign * (w.calories or 0.0))
    stats.total_distance_m = _floor(stats.total_distance_m + sign * (w.distance_m or 0.0))


def apply_create(
    stats: AggregateStats,
    workout: WorkoutSnapshot,
    *,
    account_created_at: datetime,
    now: datetime,
) -> AggregateStats:
    """Add one workout to the aggregate (in place). Walking/Hiking only count toward totals."""
    _apply_totals(stats, workout, +1)
    updater = ACTIVITY_UPDATERS.get(workout.type)
    if updater is not None:
        updater(stats, workout, +1)
    update_streak(stats, workout.start_time)
    stats.average_workouts_per_week = _workouts_per_week(stats.workouts, account_created_at, now)
    return stats


def apply_delete(
    stats: AggregateStats,
    workout: WorkoutSnapshot,
    *,
    account_created_at: datetime,
    now: datetime,
) -> AggregateStats:
    """Take one workout back out of the aggregate (in place), flooring every counter at 0."""
    _apply_totals(stats, workout, -1)
    updater = ACTIVITY_UPDATERS.get(workout.type)
    if updater is not None:
        updater(stats, workout, -1)
    stats.average_workouts_per_week = _workouts_per_week(stats.workouts, account_created_at, now)
    return stats
