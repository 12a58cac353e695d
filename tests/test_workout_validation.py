"""Unit tests for workout validation and the per-type metrics documents."""

from datetime import datetime, timedelta, timezone

import pytest

from trainingapp.core.errors import ValidationError
from trainingapp.schemas.workout import GymMetrics, RunningMetrics, SwimmingMetrics, WorkoutCreate, WorkoutType, load_metrics
from trainingapp.services.workout_store import distance_for, validate_workout

START = datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)


def _body(**overrides) -> WorkoutCreate:
    data = {
        "type": "Running",
        "start_time": START,
        "end_time": START + timedelta(minutes=30),
        "duration": 1800,
        "running": {"distance_m": 5000},
    }
    data.update(overrides)
    return WorkoutCreate(**data)


def test_valid_running_workout():
    workout_type, metrics = validate_workout(_body())
    assert workout_type is WorkoutType.RUNNING
    assert isinstance(metrics, RunningMetrics)
    assert distance_for(metrics) == 5000


@pytest.mark.parametrize("field", ["type", "start_time", "end_time", "duration"])
def test_missing_required_field(field):
    with pytest.raises(ValidationError) as exc:
        validate_workout(_body(**{field: None}))
    assert exc.value.message == f"{field} is required"
    assert exc.value.status_code == 400


def test_unknown_type():
    with pytest.raises(ValidationError, match="Invalid workout type"):
        validate_workout(_body(type="Yoga"))


def test_duration_boundary():
    with pytest.raises(ValidationError, match="at least 30 seconds"):
        validate_workout(_body(duration=29, end_time=START + timedelta(seconds=29)))
    workout_type, _ = validate_workout(_body(duration=30, end_time=START + timedelta(seconds=30)))
    assert workout_type is WorkoutType.RUNNING


def test_end_before_start():
    with pytest.raises(ValidationError, match="End time must be after start time"):
        validate_workout(_body(end_time=START - timedelta(minutes=1)))


def test_swimming_requires_pool_length():
    with pytest.raises(ValidationError, match="Pool length is required"):
        validate_workout(_body(type="Swimming", swimming={"distance_m": 1000}))


def test_swimming_distance_from_laps():
    laps = [{"lap_number": i, "time": 40, "swolf": 38 + i} for i in range(1, 5)]
    _, metrics = validate_workout(_body(type="Swimming", swimming={"pool_length_m": 25, "laps": laps}))
    assert isinstance(metrics, SwimmingMetrics)
    assert metrics.distance_m == 100
    assert metrics.avg_swolf == 40.5


def test_invalid_metrics_message():
    with pytest.raises(ValidationError, match="Invalid running metrics"):
        validate_workout(_body(running={"distance_m": -5}))


def test_walking_has_no_metrics():
    workout_type, metrics = validate_workout(_body(type="Walking", running=None))
    assert workout_type is WorkoutType.WALKING
    assert metrics is None
    assert distance_for(metrics) == 0


def test_gym_metrics_roundtrip_through_document():
    _, metrics = validate_workout(
        _body(
            type="Gym",
            running=None,
            gym={"exercises": [{"name": "Bench", "sets": [{"set_number": 1, "reps": 5, "weight": 80}]}]},
        )
    )
    doc = metrics.model_dump(mode="json")
    assert doc["kind"] == "gym"
    loaded = load_metrics(doc)
    assert isinstance(loaded, GymMetrics)
    assert loaded.heaviest_weight == 80
    assert distance_for(loaded) == 0


def test_gym_set_details_and_actual_reps():
    _, metrics = validate_workout(
        _body(
            type="Gym",
            running=None,
            gym={"exercises": [{
                "name": "Squat",
                "category": "legs",
                "muscle_groups": ["quads", "glutes"],
                "sets": [
                    {"set_number": 1, "target_reps": 8, "actual_reps": 6, "weight": 100, "rpe": 9, "rest_time": 120},
                    {"set_number": 2, "reps": 8, "actual_reps": 5, "weight": 90},
                ],
            }]},
        )
    )
    squat = metrics.exercises[0]
    assert squat.muscle_groups == ["quads", "glutes"]
    assert [s.reps for s in squat.sets] == [6, 8]
    assert metrics.total_volume_kg == 6 * 100 + 8 * 90


def test_gym_set_rpe_bounds():
    with pytest.raises(ValidationError, match="Invalid gym metrics"):
        validate_workout(
            _body(type="Gym", running=None,
                  gym={"exercises": [{"name": "Row", "sets": [{"set_number": 1, "reps": 5, "rpe": 11}]}]})
        )
