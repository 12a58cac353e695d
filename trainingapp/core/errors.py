"""Domain errors and their HTTP status codes. Rendered as {"status": "error", "message": ...} in trainingapp.main."""


class TrainingAppError(Exception):
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TrainingAppError):
    """Missing or invalid input (workout fields, bad type, short duration)."""

    status_code = 400


class OwnershipError(TrainingAppError):
    """Caller tried to read or mutate another user's resource."""

    status_code = 403


class NotFoundError(TrainingAppError):
    status_code = 404


class AggregationFailure(TrainingAppError):
    """Stats update or achievement evaluation failed after the workout write succeeded."""

    status_code = 500


class AchievementCatalogError(TrainingAppError):
    """A rule referenced a template key that is not in the catalog."""

    status_code = 500

    def __init__(self, key: str) -> None:
        super().__init__(f"Achievement template '{key}' is not in the catalog")
        self.key = key
