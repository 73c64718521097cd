import uuid

from marshmallow import EXCLUDE, Schema, ValidationError, fields

from utils.clock import ensure_utc
from utils.password_policy import password_problem

USERNAME_ALLOWED = "letters, numbers, underscores, and hyphens"


def norm_email(v):
    return v.strip().lower() if isinstance(v, str) else v


def validate_password_strength(value: str) -> None:
    problem = password_problem(value)
    if problem:
        raise ValidationError(problem)


def validate_uuid(value: str) -> None:
    try:
        uuid.UUID(str(value))
    except ValueError:
        raise ValidationError("Invalid ID format")


class UtcDateTime(fields.DateTime):
    """ISO-8601 output that always carries the UTC offset, whether the value
    was just written (aware) or read back from SQLite (naive)."""

    def _serialize(self, value, attr, obj, **kwargs):
        return super()._serialize(ensure_utc(value), attr, obj, **kwargs)


class RequestSchema(Schema):
    """Base for request bodies and query strings; unknown keys are dropped."""

    class Meta:
        unknown = EXCLUDE
