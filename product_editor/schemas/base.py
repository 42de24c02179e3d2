"""
Base Pydantic schemas with common patterns.
"""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    # enum members are kept as members so set/equality checks stay consistent
    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        use_enum_values=False,
        coerce_numbers_to_str=True,
    )


class RecordSchema(BaseSchema):
    """Immutable tagged record; changes go through model_copy(update=...)."""

    model_config = ConfigDict(frozen=True)
