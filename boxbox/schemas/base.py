"""Shared schema configuration."""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def strip_name(value):
    """Trim a name; a name of only whitespace is rejected."""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Name must not be blank")
    return value
