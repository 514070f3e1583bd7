"""Shared pydantic base for persisted records."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class StoredModel(BaseModel):
    """
    Base for every record kept in the database document.

    The persisted document uses camelCase keys; Python code uses
    snake_case attributes. Both spellings are accepted on input. Keys this
    package does not model are kept and written back unchanged.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )
