"""Shared pydantic configuration for domain and API schemas."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys.

    Stored records and API payloads use the field names of the web client
    (``fullName``, ``targetUserId``...); snake_case names are accepted on
    input as well.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
