"""Base Pydantic model configurations"""

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

# Request schemas: accept both snake_case and camelCase field names
BASE_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    str_strip_whitespace=True,
)

# Response schemas built from ORM rows, serialized with camelCase keys
ORM_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    from_attributes=True,
)
