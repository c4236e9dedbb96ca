from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema for JSON bodies exchanged in camelCase (createdAt, isActive, ...)."""

    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel
