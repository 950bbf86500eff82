"""Shared schema base"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """API shapes use camelCase; attributes and storage stay snake_case"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
