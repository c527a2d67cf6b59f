"""Shared Pydantic base for state values"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TwinModel(BaseModel):
    """Immutable value serialized with camelCase keys (the stored payload format)"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
