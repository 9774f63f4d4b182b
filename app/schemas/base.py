# app/schemas/base.py
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel


class CamelModel(SQLModel):
    """
    Base for wire schemas.

    The storefront client speaks camelCase (productId, unitPrice, itemCount);
    Python code keeps snake_case. Both spellings are accepted on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
