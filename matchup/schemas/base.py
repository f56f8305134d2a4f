# matchup/schemas/base.py
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for API models whose JSON keys are camelCase.

    Fields keep their snake_case names in Python and accept either form on
    input; responses are serialized by alias.
    """

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
