from pydantic import Field
from schemas.base import CamelModel


class GroupOut(CamelModel):
    id: int
    name: str
    site_id: int


class GroupCreate(CamelModel):
    name: str = Field(min_length=1)
    site_id: int


class GroupUpdate(CamelModel):
    name: str = Field(min_length=1)
