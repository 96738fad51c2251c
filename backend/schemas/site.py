from pydantic import Field
from typing import List
from schemas.base import CamelModel
from schemas.group import GroupOut


class SiteOut(CamelModel):
    id: int
    name: str


# Site with its groups and head count
class SiteDetail(SiteOut):
    groups: List[GroupOut] = []
    user_count: int = 0


class SiteCreate(CamelModel):
    name: str = Field(min_length=1)


class SiteUpdate(CamelModel):
    name: str = Field(min_length=1)
