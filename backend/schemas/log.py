from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel
from schemas.base import CamelModel


# One audit entry: who did what to which row, and whether it worked
class LogOut(CamelModel):
    id: int
    ts: datetime
    user_id: Optional[int] = None
    action: str
    resource: str
    resource_id: Optional[int] = None
    status: str
    ip: Optional[str] = None
    meta: Optional[Any] = None


# Schema for paginated audit log response
class LogPage(BaseModel):
    items: List[LogOut]
    total: int
    page: int
    page_size: int
