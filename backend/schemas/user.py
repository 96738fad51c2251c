from pydantic import BaseModel, EmailStr
from typing import List, Optional
from schemas.base import CamelModel
from schemas.group import GroupOut
from schemas.schedule import ScheduleOut
from schemas.shift import ShiftOut
from schemas.site import SiteOut

# Schema for user authentication credentials
class LoginRequest(CamelModel):
    email: EmailStr
    password: str

# Schema for self-registration
class RegisterRequest(CamelModel):
    email: EmailStr
    password: str
    first_name: Optional[str] = None
    surname: Optional[str] = None

# Token from the Welcome e-mail plus the chosen password
class SetPasswordRequest(CamelModel):
    token: str
    password: str

# Schema for an admin adding a user to a site and group
class AddUserRequest(CamelModel):
    first_name: str
    surname: str
    email: EmailStr
    site_id: int
    group_id: int
    is_admin: bool = False

# Output schema for user profile details
class UserOut(CamelModel):
    id: int
    email: str
    first_name: Optional[str] = None
    surname: Optional[str] = None
    role: str
    is_admin: bool
    default_site_id: Optional[int] = None
    default_group_id: Optional[int] = None

# Partial update of a user by an admin
class UserUpdate(CamelModel):
    first_name: Optional[str] = None
    surname: Optional[str] = None
    is_admin: Optional[bool] = None
    default_site_id: Optional[int] = None
    default_group_id: Optional[int] = None

# Schema for paginated user list response
class UsersPage(BaseModel):
    items: List[UserOut]
    total: int
    page: int
    page_size: int

# User projection returned by login, setPassword and GET /account
class AccountResponse(CamelModel):
    id: int
    email: str
    first_name: Optional[str] = None
    surname: Optional[str] = None
    token: str
    is_admin: bool
    sites: List[SiteOut] = []
    default_site: Optional[int] = None
    groups: List[GroupOut] = []
    default_group: Optional[int] = None
    shifts: List[ShiftOut] = []
    schedules: List[ScheduleOut] = []
