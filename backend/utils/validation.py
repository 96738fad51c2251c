from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from models.group import Group
from models.site import Site
from models.users import User
from schemas.errors import FieldError
from utils.errors import ValidationFailed


# Resolve the user/site/group a shift or schedule is assigned to, reporting every bad reference
# and every membership the user lacks
def check_assignment(db: Session, *, user_id: int, site_id: int, group_id: int,
                     label: Optional[str] = None) -> Tuple[User, Site, Group]:
    prefix = f"{label}: " if label else ""
    errors: List[FieldError] = []

    user = db.get(User, user_id)
    if user is None:
        errors.append(FieldError(field="userId", message=f"{prefix}Invalid user"))
    site = db.get(Site, site_id)
    if site is None:
        errors.append(FieldError(field="siteId", message=f"{prefix}Invalid site"))
    group = db.get(Group, group_id)
    if group is None or (site is not None and group.site_id != site.id):
        errors.append(FieldError(field="groupId", message=f"{prefix}Invalid group"))
        group = None

    # The user must belong to both
    if user is not None and site is not None and site not in user.sites:
        errors.append(FieldError(field="siteId", message=f"{prefix}User is not a member of this site"))
    if user is not None and group is not None and group not in user.groups:
        errors.append(FieldError(field="groupId", message=f"{prefix}User is not a member of this group"))

    if errors:
        raise ValidationFailed(errors)
    return user, site, group


# A default site/group must be one the user belongs to
def check_defaults(user: User, site_id: Optional[int], group_id: Optional[int]) -> None:
    errors: List[FieldError] = []
    if site_id is not None and site_id not in {s.id for s in user.sites}:
        errors.append(FieldError(field="defaultSiteId", message="User is not a member of this site"))
    if group_id is not None and group_id not in {g.id for g in user.groups}:
        errors.append(FieldError(field="defaultGroupId", message="User is not a member of this group"))
    if errors:
        raise ValidationFailed(errors)
