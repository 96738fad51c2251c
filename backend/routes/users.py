# backend/routes/users.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, Request
from typing import Optional, Literal
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.group import Group
from models.site import Site
from models.users import User, ROLE_ADMIN, ROLE_MEMBER
from schemas.user import UserOut, UserUpdate, UsersPage
from utils.audit import write_log, client_ip
from utils.tokenJWT import get_current_user, admin_required, require_site, shares_site, site_ids
from utils.validation import check_defaults

router = APIRouter(prefix="/users", tags=["Users"])


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# Users sharing a site with the caller, with filtering, sorting, and pagination (Admin only)
@router.get("", response_model=UsersPage)
def list_users(
    q: Optional[str] = Query(None, description="Search by e-mail or name"),
    site_id: Optional[int] = Query(None, alias="siteId"),
    group_id: Optional[int] = Query(None, alias="groupId"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    sort_by: Literal["id", "email", "first_name", "surname"] = "surname",
    order: Literal["asc", "desc"] = "asc",
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    query = db.query(User).filter(User.sites.any(Site.id.in_(site_ids(current_user))))

    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(User.email.ilike(like), User.first_name.ilike(like), User.surname.ilike(like)))
    if site_id is not None:
        require_site(current_user, site_id)
        query = query.filter(User.sites.any(Site.id == site_id))
    if group_id is not None:
        query = query.filter(User.groups.any(Group.id == group_id))

    sort_map = {
        "id": User.id,
        "email": User.email,
        "first_name": User.first_name,
        "surname": User.surname,
    }
    col = sort_map.get(sort_by, User.surname)
    query = query.order_by(col.asc() if order == "asc" else col.desc(), User.id.asc())

    total = query.count()
    users = query.offset((page - 1) * page_size).limit(page_size).all()

    return {"items": users, "total": total, "page": page, "page_size": page_size}


# Admins can read the people of their sites, members only themselves
@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    user = _get_user_or_404(db, user_id)
    if user.id != current_user.id and not (current_user.is_admin and shares_site(current_user, user)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


# Update names, role and defaults (Admin only)
@router.patch("/{user_id}", response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    user = _get_user_or_404(db, user_id)
    if user.id != current_user.id and not shares_site(current_user, user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is not in any of your sites")

    check_defaults(user, payload.default_site_id, payload.default_group_id)

    if payload.first_name is not None:
        user.first_name = payload.first_name.strip()
    if payload.surname is not None:
        user.surname = payload.surname.strip()
    if payload.is_admin is not None:
        # Prevent the last way back into the admin screens from being removed
        if user.id == current_user.id and not payload.is_admin:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot revoke your own admin role")
        user.role = ROLE_ADMIN if payload.is_admin else ROLE_MEMBER
    if payload.default_site_id is not None:
        user.default_site_id = payload.default_site_id
    if payload.default_group_id is not None:
        user.default_group_id = payload.default_group_id

    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="USER_UPDATE", resource="user", resource_id=user.id,
              ip=client_ip(request), meta=payload.model_dump(exclude_none=True))
    return user


# Add a user to a group (and to the group's site) (Admin only)
@router.post("/{user_id}/groups/{group_id}", response_model=UserOut)
def add_to_group(
    user_id: int,
    group_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    user = _get_user_or_404(db, user_id)
    group = db.get(Group, group_id)
    if not group:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    require_site(current_user, group.site_id)

    if group not in user.groups:
        user.groups.append(group)
    if group.site not in user.sites:
        user.sites.append(group.site)
    if user.default_site_id is None:
        user.default_site_id = group.site_id
    if user.default_group_id is None:
        user.default_group_id = group.id

    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="GROUP_JOIN", resource="user", resource_id=user.id,
              ip=client_ip(request), meta={"group_id": group.id})
    return user


# Remove a user from a group; a matching default group is cleared (Admin only)
@router.delete("/{user_id}/groups/{group_id}", response_model=UserOut)
def remove_from_group(
    user_id: int,
    group_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    user = _get_user_or_404(db, user_id)
    group = db.get(Group, group_id)
    if not group or group not in user.groups:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership not found")
    require_site(current_user, group.site_id)

    user.groups.remove(group)
    if user.default_group_id == group.id:
        user.default_group_id = None

    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="GROUP_LEAVE", resource="user", resource_id=user.id,
              ip=client_ip(request), meta={"group_id": group.id})
    return user
