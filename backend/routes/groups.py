# backend/routes/groups.py
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from typing import List, Optional
from sqlalchemy.orm import Session

from database import get_db
from models.group import Group
from models.schedule import Schedule
from models.shift import Shift
from models.site import Site
from models.users import User
from schemas.group import GroupCreate, GroupOut, GroupUpdate
from utils.audit import write_log, client_ip
from utils.errors import ValidationFailed
from utils.tokenJWT import get_current_user, admin_required, require_site, resolve_site

router = APIRouter(prefix="/groups", tags=["Groups"])


def _get_group_or_404(db: Session, group_id: int) -> Group:
    group = db.get(Group, group_id)
    if not group:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Group not found")
    return group


# Groups of a site; defaults to the caller's default site
@router.get("", response_model=List[GroupOut])
def list_groups(
    site_id: Optional[int] = Query(None, alias="siteId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    site_id = resolve_site(current_user, site_id)
    if site_id is None:
        return []
    return db.query(Group).filter(Group.site_id == site_id).order_by(Group.name.asc()).all()


@router.post("", response_model=GroupOut, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    site = db.get(Site, payload.site_id)
    if site is None:
        raise ValidationFailed.single("siteId", "Invalid site")
    require_site(current_user, site.id)

    group = Group(name=payload.name.strip(), site_id=site.id)
    db.add(group)
    db.commit()
    db.refresh(group)

    write_log(db, user_id=current_user.id, action="GROUP_CREATE", resource="group", resource_id=group.id,
              ip=client_ip(request), meta={"name": group.name, "site_id": site.id})
    return group


@router.put("/{group_id}", response_model=GroupOut)
def update_group(
    group_id: int,
    payload: GroupUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    group = _get_group_or_404(db, group_id)
    require_site(current_user, group.site_id)
    group.name = payload.name.strip()
    db.commit()
    db.refresh(group)

    write_log(db, user_id=current_user.id, action="GROUP_UPDATE", resource="group", resource_id=group.id,
              ip=client_ip(request), meta={"name": group.name})
    return group


# Refused while shifts or schedules reference the group
@router.delete("/{group_id}")
def delete_group(
    group_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    group = _get_group_or_404(db, group_id)
    require_site(current_user, group.site_id)

    in_use = (
        db.query(Shift.id).filter(Shift.group_id == group.id).first()
        or db.query(Schedule.id).filter(Schedule.group_id == group.id).first()
    )
    if in_use:
        raise ValidationFailed.single("groupId", "Group still has shifts or schedules")

    for user in db.query(User).filter(User.default_group_id == group.id).all():
        user.default_group_id = None
    db.flush()

    name = group.name
    db.delete(group)
    db.commit()

    write_log(db, user_id=current_user.id, action="GROUP_DELETE", resource="group", resource_id=group_id,
              ip=client_ip(request), meta={"name": name})
    return {"message": f"Group {name} has been deleted"}
