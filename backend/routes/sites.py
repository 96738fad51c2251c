# backend/routes/sites.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from typing import List
from sqlalchemy.orm import Session

from database import get_db
from models.schedule import Schedule
from models.shift import Shift
from models.site import Site
from models.users import User, ROLE_ADMIN
from schemas.group import GroupOut
from schemas.site import SiteCreate, SiteDetail, SiteOut, SiteUpdate
from utils.audit import write_log, client_ip
from utils.errors import ValidationFailed
from utils.tokenJWT import get_current_user, admin_required, require_site

router = APIRouter(prefix="/sites", tags=["Sites"])


def _get_site_or_404(db: Session, site_id: int) -> Site:
    site = db.get(Site, site_id)
    if not site:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found")
    return site


def _to_detail(site: Site) -> SiteDetail:
    return SiteDetail(
        id=site.id,
        name=site.name,
        groups=[GroupOut.model_validate(g) for g in site.groups],
        user_count=len(site.users),
    )


# Sites the caller belongs to, admins included
@router.get("", response_model=List[SiteOut])
def list_sites(current_user: User = Depends(get_current_user)):
    return sorted(current_user.sites, key=lambda s: s.name)


# Create a site (team) and join it. A user without any site becomes its admin;
# anyone else needs the admin role
@router.post("", response_model=SiteOut, status_code=status.HTTP_201_CREATED)
def create_site(
    payload: SiteCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    bootstrap = not current_user.sites
    if not bootstrap and not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

    site = Site(name=payload.name.strip())
    db.add(site)
    current_user.sites.append(site)
    if bootstrap:
        current_user.role = ROLE_ADMIN
    db.flush()
    if current_user.default_site_id is None:
        current_user.default_site_id = site.id
    db.commit()
    db.refresh(site)

    write_log(db, user_id=current_user.id, action="SITE_CREATE", resource="site", resource_id=site.id,
              ip=client_ip(request), meta={"name": site.name})
    return site


@router.get("/{site_id}", response_model=SiteDetail)
def get_site(site_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    site = _get_site_or_404(db, site_id)
    require_site(current_user, site.id)
    return _to_detail(site)


# Rename a site (Admin of that site only)
@router.put("/{site_id}", response_model=SiteOut)
def update_site(
    site_id: int,
    payload: SiteUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    site = _get_site_or_404(db, site_id)
    require_site(current_user, site.id)
    site.name = payload.name.strip()
    db.commit()
    db.refresh(site)

    write_log(db, user_id=current_user.id, action="SITE_UPDATE", resource="site", resource_id=site.id,
              ip=client_ip(request), meta={"name": site.name})
    return site


# Delete a site with its groups; refused while shifts or schedules reference it (Admin of that site only)
@router.delete("/{site_id}")
def delete_site(
    site_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    site = _get_site_or_404(db, site_id)
    require_site(current_user, site.id)

    in_use = (
        db.query(Shift.id).filter(Shift.site_id == site.id).first()
        or db.query(Schedule.id).filter(Schedule.site_id == site.id).first()
    )
    if in_use:
        raise ValidationFailed.single("siteId", "Site still has shifts or schedules")

    group_ids = {g.id for g in site.groups}
    affected = db.query(User).filter(
        (User.default_site_id == site.id) | (User.default_group_id.in_(group_ids))
    ).all()
    for user in affected:
        if user.default_site_id == site.id:
            user.default_site_id = None
        if user.default_group_id in group_ids:
            user.default_group_id = None
    db.flush()

    name = site.name
    db.delete(site)
    db.commit()

    write_log(db, user_id=current_user.id, action="SITE_DELETE", resource="site", resource_id=site_id,
              ip=client_ip(request), meta={"name": name})
    return {"message": f"Site {name} has been deleted"}
