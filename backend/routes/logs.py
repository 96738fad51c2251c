# backend/routes/logs.py
from datetime import date, datetime, time
from fastapi import APIRouter, Depends, Query
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from database import get_db
from models.log import Log
from models.users import User, user_sites
from schemas.log import LogPage
from utils.tokenJWT import admin_required, site_ids

router = APIRouter(prefix="/logs", tags=["Logs"])


# Audit trail of the people in the caller's sites, newest first (Admin only)
@router.get("", response_model=LogPage)
def list_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None, description="Action contains, e.g. SHIFT"),
    user_id: Optional[int] = Query(None, alias="userId", description="Acting user"),
    resource: Optional[str] = Query(None, description="auth, user, site, group, shift or schedule"),
    resource_id: Optional[int] = Query(None, alias="resourceId", description="Affected row id"),
    status: Optional[str] = Query(None, description="SUCCESS or FAIL"),
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo", description="Inclusive"),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    members = select(user_sites.c.user_id).where(user_sites.c.site_id.in_(site_ids(current_user)))
    filters = [Log.user_id.in_(members)]
    if action:
        filters.append(Log.action.ilike(f"%{action}%"))
    if user_id is not None:
        filters.append(Log.user_id == user_id)
    if resource:
        filters.append(Log.resource == resource.lower())
    if resource_id is not None:
        filters.append(Log.resource_id == resource_id)
    if status:
        filters.append(Log.status == status.upper())
    if date_from:
        filters.append(Log.ts >= datetime.combine(date_from, time.min))
    if date_to:
        filters.append(Log.ts <= datetime.combine(date_to, time.max))

    query = db.query(Log).filter(*filters).order_by(Log.ts.desc(), Log.id.desc())
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}
