# backend/routes/shifts.py
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from typing import List, Optional
from sqlalchemy.orm import Session

from database import get_db
from models.shift import Shift
from models.users import User
from schemas.shift import ShiftCreate, ShiftOut
from utils.audit import write_log, client_ip
from utils.scheduling import ensure_valid_interval
from utils.tokenJWT import get_current_user, admin_required, require_site, resolve_site
from utils.validation import check_assignment
from utils.week import request_window

router = APIRouter(prefix="/shifts", tags=["Shifts"])


def _get_shift_or_404(db: Session, shift_id: int) -> Shift:
    shift = db.get(Shift, shift_id)
    if not shift:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shift not found")
    return shift


def _validate(db: Session, payload: ShiftCreate, current_user: User) -> None:
    check_assignment(db, user_id=payload.user_id, site_id=payload.site_id, group_id=payload.group_id)
    require_site(current_user, payload.site_id)
    ensure_valid_interval(payload.start_time, payload.end_time)


# Shifts of one of the caller's sites starting inside the requested week
@router.get("", response_model=List[ShiftOut])
def list_shifts(
    week_start: Optional[datetime] = Query(None, alias="weekStart"),
    week_end: Optional[datetime] = Query(None, alias="weekEnd"),
    site_id: Optional[int] = Query(None, alias="siteId"),
    group_id: Optional[int] = Query(None, alias="groupId"),
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    start, end = request_window(week_start, week_end)
    site_id = resolve_site(current_user, site_id)
    if site_id is None:
        return []

    q = db.query(Shift).filter(Shift.site_id == site_id, Shift.start_time >= start, Shift.start_time < end)
    if group_id is not None:
        q = q.filter(Shift.group_id == group_id)
    if user_id is not None:
        q = q.filter(Shift.user_id == user_id)
    return q.order_by(Shift.start_time.asc()).all()


@router.post("", response_model=ShiftOut, status_code=status.HTTP_201_CREATED)
def add_shift(
    payload: ShiftCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    _validate(db, payload, current_user)

    shift = Shift(**payload.model_dump())
    db.add(shift)
    db.commit()
    db.refresh(shift)

    write_log(db, user_id=current_user.id, action="SHIFT_CREATE", resource="shift", resource_id=shift.id,
              ip=client_ip(request), meta={"user_id": shift.user_id})
    return shift


# Full replacement of a shift; concurrent edits are last-write-wins
@router.put("/{shift_id}", response_model=ShiftOut)
def update_shift(
    shift_id: int,
    payload: ShiftCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    shift = _get_shift_or_404(db, shift_id)
    require_site(current_user, shift.site_id)
    _validate(db, payload, current_user)

    for field, value in payload.model_dump().items():
        setattr(shift, field, value)
    db.commit()
    db.refresh(shift)

    write_log(db, user_id=current_user.id, action="SHIFT_UPDATE", resource="shift", resource_id=shift.id,
              ip=client_ip(request), meta={"user_id": shift.user_id})
    return shift


@router.delete("/{shift_id}")
def delete_shift(
    shift_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    shift = _get_shift_or_404(db, shift_id)
    require_site(current_user, shift.site_id)
    db.delete(shift)
    db.commit()

    write_log(db, user_id=current_user.id, action="SHIFT_DELETE", resource="shift", resource_id=shift_id,
              ip=client_ip(request))
    return {"message": "Shift deleted"}
