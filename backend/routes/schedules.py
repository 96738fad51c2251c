# backend/routes/schedules.py
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from typing import Dict, List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from database import get_db
from models.group import Group
from models.schedule import Schedule, ScheduleType
from models.shift import Shift
from models.site import Site
from models.users import User
from schemas.group import GroupOut
from schemas.schedule import (
    NotificationOut, ScheduleCreate, ScheduleIds, ScheduleOut, ScheduleUpdate,
    TimeOffRequest, UserScheduleRow,
)
from schemas.shift import ShiftOut
from schemas.site import SiteOut
from utils.audit import write_log, client_ip
from utils.errors import ValidationFailed
from utils.scheduling import ensure_valid_interval, schedule_hours
from utils.tokenJWT import get_current_user, admin_required, require_site, resolve_site, site_ids
from utils.validation import check_assignment
from utils.week import request_window

router = APIRouter(prefix="/schedules", tags=["Schedules"])
logger = logging.getLogger(__name__)


def _get_schedule_or_404(db: Session, schedule_id: int) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if not schedule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Schedule not found")
    return schedule


def _validate(db: Session, payload: ScheduleCreate, current_user: User, label: Optional[str] = None) -> None:
    check_assignment(db, user_id=payload.user_id, site_id=payload.site_id, group_id=payload.group_id, label=label)
    require_site(current_user, payload.site_id)
    ensure_valid_interval(payload.start_time, payload.end_time, allow_empty=True)


def _validate_all(db: Session, payloads: List[ScheduleCreate], current_user: User) -> None:
    # Every item is checked before anything is written; messages name the item
    errors = []
    for index, payload in enumerate(payloads):
        try:
            _validate(db, payload, current_user, label=f"Schedule {index + 1}")
        except ValidationFailed as e:
            errors.extend(e.errors)
    if errors:
        raise ValidationFailed(errors)


def _apply(schedule: Schedule, payload: ScheduleCreate) -> Schedule:
    data = payload.model_dump(exclude={"id"})
    data["type"] = int(payload.type)
    data["hours"] = schedule_hours(payload.start_time, payload.end_time)
    for field, value in data.items():
        setattr(schedule, field, value)
    return schedule


def _row_group(user: User, site_id: int) -> Optional[Group]:
    # The user's default group when it is in this site, else their first group there
    in_site = [g for g in user.groups if g.site_id == site_id]
    for group in in_site:
        if group.id == user.default_group_id:
            return group
    return in_site[0] if in_site else None


# Per-user rows for the weekly grid; users without entries still get a row
@router.get("", response_model=List[UserScheduleRow])
def list_user_schedules(
    week_start: Optional[datetime] = Query(None, alias="weekStart"),
    week_end: Optional[datetime] = Query(None, alias="weekEnd"),
    site_id: Optional[int] = Query(None, alias="siteId"),
    group_id: Optional[int] = Query(None, alias="groupId"),
    user_id: Optional[int] = Query(None, alias="userId"),
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    start, end = request_window(week_start, week_end)
    site_id = resolve_site(current_user, site_id)
    if site_id is None:
        return []
    site = db.get(Site, site_id)
    if site is None:
        return []

    users_q = db.query(User).filter(User.sites.any(Site.id == site_id))
    if group_id is not None:
        users_q = users_q.filter(User.groups.any(Group.id == group_id))
    if user_id is not None:
        users_q = users_q.filter(User.id == user_id)
    if search_term:
        like = f"%{search_term.strip()}%"
        users_q = users_q.filter(or_(User.first_name.ilike(like), User.surname.ilike(like), User.email.ilike(like)))
    users = users_q.order_by(User.first_name.asc(), User.surname.asc(), User.id.asc()).all()
    if not users:
        return []

    user_ids = [u.id for u in users]
    schedules: Dict[int, List[Schedule]] = {uid: [] for uid in user_ids}
    for s in (db.query(Schedule)
              .filter(Schedule.site_id == site_id, Schedule.user_id.in_(user_ids),
                      Schedule.start_time >= start, Schedule.start_time < end)
              .order_by(Schedule.start_time.asc()).all()):
        schedules[s.user_id].append(s)
    shifts: Dict[int, List[Shift]] = {uid: [] for uid in user_ids}
    for s in (db.query(Shift)
              .filter(Shift.site_id == site_id, Shift.user_id.in_(user_ids),
                      Shift.start_time >= start, Shift.start_time < end)
              .order_by(Shift.start_time.asc()).all()):
        shifts[s.user_id].append(s)

    rows = []
    for user in users:
        group = _row_group(user, site_id)
        rows.append(UserScheduleRow(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            surname=user.surname,
            site=SiteOut.model_validate(site),
            group=GroupOut.model_validate(group) if group else None,
            schedules=[ScheduleOut.model_validate(s) for s in schedules[user.id]],
            shifts=[ShiftOut.model_validate(s) for s in shifts[user.id]],
        ))
    return rows


# Create many schedules at once (repeat week); all or nothing
@router.post("/bulk", response_model=List[ScheduleOut], status_code=status.HTTP_201_CREATED)
def add_bulk_schedules(
    payload: List[ScheduleCreate],
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    _validate_all(db, payload, current_user)

    created = [_apply(Schedule(), item) for item in payload]
    db.add_all(created)
    db.commit()
    for schedule in created:
        db.refresh(schedule)
    logger.info("User %s bulk-created %d schedules", current_user.id, len(created))

    write_log(db, user_id=current_user.id, action="SCHEDULE_BULK_CREATE", resource="schedule",
              ip=client_ip(request), meta={"count": len(created)})
    return created


# Update many schedules at once (accept all); all or nothing
@router.put("/bulk", response_model=List[ScheduleOut])
def update_schedules(
    payload: List[ScheduleUpdate],
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    existing = {s.id: s for s in db.query(Schedule).filter(Schedule.id.in_([p.id for p in payload])).all()}
    missing = [p.id for p in payload if p.id not in existing]
    if missing:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Schedules not found: {missing}")
    for schedule in existing.values():
        require_site(current_user, schedule.site_id)
    _validate_all(db, payload, current_user)

    updated = [_apply(existing[item.id], item) for item in payload]
    db.commit()
    for schedule in updated:
        db.refresh(schedule)

    write_log(db, user_id=current_user.id, action="SCHEDULE_BULK_UPDATE", resource="schedule",
              ip=client_ip(request), meta={"ids": [s.id for s in updated]})
    return updated


# One entry per requested day; members may only ask for themselves
@router.post("/time-off", response_model=List[ScheduleOut], status_code=status.HTTP_201_CREATED)
def request_time_off(
    payload: TimeOffRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not current_user.is_admin:
        if payload.user_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only request time off for yourself")
        if payload.type != ScheduleType.TIME_OFF_REQUESTED:
            raise ValidationFailed.single("type", "Only time-off requests can be submitted")
    check_assignment(db, user_id=payload.user_id, site_id=payload.site_id, group_id=payload.group_id)
    require_site(current_user, payload.site_id)

    created = [
        Schedule(
            user_id=payload.user_id,
            site_id=payload.site_id,
            group_id=payload.group_id,
            start_time=day,
            end_time=day,
            status=payload.status,
            type=int(payload.type),
            hours=0.0,
        )
        for day in sorted(set(payload.dates))
    ]
    db.add_all(created)
    db.commit()
    for schedule in created:
        db.refresh(schedule)

    write_log(db, user_id=current_user.id, action="TIME_OFF_REQUEST", resource="schedule",
              ip=client_ip(request), meta={"user_id": payload.user_id, "days": len(created)})
    return created


# Pending time-off requests of a site grouped per user
@router.get("/notifications", response_model=List[NotificationOut])
def list_notifications(
    site_id: Optional[int] = Query(None, alias="siteId"),
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    site_id = resolve_site(current_user, site_id)
    if site_id is None:
        return []

    pending = (db.query(Schedule)
               .filter(Schedule.site_id == site_id, Schedule.type == int(ScheduleType.TIME_OFF_REQUESTED))
               .order_by(Schedule.user_id.asc(), Schedule.start_time.asc()).all())

    grouped: Dict[int, NotificationOut] = {}
    for schedule in pending:
        item = grouped.get(schedule.user_id)
        if item is None:
            item = NotificationOut(user_id=schedule.user_id, first_name=schedule.user.first_name,
                                   surname=schedule.user.surname, schedules=[])
            grouped[schedule.user_id] = item
        item.schedules.append(ScheduleOut.model_validate(schedule))
    return list(grouped.values())


# Delete pending requests of the caller's sites among the given ids; anything else is left untouched
@router.post("/reject")
def reject_time_off(
    payload: ScheduleIds,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    pending = (db.query(Schedule)
               .filter(Schedule.id.in_(payload.ids), Schedule.type == int(ScheduleType.TIME_OFF_REQUESTED),
                       Schedule.site_id.in_(site_ids(current_user)))
               .all())
    for schedule in pending:
        db.delete(schedule)
    db.commit()

    write_log(db, user_id=current_user.id, action="TIME_OFF_REJECT", resource="schedule",
              ip=client_ip(request), meta={"ids": [s.id for s in pending]})
    return {"deleted": len(pending)}


@router.post("", response_model=ScheduleOut, status_code=status.HTTP_201_CREATED)
def add_schedule(
    payload: ScheduleCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    _validate(db, payload, current_user)

    schedule = _apply(Schedule(), payload)
    db.add(schedule)
    db.commit()
    db.refresh(schedule)

    write_log(db, user_id=current_user.id, action="SCHEDULE_CREATE", resource="schedule",
              resource_id=schedule.id, ip=client_ip(request), meta={"user_id": schedule.user_id})
    return schedule


@router.put("/{schedule_id}", response_model=ScheduleOut)
def update_schedule(
    schedule_id: int,
    payload: ScheduleCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    schedule = _get_schedule_or_404(db, schedule_id)
    require_site(current_user, schedule.site_id)
    _validate(db, payload, current_user)

    _apply(schedule, payload)
    db.commit()
    db.refresh(schedule)

    write_log(db, user_id=current_user.id, action="SCHEDULE_UPDATE", resource="schedule",
              resource_id=schedule.id, ip=client_ip(request), meta={"type": schedule.type})
    return schedule


@router.delete("/{schedule_id}")
def delete_schedule(
    schedule_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    schedule = _get_schedule_or_404(db, schedule_id)
    require_site(current_user, schedule.site_id)
    db.delete(schedule)
    db.commit()

    write_log(db, user_id=current_user.id, action="SCHEDULE_DELETE", resource="schedule",
              resource_id=schedule_id, ip=client_ip(request))
    return {"message": "Schedule deleted"}
