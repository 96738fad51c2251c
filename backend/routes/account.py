# backend/routes/account.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from jose import JWTError
from sqlalchemy.orm import Session
from urllib.parse import urlencode

from config import settings
from database import get_db
from models.group import Group
from models.log import LOG_FAIL, LOG_SUCCESS
from models.site import Site
from models.users import User, ROLE_ADMIN, ROLE_MEMBER
from schemas.errors import FieldError
from schemas.group import GroupOut
from schemas.schedule import ScheduleOut
from schemas.shift import ShiftOut
from schemas.site import SiteOut
from schemas import user as schemas
from utils.audit import write_log, client_ip
from utils.errors import ValidationFailed
from utils.hashing import get_password_hash, verify_password, password_policy_errors
from utils.outbox import queue_email
from utils.tokenJWT import (
    SET_PASSWORD_PURPOSE, admin_required, create_access_token, create_set_password_token,
    decode_token, find_user_by_email, get_current_user, require_site,
)

router = APIRouter(prefix="/account", tags=["Account"])

WELCOME_TEMPLATE = "Welcome"
WELCOME_SUBJECT = "Welcome to Inntrac"


def _first_char_upper(value: str) -> str:
    value = (value or "").strip()
    return value[:1].upper() + value[1:]


# Map a user and a freshly issued token to the account projection
def _account_response(user: User) -> schemas.AccountResponse:
    token = create_access_token(data={"sub": user.email, "role": user.role})
    return schemas.AccountResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        surname=user.surname,
        token=token,
        is_admin=user.is_admin,
        sites=[SiteOut.model_validate(s) for s in user.sites],
        default_site=user.default_site_id,
        groups=[GroupOut.model_validate(g) for g in user.groups],
        default_group=user.default_group_id,
        shifts=[ShiftOut.model_validate(s) for s in user.shifts],
        schedules=[ScheduleOut.model_validate(s) for s in user.schedules],
    )


def _authenticate(db: Session, email: str, password: str, request: Request) -> schemas.AccountResponse:
    db_user = find_user_by_email(db, email)

    # Validate credentials and log failure on error
    if not db_user or not verify_password(password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status=LOG_FAIL, ip=client_ip(request), meta={"email": email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status=LOG_SUCCESS, ip=client_ip(request), meta={"email": db_user.email})
    return _account_response(db_user)


# Authenticate user and return the account projection with a JWT
@router.post("/login", response_model=schemas.AccountResponse)
def login(payload: schemas.LoginRequest, request: Request, db: Session = Depends(get_db)):
    return _authenticate(db, payload.email, payload.password, request)


# Self-registration; the new account starts as a member without a site
@router.post("/register", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterRequest, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()

    errors = password_policy_errors(payload.password)
    if find_user_by_email(db, normalized_email):
        errors.insert(0, FieldError(field="email", message=f"Email '{normalized_email}' is already taken."))
    if errors:
        write_log(db, user_id=None, action="REGISTER", resource="auth", status=LOG_FAIL,
                  ip=client_ip(request), meta={"email": normalized_email, "fields": [e.field for e in errors]})
        raise ValidationFailed(errors)

    new_user = User(
        email=normalized_email,
        password_hash=get_password_hash(payload.password),
        role=ROLE_MEMBER,
        first_name=_first_char_upper(payload.first_name) or None,
        surname=_first_char_upper(payload.surname) or None,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth", resource_id=new_user.id,
              ip=client_ip(request), meta={"email": new_user.email})
    return new_user


# Exchange a Welcome e-mail token for a password, then log in
@router.post("/setPassword", response_model=schemas.AccountResponse)
def set_password(payload: schemas.SetPasswordRequest, request: Request, db: Session = Depends(get_db)):
    try:
        claims = decode_token(payload.token)
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    if claims.get("purpose") != SET_PASSWORD_PURPOSE or not claims.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    user = find_user_by_email(db, claims["sub"])
    if user is None:
        write_log(db, user_id=None, action="SET_PASSWORD", resource="auth", status=LOG_FAIL,
                  ip=client_ip(request), meta={"email": claims["sub"], "reason": "Unknown user"})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid token")

    # The token is single-use: once a password exists it can no longer be set this way
    if user.password_hash:
        raise ValidationFailed.single("password", "User already has a password set.")
    errors = password_policy_errors(payload.password)
    if errors:
        raise ValidationFailed(errors)

    user.password_hash = get_password_hash(payload.password)
    db.commit()
    write_log(db, user_id=user.id, action="SET_PASSWORD", resource="auth", resource_id=user.id,
              ip=client_ip(request), meta={"email": user.email})

    return _authenticate(db, user.email, payload.password, request)


# Admin adds a user to one of their sites and queues the Welcome e-mail
@router.post("", response_model=schemas.UserOut, status_code=status.HTTP_201_CREATED)
def add_user(
    payload: schemas.AddUserRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_required),
):
    site = db.get(Site, payload.site_id)
    if site is None:
        raise ValidationFailed.single("siteId", "Invalid site")
    group = db.get(Group, payload.group_id)
    if group is None or group.site_id != site.id:
        raise ValidationFailed.single("groupId", "Invalid group")
    require_site(current_user, site.id)

    normalized_email = payload.email.strip().lower()
    if find_user_by_email(db, normalized_email):
        raise ValidationFailed.single("email", f"Email '{normalized_email}' is already taken.")

    user = User(
        first_name=_first_char_upper(payload.first_name),
        surname=_first_char_upper(payload.surname),
        email=normalized_email,
        role=ROLE_ADMIN if payload.is_admin else ROLE_MEMBER,
        sites=[site],
        groups=[group],
        default_site_id=site.id,
        default_group_id=group.id,
    )
    db.add(user)
    db.flush()

    token = create_set_password_token(user.email)
    queue_email(
        db,
        to=user.email,
        template=WELCOME_TEMPLATE,
        subject=WELCOME_SUBJECT,
        context={
            "firstName": user.first_name,
            "siteName": site.name,
            "token": token,
            "setPasswordUrl": f"{settings.FRONTEND_URL}/auth/set-password?{urlencode({'token': token})}",
        },
    )
    db.commit()
    db.refresh(user)

    write_log(db, user_id=current_user.id, action="ADD_USER", resource="user", resource_id=user.id,
              ip=client_ip(request), meta={"email": user.email, "site_id": site.id, "group_id": group.id})
    return user


# Current user's projection with a renewed token
@router.get("", response_model=schemas.AccountResponse)
def current_account(current_user: User = Depends(get_current_user)):
    return _account_response(current_user)
