# utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from typing import Optional, Set
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import func
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User

# Claim value marking a token that may only be exchanged for a password
SET_PASSWORD_PURPOSE = "set_password"

# Missing headers are reported as 401 by get_current_user
bearer_scheme = HTTPBearer(auto_error=False)

# Generate a new JWT access token
def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

# Token embedded in the Welcome e-mail; its subject is the invited user's email
def create_set_password_token(email: str) -> str:
    return create_access_token(
        {"sub": email, "purpose": SET_PASSWORD_PURPOSE},
        timedelta(minutes=settings.SET_PASSWORD_TOKEN_EXPIRE_MINUTES),
    )

# Validate signature and expiry; raises JWTError
def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])

def find_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()

# Retrieve the currently authenticated user based on the JWT token
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = decode_token(credentials.credentials)
        email: str = payload.get("sub")
        # Set-password tokens are not access tokens
        if email is None or payload.get("purpose"):
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = find_user_by_email(db, email)
    if user is None:
        raise credentials_exception
    return user

# Dependency restricting an endpoint to administrators
def admin_required(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return current_user

def site_ids(user: User) -> Set[int]:
    return {s.id for s in user.sites}

# Sites are separate tenants; admin rights only reach the sites the admin belongs to
def require_site(user: User, site_id: int) -> None:
    if site_id not in site_ids(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not belong to this site"
        )

# Explicit site or the caller's default site; None when there is neither
def resolve_site(user: User, site_id: Optional[int]) -> Optional[int]:
    site_id = site_id if site_id is not None else user.default_site_id
    if site_id is not None:
        require_site(user, site_id)
    return site_id

def shares_site(user: User, other: User) -> bool:
    return bool(site_ids(user) & site_ids(other))
