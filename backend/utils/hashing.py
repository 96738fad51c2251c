# utils/hashing.py
from typing import List
import bcrypt

from schemas.errors import FieldError

PASSWORD_MIN_LENGTH = 6

def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()

def verify_password(password: str, password_hash) -> bool:
    # Users invited by an admin have no password until they set one
    if not password_hash:
        return False
    return bcrypt.checkpw(password.encode(), password_hash.encode())

def password_policy_errors(password: str) -> List[FieldError]:
    """Return one "password" field error per unmet rule, empty when the password is acceptable."""
    rules = [
        (len(password) >= PASSWORD_MIN_LENGTH, f"Passwords must be at least {PASSWORD_MIN_LENGTH} characters."),
        (any(c.isdigit() for c in password), "Passwords must have at least one digit ('0'-'9')."),
        (any(c.islower() for c in password), "Passwords must have at least one lowercase ('a'-'z')."),
        (any(c.isupper() for c in password), "Passwords must have at least one uppercase ('A'-'Z')."),
        (any(not c.isalnum() for c in password), "Passwords must have at least one non alphanumeric character."),
    ]
    return [FieldError(field="password", message=message) for ok, message in rules if not ok]
