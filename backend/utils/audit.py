from typing import Optional
from fastapi import Request
from sqlalchemy.orm import Session
from models.log import Log, LOG_SUCCESS

def client_ip(request: Optional[Request]) -> Optional[str]:
    return request.client.host if request is not None and request.client else None

def write_log(db: Session, *, user_id, action, resource, resource_id=None, status=LOG_SUCCESS, ip=None, meta=None):
    entry = Log(user_id=user_id, action=action, resource=resource, resource_id=resource_id, status=status, ip=ip, meta=meta or {})
    db.add(entry)
    db.commit()
