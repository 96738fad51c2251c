from typing import List
from pydantic import BaseModel


# A validation message bound to the request field it concerns
class FieldError(BaseModel):
    field: str
    message: str


# Body of every 400 validation response
class ErrorResponse(BaseModel):
    errors: List[FieldError]
