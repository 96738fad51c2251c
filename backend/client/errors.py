# client/errors.py
import enum
from typing import Iterable, List, Optional

from schemas.errors import FieldError


class ApiErrorKind(str, enum.Enum):
    UNAUTHORIZED = "unauthorized"
    VALIDATION_FAILED = "validation_failed"
    NETWORK_ERROR = "network_error"
    UNKNOWN = "unknown"


class ApiError(Exception):
    """Failure of an API call, classified at the transport boundary."""

    def __init__(self, kind: ApiErrorKind, message: str = "", *, status_code: Optional[int] = None,
                 fields: Iterable[FieldError] = ()):
        self.kind = kind
        self.status_code = status_code
        self.fields: List[FieldError] = list(fields)
        super().__init__(message or kind.value)

    def __repr__(self):
        return f"ApiError(kind={self.kind.value!r}, status_code={self.status_code!r}, fields={[f.field for f in self.fields]!r})"
