# client/agent.py
import httpx
import logging
from typing import List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from config import settings
from client.errors import ApiError, ApiErrorKind
from schemas.errors import FieldError
from schemas.group import GroupOut
from schemas.schedule import (
    NotificationOut, ScheduleCreate, ScheduleOut, ScheduleUpdate, TimeOffRequest, UserScheduleRow,
)
from schemas.shift import ShiftCreate, ShiftOut
from schemas.site import SiteDetail, SiteOut
from schemas.user import AccountResponse, AddUserRequest, UserOut, UsersPage

logger = logging.getLogger(__name__)

_schedules = TypeAdapter(List[ScheduleOut])
_rows = TypeAdapter(List[UserScheduleRow])
_notifications = TypeAdapter(List[NotificationOut])
_shifts = TypeAdapter(List[ShiftOut])
_sites = TypeAdapter(List[SiteOut])
_groups = TypeAdapter(List[GroupOut])


def _body(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def error_from_response(response: httpx.Response) -> ApiError:
    """Classify an error response into the closed ApiErrorKind set."""
    status_code = response.status_code
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if status_code == 401:
        return ApiError(ApiErrorKind.UNAUTHORIZED, "Unauthorized", status_code=status_code)

    if isinstance(payload, dict) and isinstance(payload.get("errors"), list):
        try:
            fields = [FieldError.model_validate(e) for e in payload["errors"]]
        except ValidationError:
            fields = []
        if fields:
            return ApiError(ApiErrorKind.VALIDATION_FAILED, "; ".join(f.message for f in fields),
                            status_code=status_code, fields=fields)

    detail = payload.get("detail") if isinstance(payload, dict) else None
    return ApiError(ApiErrorKind.UNKNOWN, str(detail or response.reason_phrase or status_code), status_code=status_code)


class Agent:
    """Synchronous REST client for the Inntrac API.

    ``http`` may be any ``httpx.Client`` (FastAPI's TestClient included); by
    default one is created for ``settings.API_URL``.
    """

    def __init__(self, base_url: Optional[str] = None, http: Optional[httpx.Client] = None,
                 token: Optional[str] = None):
        self.http = http or httpx.Client(base_url=base_url or settings.API_URL)
        self.token = token

    def close(self):
        self.http.close()

    def _request(self, method: str, url: str, *, json=None, params: Optional[dict] = None):
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = self.http.request(method, url, json=json, params=params or None, headers=headers)
        except httpx.RequestError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise ApiError(ApiErrorKind.NETWORK_ERROR, str(e)) from e

        if response.status_code >= 400:
            error = error_from_response(response)
            logger.warning("%s %s -> %s (%s)", method, url, response.status_code, error.kind.value)
            raise error
        if not response.content:
            return None
        return response.json()

    # --- Account ---
    def login(self, email: str, password: str) -> AccountResponse:
        data = self._request("POST", "/account/login", json={"email": email, "password": password})
        return AccountResponse.model_validate(data)

    def register(self, email: str, password: str, first_name: Optional[str] = None,
                 surname: Optional[str] = None) -> UserOut:
        data = self._request("POST", "/account/register", json={
            "email": email, "password": password, "firstName": first_name, "surname": surname,
        })
        return UserOut.model_validate(data)

    def set_password(self, token: str, password: str) -> AccountResponse:
        data = self._request("POST", "/account/setPassword", json={"token": token, "password": password})
        return AccountResponse.model_validate(data)

    def current_user(self) -> AccountResponse:
        return AccountResponse.model_validate(self._request("GET", "/account"))

    def add_user(self, payload: AddUserRequest) -> UserOut:
        return UserOut.model_validate(self._request("POST", "/account", json=_body(payload)))

    # --- Users ---
    def get_users(self, **params) -> UsersPage:
        return UsersPage.model_validate(self._request("GET", "/users", params=params))

    # --- Sites & groups ---
    def get_sites(self) -> List[SiteOut]:
        return _sites.validate_python(self._request("GET", "/sites"))

    def get_site(self, site_id: int) -> SiteDetail:
        return SiteDetail.model_validate(self._request("GET", f"/sites/{site_id}"))

    def add_site(self, name: str) -> SiteOut:
        return SiteOut.model_validate(self._request("POST", "/sites", json={"name": name}))

    def get_groups(self, site_id: Optional[int] = None) -> List[GroupOut]:
        return _groups.validate_python(self._request("GET", "/groups", params={"siteId": site_id}))

    def add_group(self, name: str, site_id: int) -> GroupOut:
        return GroupOut.model_validate(self._request("POST", "/groups", json={"name": name, "siteId": site_id}))

    # --- Shifts ---
    def get_shifts(self, params: dict) -> List[ShiftOut]:
        return _shifts.validate_python(self._request("GET", "/shifts", params=params))

    def add_shift(self, payload: ShiftCreate) -> ShiftOut:
        return ShiftOut.model_validate(self._request("POST", "/shifts", json=_body(payload)))

    def update_shift(self, shift_id: int, payload: ShiftCreate) -> ShiftOut:
        return ShiftOut.model_validate(self._request("PUT", f"/shifts/{shift_id}", json=_body(payload)))

    def delete_shift(self, shift_id: int) -> None:
        self._request("DELETE", f"/shifts/{shift_id}")

    # --- Schedules ---
    def get_schedules(self, params: dict) -> List[UserScheduleRow]:
        return _rows.validate_python(self._request("GET", "/schedules", params=params))

    def add_schedule(self, payload: ScheduleCreate) -> ScheduleOut:
        return ScheduleOut.model_validate(self._request("POST", "/schedules", json=_body(payload)))

    def update_schedule(self, schedule_id: int, payload: ScheduleCreate) -> ScheduleOut:
        return ScheduleOut.model_validate(self._request("PUT", f"/schedules/{schedule_id}", json=_body(payload)))

    def delete_schedule(self, schedule_id: int) -> None:
        self._request("DELETE", f"/schedules/{schedule_id}")

    def add_bulk_schedules(self, payload: Sequence[ScheduleCreate]) -> List[ScheduleOut]:
        data = self._request("POST", "/schedules/bulk", json=[_body(p) for p in payload])
        return _schedules.validate_python(data)

    def update_schedules(self, payload: Sequence[ScheduleUpdate]) -> List[ScheduleOut]:
        data = self._request("PUT", "/schedules/bulk", json=[_body(p) for p in payload])
        return _schedules.validate_python(data)

    def request_time_off(self, payload: TimeOffRequest) -> List[ScheduleOut]:
        return _schedules.validate_python(self._request("POST", "/schedules/time-off", json=_body(payload)))

    def get_notifications(self, site_id: Optional[int] = None) -> List[NotificationOut]:
        return _notifications.validate_python(
            self._request("GET", "/schedules/notifications", params={"siteId": site_id}))

    def reject_schedules(self, ids: Sequence[int]) -> int:
        return self._request("POST", "/schedules/reject", json={"ids": list(ids)})["deleted"]
