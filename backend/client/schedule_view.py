# client/schedule_view.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from client.agent import Agent
from client.errors import ApiError
from schemas.schedule import ScheduleOut, UserScheduleRow
from utils.scheduling import repeat_week
from utils.week import WeekDirection, navigate, week_bounds, week_days, week_label, week_start

logger = logging.getLogger(__name__)


@dataclass
class DayCell:
    date: datetime
    schedules: List[ScheduleOut] = field(default_factory=list)


@dataclass
class WeekRow:
    user: UserScheduleRow
    days: List[DayCell]


# Add/edit dialog: which user, day and schedule it was opened for
@dataclass
class DialogState:
    open: bool = False
    user: Optional[UserScheduleRow] = None
    date: Optional[datetime] = None
    schedule: Optional[ScheduleOut] = None


def build_week_rows(users: List[UserScheduleRow], monday: datetime) -> List[WeekRow]:
    """Lay each user's schedules into seven day cells by start date."""
    days = week_days(monday)
    index = {d.date(): i for i, d in enumerate(days)}
    rows = []
    for user in users:
        cells = [DayCell(date=d) for d in days]
        for schedule in user.schedules:
            i = index.get(schedule.start_time.date())
            if i is not None:
                cells[i].schedules.append(schedule)
        rows.append(WeekRow(user=user, days=cells))
    return rows


class WeekView:
    """State behind the weekly schedule page."""

    def __init__(self, agent: Agent, today: Optional[datetime] = None, site_id: Optional[int] = None):
        self.agent = agent
        self.site_id = site_id
        self.monday = week_start(today or datetime.now())
        self.group_id: Optional[int] = None
        self.user_id: Optional[int] = None
        self.search_term: Optional[str] = None
        self.users: List[UserScheduleRow] = []
        self.loading = False
        self.selected: List[ScheduleOut] = []
        self.dialog = DialogState()

    def request_params(self) -> Dict[str, str]:
        start, end = week_bounds(self.monday)
        params = {"weekStart": start.isoformat(), "weekEnd": end.isoformat()}
        if self.search_term:
            params["searchTerm"] = self.search_term
        if self.group_id is not None:
            params["groupId"] = str(self.group_id)
        if self.user_id is not None:
            params["userId"] = str(self.user_id)
        if self.site_id is not None:
            params["siteId"] = str(self.site_id)
        return params

    def refresh(self) -> List[UserScheduleRow]:
        self.loading = True
        try:
            self.users = self.agent.get_schedules(self.request_params())
        finally:
            self.loading = False
        return self.users

    def navigate(self, direction) -> datetime:
        self.monday = navigate(self.monday, direction)
        self.refresh()
        return self.monday

    def label(self) -> str:
        return week_label(self.monday)

    def days(self) -> List[datetime]:
        return week_days(self.monday)

    # Group and user filters replace each other
    def change_group(self, group_id: Optional[int]) -> None:
        self.group_id = group_id
        self.user_id = None
        self.refresh()

    def change_user(self, user_id: Optional[int]) -> None:
        self.user_id = user_id
        self.group_id = None
        self.refresh()

    def search(self, term: Optional[str]) -> None:
        self.search_term = term or None
        self.refresh()

    def grid(self) -> List[WeekRow]:
        # Nothing to render until the fetch has settled
        if self.loading:
            return []
        return build_week_rows(self.users, self.monday)

    def find_user(self, user_id: int) -> Optional[UserScheduleRow]:
        return next((u for u in self.users if u.id == user_id), None)

    def toggle_schedule(self, schedule: ScheduleOut) -> List[ScheduleOut]:
        if any(s.id == schedule.id for s in self.selected):
            self.selected = [s for s in self.selected if s.id != schedule.id]
        else:
            self.selected = self.selected + [schedule]
        return self.selected

    def open_add(self, user: Optional[UserScheduleRow] = None, date: Optional[datetime] = None) -> DialogState:
        self.dialog = DialogState(open=True, user=user, date=date)
        return self.dialog

    def open_edit(self, user: UserScheduleRow, schedule: ScheduleOut) -> DialogState:
        self.dialog = DialogState(open=True, user=user, schedule=schedule)
        return self.dialog

    def change_dialog_user(self, user_id: int) -> None:
        self.dialog.user = self.find_user(user_id)

    def close(self) -> None:
        self.dialog = DialogState()
        self.selected = []
        self.refresh()

    def repeat_week(self) -> List[ScheduleOut]:
        """Copy every schedule shown this week to the next week, then move there.

        Not idempotent: running it twice from the same week copies twice.
        """
        schedules = [s for user in self.users for s in user.schedules]
        if not schedules:
            return []
        try:
            created = self.agent.add_bulk_schedules(repeat_week(schedules))
        except ApiError:
            logger.exception("Repeating week of %s failed", self.monday.date())
            raise
        self.navigate(WeekDirection.NEXT)
        return created
