# client/notifications.py
import logging
from typing import List, Optional

from client.agent import Agent
from client.errors import ApiError
from schemas.schedule import NotificationOut, ScheduleOut
from utils.scheduling import accept_all

logger = logging.getLogger(__name__)


class NotificationsView:
    """Pending time-off requests of a site, one entry per requesting user."""

    def __init__(self, agent: Agent, site_id: Optional[int] = None):
        self.agent = agent
        self.site_id = site_id
        self.items: List[NotificationOut] = []

    def refresh(self) -> List[NotificationOut]:
        self.items = self.agent.get_notifications(self.site_id)
        return self.items

    def _item(self, user_id: int) -> NotificationOut:
        item = next((i for i in self.items if i.user_id == user_id), None)
        if item is None:
            raise KeyError(f"No pending requests for user {user_id}")
        return item

    def accept_all(self, user_id: int) -> List[ScheduleOut]:
        item = self._item(user_id)
        try:
            accepted = self.agent.update_schedules(accept_all(item.schedules))
        except ApiError:
            logger.exception("Accepting time off for user %s failed", user_id)
            raise
        self.refresh()
        return accepted

    def reject_all(self, user_id: int) -> int:
        item = self._item(user_id)
        try:
            deleted = self.agent.reject_schedules([s.id for s in item.schedules])
        except ApiError:
            logger.exception("Rejecting time off for user %s failed", user_id)
            raise
        self.refresh()
        return deleted
