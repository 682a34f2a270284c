from datetime import datetime
from typing import Literal, Optional

from schemas.base import CamelModel

NotificationType = Literal["info", "success", "warning", "error"]


class NotificationItem(CamelModel):
    id: str
    user_id: str
    title: str
    message: str
    type: NotificationType
    read: bool = False
    created_at: datetime
    related_application_id: Optional[str] = None
