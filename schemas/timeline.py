from datetime import datetime
from typing import Literal, Optional

from schemas.base import CamelModel

EventSource = Literal["user", "system", "loanEngineMock"]


class TimelineEvent(CamelModel):
    id: str
    application_id: str
    event_name: str
    timestamp: datetime
    source: EventSource
    details: Optional[str] = None

    model_config = {"frozen": True}
