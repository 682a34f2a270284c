"""
Append-only event log per application. Stored in insertion (chronological)
order; readers get most-recent-first.
"""
from __future__ import annotations

from typing import Callable, Optional
from datetime import datetime

from schemas.timeline import EventSource, TimelineEvent
from services.store import KeyValueStore, StorageKeys
from utils.stamps import new_id, utc_now


class TimelineLog:
    def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = utc_now):
        self._store = store
        self._clock = clock

    def new_event(
        self,
        application_id: str,
        event_name: str,
        source: EventSource,
        details: Optional[str] = None,
    ) -> TimelineEvent:
        return TimelineEvent(
            id=new_id("evt"),
            application_id=application_id,
            event_name=event_name,
            timestamp=self._clock(),
            source=source,
            details=details,
        )

    async def add_event(
        self,
        application_id: str,
        event_name: str,
        source: EventSource,
        details: Optional[str] = None,
    ) -> TimelineEvent:
        event = self.new_event(application_id, event_name, source, details)
        async with self._store.collections(StorageKeys.TIMELINE) as data:
            data[StorageKeys.TIMELINE].append(event.to_storage())
        return event

    async def history(self, application_id: str) -> list[TimelineEvent]:
        """Events for one application in the order they were appended."""
        rows = await self._store.get_list(StorageKeys.TIMELINE)
        return [TimelineEvent.model_validate(r) for r in rows if r.get("applicationId") == application_id]

    async def get_timeline(self, application_id: str) -> list[TimelineEvent]:
        """Most-recent-first; equal timestamps keep the later-appended event first."""
        events = await self.history(application_id)
        events.reverse()
        return sorted(events, key=lambda e: e.timestamp, reverse=True)
