from __future__ import annotations

from jobboard.core.events import EventBus
from jobboard.core.store import SqlRecordStore

_EVENT_BUS: EventBus | None = None
_RECORD_STORE: SqlRecordStore | None = None


def get_event_bus() -> EventBus:
    global _EVENT_BUS
    if _EVENT_BUS is None:
        _EVENT_BUS = EventBus()
    return _EVENT_BUS


def get_record_store() -> SqlRecordStore:
    global _RECORD_STORE
    if _RECORD_STORE is None:
        _RECORD_STORE = SqlRecordStore(event_bus=get_event_bus())
    return _RECORD_STORE
