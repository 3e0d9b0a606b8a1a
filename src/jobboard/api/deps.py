from __future__ import annotations

from jobboard.core.runtime import get_record_store
from jobboard.core.store import SqlRecordStore


def get_store() -> SqlRecordStore:
    return get_record_store()
