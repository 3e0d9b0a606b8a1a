from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from jobboard.types import JOB_STATUSES, JobRecord, ensure_status

ALL = "all"

R = TypeVar("R", bound=Sequence[JobRecord])


class FilterIndex:
    """Multi-select status filter over the canonical collection.

    The selection is either the ``all`` sentinel or a non-empty set of
    statuses. It never holds both, and it is never empty.
    """

    def __init__(self) -> None:
        self._selected: set[str] = set()

    @property
    def is_all(self) -> bool:
        return not self._selected

    @property
    def selection(self) -> frozenset[str]:
        if self.is_all:
            return frozenset({ALL})
        return frozenset(self._selected)

    def is_selected(self, status: str) -> bool:
        if status == ALL:
            return self.is_all
        return status in self._selected

    def set_all(self) -> None:
        self._selected.clear()

    def toggle(self, status: str) -> None:
        if status == ALL:
            self.set_all()
            return

        status = ensure_status(status)
        if status in self._selected:
            self._selected.discard(status)
        else:
            self._selected.add(status)

    def ordered_selection(self) -> list[str]:
        if self.is_all:
            return [ALL]
        return [status for status in JOB_STATUSES if status in self._selected]

    def visible(self, records: R) -> R | list[JobRecord]:
        if self.is_all:
            return records
        return [record for record in records if record.status in self._selected]
