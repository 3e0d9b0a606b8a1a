from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from jobboard.config import Settings, get_settings
from jobboard.core.store import RecordStore
from jobboard.errors import JobBoardError, NotAuthenticated, RemoteFailure
from jobboard.types import JobFields, JobPatch, JobRecord, ensure_status

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


def _ordered(records: list[JobRecord]) -> tuple[JobRecord, ...]:
    unique: dict[str, JobRecord] = {}
    for record in records:
        unique.setdefault(record.id, record)
    return tuple(sorted(unique.values(), key=lambda record: record.created_at, reverse=True))


class ReconciliationEngine:
    """Owns the canonical collection of the signed-in user's job records.

    Refreshes are single-flight: a refresh requested while another is in
    flight does not start a second fetch, it bumps the generation so the
    running fetch loops once more and discards the response it was waiting
    for. Optimistic mutations apply synchronously and also invalidate any
    in-flight refresh, since that response may predate the mutation.
    """

    def __init__(self, store: RecordStore, *, settings: Settings | None = None):
        self.store = store
        self.settings = settings or get_settings()
        self.loading = False
        self.last_error: str | None = None
        self._error_source: str | None = None
        self._user_id: str | None = None
        self._records: tuple[JobRecord, ...] = ()
        self._generation = 0
        self._version = 0
        self._inflight: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[None]] = set()
        self._listeners: list[Listener] = []

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def records(self) -> tuple[JobRecord, ...]:
        return self._records

    @property
    def refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def get(self, record_id: str) -> JobRecord | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def reset(self, user_id: str | None) -> None:
        self._user_id = user_id
        self._records = ()
        self._generation += 1
        self._version += 1
        self.loading = user_id is not None
        self.last_error = None
        self._error_source = None
        self._notify()

    def clear_error(self) -> None:
        self.last_error = None
        self._error_source = None
        self._notify()

    async def refresh(self) -> None:
        if self._user_id is None:
            return

        self._generation += 1
        if not self.refreshing:
            self._inflight = asyncio.get_running_loop().create_task(self._run_refresh())
            self._inflight.add_done_callback(self._refresh_settled)
        await asyncio.shield(self._inflight)

    def on_remote_change(self) -> None:
        self.request_refresh()

    def request_refresh(self) -> None:
        """Schedule a refresh without waiting for it; failures land in last_error."""
        if self._user_id is not None:
            self._schedule_refresh()

    async def create(self, fields: JobFields | dict[str, Any]) -> str:
        if not isinstance(fields, JobFields):
            fields = JobFields.parse(fields)
        user_id = self._require_user()

        try:
            record_id = await self.store.create_record(user_id, fields)
        except Exception as exc:
            failure = self._mutation_failed("create", None, exc)
            if failure is exc:
                raise
            raise failure from exc

        logger.info("Created job record_id=%s user_id=%s", record_id, user_id)
        self._clear_mutation_error()
        try:
            await self.refresh()
        except RemoteFailure:
            logger.warning("Refresh after create of %s failed", record_id)
        return record_id

    async def update_status(self, record_id: str, status: str) -> None:
        patch = JobPatch(status=ensure_status(status))
        await self._update(record_id, patch)

    async def update(self, record_id: str, fields: JobFields | dict[str, Any]) -> None:
        if not isinstance(fields, JobFields):
            fields = JobFields.parse(fields)
        await self._update(record_id, JobPatch.from_fields(fields))

    async def delete(self, record_id: str) -> None:
        self._require_user()
        version = self._version
        previous = self.get(record_id)
        if previous is not None:
            self._records = tuple(record for record in self._records if record.id != record_id)
            self._invalidate_inflight()
            self._notify()

        try:
            await self.store.delete_record(record_id)
        except Exception as exc:
            failure = self._mutation_failed("delete", record_id, exc)
            if previous is not None and self._should_restore(version):
                self._records = _ordered([previous, *self._records])
                self._notify()
            if failure is exc:
                raise
            raise failure from exc

        self._clear_mutation_error()

    async def close(self) -> None:
        tasks = [task for task in self._background if not task.done()]
        if self.refreshing:
            tasks.append(self._inflight)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._background.clear()

    async def _update(self, record_id: str, patch: JobPatch) -> None:
        self._require_user()
        version = self._version
        previous = self.get(record_id)
        if previous is not None:
            updated = previous.model_copy(update=patch.values())
            self._records = tuple(updated if record.id == record_id else record for record in self._records)
            self._invalidate_inflight()
            self._notify()

        try:
            await self.store.update_record(record_id, patch)
        except Exception as exc:
            failure = self._mutation_failed("update", record_id, exc)
            if previous is not None and self._should_restore(version):
                self._records = tuple(previous if record.id == record_id else record for record in self._records)
                self._notify()
            if failure is exc:
                raise
            raise failure from exc

        self._clear_mutation_error()

    async def _run_refresh(self) -> None:
        while True:
            generation = self._generation
            user_id = self._user_id
            if user_id is None:
                return

            try:
                records = await self.store.list_records(user_id)
            except Exception as exc:
                if generation != self._generation:
                    logger.debug("Ignoring failed refresh generation=%s, newer one pending", generation)
                    continue
                failure = exc if isinstance(exc, RemoteFailure) else RemoteFailure(f"refresh failed: {exc}")
                logger.warning("Refresh for user_id=%s failed: %s", user_id, failure)
                self.loading = False
                self._set_error(str(failure), "refresh")
                if failure is exc:
                    raise
                raise failure from exc

            if generation != self._generation:
                logger.debug("Discarding stale refresh generation=%s current=%s", generation, self._generation)
                continue

            self._records = _ordered(records)
            self._version += 1
            self.loading = False
            if self._error_source == "refresh":
                self.last_error = None
                self._error_source = None
            self._notify()
            return

    def _refresh_settled(self, task: asyncio.Task[None]) -> None:
        if not task.cancelled():
            task.exception()

    def _schedule_refresh(self) -> None:
        task = asyncio.get_running_loop().create_task(self._refresh_quietly())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _refresh_quietly(self) -> None:
        try:
            await self.refresh()
        except RemoteFailure as exc:
            logger.debug("Background refresh failed: %s", exc)

    def _invalidate_inflight(self) -> None:
        if self.refreshing:
            self._generation += 1

    def _should_restore(self, version: int) -> bool:
        return self.settings.rollback_failed_mutations and version == self._version

    def _mutation_failed(self, action: str, record_id: str | None, exc: Exception) -> JobBoardError:
        if isinstance(exc, JobBoardError):
            failure = exc
        else:
            failure = RemoteFailure(f"{action} failed: {exc}")
        logger.warning("Job %s failed record_id=%s: %s", action, record_id, failure)
        self._set_error(str(failure), "mutation")
        if record_id is not None and self.settings.refresh_on_mutation_failure:
            self._schedule_refresh()
        return failure

    def _clear_mutation_error(self) -> None:
        if self.last_error is not None:
            self.clear_error()

    def _set_error(self, message: str, source: str) -> None:
        self.last_error = message
        self._error_source = source
        self._notify()

    def _require_user(self) -> str:
        if self._user_id is None:
            raise NotAuthenticated("no user is signed in")
        return self._user_id

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
