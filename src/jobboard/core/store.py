from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from jobboard.core.events import EventBus
from jobboard.db.repositories import Repository, to_record
from jobboard.errors import JobBoardError, RecordNotFound, RemoteFailure, SubscriptionFailure
from jobboard.types import ChangeEvent, JobFields, JobPatch, JobRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

Unsubscribe = Callable[[], None]
ErrorCallback = Callable[[SubscriptionFailure], None]


class RecordStore(Protocol):
    async def list_records(self, user_id: str) -> list[JobRecord]: ...

    async def create_record(self, user_id: str, fields: JobFields) -> str: ...

    async def update_record(self, record_id: str, patch: JobPatch) -> None: ...

    async def delete_record(self, record_id: str) -> None: ...

    def subscribe_to_changes(
        self,
        user_id: str,
        on_change: Callable[[], None],
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe: ...


class SqlRecordStore:
    """Record store backed by the SQLAlchemy repository.

    Blocking database work runs in a worker thread with its own session per
    call. Successful mutations publish a change event on the owning user's
    channel, which is what drives other clients' refreshes.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None, *, event_bus: EventBus | None = None):
        if session_factory is None:
            from jobboard.db.session import SessionLocal

            session_factory = SessionLocal
        self.session_factory = session_factory
        self.event_bus = event_bus or EventBus()

    async def list_records(self, user_id: str) -> list[JobRecord]:
        return await self._call("list", self._list, user_id)

    async def create_record(self, user_id: str, fields: JobFields) -> str:
        record = await self._call("create", self._create, user_id, fields)
        await self._publish("INSERT", record.id, record.user_id)
        return record.id

    async def update_record(self, record_id: str, patch: JobPatch) -> None:
        record = await self._call("update", self._update, record_id, patch.values())
        await self._publish("UPDATE", record.id, record.user_id)

    async def delete_record(self, record_id: str) -> None:
        user_id = await self._call("delete", self._delete, record_id)
        if user_id is not None:
            await self._publish("DELETE", record_id, user_id)

    def subscribe_to_changes(
        self,
        user_id: str,
        on_change: Callable[[], None],
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise SubscriptionFailure("change subscriptions require a running event loop") from exc

        queue = self.event_bus.open(user_id)
        task = loop.create_task(self._pump(queue, on_change))
        closed = False

        def _finished(done: asyncio.Task[None]) -> None:
            if done.cancelled():
                return
            exc = done.exception()
            if exc is None:
                return
            logger.warning("Change channel for user_id=%s dropped: %s", user_id, exc)
            if on_error is not None:
                on_error(SubscriptionFailure(f"change channel dropped: {exc}"))

        task.add_done_callback(_finished)

        def unsubscribe() -> None:
            nonlocal closed
            if closed:
                return
            closed = True
            task.cancel()
            self.event_bus.close(user_id, queue)

        return unsubscribe

    async def _pump(self, queue: asyncio.Queue[dict[str, Any]], on_change: Callable[[], None]) -> None:
        while True:
            await queue.get()
            on_change()

    async def _publish(self, kind: str, record_id: str, user_id: str) -> None:
        event = ChangeEvent(type=kind, record_id=record_id, user_id=user_id)
        await self.event_bus.publish(user_id, event.model_dump())

    async def _call(self, action: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except JobBoardError:
            raise
        except SQLAlchemyError as exc:
            logger.exception("Record store %s failed", action)
            raise RemoteFailure(f"{action} failed") from exc

    def _list(self, user_id: str) -> list[JobRecord]:
        with self.session_factory() as session:
            return [to_record(row) for row in Repository(session).list_jobs(user_id)]

    def _create(self, user_id: str, fields: JobFields) -> JobRecord:
        with self.session_factory() as session:
            return to_record(Repository(session).create_job(user_id, fields))

    def _update(self, record_id: str, values: dict[str, Any]) -> JobRecord:
        with self.session_factory() as session:
            try:
                row = Repository(session).update_job(record_id, values)
            except ValueError as exc:
                raise RecordNotFound(str(exc)) from exc
            return to_record(row)

    def _delete(self, record_id: str) -> str | None:
        with self.session_factory() as session:
            return Repository(session).delete_job(record_id)
