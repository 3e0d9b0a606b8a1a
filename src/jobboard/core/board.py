from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from jobboard.config import Settings, get_settings
from jobboard.core.auth import AuthSession
from jobboard.core.editor import EditSessionController
from jobboard.core.filters import FilterIndex
from jobboard.core.notifier import ChangeNotifier
from jobboard.core.reconciler import ReconciliationEngine
from jobboard.core.store import RecordStore
from jobboard.errors import NotAuthenticated, RemoteFailure
from jobboard.types import Identity, JobRecord

logger = logging.getLogger(__name__)


class Board:
    """Presentation-facing surface wiring auth, notifier, engine, filter and editor."""

    def __init__(
        self,
        store: RecordStore,
        auth: AuthSession | None = None,
        *,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.auth = auth or AuthSession()
        self.engine = ReconciliationEngine(store, settings=self.settings)
        self.filters = FilterIndex()
        self.editor = EditSessionController(self.engine)
        self.notifier = ChangeNotifier(store, self.engine.on_remote_change)
        self._detach_auth: Callable[[], None] | None = None

    @property
    def user(self) -> Identity | None:
        return self.auth.user

    @property
    def records(self) -> tuple[JobRecord, ...]:
        return self.engine.records

    @property
    def visible(self) -> Sequence[JobRecord]:
        return self.filters.visible(self.engine.records)

    @property
    def loading(self) -> bool:
        return self.engine.loading

    @property
    def last_error(self) -> str | None:
        return self.engine.last_error or self.notifier.last_error

    def start(self) -> None:
        if self._detach_auth is not None:
            return
        self._detach_auth = self.auth.on_change(self._on_auth_change)
        if self.auth.user is not None:
            self._on_auth_change(self.auth.user)

    async def close(self) -> None:
        if self._detach_auth is not None:
            self._detach_auth()
            self._detach_auth = None
        self.notifier.close()
        await self.engine.close()

    def add_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
        return self.engine.add_listener(listener)

    async def refresh(self) -> bool:
        if self.user is not None and not self.notifier.active:
            self.notifier.resubscribe()
        try:
            await self.engine.refresh()
        except RemoteFailure:
            return False
        return True

    async def change_status(self, record_id: str, status: str) -> bool:
        try:
            await self.engine.update_status(record_id, status)
        except (RemoteFailure, NotAuthenticated) as exc:
            logger.info("Status change for %s not applied remotely: %s", record_id, exc)
            return False
        return True

    async def remove(self, record_id: str) -> bool:
        try:
            await self.engine.delete(record_id)
        except (RemoteFailure, NotAuthenticated) as exc:
            logger.info("Delete of %s not applied remotely: %s", record_id, exc)
            return False
        return True

    def _on_auth_change(self, user: Identity | None) -> None:
        user_id = user.id if user else None
        self.editor.cancel()
        self.engine.reset(user_id)
        self.notifier.bind(user_id)
        if user_id is not None:
            self.engine.request_refresh()
