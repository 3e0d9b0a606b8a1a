from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from jobboard.core.store import RecordStore, Unsubscribe
from jobboard.errors import SubscriptionFailure

logger = logging.getLogger(__name__)


class ChangeNotifier:
    """Owns the store subscription for the signed-in user.

    Bursts of store notifications received in the same loop iteration are
    coalesced into one ``on_change`` call. Every subscription is tagged with
    a token; callbacks carrying a superseded token are dropped, so nothing is
    delivered after teardown.
    """

    def __init__(self, store: RecordStore, on_change: Callable[[], None]):
        self.store = store
        self.on_change = on_change
        self.user_id: str | None = None
        self.last_error: str | None = None
        self._unsubscribe: Unsubscribe | None = None
        self._token = 0
        self._pending = False

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    def bind(self, user_id: str | None) -> None:
        if user_id == self.user_id and self.active:
            return
        self._teardown()
        self.user_id = user_id
        if user_id is not None:
            self._open()

    def resubscribe(self) -> None:
        self._teardown()
        if self.user_id is not None:
            self._open()

    def close(self) -> None:
        self._teardown()
        self.user_id = None

    def _open(self) -> None:
        token = self._token
        try:
            self._unsubscribe = self.store.subscribe_to_changes(
                self.user_id,
                lambda: self._received(token),
                lambda exc: self._failed(token, exc),
            )
        except SubscriptionFailure as exc:
            self._failed(token, exc)
        except Exception as exc:
            self._failed(token, SubscriptionFailure(f"could not subscribe: {exc}"))
        else:
            self.last_error = None
            logger.info("Subscribed to job changes user_id=%s", self.user_id)

    def _teardown(self) -> None:
        self._token += 1
        self._pending = False
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is None:
            return
        try:
            unsubscribe()
        except Exception:
            logger.exception("Unsubscribe failed user_id=%s", self.user_id)

    def _received(self, token: int) -> None:
        if token != self._token or self._pending:
            return
        self._pending = True
        asyncio.get_running_loop().call_soon(self._deliver, token)

    def _deliver(self, token: int) -> None:
        if token != self._token:
            return
        self._pending = False
        self.on_change()

    def _failed(self, token: int, exc: SubscriptionFailure) -> None:
        if token != self._token:
            return
        self._teardown()
        self.last_error = str(exc)
        logger.warning("Change notifications unavailable user_id=%s: %s", self.user_id, exc)
