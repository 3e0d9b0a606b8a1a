from __future__ import annotations

import logging
from collections.abc import Callable

from jobboard.types import Identity

logger = logging.getLogger(__name__)

AuthListener = Callable[[Identity | None], None]


class AuthSession:
    """Holds the signed-in identity and announces sign-in/sign-out transitions."""

    def __init__(self, user: Identity | None = None):
        self._user = user
        self._listeners: list[AuthListener] = []

    @property
    def user(self) -> Identity | None:
        return self._user

    def on_change(self, listener: AuthListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def sign_in(self, identity: Identity) -> None:
        self._transition(identity)

    def sign_out(self) -> None:
        self._transition(None)

    def _transition(self, user: Identity | None) -> None:
        previous = self._user
        if (previous.id if previous else None) == (user.id if user else None):
            self._user = user
            return
        self._user = user
        logger.info(
            "Auth transition from=%s to=%s",
            previous.id if previous else None,
            user.id if user else None,
        )
        for listener in list(self._listeners):
            listener(user)
