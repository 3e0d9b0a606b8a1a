from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from jobboard.core.reconciler import ReconciliationEngine
from jobboard.errors import InvalidTransition, JobBoardError, RecordValidationError
from jobboard.types import EDITABLE_FIELDS, JobDraft, JobRecord

logger = logging.getLogger(__name__)


class EditState(str, Enum):
    IDLE = "idle"
    COMPOSING = "composing"
    EDITING = "editing"


class EditSessionController:
    """Single create/edit form session on top of the reconciliation engine.

    The working copy lives in ``draft`` and is only turned into validated
    fields on submit. Selecting another record while a session is open
    replaces it; a submit that completes after its session was replaced
    leaves the new session alone.
    """

    def __init__(self, engine: ReconciliationEngine):
        self.engine = engine
        self.state = EditState.IDLE
        self.record: JobRecord | None = None
        self.draft: JobDraft | None = None
        self.error: str | None = None
        self.submitting = False
        self._session = 0

    @property
    def active(self) -> bool:
        return self.state is not EditState.IDLE

    def start_create(self) -> None:
        if self.active:
            raise InvalidTransition(f"cannot start a new job while {self.state.value}")
        self._open(EditState.COMPOSING, None, JobDraft(status=self.engine.settings.default_status))

    def start_edit(self, record: JobRecord) -> None:
        self._open(EditState.EDITING, record, JobDraft.from_record(record))

    def update_field(self, name: str, value: Any) -> None:
        if not self.active or self.draft is None:
            raise InvalidTransition("no edit session is open")
        if name not in EDITABLE_FIELDS:
            raise RecordValidationError(f"unknown field {name!r}")
        self.draft = self.draft.model_copy(update={name: "" if value is None else str(value)})

    def cancel(self) -> None:
        self._close()

    def dismiss(self) -> None:
        if self.active:
            logger.debug("Edit session dismissed state=%s", self.state.value)
            self._close()

    async def submit(self) -> bool:
        if not self.active or self.draft is None:
            raise InvalidTransition("no edit session to submit")
        if self.submitting:
            return False

        session = self._session
        try:
            fields = self.draft.to_fields()
        except RecordValidationError as exc:
            self.error = str(exc)
            return False

        self.error = None
        self.submitting = True
        try:
            if self.state is EditState.COMPOSING:
                await self.engine.create(fields)
            else:
                await self.engine.update(self.record.id, fields)
        except JobBoardError as exc:
            if session == self._session:
                self.error = str(exc)
            return False
        finally:
            if session == self._session:
                self.submitting = False

        if session == self._session:
            self._close()
        return True

    def _open(self, state: EditState, record: JobRecord | None, draft: JobDraft) -> None:
        self._session += 1
        self.state = state
        self.record = record
        self.draft = draft
        self.error = None
        self.submitting = False

    def _close(self) -> None:
        self._session += 1
        self.state = EditState.IDLE
        self.record = None
        self.draft = None
        self.error = None
        self.submitting = False
