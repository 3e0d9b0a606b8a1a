from __future__ import annotations

import asyncio

import pytest

from fakes import MemoryStore, make_record, remote_down
from jobboard.config import Settings
from jobboard.core.editor import EditSessionController, EditState
from jobboard.core.reconciler import ReconciliationEngine
from jobboard.errors import InvalidTransition, RecordValidationError


def _controller(store: MemoryStore | None = None) -> EditSessionController:
    engine = ReconciliationEngine(store or MemoryStore(), settings=Settings(refresh_on_mutation_failure=False))
    engine.reset("u1")
    return EditSessionController(engine)


def test_start_create_opens_empty_composing_session() -> None:
    controller = _controller()
    controller.start_create()

    assert controller.state is EditState.COMPOSING
    assert controller.record is None
    assert controller.draft.title == ""
    assert controller.draft.status == "saved"


def test_start_create_only_from_idle() -> None:
    controller = _controller()
    controller.start_create()
    with pytest.raises(InvalidTransition):
        controller.start_create()

    controller.cancel()
    controller.start_edit(make_record("a"))
    with pytest.raises(InvalidTransition):
        controller.start_create()


def test_start_edit_preloads_and_last_selection_wins() -> None:
    controller = _controller()
    first = make_record("a", status="applied", notes="referral")
    second = make_record("b", title="Platform Engineer")

    controller.start_edit(first)
    assert controller.draft.notes == "referral"
    controller.update_field("title", "Changed")

    controller.start_edit(second)
    assert controller.state is EditState.EDITING
    assert controller.record is second
    assert controller.draft.title == "Platform Engineer"
    assert first.title == "Role a"


def test_update_field_requires_open_session_and_known_field() -> None:
    controller = _controller()
    with pytest.raises(InvalidTransition):
        controller.update_field("title", "Backend Engineer")

    controller.start_create()
    with pytest.raises(RecordValidationError):
        controller.update_field("salary", "lots")


def test_cancel_and_dismiss_discard_working_copy() -> None:
    controller = _controller()
    controller.dismiss()
    assert controller.state is EditState.IDLE

    controller.start_edit(make_record("a"))
    controller.update_field("company", "Globex")
    controller.dismiss()
    assert controller.state is EditState.IDLE
    assert controller.draft is None

    controller.start_create()
    controller.cancel()
    assert controller.state is EditState.IDLE


def test_submit_with_empty_title_keeps_session_and_draft() -> None:
    async def scenario() -> None:
        store = MemoryStore()
        controller = _controller(store)
        controller.start_create()
        controller.update_field("company", "Acme")

        assert await controller.submit() is False

        assert controller.state is EditState.COMPOSING
        assert controller.draft.company == "Acme"
        assert "title" in controller.error
        assert store.calls == []

    asyncio.run(scenario())


def test_submit_create_returns_to_idle_and_refreshes() -> None:
    async def scenario() -> None:
        controller = _controller()
        controller.start_create()
        controller.update_field("title", "Backend Engineer")
        controller.update_field("company", "Acme")
        controller.update_field("url", "https://acme.example/jobs/7")

        assert await controller.submit() is True

        assert controller.state is EditState.IDLE
        records = controller.engine.records
        assert len(records) == 1
        assert records[0].url == "https://acme.example/jobs/7"
        assert records[0].notes is None

    asyncio.run(scenario())


def test_submit_edit_updates_record_in_place() -> None:
    async def scenario() -> None:
        store = MemoryStore()
        store.add(make_record("a"))
        controller = _controller(store)
        await controller.engine.refresh()

        controller.start_edit(controller.engine.get("a"))
        controller.update_field("status", "interview_stage")
        controller.update_field("notes", "Onsite on Friday")

        assert await controller.submit() is True
        assert controller.state is EditState.IDLE
        assert controller.engine.get("a").status == "interview_stage"
        assert store.rows["a"].notes == "Onsite on Friday"

    asyncio.run(scenario())


def test_submit_failure_keeps_typed_input_and_error() -> None:
    async def scenario() -> None:
        store = MemoryStore()
        controller = _controller(store)
        controller.start_create()
        controller.update_field("title", "Backend Engineer")
        controller.update_field("company", "Acme")
        store.failures["create"] = remote_down("create")

        assert await controller.submit() is False

        assert controller.state is EditState.COMPOSING
        assert controller.draft.title == "Backend Engineer"
        assert controller.error == "create rejected by store"
        assert controller.submitting is False

    asyncio.run(scenario())


def test_submit_requires_open_session() -> None:
    async def scenario() -> None:
        controller = _controller()
        with pytest.raises(InvalidTransition):
            await controller.submit()

    asyncio.run(scenario())


def test_completed_submit_leaves_replacement_session_open() -> None:
    async def scenario() -> None:
        store = MemoryStore()
        store.add(make_record("a"))
        store.add(make_record("b", minutes=1))
        controller = _controller(store)
        await controller.engine.refresh()

        store.gate_mutations = True
        controller.start_edit(controller.engine.get("a"))
        controller.update_field("status", "offer")
        task = asyncio.create_task(controller.submit())
        await store.wait_for_mutations(1)

        controller.start_edit(controller.engine.get("b"))
        store.mutation_gates[0].set_result(None)
        assert await task is True

        assert controller.state is EditState.EDITING
        assert controller.record.id == "b"
        assert controller.engine.get("a").status == "offer"

    asyncio.run(scenario())
