import pytest

from fakes import make_record
from jobboard.core.filters import ALL, FilterIndex
from jobboard.errors import RecordValidationError
from jobboard.types import JOB_STATUSES


def _records():
    return tuple(
        make_record(f"r{index}", status=status, minutes=-index)
        for index, status in enumerate(["saved", "applied", "offer", "applied", "rejected", "interview_stage"])
    )


def test_all_returns_input_unchanged() -> None:
    index = FilterIndex()
    records = _records()
    assert index.selection == frozenset({ALL})
    assert index.visible(records) is records


def test_toggle_from_all_selects_only_that_status() -> None:
    index = FilterIndex()
    index.toggle("applied")
    assert index.selection == frozenset({"applied"})
    assert not index.is_all


def test_toggle_round_trip_reverts_to_all() -> None:
    index = FilterIndex()
    index.set_all()
    index.toggle("offer")
    index.toggle("offer")
    assert index.is_all
    assert index.selection == frozenset({ALL})


def test_two_toggles_form_a_union() -> None:
    index = FilterIndex()
    records = _records()
    index.toggle("applied")
    index.toggle("offer")

    visible = index.visible(records)

    assert index.selection == frozenset({"applied", "offer"})
    assert [record.id for record in visible] == ["r1", "r2", "r3"]
    assert all(record.status in {"applied", "offer"} for record in visible)
    assert records == _records()


@pytest.mark.parametrize("status", JOB_STATUSES)
def test_concrete_selection_keeps_every_matching_record(status: str) -> None:
    index = FilterIndex()
    records = _records()
    index.toggle(status)

    visible = index.visible(records)

    assert [record.id for record in visible] == [record.id for record in records if record.status == status]


def test_set_all_clears_concrete_selection() -> None:
    index = FilterIndex()
    index.toggle("saved")
    index.toggle("rejected")
    index.set_all()
    assert index.is_all
    assert not index.is_selected("saved")
    assert index.is_selected(ALL)


def test_toggling_all_sentinel_behaves_like_set_all() -> None:
    index = FilterIndex()
    index.toggle("saved")
    index.toggle(ALL)
    assert index.is_all


def test_ordered_selection_follows_declaration_order() -> None:
    index = FilterIndex()
    index.toggle("offer")
    index.toggle("saved")
    index.toggle("interview_stage")
    assert index.ordered_selection() == ["saved", "interview_stage", "offer"]


def test_toggle_rejects_unknown_status() -> None:
    index = FilterIndex()
    with pytest.raises(RecordValidationError):
        index.toggle("ghosted")
    assert index.is_all
