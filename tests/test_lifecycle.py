import pytest

from timegrid.api.v1.timetables.lifecycle import (
    LifecycleAction,
    LifecycleState,
    class_state,
    creates_new_draft,
    transition,
)
from timegrid.core.exceptions import NotFoundError


@pytest.mark.parametrize(
    "has_draft,has_published,expected",
    [
        (False, False, LifecycleState.NO_TIMETABLE),
        (True, False, LifecycleState.DRAFT),
        (False, True, LifecycleState.PUBLISHED),
        (True, True, LifecycleState.DRAFT),
    ],
)
def test_class_state(has_draft, has_published, expected) -> None:
    assert class_state(has_draft, has_published) == expected


@pytest.mark.parametrize("state", list(LifecycleState))
def test_edit_is_allowed_from_every_state(state) -> None:
    assert transition(state, LifecycleAction.EDIT) == LifecycleState.DRAFT


def test_publish_promotes_draft() -> None:
    assert transition(LifecycleState.DRAFT, LifecycleAction.PUBLISH) == LifecycleState.PUBLISHED


@pytest.mark.parametrize("state", [LifecycleState.NO_TIMETABLE, LifecycleState.PUBLISHED])
def test_publish_without_draft_is_not_found(state) -> None:
    with pytest.raises(NotFoundError) as exc:
        transition(state, LifecycleAction.PUBLISH)
    assert exc.value.status_code == 404
    assert exc.value.message == "No draft timetable found to publish"


def test_only_edits_outside_draft_insert_a_new_row() -> None:
    assert creates_new_draft(LifecycleState.NO_TIMETABLE)
    assert creates_new_draft(LifecycleState.PUBLISHED)
    assert not creates_new_draft(LifecycleState.DRAFT)
