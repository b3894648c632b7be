"""
Draft / publish lifecycle per class per academic year.

    NO_TIMETABLE --edit--> DRAFT --publish--> PUBLISHED
    PUBLISHED --edit--> DRAFT (a fresh draft; the published row is never mutated)

Publishing moves any prior published record to SUPERSEDED (kept for history).
There is no unpublish or delete-draft transition.
"""

from enum import Enum
from typing import Dict, Tuple

from timegrid.core.exceptions import NotFoundError


class LifecycleState(str, Enum):
    NO_TIMETABLE = "NO_TIMETABLE"
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class LifecycleAction(str, Enum):
    EDIT = "edit"
    PUBLISH = "publish"


TRANSITIONS: Dict[Tuple[LifecycleState, LifecycleAction], LifecycleState] = {
    (LifecycleState.NO_TIMETABLE, LifecycleAction.EDIT): LifecycleState.DRAFT,
    (LifecycleState.DRAFT, LifecycleAction.EDIT): LifecycleState.DRAFT,
    (LifecycleState.PUBLISHED, LifecycleAction.EDIT): LifecycleState.DRAFT,
    (LifecycleState.DRAFT, LifecycleAction.PUBLISH): LifecycleState.PUBLISHED,
}


def class_state(has_draft: bool, has_published: bool) -> LifecycleState:
    """A pending draft wins: the class is being edited even while a published version is live."""
    if has_draft:
        return LifecycleState.DRAFT
    if has_published:
        return LifecycleState.PUBLISHED
    return LifecycleState.NO_TIMETABLE


def transition(state: LifecycleState, action: LifecycleAction) -> LifecycleState:
    try:
        return TRANSITIONS[(state, action)]
    except KeyError:
        # Only publish can be missing: edit is allowed from every state
        raise NotFoundError("No draft timetable found to publish")


def creates_new_draft(state: LifecycleState) -> bool:
    """An edit from NO_TIMETABLE or PUBLISHED inserts a draft row instead of updating one."""
    return state in (LifecycleState.NO_TIMETABLE, LifecycleState.PUBLISHED)
