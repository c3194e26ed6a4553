"""
FILE: teamboard/core/reconciler.py
PURPOSE: Recompute task order and column membership after a drag-and-drop move
EXPORTS:
  - NoOp (dataclass) - move resolves to no change
  - Move (dataclass) - full updated task list plus the rows to persist
  - resolve_move(tasks, active_id, over_id, column_ids) -> NoOp | Move
  - reconcile(tasks, active_id, over_id, column_ids) -> (tasks, changed)
  - move_item(items, old_index, new_index) -> list
  - renumber(items) -> list
DEPENDENCIES:
  - dataclasses (stdlib)
  - logging (stdlib)
  - teamboard.core.models (Task)
NOTES:
  - Pure functions: no I/O, inputs are never mutated (tasks are copied with replace())
  - Positions are dense and 0-based within a column after every move
  - Tasks whose column is unknown are excluded from sorting and left untouched
  - Changed set is the minimal diff: only tasks whose (column_id, position) moved
  - Malformed events resolve to NoOp instead of raising
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Set, Tuple, Union

from .constants import FIRST_POSITION
from .models import Task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoOp:
    """A drag event that changes nothing."""

    reason: str


@dataclass(frozen=True)
class Move:
    """
    Result of a successful reconcile.

    Attributes:
        tasks: Every task of the board, in input order, with corrected placements
        changed: Tasks whose column_id or position differ from before the move
    """

    tasks: List[Task]
    changed: List[Task] = field(default_factory=list)


MoveResult = Union[NoOp, Move]


def move_item(items: list, old_index: int, new_index: int) -> list:
    """
    Return a copy of items with the element at old_index moved to new_index.

    Remove-then-insert semantics (not a swap): elements between the two
    indexes shift by one.
    """
    moved = list(items)
    moved.insert(new_index, moved.pop(old_index))
    return moved


def renumber(items: list) -> list:
    """Copy items with position reassigned to 0..n-1 in list order."""
    return [
        item if item.position == index else replace(item, position=index)
        for index, item in enumerate(items, start=FIRST_POSITION)
    ]


def _column_tasks(tasks: List[Task], column_id: str) -> List[Task]:
    # Equal positions fall back to creation time, then input order
    return sorted(
        (t for t in tasks if t.column_id == column_id),
        key=lambda t: (t.position, t.created_at or ""),
    )


def _index_of(tasks: List[Task], task_id: Optional[str]) -> Optional[int]:
    for index, task in enumerate(tasks):
        if task.id == task_id:
            return index
    return None


def resolve_move(
    tasks: Iterable[Task],
    active_id: Optional[str],
    over_id: Optional[str],
    column_ids: Optional[Iterable[str]] = None,
) -> MoveResult:
    """
    Resolve a drag event into a NoOp or a Move.

    Args:
        tasks: All tasks of the board (pre-move)
        active_id: ID of the dragged task
        over_id: ID of the task or column the task was dropped on
            (None when dropped outside any target)
        column_ids: Known column IDs for the board. Defaults to the columns
            referenced by the given tasks.

    Returns:
        NoOp when the event resolves to no change, otherwise Move with the
        full updated task list and the subset that must be persisted.
    """
    tasks = list(tasks)
    if column_ids is None:
        known_columns: Set[str] = {t.column_id for t in tasks}
    else:
        known_columns = set(column_ids)

    by_id = {t.id: t for t in tasks}
    active = by_id.get(active_id)
    if active is None:
        return NoOp(f"task {active_id} not on board")

    if over_id is None:
        return NoOp("dropped outside any target")

    if active_id == over_id:
        return NoOp("dropped on itself")

    over_task = by_id.get(over_id)
    if over_task is not None:
        target_column_id = over_task.column_id
    elif over_id in known_columns:
        target_column_id = over_id
    else:
        return NoOp(f"drop target {over_id} not found")

    source_column_id = active.column_id
    if source_column_id not in known_columns:
        return NoOp(f"task {active_id} is in unknown column {source_column_id}")
    if target_column_id not in known_columns:
        return NoOp(f"target column {target_column_id} not found")

    if source_column_id == target_column_id:
        replacements = _same_column_move(tasks, source_column_id, active_id, over_id)
    else:
        replacements = _cross_column_move(
            tasks, source_column_id, target_column_id, active_id, over_task
        )

    if replacements is None:
        return NoOp("position unchanged")

    updated = [replacements.get(t.id, t) for t in tasks]
    changed = [
        new for old, new in zip(tasks, updated)
        if old.placement != new.placement
    ]

    if not changed:
        return NoOp("position unchanged")

    logger.debug(
        "Move %s over %s: %s -> %s, %d row(s) changed",
        active_id, over_id, source_column_id, target_column_id, len(changed),
    )
    return Move(tasks=updated, changed=changed)


def _same_column_move(
    tasks: List[Task], column_id: str, active_id: str, over_id: str
) -> Optional[dict]:
    ordered = _column_tasks(tasks, column_id)
    old_index = _index_of(ordered, active_id)
    new_index = _index_of(ordered, over_id)

    if old_index is None or new_index is None or old_index == new_index:
        return None

    reordered = renumber(move_item(ordered, old_index, new_index))
    return {t.id: t for t in reordered}


def _cross_column_move(
    tasks: List[Task],
    source_column_id: str,
    target_column_id: str,
    active_id: str,
    over_task: Optional[Task],
) -> dict:
    source = _column_tasks(tasks, source_column_id)
    destination = _column_tasks(tasks, target_column_id)

    old_index = _index_of(source, active_id)
    active = source.pop(old_index)
    active = replace(active, column_id=target_column_id)

    if over_task is None:
        insert_at = len(destination)
    else:
        insert_at = _index_of(destination, over_task.id)
    destination.insert(insert_at, active)

    replacements = {t.id: t for t in renumber(source)}
    replacements.update({t.id: t for t in renumber(destination)})
    return replacements


def reconcile(
    tasks: Iterable[Task],
    active_id: Optional[str],
    over_id: Optional[str],
    column_ids: Optional[Iterable[str]] = None,
) -> Tuple[List[Task], List[Task]]:
    """
    Compute the board's task list after a drag event.

    Returns:
        (updated_tasks, changed_tasks). A NoOp event returns the input tasks
        unchanged and an empty changed list.
    """
    tasks = list(tasks)
    result = resolve_move(tasks, active_id, over_id, column_ids)
    if isinstance(result, NoOp):
        logger.debug("No-op move %s over %s: %s", active_id, over_id, result.reason)
        return tasks, []
    return result.tasks, result.changed
