"""
Test suite for the reorder reconciler.

Covers same-column and cross-column moves, drops on columns, no-op events,
stale columns, and the minimal changed set.
"""

import random

from teamboard.core.models import Task
from teamboard.core.reconciler import (
    Move,
    NoOp,
    move_item,
    reconcile,
    renumber,
    resolve_move,
)


TODO, DOING, DONE = "col-todo", "col-doing", "col-done"
COLUMNS = [TODO, DOING, DONE]


def _task(task_id, column_id, position):
    return Task(id=task_id, title=f"Task {task_id}", column_id=column_id, position=position)


def _order(tasks, column_id):
    """Task IDs of a column in position order."""
    return [t.id for t in sorted((t for t in tasks if t.column_id == column_id), key=lambda t: t.position)]


def _positions(tasks, column_id):
    return [t.position for t in sorted((t for t in tasks if t.column_id == column_id), key=lambda t: t.position)]


# --- Helpers ---

def test_move_item_remove_then_insert():
    assert move_item(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]
    assert move_item(["a", "b", "c", "d"], 3, 0) == ["d", "a", "b", "c"]


def test_move_item_does_not_mutate():
    items = ["a", "b", "c"]
    move_item(items, 0, 2)
    assert items == ["a", "b", "c"]


def test_renumber_copies_only_changed():
    a, b = _task("a", TODO, 4), _task("b", TODO, 1)
    renumbered = renumber([a, b])

    assert [t.position for t in renumbered] == [0, 1]
    assert renumbered[1] is b
    assert a.position == 4


# --- Same column ---

def test_same_column_move_down():
    """[A,B,C,D] moving A onto C gives [B,C,A,D]."""
    tasks = [_task(i, TODO, p) for p, i in enumerate("ABCD")]

    updated, changed = reconcile(tasks, "A", "C", COLUMNS)

    assert _order(updated, TODO) == ["B", "C", "A", "D"]
    assert _positions(updated, TODO) == [0, 1, 2, 3]
    assert {t.id for t in changed} == {"A", "B", "C"}


def test_same_column_move_up():
    tasks = [_task(i, TODO, p) for p, i in enumerate("ABCD")]

    updated, changed = reconcile(tasks, "D", "B", COLUMNS)

    assert _order(updated, TODO) == ["A", "D", "B", "C"]
    assert {t.id for t in changed} == {"D", "B", "C"}


def test_same_column_drop_on_own_column_is_noop():
    tasks = [_task("A", TODO, 0), _task("B", TODO, 1)]

    result = resolve_move(tasks, "A", TODO, COLUMNS)

    assert isinstance(result, NoOp)


def test_same_column_with_duplicate_positions_uses_input_order():
    """Equal positions keep input order, then get renumbered."""
    tasks = [_task("A", TODO, 0), _task("B", TODO, 0), _task("C", TODO, 0)]

    updated, changed = reconcile(tasks, "C", "A", COLUMNS)

    assert _order(updated, TODO) == ["C", "A", "B"]
    assert _positions(updated, TODO) == [0, 1, 2]
    # A stays at 0 -> 1, B 0 -> 2, C 0 -> 0 (unchanged)
    assert {t.id for t in changed} == {"A", "B"}


def test_duplicate_positions_break_ties_by_creation_time():
    """Input order is ignored when created_at tells the tasks apart."""
    tasks = [
        Task(id="late", title="Late", column_id=TODO, position=0, created_at="2026-01-02T09:00:00"),
        Task(id="early", title="Early", column_id=TODO, position=0, created_at="2026-01-01T09:00:00"),
        _task("X", DOING, 0),
    ]

    updated, changed = reconcile(tasks, "X", TODO, COLUMNS)

    assert _order(updated, TODO) == ["early", "late", "X"]
    assert {t.id: t.position for t in updated if t.column_id == TODO} == {
        "early": 0, "late": 1, "X": 2,
    }
    assert {t.id for t in changed} == {"late", "X"}


# --- Cross column ---

def test_cross_column_move_onto_task():
    """Source [A,B], destination [X,Y]; A onto Y."""
    tasks = [
        _task("A", TODO, 0), _task("B", TODO, 1),
        _task("X", DOING, 0), _task("Y", DOING, 1),
    ]

    updated, changed = reconcile(tasks, "A", "Y", COLUMNS)

    assert _order(updated, TODO) == ["B"]
    assert _positions(updated, TODO) == [0]
    assert _order(updated, DOING) == ["X", "A", "Y"]
    assert _positions(updated, DOING) == [0, 1, 2]
    moved = next(t for t in updated if t.id == "A")
    assert moved.column_id == DOING
    assert {t.id for t in changed} == {"A", "B", "Y"}


def test_cross_column_drop_on_column_appends():
    tasks = [_task("A", TODO, 0), _task("X", DOING, 0), _task("Y", DOING, 1)]

    updated, _ = reconcile(tasks, "A", DOING, COLUMNS)

    assert _order(updated, DOING) == ["X", "Y", "A"]
    assert _positions(updated, DOING) == [0, 1, 2]


def test_drop_on_empty_column():
    tasks = [_task("A", TODO, 0), _task("B", TODO, 1)]

    updated, changed = reconcile(tasks, "A", DONE, COLUMNS)

    moved = next(t for t in updated if t.id == "A")
    assert moved.column_id == DONE
    assert moved.position == 0
    assert _order(updated, TODO) == ["B"]
    assert {t.id for t in changed} == {"A", "B"}


def test_drop_on_empty_column_needs_known_columns():
    """Without column_ids, only columns holding tasks are known."""
    tasks = [_task("A", TODO, 0)]

    result = resolve_move(tasks, "A", DONE)

    assert isinstance(result, NoOp)


def test_end_to_end_move_to_done():
    """T1 dragged onto T3's slot in Done."""
    tasks = [_task("T1", TODO, 0), _task("T2", TODO, 1), _task("T3", DONE, 0)]

    result = resolve_move(tasks, "T1", "T3", COLUMNS)

    assert isinstance(result, Move)
    assert _order(result.tasks, TODO) == ["T2"]
    assert _positions(result.tasks, TODO) == [0]
    assert _order(result.tasks, DONE) == ["T1", "T3"]
    assert _positions(result.tasks, DONE) == [0, 1]
    assert [t.id for t in result.changed] == ["T1", "T2", "T3"]


# --- No-op events ---

def test_drop_on_itself_is_noop():
    tasks = [_task("A", TODO, 0), _task("B", TODO, 1)]

    updated, changed = reconcile(tasks, "A", "A", COLUMNS)

    assert updated == tasks
    assert changed == []


def test_drop_outside_any_target_is_noop():
    tasks = [_task("A", TODO, 0)]
    result = resolve_move(tasks, "A", None, COLUMNS)
    assert isinstance(result, NoOp)


def test_unknown_active_is_noop():
    tasks = [_task("A", TODO, 0)]
    result = resolve_move(tasks, "missing", "A", COLUMNS)
    assert isinstance(result, NoOp)
    assert "not on board" in result.reason


def test_unknown_target_is_noop():
    tasks = [_task("A", TODO, 0)]
    result = resolve_move(tasks, "A", "nowhere", COLUMNS)
    assert isinstance(result, NoOp)


def test_noop_leaves_input_untouched():
    tasks = [_task("A", TODO, 0), _task("B", TODO, 1)]
    updated, changed = reconcile(tasks, "A", None, COLUMNS)
    assert updated == tasks
    assert changed == []


# --- Stale columns ---

def test_task_in_unknown_column_is_not_touched():
    stale = _task("S", "col-deleted", 7)
    tasks = [_task("A", TODO, 0), stale, _task("B", TODO, 1), _task("X", DOING, 0)]

    updated, changed = reconcile(tasks, "B", "X", COLUMNS)

    assert next(t for t in updated if t.id == "S") is stale
    assert "S" not in {t.id for t in changed}


def test_moving_task_from_unknown_column_is_noop():
    tasks = [_task("S", "col-deleted", 0), _task("A", TODO, 0)]
    result = resolve_move(tasks, "S", "A", COLUMNS)
    assert isinstance(result, NoOp)


def test_dropping_onto_task_in_unknown_column_is_noop():
    tasks = [_task("S", "col-deleted", 0), _task("A", TODO, 0)]
    result = resolve_move(tasks, "A", "S", COLUMNS)
    assert isinstance(result, NoOp)


# --- Invariants over many moves ---

def test_inputs_are_never_mutated():
    tasks = [_task("A", TODO, 0), _task("B", TODO, 1), _task("X", DOING, 0)]
    before = [(t.id, t.column_id, t.position) for t in tasks]

    reconcile(tasks, "A", "X", COLUMNS)

    assert [(t.id, t.column_id, t.position) for t in tasks] == before


def test_random_moves_keep_columns_dense_and_tasks_conserved():
    rng = random.Random(7)
    tasks = []
    for column_index, column_id in enumerate(COLUMNS):
        for position in range(4 - column_index):
            tasks.append(_task(f"{column_id}-{position}", column_id, position))
    stale = _task("stale", "col-deleted", 3)
    tasks.append(stale)
    ids = sorted(t.id for t in tasks)

    for _ in range(200):
        active = rng.choice(tasks).id
        over = rng.choice([t.id for t in tasks] + COLUMNS + [None])
        tasks, changed = reconcile(tasks, active, over, COLUMNS)

        assert sorted(t.id for t in tasks) == ids
        for column_id in COLUMNS:
            assert _positions(tasks, column_id) == list(range(len(_positions(tasks, column_id))))
        assert next(t for t in tasks if t.id == "stale") is stale
        for t in changed:
            assert t.column_id in COLUMNS
