"""
FILE: teamboard/core/board_state.py
PURPOSE: Client-local cache of one board's columns and tasks, with optimistic moves
EXPORTS:
  - SessionState (enum: IDLE, RECONCILING, PERSISTING)
  - BoardState (class)
    - load() -> (columns, tasks)
    - apply_reorder(new_tasks) -> None
    - commit(changed_tasks) -> List[Task]
    - move(active_id, over_id, wait) -> NoOp | Move | Future
    - ensure_idle() -> None
DEPENDENCIES:
  - concurrent.futures, threading, time, sqlite3, logging (stdlib)
  - teamboard.config (write pool size, retry policy)
  - teamboard.core.repository (Task Store)
  - teamboard.core.reconciler (resolve_move)
  - teamboard.core.exceptions
NOTES:
  - Owned by a single view session (CLI call or REPL); never authoritative
  - One move at a time per board: a move while RECONCILING or PERSISTING
    raises MoveInFlightError
  - commit() writes one row per changed task, concurrently, not atomically
  - Each write carries the version the cache last saw; a conflicting row
    fails with StaleWriteError and is not retried
  - On any failed write the cache resyncs from the store (or falls back to
    the pre-move snapshot) before PlacementWriteError is raised
"""

import logging
import sqlite3
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from ..config import Config, get_config
from . import repository
from .models import Column, Task
from .reconciler import Move, NoOp, resolve_move
from .exceptions import (
    FetchError,
    MoveInFlightError,
    PlacementWriteError,
    StaleWriteError,
    TaskNotFoundError,
)

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    RECONCILING = "reconciling"
    PERSISTING = "persisting"


class BoardState:
    """
    In-memory mirror of one board.

    Attributes:
        board_id: Board this cache mirrors
        columns: Columns ordered by position
        tasks: All tasks of the board, in store order
        state: Current SessionState
    """

    def __init__(self, board_id: str, config: Optional[Config] = None):
        self.board_id = board_id
        self.config = config or get_config()
        self.columns: List[Column] = []
        self.tasks: List[Task] = []
        self.state = SessionState.IDLE
        self.loaded = False
        self._lock = threading.Lock()
        self._background = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"board-{board_id[:8]}"
        )

    def __enter__(self) -> "BoardState":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Wait for any background commit and release its worker."""
        self._background.shutdown(wait=True)

    # --- Reading ---

    def load(self) -> Tuple[List[Column], List[Task]]:
        """
        Fetch columns and tasks for the board from the store.

        Raises:
            FetchError: If the store call fails (no retry)
        """
        try:
            columns = repository.list_columns(self.board_id)
            tasks = repository.list_tasks(self.board_id)
        except (sqlite3.Error, OSError) as e:
            logger.error("Loading board %s failed: %s", self.board_id, e)
            raise FetchError(self.board_id, str(e)) from e

        self.columns = columns
        self.tasks = tasks
        self.loaded = True
        logger.debug(
            "Loaded board %s: %d column(s), %d task(s)",
            self.board_id, len(columns), len(tasks),
        )
        return columns, tasks

    refresh = load

    @property
    def column_ids(self) -> List[str]:
        return [c.id for c in self.columns]

    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def tasks_in(self, column_id: str) -> List[Task]:
        """Tasks of a column in display order."""
        return sorted(
            (t for t in self.tasks if t.column_id == column_id),
            key=lambda t: t.position,
        )

    def ensure_idle(self) -> None:
        """Raise MoveInFlightError while a move is being reconciled or saved."""
        if self.state is not SessionState.IDLE:
            raise MoveInFlightError(self.board_id, self.state.value)

    def orphaned_tasks(self) -> List[Task]:
        """Tasks whose column is not (or no longer) on the board."""
        known = set(self.column_ids)
        return [t for t in self.tasks if t.column_id not in known]

    # --- Writing ---

    def apply_reorder(self, new_tasks: List[Task]) -> None:
        """Replace the cached task list in one step (optimistic update)."""
        self.tasks = list(new_tasks)

    def commit(
        self,
        changed_tasks: List[Task],
        snapshot: Optional[List[Task]] = None,
    ) -> List[Task]:
        """
        Persist changed placements, one store write per task, concurrently.

        Args:
            changed_tasks: Tasks whose column_id/position must be written
            snapshot: Task list to restore if a write fails and the store
                cannot be reloaded (defaults to the current cache)

        Returns:
            The stored tasks (with their new versions)

        Raises:
            PlacementWriteError: If any write failed after retries. The cache
                has already been resynced when this is raised.
        """
        if not changed_tasks:
            return []
        if snapshot is None:
            snapshot = list(self.tasks)

        stored: Dict[str, Task] = {}
        failures: Dict[str, Exception] = {}
        workers = min(self.config.write_workers, len(changed_tasks))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="placement") as pool:
            futures = {pool.submit(self._write_placement, t): t for t in changed_tasks}
            for future in as_completed(futures):
                task = futures[future]
                try:
                    stored[task.id] = future.result()
                except (PlacementWriteError, TaskNotFoundError, sqlite3.Error) as e:
                    failures[task.id] = e

        if failures:
            for task_id, error in failures.items():
                logger.error("Saving placement of task %s failed: %s", task_id, error)
            self._resync(snapshot)
            first_error = next(iter(failures.values()))
            raise PlacementWriteError(failures.keys(), str(first_error)) from first_error

        self.tasks = [stored.get(t.id, t) for t in self.tasks]
        logger.info("Saved %d placement(s) on board %s", len(stored), self.board_id)
        return [stored[t.id] for t in changed_tasks]

    def _write_placement(self, task: Task) -> Task:
        retries = self.config.write_retries
        for attempt in range(retries + 1):
            try:
                return repository.update_task_placement(
                    task.id,
                    task.column_id,
                    task.position,
                    expected_version=task.version,
                )
            except sqlite3.OperationalError as e:
                if attempt == retries:
                    raise
                delay = self.config.retry_backoff * (2 ** attempt)
                logger.warning(
                    "Placement write for task %s failed (%s); retry %d/%d in %.2fs",
                    task.id, e, attempt + 1, retries, delay,
                )
                time.sleep(delay)

    def _resync(self, snapshot: List[Task]) -> None:
        try:
            self.load()
        except FetchError:
            logger.error("Could not reload board %s; restoring pre-move order", self.board_id)
            self.tasks = list(snapshot)

    # --- Moves ---

    def move(
        self,
        active_id: str,
        over_id: Optional[str],
        wait: bool = True,
    ) -> Union[NoOp, Move, Future]:
        """
        Handle one drag-and-drop event.

        Args:
            active_id: Dragged task
            over_id: Task or column it was dropped on (None = cancelled)
            wait: Block until all writes finished. With wait=False the cache
                is updated immediately and a Future resolving to the Move is
                returned; the board stays busy until it resolves.

        Returns:
            NoOp (cache and store untouched), Move, or a Future of the Move

        Raises:
            MoveInFlightError: If a previous move is still in progress
            PlacementWriteError: If saving failed (wait=True only)
        """
        with self._lock:
            if self.state is not SessionState.IDLE:
                raise MoveInFlightError(self.board_id, self.state.value)
            self.state = SessionState.RECONCILING

        try:
            result = resolve_move(self.tasks, active_id, over_id, self.column_ids)
        except Exception:
            self.state = SessionState.IDLE
            raise

        if isinstance(result, NoOp):
            logger.debug("Ignoring move of %s over %s: %s", active_id, over_id, result.reason)
            self.state = SessionState.IDLE
            return result

        snapshot = list(self.tasks)
        self.apply_reorder(result.tasks)
        self.state = SessionState.PERSISTING
        logger.info(
            "Moving task %s over %s (%d row(s) to save)",
            active_id, over_id, len(result.changed),
        )

        if wait:
            return self._persist(result, snapshot)
        try:
            return self._background.submit(self._persist, result, snapshot)
        except RuntimeError:
            # Worker already shut down; nothing was written
            self.tasks = snapshot
            self.state = SessionState.IDLE
            raise

    def _persist(self, result: Move, snapshot: List[Task]) -> Move:
        try:
            self.commit(result.changed, snapshot)
        finally:
            self.state = SessionState.IDLE
        return result
