"""
Named task queue used to sequence startup work.

Tasks live in an arena keyed by integer handles. Two permanent sentinel
handles frame the chain, so every insertion and removal is a rewrite of at
most four links and no endpoint needs special casing.
"""
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

__all__ = ['Task', 'TaskQueue', 'TaskExecutionError']

Action = Callable[[], object]

_HEAD = 0
_TAIL = 1


class TaskExecutionError(RuntimeError):
    """Raised by :meth:`TaskQueue.execute` when a task's action fails."""

    def __init__(self, task_name: str, original_error: BaseException):
        super().__init__(f"Task '{task_name}' failed: {type(original_error).__name__}: {original_error}")
        self.task_name = task_name
        self.original_error = original_error


@dataclass
class Task:
    name: str
    action: Optional[Action]
    prev: Optional[int] = None
    next: Optional[int] = None


class TaskQueue:
    """
    Ordered, mutable pipeline of zero-argument actions addressed by name.

    ``add_before`` / ``add_after`` insert relative to an anchor task. An
    unknown anchor degrades to ``add_head`` / ``add_tail`` respectively.
    ``execute`` walks from the head, evicting each task once it succeeds and
    stopping at the first failure.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._handles = itertools.count(2)
        self._arena: Dict[int, Task] = {}
        self._index: Dict[str, int] = {}
        self._reset()

    def _reset(self) -> None:
        self._arena = {
            _HEAD: Task(name='<head>', action=None, next=_TAIL),
            _TAIL: Task(name='<tail>', action=None, prev=_HEAD),
        }
        self._index = {}

    # ------------------------------------------------------------------
    # inspection
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        with self._lock:
            return len(self._index)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    @property
    def head(self) -> Optional[str]:
        with self._lock:
            first = self._arena[_HEAD].next
            return None if first == _TAIL else self._arena[first].name

    @property
    def tail(self) -> Optional[str]:
        with self._lock:
            last = self._arena[_TAIL].prev
            return None if last == _HEAD else self._arena[last].name

    def names(self) -> List[str]:
        """Task names walking ``next`` from the head."""
        with self._lock:
            result = []
            handle = self._arena[_HEAD].next
            while handle != _TAIL:
                task = self._arena[handle]
                result.append(task.name)
                handle = task.next
            return result

    def reversed_names(self) -> List[str]:
        """Task names walking ``prev`` from the tail."""
        with self._lock:
            result = []
            handle = self._arena[_TAIL].prev
            while handle != _HEAD:
                task = self._arena[handle]
                result.append(task.name)
                handle = task.prev
            return result

    # ------------------------------------------------------------------
    # insertion
    # ------------------------------------------------------------------
    def add(self, name: str, action: Action) -> None:
        self.add_tail(name, action)

    def add_head(self, name: str, action: Action) -> None:
        with self._lock:
            self._insert_after(_HEAD, name, action)

    def add_tail(self, name: str, action: Action) -> None:
        with self._lock:
            self._insert_after(self._arena[_TAIL].prev, name, action)

    def add_before(self, name: str, action: Action, anchor: str) -> None:
        with self._lock:
            target = self._index.get(anchor)
            if target is None:
                logger.debug(f"Anchor '{anchor}' not found, adding '{name}' at head")
                target = self._arena[_HEAD].next
            self._insert_after(self._arena[target].prev, name, action)

    def add_after(self, name: str, action: Action, anchor: str) -> None:
        with self._lock:
            target = self._index.get(anchor)
            if target is None:
                logger.debug(f"Anchor '{anchor}' not found, adding '{name}' at tail")
                target = self._arena[_TAIL].prev
            self._insert_after(target, name, action)

    def _insert_after(self, prev_handle: int, name: str, action: Action) -> None:
        if not name or action is None:
            logger.debug('Ignoring task with empty name or action')
            return
        if name in self._index:
            logger.debug(f"Task '{name}' already queued, ignoring")
            return
        prev = self._arena[prev_handle]
        next_handle = prev.next
        handle = next(self._handles)
        self._arena[handle] = Task(name=name, action=action, prev=prev_handle, next=next_handle)
        prev.next = handle
        self._arena[next_handle].prev = handle
        self._index[name] = handle

    # ------------------------------------------------------------------
    # removal
    # ------------------------------------------------------------------
    def remove(self, name: str) -> None:
        with self._lock:
            handle = self._index.get(name)
            if handle is not None:
                self._unlink(handle)

    def clear(self) -> None:
        with self._lock:
            self._reset()

    def _unlink(self, handle: int) -> None:
        task = self._arena.pop(handle)
        self._arena[task.prev].next = task.next
        self._arena[task.next].prev = task.prev
        del self._index[task.name]

    # ------------------------------------------------------------------
    # execution
    # ------------------------------------------------------------------
    def execute(self) -> None:
        """
        Run every queued task in order.

        Raises:
            TaskExecutionError: the first failing task. It stays at the head
                together with every task after it, so a later call resumes there.
        """
        with self._lock:
            while True:
                handle = self._arena[_HEAD].next
                if handle == _TAIL:
                    break
                task = self._arena[handle]
                logger.debug(f"Executing queue task '{task.name}'")
                try:
                    task.action()
                except Exception as e:
                    logger.error(f"Queue task '{task.name}' failed: {e}")
                    raise TaskExecutionError(task.name, e) from e
                # the action may have removed itself
                if self._index.get(task.name) == handle:
                    self._unlink(handle)
