"""Process-wide task id allocation."""
import threading
from typing import Optional


class TaskAllocator:
    """Issues unique, strictly increasing task ids starting at ``start + 1``.

    The lock is held only for the increment, never across I/O.
    """

    def __init__(self, start: int = 0):
        self._lock = threading.Lock()
        self._counter = start

    def next_id(self) -> int:
        with self._lock:
            self._counter += 1
            return self._counter


# Singleton
_task_allocator: Optional[TaskAllocator] = None
_singleton_lock = threading.Lock()


def get_task_allocator() -> TaskAllocator:
    global _task_allocator
    if _task_allocator is None:
        with _singleton_lock:
            if _task_allocator is None:
                _task_allocator = TaskAllocator()
    return _task_allocator
