"""Pipeline transition hook. Observers receive one event per state change of a task."""
import logging
from typing import Callable, NamedTuple, Optional

from converter.conversion.models import TaskStatus

logger = logging.getLogger("converter.pipeline")


class PipelineEvent(NamedTuple):
    status: TaskStatus
    filename: str
    task_id: Optional[int] = None
    detail: Optional[str] = None


PipelineObserver = Callable[[PipelineEvent], None]


class LoggingObserver:
    """Default observer: one log record per transition, event fields attached as ``extra``."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger

    def __call__(self, event: PipelineEvent) -> None:
        level = logging.WARNING if event.status == TaskStatus.FAILED else logging.INFO
        extra = {
            "task_status": event.status.value,
            "task_filename": event.filename,
            "task_id": event.task_id,
        }
        if event.detail:
            self._log.log(level, "Task %s [%s] %s: %s", event.task_id or "-", event.status.value, event.filename, event.detail, extra=extra)
        else:
            self._log.log(level, "Task %s [%s] %s", event.task_id or "-", event.status.value, event.filename, extra=extra)


_default_observer = LoggingObserver()


def get_pipeline_observer() -> PipelineObserver:
    return _default_observer
