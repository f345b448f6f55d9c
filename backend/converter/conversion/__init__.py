from .allocator import TaskAllocator, get_task_allocator
from .models import OutputFormat, Task, TaskStatus, SUPPORTED_FORMATS
from .naming import output_name
from .service import ConversionEngine, get_conversion_engine

__all__ = [
    "ConversionEngine",
    "OutputFormat",
    "SUPPORTED_FORMATS",
    "Task",
    "TaskAllocator",
    "TaskStatus",
    "get_conversion_engine",
    "get_task_allocator",
    "output_name",
]
