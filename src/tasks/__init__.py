"""Unified task / calendar event / note core shared by the server and CLI."""

from .exceptions import InvalidTransitionError, TaskError, TaskNotFoundError, TaskValidationError
from .models import LIFE_AREA_INFO, LifeArea, LogEntry, Task, TaskType
from .nlp import ParsedTitle, parse_title
from .repository import TaskRepository
from .service import MutationOutcome, TaskService
from .state import TaskMode, derive_mode
from .transitions import DropAction, Operation, resolve_drop

__all__ = [
    "DropAction",
    "InvalidTransitionError",
    "LIFE_AREA_INFO",
    "LifeArea",
    "LogEntry",
    "MutationOutcome",
    "Operation",
    "ParsedTitle",
    "Task",
    "TaskError",
    "TaskMode",
    "TaskNotFoundError",
    "TaskRepository",
    "TaskService",
    "TaskType",
    "TaskValidationError",
    "derive_mode",
    "parse_title",
    "resolve_drop",
]
