"""Dependency helpers shared across FastAPI routes."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from src.planner.config import Config
from src.planner.logger import setup_logger
from src.tasks import MutationOutcome, Task, TaskRepository, TaskService, derive_mode

from .schemas import LogEntryResponse, MutationResponse, TaskResponse

config = Config.from_yaml()
setup_logger(log_level=config.log_level, log_file=config.log_file)


@lru_cache(maxsize=1)
def get_task_repository() -> TaskRepository:
    """Singleton TaskRepository."""
    db_path: Optional[str] = os.getenv("LIFE_PLANNER_DB_PATH") or config.db_path
    return TaskRepository(db_path=db_path)


def get_task_service() -> TaskService:
    """TaskService bound to the current repository singleton."""
    return TaskService(get_task_repository())


def serialize_task(task: Task) -> TaskResponse:
    """Convert domain Task to API response."""
    return TaskResponse(
        id=task.id,
        title=task.title,
        category=task.category,
        type=task.type,
        mode=derive_mode(task),
        completed=task.completed,
        completed_at=task.completed_at,
        date=task.date,
        start_time=task.start_time,
        end_time=task.end_time,
        is_all_day=task.is_all_day,
        location=task.location,
        notes=task.notes,
        logs=[LogEntryResponse(**entry.to_dict()) for entry in task.logs],
        is_backlog=task.is_backlog,
        created_at=task.created_at,
    )


def serialize_outcome(outcome: MutationOutcome) -> MutationResponse:
    return MutationResponse(
        task=serialize_task(outcome.task),
        previous=serialize_task(outcome.previous),
        operation=outcome.operation,
    )
