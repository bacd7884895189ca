"""Task / event / note endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, HTTPException

from src.tasks import (
    InvalidTransitionError,
    MutationOutcome,
    TaskNotFoundError,
    TaskValidationError,
    resolve_drop,
)

from ..dependencies import config, get_task_service, serialize_outcome, serialize_task
from ..schemas import (
    DropRequest,
    DropResponse,
    FlexibleRequest,
    LogRequest,
    MoveToListRequest,
    MutationResponse,
    QuickAddRequest,
    ScheduleRequest,
    TaskCreateRequest,
    TaskResponse,
    TaskUpdateRequest,
)

logger = logging.getLogger(__name__)


def _not_found(exc: TaskNotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


async def _run_mutation(
    action: str,
    func: Callable[..., Optional[MutationOutcome]],
    task_id: str,
    *args: Any,
    **kwargs: Any,
) -> MutationResponse:
    try:
        outcome = await asyncio.to_thread(func, task_id, *args, **kwargs)
    except (TaskValidationError, InvalidTransitionError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to %s: %s", action, exc)
        raise HTTPException(status_code=500, detail=f"Failed to {action}") from exc
    if outcome is None:
        raise _not_found(TaskNotFoundError(task_id))
    return serialize_outcome(outcome)


def register_task_routes(app: FastAPI) -> None:
    """Register task CRUD and transition endpoints."""

    @app.get("/api/tasks", response_model=List[TaskResponse])
    async def list_tasks(
        date: Optional[str] = None,
        with_dates: bool = False,
        category: Optional[str] = None,
    ) -> List[TaskResponse]:
        """List tasks for one date, all calendar entries, one category, or everything."""
        service = get_task_service()
        try:
            if date:
                tasks = await asyncio.to_thread(service.list, date=date)
            elif with_dates:
                tasks = await asyncio.to_thread(service.list, has_date=True)
            elif category:
                tasks = await asyncio.to_thread(service.list, category=category)
            else:
                tasks = await asyncio.to_thread(service.list)
            return [serialize_task(task) for task in tasks]
        except TaskValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Failed to list tasks: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to fetch tasks") from exc

    @app.get("/api/tasks/archived", response_model=List[TaskResponse])
    async def list_archived_tasks() -> List[TaskResponse]:
        """Completed tasks, most recently completed first."""
        service = get_task_service()
        try:
            tasks = await asyncio.to_thread(service.list_completed)
            return [serialize_task(task) for task in tasks]
        except Exception as exc:
            logger.exception("Failed to list archived tasks: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to fetch archived tasks") from exc

    @app.get("/api/tasks/category/{category}", response_model=List[TaskResponse])
    async def list_tasks_by_category(category: str) -> List[TaskResponse]:
        return await list_tasks(category=category)

    @app.get("/api/tasks/{task_id}", response_model=TaskResponse)
    async def get_task(task_id: str) -> TaskResponse:
        service = get_task_service()
        try:
            task = await asyncio.to_thread(service.require, task_id)
        except TaskNotFoundError as exc:
            raise _not_found(exc) from exc
        return serialize_task(task)

    @app.post("/api/tasks", response_model=TaskResponse)
    async def create_task(request: TaskCreateRequest) -> TaskResponse:
        """Create a task; a date makes it a calendar event too."""
        service = get_task_service()
        try:
            task = await asyncio.to_thread(service.create, request.model_dump())
            return serialize_task(task)
        except TaskValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Failed to create task: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to create task") from exc

    @app.post("/api/tasks/quick-add", response_model=TaskResponse)
    async def quick_add_task(request: QuickAddRequest) -> TaskResponse:
        """Create from free text, inferring date/time/location from the title."""
        service = get_task_service()
        try:
            task = await asyncio.to_thread(
                service.quick_add,
                request.title,
                request.category,
                request.source,
                selected_date=request.selected_date,
                start_time=request.start_time,
                end_time=request.end_time,
                location=request.location,
                notes=request.notes,
            )
            return serialize_task(task)
        except TaskValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except Exception as exc:
            logger.exception("Failed to quick-add task: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to create task") from exc

    @app.patch("/api/tasks/{task_id}", response_model=TaskResponse)
    async def update_task(task_id: str, request: TaskUpdateRequest) -> TaskResponse:
        """Merge the provided fields into an existing record."""
        result = await _run_mutation(
            "update task",
            get_task_service().update,
            task_id,
            request.model_dump(exclude_unset=True),
        )
        return result.task

    @app.delete("/api/tasks/{task_id}")
    async def delete_task(task_id: str) -> Dict[str, bool]:
        """Delete a task or note."""
        service = get_task_service()
        try:
            deleted = await asyncio.to_thread(service.delete, task_id)
        except Exception as exc:
            logger.exception("Failed to delete task: %s", exc)
            raise HTTPException(status_code=500, detail="Failed to delete task") from exc
        if not deleted:
            raise _not_found(TaskNotFoundError(task_id))
        return {"deleted": True}

    @app.post("/api/tasks/{task_id}/taskify", response_model=MutationResponse)
    async def taskify_note(task_id: str) -> MutationResponse:
        """Convert a note into a task."""
        return await _run_mutation("taskify note", get_task_service().taskify, task_id)

    @app.post("/api/tasks/{task_id}/schedule", response_model=MutationResponse)
    async def schedule_task(task_id: str, request: ScheduleRequest) -> MutationResponse:
        """Place on a fixed time slot."""
        return await _run_mutation(
            "schedule task",
            get_task_service().schedule_at_slot,
            task_id,
            request.start_time,
            date=request.date,
            end_time=request.end_time,
        )

    @app.post("/api/tasks/{task_id}/flexible", response_model=MutationResponse)
    async def schedule_flexible(task_id: str, request: FlexibleRequest) -> MutationResponse:
        """Schedule for "sometime" on a date."""
        return await _run_mutation(
            "schedule task", get_task_service().move_to_flexible, task_id, date=request.date
        )

    @app.post("/api/tasks/{task_id}/unschedule", response_model=MutationResponse)
    async def unschedule_task(task_id: str) -> MutationResponse:
        """Remove from the calendar, keeping the category."""
        return await _run_mutation(
            "remove event from calendar", get_task_service().unschedule, task_id
        )

    @app.post("/api/tasks/{task_id}/move-to-list", response_model=MutationResponse)
    async def move_to_task_list(task_id: str, request: MoveToListRequest) -> MutationResponse:
        return await _run_mutation(
            "convert event to task",
            get_task_service().move_to_task_list,
            task_id,
            request.category,
        )

    @app.post("/api/tasks/{task_id}/backlog", response_model=MutationResponse)
    async def move_to_backlog(task_id: str) -> MutationResponse:
        return await _run_mutation("move task", get_task_service().move_to_backlog, task_id)

    @app.post("/api/tasks/{task_id}/restore", response_model=MutationResponse)
    async def restore_from_backlog(task_id: str) -> MutationResponse:
        return await _run_mutation("move task", get_task_service().restore_from_backlog, task_id)

    @app.post("/api/tasks/{task_id}/complete", response_model=MutationResponse)
    async def complete_task(task_id: str) -> MutationResponse:
        return await _run_mutation(
            "update task status", get_task_service().set_completed, task_id, True
        )

    @app.post("/api/tasks/{task_id}/reopen", response_model=MutationResponse)
    async def reopen_task(task_id: str) -> MutationResponse:
        return await _run_mutation(
            "update task status", get_task_service().set_completed, task_id, False
        )

    @app.post("/api/tasks/{task_id}/logs", response_model=MutationResponse)
    async def append_log(task_id: str, request: LogRequest) -> MutationResponse:
        return await _run_mutation(
            "add log entry", get_task_service().append_log, task_id, request.content
        )

    @app.post("/api/drops", response_model=DropResponse)
    async def apply_drop(request: DropRequest) -> DropResponse:
        """Translate a drag-and-drop result into a named operation and apply it."""
        action = resolve_drop(
            request.source,
            request.destination,
            selected_date=request.selected_date,
            default_time_slot=config.calendar.default_time_slot,
        )
        if action is None:
            return DropResponse(applied=False)
        result = await _run_mutation(
            "move task",
            get_task_service().apply,
            request.task_id,
            action.operation,
            **action.kwargs,
        )
        return DropResponse(applied=True, operation=action.operation.value, result=result)
