"""Pydantic schemas for the FastAPI server."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.tasks import LifeArea, TaskMode, TaskType

QuickAddSource = Literal["task", "calendar", "backlog"]


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str


class LogEntryResponse(BaseModel):
    timestamp: str
    content: str


class TaskResponse(BaseModel):
    """Serialized task / event / note with its derived mode."""

    model_config = ConfigDict(use_enum_values=True)

    id: str
    title: str
    category: LifeArea
    type: TaskType
    mode: TaskMode
    completed: bool
    completed_at: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_all_day: bool
    location: Optional[str] = None
    notes: Optional[str] = None
    logs: List[LogEntryResponse] = Field(default_factory=list)
    is_backlog: bool
    created_at: str


class MutationResponse(BaseModel):
    """Mutated record plus the snapshot it replaced, for client-side rollback."""

    task: TaskResponse
    previous: TaskResponse
    operation: str


class TaskCreateRequest(BaseModel):
    """Request body for creating a task, event or note."""

    title: str = Field(..., min_length=1, max_length=500)
    category: LifeArea
    type: TaskType = Field(default=TaskType.TASK)
    completed: bool = False
    date: Optional[str] = Field(default=None, description="ISO date (YYYY-MM-DD)")
    start_time: Optional[str] = Field(default=None, description="24-hour HH:MM")
    end_time: Optional[str] = Field(default=None, description="24-hour HH:MM")
    is_all_day: bool = False
    location: Optional[str] = None
    notes: Optional[str] = Field(default=None, description="Rich text (HTML)")
    is_backlog: bool = False


class TaskUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    category: Optional[LifeArea] = None
    type: Optional[TaskType] = None
    completed: Optional[bool] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_all_day: Optional[bool] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    is_backlog: Optional[bool] = None


class QuickAddRequest(BaseModel):
    """Free-text creation; calendar fields are inferred from the title."""

    title: str = Field(..., min_length=1, max_length=500)
    category: Optional[LifeArea] = None
    source: QuickAddSource = "task"
    selected_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class ParseRequest(BaseModel):
    title: str
    source: QuickAddSource = "task"


class ParseResponse(BaseModel):
    clean_title: str
    detected_date: Optional[str] = None
    detected_time: Optional[str] = None
    detected_end_time: Optional[str] = None
    detected_location: Optional[str] = None
    will_become_event: bool
    preview: List[str] = Field(default_factory=list)


class ScheduleRequest(BaseModel):
    start_time: str = Field(..., description="24-hour HH:MM")
    date: Optional[str] = None
    end_time: Optional[str] = None


class FlexibleRequest(BaseModel):
    date: Optional[str] = None


class MoveToListRequest(BaseModel):
    category: LifeArea


class LogRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class DropRequest(BaseModel):
    """Drag-and-drop result reported by the dashboard."""

    task_id: str
    source: str
    destination: Optional[str] = None
    selected_date: Optional[str] = None


class LifeAreaResponse(BaseModel):
    key: str
    name: str
    color: str


class TimeSlotResponse(BaseModel):
    time: str
    label: str


class DropResponse(BaseModel):
    applied: bool
    operation: Optional[str] = None
    result: Optional[MutationResponse] = None
