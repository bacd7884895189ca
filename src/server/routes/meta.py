"""Health, reference data and title preview endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import List

from fastapi import FastAPI

from src.planner import describe_parse
from src.tasks import LIFE_AREA_INFO
from src.tasks.timeutils import format_time_slot, hourly_slots

from ..dependencies import config, get_task_service
from ..schemas import (
    HealthResponse,
    LifeAreaResponse,
    ParseRequest,
    ParseResponse,
    TimeSlotResponse,
)

logger = logging.getLogger(__name__)


def register_meta_routes(app: FastAPI) -> None:
    """Register health check, life areas, calendar slots and parse preview."""

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Simple health check endpoint."""
        return HealthResponse(status="ok")

    @app.get("/api/life-areas", response_model=List[LifeAreaResponse])
    async def list_life_areas() -> List[LifeAreaResponse]:
        return [
            LifeAreaResponse(key=area.value, name=info["name"], color=info["color"])
            for area, info in LIFE_AREA_INFO.items()
        ]

    @app.get("/api/calendar/slots", response_model=List[TimeSlotResponse])
    async def list_time_slots() -> List[TimeSlotResponse]:
        slots = hourly_slots(config.calendar.first_slot_hour, config.calendar.last_slot_hour)
        return [TimeSlotResponse(time=slot, label=format_time_slot(slot)) for slot in slots]

    @app.post("/api/parse", response_model=ParseResponse)
    async def parse_title_preview(request: ParseRequest) -> ParseResponse:
        """Show what the title parser would detect, without creating anything."""
        parsed = await asyncio.to_thread(get_task_service().parse, request.title)
        return ParseResponse(
            clean_title=parsed.clean_title,
            detected_date=parsed.detected_date,
            detected_time=parsed.detected_time,
            detected_end_time=parsed.detected_end_time,
            detected_location=parsed.detected_location,
            will_become_event=request.source == "calendar" or parsed.detected_date is not None,
            preview=describe_parse(parsed, request.source),
        )
