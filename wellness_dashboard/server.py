"""
FastAPI server for the wellness dashboard engine.

This module exposes mood detection, conversational check-ins and trend
reports over HTTP, and streams dashboard updates to clients via
Server-Sent Events.
"""

import asyncio
import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import StreamingResponse
from loguru import logger
from pydantic import BaseModel, Field

from . import __version__
from .config import Settings
from .controller import DashboardStateController
from .log import init_logger
from .models import DashboardData, MoodDetectionResult, TurnResult
from .reports import TimeRange, TrendReport


# API Request/Response Schemas
class TurnRequest(BaseModel):
    """Payload for a conversational check-in."""

    utterance: str = Field(..., description="The user's message")
    sentiment: Any = Field(None, description="Upstream sentiment label; malformed values are ignored")
    ai_response: str | None = Field(None, description="The companion's reply")


class DetectRequest(BaseModel):
    """Payload for stateless mood detection."""

    utterance: str = Field(..., description="Text to classify")
    sentiment: Any = Field(None, description="Upstream sentiment label; malformed values are ignored")


class DashboardResponse(BaseModel):
    """Response model for dashboard endpoints."""

    dashboard: DashboardData = Field(..., description="The user's dashboard")


def create_app(controller: DashboardStateController) -> FastAPI:
    """
    Create a FastAPI application around the given controller.

    Args:
        controller: The DashboardStateController serving requests

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Lifespan context manager for FastAPI application."""
        logger.info("Wellness dashboard service starting")
        yield
        logger.info("Wellness dashboard service stopped")

    app = FastAPI(
        title="Wellness Dashboard",
        description="Mood inference and adaptive wellness scoring",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "wellness-dashboard"}

    @app.post("/detect")
    async def detect(request: DetectRequest) -> MoodDetectionResult:
        """Classify text without touching any dashboard."""
        return controller.detect(request.utterance, request.sentiment)

    @app.get("/dashboard/{user_id}")
    async def get_dashboard(user_id: str) -> DashboardResponse:
        """
        Get a user's dashboard.

        Returns:
            The current dashboard (created with defaults on first access)
        """
        try:
            dashboard = await controller.get_dashboard(user_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return DashboardResponse(dashboard=dashboard)

    @app.post("/dashboard/{user_id}/turns")
    async def process_turn(user_id: str, turn: TurnRequest) -> TurnResult:
        """
        Feed one conversational turn into the mood engine.

        Returns:
            The detection result and the resulting dashboard
        """
        try:
            return await controller.process_turn(
                user_id, turn.utterance, turn.sentiment, turn.ai_response
            )
        except Exception as e:
            raise HTTPException(
                status_code=500, detail=f"Failed to update dashboard: {str(e)}"
            )

    @app.get("/dashboard/{user_id}/trends")
    async def trends(
        user_id: str, time_range: TimeRange = Query(TimeRange.WEEK, alias="range")
    ) -> TrendReport:
        """Mood trend report over the requested range."""
        try:
            return await controller.trend_report(user_id, time_range)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.get("/dashboard/{user_id}/stream")
    async def stream_updates(user_id: str) -> StreamingResponse:
        """
        Stream the user's dashboard updates via Server-Sent Events.

        Returns:
            StreamingResponse with text/event-stream content type
        """

        async def event_generator() -> AsyncGenerator[str, None]:
            """Generate SSE events for dashboard updates."""
            try:
                async with controller.broadcaster.stream(user_id) as updates:
                    async for event in updates:
                        data = json.dumps(event.model_dump())
                        yield f"data: {data}\n\n"
            except asyncio.CancelledError:
                # Client disconnected
                pass
            except Exception as e:
                error_data = json.dumps({"error": str(e)})
                yield f"event: error\ndata: {error_data}\n\n"

        return StreamingResponse(
            event_generator(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Headers": "*",
            },
        )

    return app


app = create_app(DashboardStateController.from_settings(Settings()))


def main() -> None:
    """Main entry point for the server."""
    import uvicorn

    settings = Settings.load()
    init_logger(settings.log_level, settings.log_file)
    uvicorn.run(
        create_app(DashboardStateController.from_settings(settings)),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
