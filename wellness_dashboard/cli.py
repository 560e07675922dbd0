"""
Command-line interface tools for the wellness dashboard service.
"""

import asyncio
import json
from collections.abc import Coroutine
from datetime import datetime
from typing import Any

import httpx
import typer
from httpx_sse import ServerSentEvent, aconnect_sse

from .matcher import PatternMatcher
from .models import DashboardData, MatchMode, MoodUpdateEvent

DEFAULT_BASE_URL = "http://localhost:8000"

app = typer.Typer(help="Wellness dashboard CLI tools")


# MARK: - CLI Entry Points


def cli_detect() -> None:
    """Entry point for wellness-detect CLI command."""
    typer.run(detect)


def cli_check_in() -> None:
    """Entry point for wellness-check-in CLI command."""
    typer.run(check_in)


def cli_get_dashboard() -> None:
    """Entry point for wellness-dashboard CLI command."""
    typer.run(get_dashboard)


def cli_stream() -> None:
    """Entry point for wellness-stream CLI command."""
    typer.run(stream)


# MARK: - Commands


@app.command()
def detect(
    text: str = typer.Argument(..., help="Text to classify"),
    sentiment: str | None = typer.Option(
        None, "--sentiment", "-s", help="Upstream sentiment: positive, negative or neutral"
    ),
    tokenized: bool = typer.Option(
        False, "--tokenized", "-t", help="Match whole words instead of substrings"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Classify text locally, without a running service."""
    matcher = PatternMatcher(
        match_mode=MatchMode.TOKEN if tokenized else MatchMode.SUBSTRING
    )
    result = matcher.detect(text, sentiment)

    if json_output:
        print(result.model_dump_json(indent=2))
        return

    print(f"{result.emoji} {result.mood_name} (confidence {result.confidence:.2f})")
    if result.matched_evidence:
        print(f"Evidence: {', '.join(result.matched_evidence)}")


@app.command()
def check_in(
    user_id: str = typer.Argument(..., help="User identifier"),
    text: str = typer.Argument(..., help="The user's message"),
    sentiment: str | None = typer.Option(
        None, "--sentiment", "-s", help="Upstream sentiment label"
    ),
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the wellness service"
    ),
) -> None:
    """Send a conversational turn to the wellness service."""

    async def _check_in() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                f"{base_url}/dashboard/{user_id}/turns",
                json={"utterance": text, "sentiment": sentiment},
            )
            response.raise_for_status()
            result = response.json()
            if not result["updated"]:
                print("No mood detected, dashboard unchanged")
                return
            dashboard = DashboardData.model_validate(result["dashboard"])
            print(
                f"{dashboard.current_mood_emoji} {dashboard.mood_name} - "
                f"wellness {dashboard.wellness_score} ({result['wellness_score_delta']:+d})"
            )

    _run_with_error_handling(_check_in(), base_url)


@app.command()
def get_dashboard(
    user_id: str = typer.Argument(..., help="User identifier"),
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the wellness service"
    ),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output raw JSON"),
) -> None:
    """Get a user's dashboard from the wellness service."""

    async def _get_dashboard() -> None:
        async with httpx.AsyncClient() as client:
            response = await client.get(f"{base_url}/dashboard/{user_id}")
            response.raise_for_status()
            result = response.json()

            if json_output:
                print(json.dumps(result, indent=2, ensure_ascii=False))
                return

            dashboard = DashboardData.model_validate(result["dashboard"])
            print(f"{dashboard.current_mood_emoji} {dashboard.mood_name}")
            print(f"Wellness score: {dashboard.wellness_score}")
            print(dashboard.interpretation_text)

    _run_with_error_handling(_get_dashboard(), base_url)


@app.command()
def stream(
    user_id: str = typer.Argument(..., help="User identifier"),
    base_url: str = typer.Option(
        DEFAULT_BASE_URL, "--url", "-u", help="Base URL of the wellness service"
    ),
) -> None:
    """Stream a user's dashboard updates in real-time."""

    async def _stream() -> None:
        url = f"{base_url}/dashboard/{user_id}/stream"
        print(f"Streaming from {url}... (Ctrl+C to stop)")

        async with httpx.AsyncClient(timeout=None) as client:
            async with aconnect_sse(client, "GET", url) as event_source:
                async for sse in event_source.aiter_sse():
                    _handle_sse_event(sse)

    _run_with_error_handling(_stream(), base_url)


# MARK: - Private Helpers


def _format_update(event: MoodUpdateEvent) -> str:
    timestamp = datetime.fromtimestamp(event.timestamp).strftime("%H:%M:%S")
    return (
        f"{timestamp} > {event.mood_emoji} {event.mood_name} "
        f"{event.wellness_score} ({event.wellness_score_delta:+d})"
    )


def _handle_sse_event(sse: ServerSentEvent) -> None:
    """Handle a single SSE event."""
    try:
        if sse.event == "error":
            error_data = json.loads(sse.data)
            print(f"Server error: {error_data.get('error', 'Unknown error')}")
            return

        event = MoodUpdateEvent.model_validate_json(sse.data)
        print(_format_update(event))

    except ValueError as e:
        print(f"Warning: Could not parse SSE data: {sse.data} - {e}")


def _run_with_error_handling(coro: Coroutine[Any, Any, Any], base_url: str) -> None:
    """Run an async coroutine with standardized error handling."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        print("\nStopped")
        raise typer.Exit(0)
    except httpx.ConnectError:
        print(f"Error: Could not connect to {base_url}")
        raise typer.Exit(1)
    except httpx.HTTPStatusError as e:
        print(f"Error: HTTP {e.response.status_code}")
        raise typer.Exit(1)
    except Exception as e:
        error_msg = str(e) if str(e) else f"Unknown error of type {type(e).__name__}"
        print(f"Error: {error_msg}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
