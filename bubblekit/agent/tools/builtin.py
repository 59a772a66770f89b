"""Built-in demo tools.

None of these talk to a real backend; they validate their arguments and
return canned data so the tool-call round trip can be exercised end to end.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from bubblekit.agent.tools.base import FunctionResult, Tool


def _as_int(value: Any) -> int | None:
    # JSON numbers may arrive as floats (5.0); bools are not numbers here
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


class SearchKnowledgeBaseTool(Tool):
    """Search the (mock) knowledge base."""

    name = "search_knowledge_base"
    description = "Search internal KB for a query string."
    parameters = {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Search query"},
            "top_k": {"type": "integer", "description": "Results (1-10)", "minimum": 1, "maximum": 10},
        },
        "required": ["query"],
    }

    DEFAULT_TOP_K = 5

    async def execute(self, arguments: dict[str, Any]) -> FunctionResult:
        query = arguments.get("query")
        if not isinstance(query, str) or not query.strip():
            return FunctionResult.invalid_arguments("'query' must be a non-empty string")

        top_k = self.DEFAULT_TOP_K
        if arguments.get("top_k") is not None:
            top_k = _as_int(arguments["top_k"])
            if top_k is None or not 1 <= top_k <= 10:
                return FunctionResult.invalid_arguments("'top_k' must be an integer between 1 and 10")

        documents = [
            f"Document 1: Comprehensive guide about {query}",
            f"Document 2: Best practices for {query}",
            f"Document 3: Troubleshooting {query}",
            f"Document 4: Advanced techniques in {query}",
            f"Document 5: Getting started with {query}",
        ]
        results = documents[:top_k]
        return FunctionResult.success({
            "query": query,
            "results": results,
            "count": len(results),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })


class CreateTaskTool(Tool):
    """Create a reminder/task at a given ISO-8601 time."""

    name = "create_task"
    description = "Create a reminder/task at a specific time."
    parameters = {
        "type": "object",
        "properties": {
            "title": {"type": "string", "description": "Task title"},
            "when": {"type": "string", "description": "ISO8601 datetime"},
        },
        "required": ["title", "when"],
    }

    async def execute(self, arguments: dict[str, Any]) -> FunctionResult:
        title = arguments.get("title")
        when = arguments.get("when")
        if not isinstance(title, str) or not title.strip():
            return FunctionResult.invalid_arguments("'title' must be a non-empty string")
        if not isinstance(when, str):
            return FunctionResult.invalid_arguments("'when' must be an ISO 8601 string")

        try:
            datetime.fromisoformat(when)
        except ValueError:
            return FunctionResult.execution_failed("Invalid date format. Expected ISO 8601 format.")

        task = {
            "id": str(uuid.uuid4()),
            "title": title,
            "when": when,
            "created": datetime.now(timezone.utc).isoformat(),
            "status": "pending",
        }
        return FunctionResult.success({
            "task": task,
            "message": f"Task '{title}' created successfully for {when}",
        })


class GetTimeTool(Tool):
    name = "get_time"
    description = "Get the current local date, time and timezone."
    parameters = {"type": "object", "properties": {}}

    async def execute(self, arguments: dict[str, Any]) -> FunctionResult:
        now = datetime.now().astimezone()
        return FunctionResult.success({
            "time": now.strftime("%b %d, %Y at %I:%M:%S %p"),
            "iso": now.isoformat(),
            "timezone": str(now.tzinfo),
            "timestamp": now.timestamp(),
        })


class GetWeatherTool(Tool):
    name = "get_weather"
    description = "Get the current weather and a short forecast."
    parameters = {
        "type": "object",
        "properties": {
            "location": {"type": "string", "description": "City or place name (optional)"},
        },
    }

    async def execute(self, arguments: dict[str, Any]) -> FunctionResult:
        location = arguments.get("location") or "Current Location"
        if not isinstance(location, str):
            return FunctionResult.invalid_arguments("'location' must be a string")
        return FunctionResult.success({
            "weather": {
                "location": location,
                "temperature": "72°F",
                "condition": "Partly Cloudy",
                "humidity": "65%",
                "wind": "5 mph NW",
                "forecast": [
                    "Today: Partly Cloudy, 72°F",
                    "Tomorrow: Sunny, 75°F",
                    "Day After: Cloudy, 68°F",
                ],
            },
            "last_updated": datetime.now(timezone.utc).isoformat(),
        })


def default_tools() -> list[Tool]:
    return [SearchKnowledgeBaseTool(), CreateTaskTool(), GetTimeTool(), GetWeatherTool()]
