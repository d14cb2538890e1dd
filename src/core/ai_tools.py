"""
BÆKON Core — AI Tool Layer.

Function schemas exposed to the LLM and the dispatcher that executes a tool
call against the ActionService. The LLM itself is an external collaborator:
this module only describes the tools and runs them.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from itertools import islice
from typing import TYPE_CHECKING, Any

from src.core.calendar_reference import get_calendar_reference, get_relative_description
from src.core.date_resolver import get_date_parsing_context

if TYPE_CHECKING:
    from src.core.action_service import ActionService, ServiceResponse

logger = logging.getLogger(__name__)

UPCOMING_PHRASE_LIMIT = 15


TOOL_SCHEMAS: list[dict] = [
    {
        "type": "function",
        "function": {
            "name": "create_event",
            "description": "Create a new calendar event with natural language date/time parsing",
            "parameters": {
                "type": "object",
                "properties": {
                    "title": {"type": "string", "description": "Event title"},
                    "date": {
                        "type": "string",
                        "description": 'Date in natural language (e.g., "tomorrow", "next Friday", "June 15")',
                    },
                    "time": {"type": "string", "description": 'Time (e.g., "2pm", "14:30", "noon")'},
                    "duration": {"type": "integer", "description": "Duration in minutes"},
                    "description": {"type": "string", "description": "Event description"},
                    "category": {"type": "string", "enum": ["work", "personal", "health", "social"]},
                    "tags": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["title", "date"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "create_note",
            "description": "Create a note in the work or life section",
            "parameters": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "content": {"type": "string"},
                    "section": {"type": "string", "enum": ["work", "life"]},
                    "tags": {"type": "array", "items": {"type": "string"}},
                    "priority": {"type": "string", "enum": ["LOW", "MEDIUM", "HIGH"]},
                },
                "required": ["title", "content", "section"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "block_time",
            "description": "Block time in the schedule for focused work or activities",
            "parameters": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "duration": {"type": "integer", "description": "Duration in minutes"},
                    "startTime": {"type": "string", "description": "When the block starts, in natural language"},
                    "blockType": {"type": "string", "enum": ["focus", "break", "meeting", "personal"]},
                },
                "required": ["title", "duration"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_schedule",
            "description": "Get events for a specific date range",
            "parameters": {
                "type": "object",
                "properties": {
                    "startDate": {"type": "string", "description": "Start date (YYYY-MM-DD or natural language)"},
                    "endDate": {"type": "string", "description": "End date (YYYY-MM-DD or natural language)"},
                    "category": {"type": "string", "enum": ["work", "personal", "health", "social"]},
                },
                "required": ["startDate"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "search_events",
            "description": "Search events by title or description",
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {"type": "string"},
                    "limit": {"type": "integer", "description": "Max results (default: 10)"},
                },
                "required": ["query"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "analyze_schedule",
            "description": "Analyze schedule patterns and provide insights",
            "parameters": {
                "type": "object",
                "properties": {
                    "timeframe": {"type": "string", "enum": ["week", "month", "quarter"]},
                    "includeRecommendations": {"type": "boolean"},
                },
                "required": ["timeframe"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "suggest_optimal_time",
            "description": "Suggest free time slots for a new event based on the existing schedule",
            "parameters": {
                "type": "object",
                "properties": {
                    "eventType": {"type": "string", "description": "meeting, workout, focus time, ..."},
                    "duration": {"type": "integer", "description": "Duration in minutes"},
                    "preferredTimeframe": {"type": "string", "enum": ["morning", "afternoon", "evening", "any"]},
                    "daysAhead": {"type": "integer", "description": "How many days to look ahead (default: 7)"},
                },
                "required": ["eventType", "duration"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "set_reminder",
            "description": "Set a reminder for an event",
            "parameters": {
                "type": "object",
                "properties": {
                    "eventId": {"type": "string"},
                    "reminderTime": {"type": "string", "description": 'e.g. "30 minutes before"'},
                    "message": {"type": "string"},
                },
                "required": ["eventId", "reminderTime"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "get_calendar_context",
            "description": (
                "Get current calendar context and upcoming dates to help with accurate "
                "date parsing. Use this before creating events to ground date references."
            ),
            "parameters": {"type": "object", "properties": {}, "required": []},
        },
    },
]


@dataclass
class ToolResult:
    success: bool
    message: str
    data: Any = field(default_factory=dict)


def calendar_context(now: date | datetime | None = None) -> dict:
    """JSON-ready summary of the calendar snapshot for `now`.

    `upcomingDates` lists the first UPCOMING_PHRASE_LIMIT phrases in lookup
    order, each with its date and relative description.
    """
    ref = get_calendar_reference(now)
    today = ref.today_info

    return {
        "today": {
            "date": ref.today.isoformat(),
            "dayName": today.day_name,
            "dayNumber": today.day_number,
            "monthName": today.month_name,
            "year": today.year,
            "quarter": today.quarter,
            "weekOfYear": today.week_of_year,
            "dayOfYear": today.day_of_year,
            "isWeekend": today.is_weekend,
        },
        "week": [
            {
                "date": d.date.isoformat(),
                "dayName": d.day_name,
                "dayNumber": d.day_number,
                "isToday": d.is_today,
                "isWeekend": d.is_weekend,
            }
            for d in ref.week_info.days
        ],
        "month": {
            "name": ref.month_info.month_name,
            "year": ref.month_info.year,
            "totalDays": ref.month_info.total_days,
        },
        "isLeapYear": ref.year_info.is_leap_year,
        "upcomingDates": [
            {
                "phrase": phrase,
                "date": d.isoformat(),
                "relative": get_relative_description(d, ref.today),
            }
            for phrase, d in islice(ref.upcoming_dates.items(), UPCOMING_PHRASE_LIMIT)
        ],
        "context": get_date_parsing_context(now),
    }


def _to_tool_result(response: ServiceResponse) -> ToolResult:
    from src.core.action_service import (
        AnalysisResponse,
        QueryResultResponse,
        ResponseKind,
        SlotSuggestionResponse,
        SuccessResponse,
    )

    if isinstance(response, SuccessResponse):
        return ToolResult(success=True, message=response.message, data=response.record)
    if isinstance(response, QueryResultResponse):
        return ToolResult(success=True, message=response.message, data=response.events)
    if isinstance(response, AnalysisResponse):
        return ToolResult(success=True, message=response.message, data=response.analysis)
    if isinstance(response, SlotSuggestionResponse):
        return ToolResult(success=True, message=response.message, data=response.slots)
    return ToolResult(success=response.kind != ResponseKind.ERROR, message=response.message)


def _optional_int(args: dict, key: str, default: int | None = None) -> int | None:
    value = args.get(key)
    return default if value is None else int(value)


async def execute_tool(
    name: str,
    arguments: str | dict | None,
    service: ActionService,
    now: date | datetime | None = None,
) -> ToolResult:
    """Execute one tool call requested by the LLM.

    `arguments` may be the raw JSON string from the completion or an
    already-decoded dict. Malformed arguments never raise; they produce
    an unsuccessful ToolResult.
    """
    if isinstance(arguments, str):
        try:
            args: Any = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as exc:
            logger.error("Failed to decode arguments for tool '%s': %s (raw: '%s')", name, exc, arguments)
            return ToolResult(success=False, message=f"Invalid arguments for {name}")
    else:
        args = arguments or {}

    if not isinstance(args, dict):
        logger.warning("Tool '%s' got non-object arguments: %s", name, type(args).__name__)
        return ToolResult(success=False, message=f"Invalid arguments for {name}")

    logger.info("Executing tool '%s'", name)

    try:
        if name == "create_event":
            response = await service.create_event(
                title=args["title"],
                date_phrase=args["date"],
                time_phrase=args.get("time"),
                duration_minutes=_optional_int(args, "duration"),
                tags=args.get("tags"),
                description=args.get("description") or "",
                category=args.get("category") or "personal",
                now=now,
            )
        elif name == "create_note":
            response = await service.create_note(
                title=args["title"],
                content=args["content"],
                section=args["section"],
                tags=args.get("tags"),
                priority=args.get("priority") or "MEDIUM",
            )
        elif name == "block_time":
            response = await service.block_time(
                title=args["title"],
                duration_minutes=int(args["duration"]),
                start_phrase=args.get("startTime"),
                block_type=args.get("blockType") or "focus",
                now=now,
            )
        elif name == "get_schedule":
            response = await service.get_schedule(
                start_phrase=args["startDate"],
                end_phrase=args.get("endDate"),
                category=args.get("category"),
                now=now,
            )
        elif name == "search_events":
            response = await service.search_events(
                query=args["query"],
                limit=_optional_int(args, "limit", 10),
            )
        elif name == "analyze_schedule":
            response = await service.analyze_schedule(
                timeframe=args["timeframe"],
                include_recommendations=bool(args.get("includeRecommendations", True)),
                now=now,
            )
        elif name == "suggest_optimal_time":
            response = await service.suggest_optimal_time(
                event_type=args["eventType"],
                duration_minutes=int(args["duration"]),
                preferred_timeframe=args.get("preferredTimeframe") or "any",
                days_ahead=_optional_int(args, "daysAhead", 7),
                now=now,
            )
        elif name == "set_reminder":
            response = await service.set_reminder(
                event_id=str(args["eventId"]),
                reminder_time=args["reminderTime"],
                message=args.get("message"),
            )
        elif name == "get_calendar_context":
            data = calendar_context(now)
            today = data["today"]
            return ToolResult(
                success=True,
                message=(
                    f"Calendar context retrieved. Today is {today['dayName']}, "
                    f"{today['monthName']} {today['dayNumber']}, {today['year']}."
                ),
                data=data,
            )
        else:
            logger.warning("LLM requested unknown tool: '%s'", name)
            return ToolResult(success=False, message=f"Unknown tool: {name}")
    except KeyError as exc:
        logger.warning("Tool '%s' missing required argument %s", name, exc)
        return ToolResult(success=False, message=f"Missing required argument {exc} for {name}")
    except (TypeError, ValueError, AttributeError) as exc:
        logger.warning("Tool '%s' got bad argument: %s", name, exc)
        return ToolResult(success=False, message=f"Invalid arguments for {name}")

    return _to_tool_result(response)
