"""
BÆKON Core — Voice Command Matcher.

Classifies a transcribed utterance into one of a fixed set of intents with a
confidence score. When no pattern is a confident match, proposes corrections
from keyword hints and fuzzy similarity to canonical commands, so the caller
can prompt the user instead of guessing.

No I/O: this module only transforms strings.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from rapidfuzz.distance import Levenshtein

logger = logging.getLogger(__name__)

# Confidence heuristic; these constants define recognition behaviour
_BASE_CONFIDENCE = 0.8
_COVERAGE_WEIGHT = 0.2
_KEYWORD_BONUS = 0.1
_LOW_COVERAGE_PENALTY = 0.2
_LOW_COVERAGE_RATIO = 0.5
RECOGNITION_THRESHOLD = 0.7
_KEYWORD_SUGGESTION_CONFIDENCE = 0.6
_FUZZY_SUGGESTION_CONFIDENCE = 0.4
FUZZY_SIMILARITY_THRESHOLD = 0.6

_COMMON_KEYWORDS = ("schedule", "add", "create", "what", "show", "tell")

_HELP_HINT = "Try saying 'Help' to see available voice commands"


class CommandCategory(Enum):
    SCHEDULE = "schedule"
    QUERY = "query"
    NOTE = "note"
    NAVIGATION = "navigation"
    CONTROL = "control"


@dataclass(frozen=True)
class VoiceCommand:
    """One intent with the patterns that recognise it."""

    patterns: tuple[re.Pattern[str], ...]
    action: str
    category: CommandCategory
    description: str
    examples: tuple[str, ...]


@dataclass
class VoiceMatch:
    """Outcome of matching a transcript against VOICE_COMMANDS."""

    recognized: bool
    command: VoiceCommand | None = None
    matched_text: str | None = None
    matched_groups: tuple[str | None, ...] = ()
    confidence: float = 0.0
    suggestion: str | None = None
    corrections: list[str] = field(default_factory=list)


def _patterns(*sources: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(src, re.IGNORECASE) for src in sources)


# Evaluated in order; on equal confidence the earlier command wins
VOICE_COMMANDS: tuple[VoiceCommand, ...] = (
    VoiceCommand(
        patterns=_patterns(
            r"^(schedule|add|create) (.*?) (tomorrow|today|monday|tuesday|wednesday|thursday|friday|saturday|sunday)",
            r"^(book|set up|plan) (.*?) (at|for) (\d{1,2}(?::\d{2})?\s*(?:am|pm)?)",
            r"^(reminder|remind me) (.*?) (in|at) (.*)",
        ),
        action="schedule_event",
        category=CommandCategory.SCHEDULE,
        description="Schedule events, meetings, or activities",
        examples=(
            "Schedule gym tomorrow at 7am",
            "Add team meeting Friday at 2pm",
            "Remind me about dentist appointment",
        ),
    ),
    VoiceCommand(
        patterns=_patterns(
            r"^(block|reserve|hold) (\d+) (minutes?|hours?) (for|to) (.*)",
            r"^(focus time|deep work|concentration) (for|lasting) (\d+) (minutes?|hours?)",
            r"^(break|lunch|rest) (for|lasting) (\d+) (minutes?|hours?)",
        ),
        action="block_time",
        category=CommandCategory.SCHEDULE,
        description="Block time for focused work or activities",
        examples=(
            "Block 2 hours for deep work",
            "Focus time for 90 minutes",
            "Break for 15 minutes",
        ),
    ),
    VoiceCommand(
        patterns=_patterns(
            r"^(what's|show me|tell me) (my|the) (schedule|agenda|calendar) (today|tomorrow|this week|next week)",
            r"^(what do I have|what's scheduled) (today|tomorrow|this week)",
            r"^(am I|do I have anything) (free|available) (today|tomorrow|this afternoon)",
            r"^(when is|what time) (my|the) (.*?) (meeting|appointment|event)",
        ),
        action="query_schedule",
        category=CommandCategory.QUERY,
        description="Ask about your schedule and availability",
        examples=(
            "What's my schedule today?",
            "Am I free this afternoon?",
            "When is my next meeting?",
        ),
    ),
    VoiceCommand(
        patterns=_patterns(
            r"^(create|add|make|write) (a )?note (about|for|on) (.*)",
            r"^(note|remember|write down) (that )?(.+)",
            r"^(add to|update) (work|life|personal) (notes?) (.+)",
        ),
        action="create_note",
        category=CommandCategory.NOTE,
        description="Create and manage notes",
        examples=(
            "Create a note about project ideas",
            "Note that we need to order supplies",
            "Add to work notes: team feedback",
        ),
    ),
    VoiceCommand(
        patterns=_patterns(
            r"^(analyze|review|show) (my|the) (productivity|patterns|schedule analysis)",
            r"^(how am I doing|what's my productivity|give me insights)",
            r"^(suggest|recommend|find) (better|optimal) (time|slot) (for|to) (.+)",
        ),
        action="analyze_productivity",
        category=CommandCategory.QUERY,
        description="Get productivity insights and recommendations",
        examples=(
            "Analyze my productivity patterns",
            "Suggest optimal time for meetings",
            "How am I doing this week?",
        ),
    ),
    VoiceCommand(
        patterns=_patterns(
            r"^(clear|delete|remove) (today's|tomorrow's|this week's) (schedule|events)",
            r"^(move|reschedule|change) (.+?) (to|for) (.+)",
            r"^(cancel|delete|remove) (.+?) (meeting|event|appointment)",
        ),
        action="modify_schedule",
        category=CommandCategory.SCHEDULE,
        description="Modify or cancel scheduled items",
        examples=(
            "Cancel gym session tomorrow",
            "Move team meeting to Friday",
            "Clear today's schedule",
        ),
    ),
    VoiceCommand(
        patterns=_patterns(
            r"^(go to|show|open) (schedule|calendar|planner)",
            r"^(switch to|show me) (work|life|personal) (section|view)",
            r"^(show|display) (this|next) (week|month)",
        ),
        action="navigate",
        category=CommandCategory.NAVIGATION,
        description="Navigate between different views and sections",
        examples=(
            "Go to calendar view",
            "Switch to work section",
            "Show next week",
        ),
    ),
    VoiceCommand(
        patterns=_patterns(
            r"^(help|what can you do|show commands)",
            r"^(stop|cancel|never mind)",
            r"^(repeat|say that again|what did you say)",
        ),
        action="help_control",
        category=CommandCategory.CONTROL,
        description="Get help or control the voice interface",
        examples=(
            "Help me with voice commands",
            "What can you do?",
            "Stop listening",
        ),
    ),
)

# Keyword set → canned suggestions; only the first set that hits contributes
_CORRECTION_RULES: tuple[tuple[frozenset[str], tuple[str, ...]], ...] = (
    (
        frozenset({"schedule", "add", "create", "book", "plan"}),
        (
            "Schedule [event] tomorrow at [time]",
            "Add [meeting] on [day]",
            "Create reminder for [task]",
        ),
    ),
    (
        frozenset({"what", "show", "tell", "when", "where"}),
        (
            "What's my schedule today?",
            "Show me this week's calendar",
            "When is my next meeting?",
        ),
    ),
    (
        frozenset({"note", "remember", "write", "save"}),
        (
            "Create a note about [topic]",
            "Note that [information]",
            "Remember to [task]",
        ),
    ),
    (
        frozenset({"block", "focus", "reserve", "hold"}),
        (
            "Block 2 hours for deep work",
            "Focus time for 90 minutes",
            "Reserve time for [activity]",
        ),
    ),
)

_CANONICAL_COMMANDS = (
    "schedule gym tomorrow",
    "what's my schedule today",
    "create a note about",
    "block time for work",
    "show me this week",
    "add meeting with",
    "remind me to",
    "cancel my appointment",
)

_ENHANCEMENTS = {
    "schedule_event": "Please {t}. Make sure to confirm the exact date and time.",
    "block_time": "{t}. Block this time in my schedule and prevent other bookings.",
    "query_schedule": "{t}. Please provide a clear summary of events and times.",
    "create_note": "{t}. Organize this information appropriately in my notes.",
    "analyze_productivity": "{t}. Provide actionable insights and specific recommendations.",
}


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def string_similarity(a: str, b: str) -> float:
    """Levenshtein similarity normalised by the longer string, in [0, 1]."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - Levenshtein.distance(a, b)) / longest


def calculate_confidence(transcript: str, matched_text: str) -> float:
    """Score a pattern hit by how much of the transcript it covers."""
    confidence = _BASE_CONFIDENCE

    coverage = len(matched_text) / len(transcript) if transcript else 0.0
    confidence += min(coverage, 1.0) * _COVERAGE_WEIGHT

    lowered = transcript.lower()
    if any(kw in lowered for kw in _COMMON_KEYWORDS):
        confidence += _KEYWORD_BONUS

    if coverage < _LOW_COVERAGE_RATIO:
        confidence -= _LOW_COVERAGE_PENALTY

    return min(max(confidence, 0.0), 1.0)


def find_fuzzy_matches(transcript: str, limit: int = 3) -> list[str]:
    """Canonical commands similar enough to the transcript, best first."""
    lowered = transcript.lower()
    scored = [
        (string_similarity(lowered, command), command)
        for command in _CANONICAL_COMMANDS
    ]
    hits = [item for item in scored if item[0] >= FUZZY_SIMILARITY_THRESHOLD]
    # Stable sort keeps canonical order among equal scores
    hits.sort(key=lambda item: item[0], reverse=True)
    return [command for _, command in hits[:limit]]


def find_corrections(transcript: str) -> tuple[str, list[str], float]:
    """Build (suggestion, corrections, confidence) for an unrecognised transcript."""
    words = set(transcript.split())
    corrections: list[str] = []
    confidence = 0.0

    for keywords, suggestions in _CORRECTION_RULES:
        if words & keywords:
            corrections.extend(suggestions)
            confidence = _KEYWORD_SUGGESTION_CONFIDENCE
            break

    fuzzy = find_fuzzy_matches(transcript)
    if fuzzy:
        corrections.extend(fuzzy)
        confidence = max(confidence, _FUZZY_SUGGESTION_CONFIDENCE)

    if corrections:
        suggestion = f"Try one of these: {', '.join(corrections[:3])}"
    else:
        suggestion = _HELP_HINT

    return suggestion, corrections[:5], confidence


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def match(transcript: str) -> VoiceMatch:
    """Classify a transcript into a voice command.

    Returns a recognised VoiceMatch when the best pattern hit scores above
    RECOGNITION_THRESHOLD, otherwise an unrecognised one carrying suggestions.
    """
    transcript = transcript or ""
    best: tuple[float, VoiceCommand, re.Match[str]] | None = None

    for command in VOICE_COMMANDS:
        for pattern in command.patterns:
            m = pattern.search(transcript)
            if not m:
                continue
            confidence = calculate_confidence(transcript, m.group(0))
            if best is None or confidence > best[0]:
                best = (confidence, command, m)

    if best is not None and best[0] > RECOGNITION_THRESHOLD:
        confidence, command, m = best
        logger.info(
            "Voice command '%s' recognised (confidence %.2f): %s",
            command.action, confidence, transcript,
        )
        return VoiceMatch(
            recognized=True,
            command=command,
            matched_text=m.group(0),
            matched_groups=m.groups(),
            confidence=confidence,
        )

    suggestion, corrections, confidence = find_corrections(transcript.strip().lower())
    logger.info("Voice command not recognised: '%s' (%d corrections)", transcript, len(corrections))
    return VoiceMatch(
        recognized=False,
        confidence=confidence,
        suggestion=suggestion,
        corrections=corrections,
    )


def get_voice_command_help() -> list[str]:
    return [
        "**Schedule**: 'Schedule gym tomorrow at 7am'",
        "**Time Block**: 'Block 2 hours for deep work'",
        "**Query**: 'What's my schedule today?'",
        "**Notes**: 'Create a note about project ideas'",
        "**Insights**: 'Analyze my productivity patterns'",
        "**Navigation**: 'Go to calendar view'",
        "**Help**: 'What can you do?' or 'Help'",
    ]


def enhance_voice_command(transcript: str) -> str:
    """Append an action-specific instruction to a recognised command."""
    result = match(transcript)
    if not result.recognized or result.command is None:
        return transcript
    template = _ENHANCEMENTS.get(result.command.action)
    if template is None:
        return transcript
    return template.format(t=transcript)
