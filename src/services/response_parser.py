"""Turn free-form analysis replies into task lists or verification verdicts.

Models do not always honor the requested JSON format, so each reply goes through an
ordered chain of strategies and the first one that succeeds wins:

    tasks:        direct JSON -> first '{'..last '}' slice -> bullet-line heuristic
    verification: direct JSON -> first '{'..last '}' slice -> ParsingError

The heuristic never fails; when it finds no tasks it substitutes GENERIC_FALLBACK_TASKS.
Verification has no heuristic layer because verdicts must reference task IDs.
"""

import json
import logging
import math
import re
from collections.abc import Callable
from typing import Any

from src.core.errors import ParsingError
from src.domain.verification import (
    RoomAnalysis,
    RoomVerificationResult,
    TaskVerificationResult,
    TaskVerificationStatus,
)


logger = logging.getLogger(__name__)

GENERIC_FALLBACK_TASKS = (
    "Clear one surface",
    "Put away any loose items",
    "Wipe down a visible spot",
)
FALLBACK_ADVICE = "Start small. You have got this."

MIN_TASK_LENGTH = 3
_SKIPPED_TASK_PREFIXES = ("tasks", "advice")

_VERIFIED_STATUSES = frozenset({"verified", "done", "complete"})
_NOT_DONE_STATUSES = frozenset({"not_done", "notdone", "incomplete"})

_FENCE_OPEN = re.compile(r"^```[\w-]*")
_FENCE_CLOSE = "```"


def strip_code_fence(text: str) -> str:
    """Remove a leading ```lang marker and a trailing ``` marker."""
    cleaned = text.strip()
    cleaned = _FENCE_OPEN.sub("", cleaned, count=1)
    if cleaned.endswith(_FENCE_CLOSE):
        cleaned = cleaned[: -len(_FENCE_CLOSE)]
    return cleaned.strip()


def _decode_object(text: str) -> dict[str, Any] | None:
    try:
        decoded = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return decoded if isinstance(decoded, dict) else None


def _decode_brace_slice(text: str) -> dict[str, Any] | None:
    """Decode the substring between the first '{' and the last '}'."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return _decode_object(text[start : end + 1])


# Task extraction


def _analysis_from_object(data: dict[str, Any] | None) -> RoomAnalysis | None:
    if data is None:
        return None
    tasks = data.get("tasks")
    advice = data.get("advice")
    if not isinstance(tasks, list) or not isinstance(advice, str):
        return None
    if not all(isinstance(task, str) for task in tasks):
        return None
    return RoomAnalysis(tasks=tasks, advice=advice)


def parse_tasks_json(text: str) -> RoomAnalysis | None:
    return _analysis_from_object(_decode_object(text))


def parse_tasks_json_slice(text: str) -> RoomAnalysis | None:
    return _analysis_from_object(_decode_brace_slice(text))


def parse_bullet_task(line: str) -> str | None:
    """Return the task text of a bullet or numbered line, or None if it is not a task.

    Strips one leading non-alphanumeric bullet character and/or a leading "N." / "N)"
    marker. Lines shorter than three characters or starting with "tasks"/"advice"
    (section headings) are not tasks.
    """
    trimmed = line.strip()
    if not trimmed:
        return None

    if not trimmed[0].isalnum():
        trimmed = trimmed[1:].strip()

    if trimmed and trimmed[0].isdigit():
        index = 0
        while index < len(trimmed) and trimmed[index].isdigit():
            index += 1
        if index < len(trimmed) and trimmed[index] in ".)":
            trimmed = trimmed[index + 1 :].strip()

    if len(trimmed) < MIN_TASK_LENGTH:
        return None
    if trimmed.lower().startswith(_SKIPPED_TASK_PREFIXES):
        return None
    return trimmed


def parse_tasks_heuristic(text: str) -> RoomAnalysis:
    """Line-based extraction; always produces at least the generic tasks."""
    tasks: list[str] = []
    advice_lines: list[str] = []

    for line in text.splitlines():
        if not line.strip():
            continue
        task = parse_bullet_task(line)
        if task is not None:
            tasks.append(task)
        else:
            advice_lines.append(line.strip())

    if not tasks:
        logger.warning("analysis_reply_unparseable", extra={"fallback": "generic_tasks"})
        tasks = list(GENERIC_FALLBACK_TASKS)

    advice = " ".join(advice_lines).strip()
    return RoomAnalysis(tasks=tasks, advice=advice or FALLBACK_ADVICE)


TaskStrategy = Callable[[str], RoomAnalysis | None]

TASK_STRATEGIES: tuple[TaskStrategy, ...] = (
    parse_tasks_json,
    parse_tasks_json_slice,
    parse_tasks_heuristic,
)


def parse_room_analysis(text: str) -> RoomAnalysis:
    """Parse a scan reply into task titles and advice. Never raises."""
    cleaned = strip_code_fence(text)
    for strategy in TASK_STRATEGIES:
        result = strategy(cleaned)
        if result is not None:
            logger.debug("analysis_reply_parsed", extra={"strategy": strategy.__name__, "tasks": len(result.tasks)})
            return result
    # parse_tasks_heuristic always returns a result
    return parse_tasks_heuristic(cleaned)


# Verification


def normalize_status(raw: str) -> TaskVerificationStatus:
    """Map a free-form status string onto a verdict."""
    normalized = raw.strip().lower()
    if normalized in _VERIFIED_STATUSES:
        return TaskVerificationStatus.VERIFIED
    if normalized in _NOT_DONE_STATUSES:
        return TaskVerificationStatus.NOT_DONE
    return TaskVerificationStatus.UNCLEAR


def _coerce_confidence(value: Any) -> float:
    """Clamp to [0, 1]; missing, non-numeric, non-finite or overflowing values become 0.0."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0.0
    try:
        confidence = float(value)
    except OverflowError:
        return 0.0
    if not math.isfinite(confidence):
        return 0.0
    return min(max(confidence, 0.0), 1.0)


def _verdict_from_item(item: Any) -> TaskVerificationResult | None:
    if not isinstance(item, dict):
        return None
    task_id = item.get("id")
    status = item.get("status")
    if not isinstance(task_id, str) or not isinstance(status, str):
        return None
    note = item.get("note")
    return TaskVerificationResult(
        task_id=task_id,
        status=normalize_status(status),
        confidence=_coerce_confidence(item.get("confidence")),
        note=note if isinstance(note, str) else None,
    )


def _verification_from_object(data: dict[str, Any] | None) -> RoomVerificationResult | None:
    if data is None:
        return None
    items = data.get("tasks")
    if not isinstance(items, list):
        return None

    verdicts = [verdict for verdict in (_verdict_from_item(item) for item in items) if verdict is not None]
    if not verdicts:
        return None

    summary = data.get("summary")
    needs_rescan = data.get("needsRescan", data.get("needs_rescan"))
    return RoomVerificationResult(
        tasks=verdicts,
        summary=summary if isinstance(summary, str) else "",
        needs_rescan=needs_rescan if isinstance(needs_rescan, bool) else False,
    )


def parse_verification_json(text: str) -> RoomVerificationResult | None:
    return _verification_from_object(_decode_object(text))


def parse_verification_json_slice(text: str) -> RoomVerificationResult | None:
    return _verification_from_object(_decode_brace_slice(text))


VerificationStrategy = Callable[[str], RoomVerificationResult | None]

VERIFICATION_STRATEGIES: tuple[VerificationStrategy, ...] = (
    parse_verification_json,
    parse_verification_json_slice,
)


def parse_room_verification(text: str) -> RoomVerificationResult:
    """Parse a verification reply into per-task verdicts.

    Raises:
        ParsingError: If no strategy yields at least one verdict
    """
    cleaned = strip_code_fence(text)
    for strategy in VERIFICATION_STRATEGIES:
        result = strategy(cleaned)
        if result is not None:
            logger.debug(
                "verification_reply_parsed",
                extra={"strategy": strategy.__name__, "verdicts": len(result.tasks)},
            )
            return result

    logger.warning("verification_reply_unparseable", extra={"length": len(text)})
    raise ParsingError("Failed to parse verification response")
