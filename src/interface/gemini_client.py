"""Gemini generateContent client implementing the room analysis capability."""

import base64
import json
import logging
from typing import Any

import httpx

from src.core.config import constants, settings
from src.core.errors import NoImageInResponseError, ParsingError, ServiceError, UnauthorizedError
from src.core.images import prepare_for_analysis
from src.core.logging import span
from src.domain.persona import Persona
from src.domain.task import CleaningTask
from src.domain.verification import RoomAnalysis, RoomVerificationResult
from src.services.response_parser import parse_room_analysis, parse_room_verification


logger = logging.getLogger(__name__)


def build_analysis_prompt(persona: Persona) -> str:
    return f"""You are {persona.display_name}, with this personality: {persona.tagline}.

Look at this room photo and:

1. Identify 3-5 specific cleaning/tidying tasks based on what you actually SEE.
Be specific (e.g., "Pick up the blue shirt from the floor" not "Tidy up").
Each task should be completable in under 5 minutes.
Avoid repeating wording across tasks. Each task must be distinct and grounded in visible items.

2. Write a 2-3 sentence reaction in your character's voice about what you notice.
{persona.voice_guidance}
Avoid clichés and repeated phrases. Keep it fresh each time.

Respond with this EXACT JSON format:
{{
    "tasks": ["task 1", "task 2", "task 3"],
    "advice": "Your 2-3 sentence character reaction here."
}}"""


def build_verification_prompt(persona: Persona, tasks: list[CleaningTask]) -> str:
    tasks_json = json.dumps([{"id": task.id, "task": task.title} for task in tasks])
    return f"""You are verifying whether cleaning tasks were completed. You are {persona.display_name}, with this personality: {persona.tagline}.

You will receive:
- A BEFORE image (last verified room scan) if available.
- An AFTER image (current scan) to verify against.
- A task list with IDs.

Task list JSON:
{tasks_json}

For each task, decide if it is done based on what you can SEE in the AFTER image compared to BEFORE.
Only set needsRescan=true if the AFTER image is unusable for most tasks (too dark, too blurry, or clearly not the room).
If a specific task is unclear, mark that task as "unclear" but keep needsRescan=false.
Use "verified" when evidence is visible. Use "not_done" when the mess is still present.
Provide a confidence score from 0.0 to 1.0. Low confidence is acceptable when the evidence is still visible.

Respond with this EXACT JSON format:
{{
  "needsRescan": false,
  "summary": "1-2 short sentences in your character voice. Avoid repeating phrasing.",
  "tasks": [
    {{"id": "UUID", "status": "verified|not_done|unclear", "confidence": 0.0, "note": "short reason"}}
  ]
}}"""


def build_stylize_prompt(persona: Persona) -> str:
    return (
        "Transform this room photo into an idealized, tidy version of the same room. "
        "Keep the layout, furniture and perspective recognisable.\n"
        f"{persona.dream_vision_style}"
    )


def _inline_jpeg(data: bytes) -> dict[str, Any]:
    return {"inline_data": {"mime_type": "image/jpeg", "data": base64.b64encode(data).decode("ascii")}}


def _candidate_parts(data: Any) -> list[dict[str, Any]]:
    """Return candidates[0].content.parts or raise ParsingError."""
    try:
        parts = data["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError) as e:
        raise ParsingError from e
    if not isinstance(parts, list):
        raise ParsingError
    return [part for part in parts if isinstance(part, dict)]


def extract_text(data: Any) -> str:
    """Text of the first text part in the reply envelope."""
    for part in _candidate_parts(data):
        text = part.get("text")
        if isinstance(text, str):
            return text
    raise ParsingError


def extract_image(data: Any) -> bytes:
    """Bytes of the first inline image part in the reply envelope."""
    for part in _candidate_parts(data):
        inline = part.get("inline_data") or part.get("inlineData")
        if isinstance(inline, dict) and isinstance(inline.get("data"), str):
            try:
                return base64.b64decode(inline["data"])
            except ValueError as e:
                raise ParsingError("Inline image data is not valid base64") from e
    raise NoImageInResponseError


class GeminiClient:
    """Analysis capability backed by the Gemini REST API."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        model: str | None = None,
        image_model: str | None = None,
        timeout: float = constants.ANALYSIS_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.model = model or settings.gemini_model
        self.image_model = image_model or settings.gemini_image_model
        self.timeout = timeout

    async def _generate(self, *, model: str, parts: list[dict[str, Any]], credential: str, json_reply: bool) -> Any:
        url = f"{self.base_url}/models/{model}:generateContent"
        generation_config: dict[str, Any] = (
            {"responseMimeType": "application/json"} if json_reply else {"responseModalities": ["TEXT", "IMAGE"]}
        )
        payload = {"contents": [{"parts": parts}], "generationConfig": generation_config}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    params={"key": credential},
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise ServiceError(0, f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ServiceError(0, f"Request failed: {e}") from e

        if response.status_code in (constants.HTTP_UNAUTHORIZED, constants.HTTP_FORBIDDEN):
            raise UnauthorizedError("Gemini rejected the API key")
        if not response.is_success:
            logger.warning("gemini_request_failed", extra={"model": model, "status_code": response.status_code})
            raise ServiceError(response.status_code, response.text or "Unknown error")

        try:
            return response.json()
        except ValueError as e:
            raise ParsingError from e

    async def analyze(self, image: bytes, persona: Persona, credential: str) -> RoomAnalysis:
        with span("gemini_client.analyze"):
            jpeg = prepare_for_analysis(image)
            data = await self._generate(
                model=self.model,
                parts=[{"text": build_analysis_prompt(persona)}, _inline_jpeg(jpeg)],
                credential=credential,
                json_reply=True,
            )
            return parse_room_analysis(extract_text(data))

    async def verify(
        self,
        before_image: bytes | None,
        after_image: bytes,
        tasks: list[CleaningTask],
        persona: Persona,
        credential: str,
    ) -> RoomVerificationResult:
        with span("gemini_client.verify"):
            after = prepare_for_analysis(after_image)
            parts: list[dict[str, Any]] = [{"text": build_verification_prompt(persona, tasks)}]
            if before_image is not None:
                parts.append(_inline_jpeg(prepare_for_analysis(before_image)))
            parts.append(_inline_jpeg(after))

            data = await self._generate(model=self.model, parts=parts, credential=credential, json_reply=True)
            return parse_room_verification(extract_text(data))

    async def stylize(self, image: bytes, persona: Persona, credential: str) -> bytes:
        with span("gemini_client.stylize"):
            jpeg = prepare_for_analysis(image)
            data = await self._generate(
                model=self.image_model,
                parts=[{"text": build_stylize_prompt(persona)}, _inline_jpeg(jpeg)],
                credential=credential,
                json_reply=False,
            )
            return extract_image(data)

    async def test_credential(self, credential: str) -> bool:
        """True when the model list endpoint accepts the key."""
        if not credential:
            return False
        try:
            async with httpx.AsyncClient(timeout=constants.CONNECTION_TEST_TIMEOUT_SECONDS) as client:
                response = await client.get(f"{self.base_url}/models", params={"key": credential})
        except httpx.HTTPError as e:
            logger.warning("gemini_credential_test_failed", extra={"error": str(e)})
            return False
        return response.status_code == constants.HTTP_OK
