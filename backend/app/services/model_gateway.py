"""Gemini (Vertex AI) gateway: one call, one parsed JSON object."""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Iterator, List, Optional, Tuple

from google import genai
from google.genai import types

from app.core.config import Settings
from app.core.errors import (
    ContentBlocked,
    EmptyResponse,
    InvalidJson,
    MalformedOutput,
    ModelUnavailable,
    ProviderError,
)
from app.observability.metrics import log_metric
from app.observability.tracing import annotate, preview, trace
from app.services.prompt_builder import build_connection_test_prompt

logger = logging.getLogger(__name__)

BLOCKED_FINISH_REASONS = {"SAFETY", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII"}


def iter_json_spans(text: str) -> Iterator[Tuple[int, int]]:
    """Yield (start, end) of each balanced top-level ``{...}`` span, left to right.

    Braces inside JSON string literals are ignored, including escaped quotes.
    An unterminated span at the end of the text yields nothing.
    """
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if depth == 0:
            if char == "{":
                depth = 1
                start = index
                in_string = False
                escaped = False
            continue
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                yield start, index + 1


def extract_json_object(text: str) -> Dict[str, Any]:
    """Return the first balanced span in ``text`` that parses as a JSON object.

    Raises MalformedOutput when no balanced span exists and InvalidJson when
    spans exist but none of them is a JSON object.
    """
    spans: List[Tuple[int, int]] = list(iter_json_spans(text or ""))
    if not spans:
        raise MalformedOutput("No JSON object found in model response")

    last_error: Optional[str] = None
    for start, end in spans:
        try:
            parsed = json.loads(text[start:end])
        except json.JSONDecodeError as exc:
            last_error = str(exc)
            continue
        if isinstance(parsed, dict):
            return parsed
        last_error = "JSON value is not an object"
    raise InvalidJson(f"Model response contained invalid JSON: {last_error}")


def build_generation_config(settings: Settings) -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        temperature=settings.gemini_temperature,
        top_p=settings.gemini_top_p,
        max_output_tokens=settings.gemini_max_output_tokens,
        response_mime_type="application/json",
        safety_settings=[
            types.SafetySetting(
                category=types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
                threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            ),
            types.SafetySetting(
                category=types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
                threshold=types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
            ),
        ],
    )


def _enum_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    raw = getattr(value, "value", value)
    return str(raw)


def _candidate_text(candidate: Any) -> str:
    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) or []
    return "".join(getattr(part, "text", None) or "" for part in parts)


class ModelGateway:
    """Sends prompts to Gemini and returns the JSON object found in the reply.

    The gateway owns one ``genai.Client`` built at startup. A gateway without a
    client is valid: every call raises ModelUnavailable so callers can fall
    back to deterministic results.
    """

    def __init__(
        self,
        client: Optional[genai.Client],
        *,
        model: str,
        project: Optional[str],
        location: str,
        config: Optional[types.GenerateContentConfig] = None,
        preview_chars: int = 100,
    ) -> None:
        self.client = client
        self.model = model
        self.project = project
        self.location = location
        self.config = config
        self.preview_chars = preview_chars

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def invoke(self, prompt: str, operation: str) -> Dict[str, Any]:
        started = time.perf_counter()
        metadata = {"operation": operation, "model": self.model, "location": self.location}
        logger.info(
            "Calling Gemini (operation=%s, model=%s, project=%s, location=%s, prompt_length=%s)",
            operation,
            self.model,
            self.project,
            self.location,
            len(prompt),
        )

        with trace(f"gemini.{operation}", metadata=metadata) as span:
            try:
                text, finish_reason = await self._generate(prompt, operation)
                parsed = extract_json_object(text)
            except ProviderError as exc:
                elapsed_ms = (time.perf_counter() - started) * 1000
                logger.error(
                    "Gemini call failed (operation=%s, error=%s, elapsed_ms=%.0f): %s",
                    operation,
                    type(exc).__name__,
                    elapsed_ms,
                    exc,
                )
                log_metric("gemini.call.failed", 1, {**metadata, "error": type(exc).__name__})
                raise

            elapsed_ms = (time.perf_counter() - started) * 1000
            annotate(span, finish_reason=finish_reason, response_length=len(text), keys=sorted(parsed))

        logger.info(
            "Gemini response parsed (operation=%s, length=%s, finish_reason=%s, keys=%s, preview=%r)",
            operation,
            len(text),
            finish_reason,
            sorted(parsed),
            preview(text, self.preview_chars),
        )
        log_metric("gemini.call.latency_ms", round(elapsed_ms, 1), metadata)
        return parsed

    async def _generate(self, prompt: str, operation: str) -> Tuple[str, Optional[str]]:
        if self.client is None:
            raise ModelUnavailable("Vertex AI client is not configured")

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=self.config,
            )
        except Exception as exc:
            raise ModelUnavailable(f"Vertex AI request failed: {exc}") from exc

        feedback = getattr(response, "prompt_feedback", None)
        block_reason = _enum_name(getattr(feedback, "block_reason", None))
        if block_reason:
            raise ContentBlocked(f"Prompt was blocked by safety filters ({block_reason})")

        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            raise EmptyResponse("Model returned no candidates")

        candidate = candidates[0]
        finish_reason = _enum_name(getattr(candidate, "finish_reason", None))
        if finish_reason in BLOCKED_FINISH_REASONS:
            raise ContentBlocked(f"Response was blocked by safety filters ({finish_reason})")

        text = _candidate_text(candidate)
        if not text.strip():
            raise EmptyResponse("Model returned an empty response")
        logger.debug("Gemini raw response received (operation=%s, length=%s)", operation, len(text))
        return text, finish_reason

    async def check_connection(self) -> Dict[str, Any]:
        """Send the fixed connectivity prompt; never raises."""
        summary: Dict[str, Any] = {
            "project": self.project,
            "location": self.location,
            "model": self.model,
        }
        try:
            result = await self.invoke(build_connection_test_prompt(), "connection_test")
        except ProviderError as exc:
            return {"success": False, **summary, "error": str(exc), "errorType": type(exc).__name__}
        return {"success": True, **summary, "result": result}


def build_model_gateway(settings: Settings) -> ModelGateway:
    """Construct the gateway and its Vertex AI client once, at startup."""
    client: Optional[genai.Client] = None
    try:
        client = genai.Client(
            vertexai=True,
            project=settings.google_cloud_project,
            location=settings.vertex_ai_location,
        )
    except Exception as exc:
        logger.warning("Vertex AI client unavailable, AI operations will use fallbacks: %s", exc)

    return ModelGateway(
        client,
        model=settings.gemini_model,
        project=settings.google_cloud_project,
        location=settings.vertex_ai_location,
        config=build_generation_config(settings),
        preview_chars=settings.response_preview_chars,
    )
