"""Scalp photo analysis with Claude Vision.

The classifier is called through a forced tool call so the model can only
answer with the structured hair analysis payload. The payload is validated on
receipt; anything missing, mistyped or out of range fails the whole call.
"""
from __future__ import annotations

import base64
import logging
import os
from typing import Any, Callable, Dict, List, Optional, Tuple

import anthropic
import requests
from anthropic import Anthropic

from analysis.errors import AnalysisFailure, FailureCode
from analysis.results import AnalysisResult, PreviousScores, UploadedPhoto
from config import (
    ANALYSIS_TOOL_NAME,
    ANTHROPIC_MODEL,
    FETCH_TIMEOUT_SECONDS,
    SCORE_FIELDS,
    SUPPORTED_IMAGE_TYPES,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a moment."
CREDITS_MESSAGE = "AI credits exhausted. Please add credits to continue."
GENERIC_MESSAGE = "AI analysis failed"
NO_STRUCTURED_MESSAGE = "AI did not return structured results"

_SYSTEM_PROMPT = """
You are a hair health analysis AI assistant. You analyze photos of a person's scalp to estimate hair health metrics.

IMPORTANT: You are NOT providing medical diagnosis. All results are informational estimates only.

Analyze the provided photos and evaluate:
1. Hair density (0-100): Overall thickness and coverage
2. Hairline position (0-100): How intact the hairline appears (100 = no recession)
3. Crown health (0-100): Crown area coverage and density
4. Overall health score (0-100): Weighted average considering all factors

Also determine if there are any notable changes worth alerting the user about (set alert_triggered to true only if significant thinning or recession is detected).

Provide a brief, encouraging but honest summary (2-3 sentences). Be supportive and focus on actionable insights.
""".strip()

_COMPARISON_TEMPLATE = (
    "\n\nPrevious analysis scores for comparison: Overall: {overall}/100, "
    "Density: {density}/100, Hairline: {hairline}/100, Crown: {crown}/100. "
    "Compare these to the current photos and note any changes."
)

ANALYSIS_TOOL = {
    "name": ANALYSIS_TOOL_NAME,
    "description": "Submit the structured hair analysis results",
    "input_schema": {
        "type": "object",
        "properties": {
            "overall_score": {"type": "integer", "minimum": 0, "maximum": 100, "description": "Overall hair health score"},
            "density_score": {"type": "integer", "minimum": 0, "maximum": 100, "description": "Hair density score"},
            "hairline_score": {"type": "integer", "minimum": 0, "maximum": 100, "description": "Hairline health score"},
            "crown_score": {"type": "integer", "minimum": 0, "maximum": 100, "description": "Crown area health score"},
            "ai_summary": {"type": "string", "description": "Brief encouraging summary with actionable insights (2-3 sentences)"},
            "alert_triggered": {"type": "boolean", "description": "Whether significant changes warrant an alert"},
            "comparison_notes": {"type": "string", "description": "Notes comparing to previous analysis if available, otherwise null"},
        },
        "required": [
            "overall_score",
            "density_score",
            "hairline_score",
            "crown_score",
            "ai_summary",
            "alert_triggered",
        ],
        "additionalProperties": False,
    },
}

ImageFetcher = Callable[[str], Tuple[bytes, str]]


class ValidationError(ValueError):
    pass


def _download_image(url: str) -> Tuple[bytes, str]:
    """Download an image and return (bytes, content_type)."""
    r = requests.get(url, timeout=FETCH_TIMEOUT_SECONDS)
    r.raise_for_status()
    return r.content, r.headers.get("Content-Type", "")


def _media_type(content_type: str, url: str) -> str:
    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type == "image/jpg":
        return "image/jpeg"
    if content_type in SUPPORTED_IMAGE_TYPES:
        return content_type

    # Fallback: detect from URL extension
    path = url.split("?", 1)[0].lower()
    if path.endswith(".png"):
        return "image/png"
    if path.endswith(".webp"):
        return "image/webp"
    if path.endswith(".gif"):
        return "image/gif"
    return "image/jpeg"


def build_system_prompt(previous_scores: Optional[PreviousScores]) -> str:
    if previous_scores is None:
        return _SYSTEM_PROMPT
    return _SYSTEM_PROMPT + _COMPARISON_TEMPLATE.format(
        overall=previous_scores.overall,
        density=previous_scores.density,
        hairline=previous_scores.hairline,
        crown=previous_scores.crown,
    )


def build_user_instruction(photos: List[UploadedPhoto]) -> str:
    angles = ", ".join(p.angle for p in photos)
    return (
        f"Please analyze these scalp photos taken from different angles: {angles}. "
        "Provide your structured assessment."
    )


def _as_score(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    # bool is an int subclass; a true/false score is still a schema violation
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{key} must be an integer.")
    if not 0 <= value <= 100:
        raise ValidationError(f"{key} out of range: {value}")
    return value


def validate_analysis_payload(payload: Any) -> AnalysisResult:
    if not isinstance(payload, dict):
        raise ValidationError("Tool input must be an object.")

    required = ANALYSIS_TOOL["input_schema"]["required"]
    missing = [k for k in required if k not in payload]
    if missing:
        raise ValidationError(f"Missing required keys: {missing}")

    scores = {key: _as_score(payload, key) for key in SCORE_FIELDS}

    summary = payload["ai_summary"]
    if not isinstance(summary, str) or not summary.strip():
        raise ValidationError("ai_summary must be non-empty text.")

    alert = payload["alert_triggered"]
    if not isinstance(alert, bool):
        raise ValidationError("alert_triggered must be a boolean.")

    notes = payload.get("comparison_notes")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("comparison_notes must be text or null.")

    return AnalysisResult(
        ai_summary=summary.strip(),
        alert_triggered=alert,
        comparison_notes=(notes.strip() or None) if notes else None,
        **scores,
    )


def extract_tool_input(message: Any) -> Dict[str, Any]:
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", "") == "tool_use" and getattr(block, "name", "") == ANALYSIS_TOOL_NAME:
            tool_input = getattr(block, "input", None)
            if tool_input:
                return tool_input
    raise ValidationError(NO_STRUCTURED_MESSAGE)


class HairAnalysisClassifier:
    """Sends uploaded scalp photos to Claude and returns a validated AnalysisResult.

    ``fetch_image`` resolves a signed URL to ``(bytes, content_type)``; the
    default downloads it over HTTP. Local object stores pass their own
    resolver so ``local://`` URLs work without a web server.
    """

    def __init__(
        self,
        client: Optional[Anthropic] = None,
        model: str = ANTHROPIC_MODEL,
        fetch_image: Optional[ImageFetcher] = None,
        max_tokens: int = 1024,
    ) -> None:
        self._client = client
        self.model = model
        self.fetch_image = fetch_image or _download_image
        self.max_tokens = max_tokens

    def _get_client(self) -> Anthropic:
        if self._client is None:
            api_key = os.getenv("ANTHROPIC_API_KEY")
            if not api_key:
                raise AnalysisFailure(FailureCode.UNKNOWN, "AI service not configured")
            self._client = Anthropic(api_key=api_key)
        return self._client

    def _image_block(self, photo: UploadedPhoto) -> Dict[str, Any]:
        try:
            data, content_type = self.fetch_image(photo.url)
        except Exception as exc:
            logger.warning("Failed to fetch %s photo for analysis: %s", photo.angle, exc)
            raise AnalysisFailure(FailureCode.UPLOAD, f"Could not read uploaded {photo.angle} photo") from exc
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": _media_type(content_type, photo.url),
                "data": base64.b64encode(data).decode("utf-8"),
            },
        }

    def build_messages(self, photos: List[UploadedPhoto]) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = [{"type": "text", "text": build_user_instruction(photos)}]
        content.extend(self._image_block(p) for p in photos)
        return [{"role": "user", "content": content}]

    def analyze(
        self,
        photos: List[UploadedPhoto],
        previous_scores: Optional[PreviousScores] = None,
    ) -> AnalysisResult:
        if not photos:
            raise AnalysisFailure(FailureCode.UPLOAD, "No photos provided")

        client = self._get_client()
        messages = self.build_messages(photos)

        try:
            msg = client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=0.2,
                system=build_system_prompt(previous_scores),
                tools=[ANALYSIS_TOOL],
                tool_choice={"type": "tool", "name": ANALYSIS_TOOL_NAME},
                messages=messages,
            )
        except anthropic.RateLimitError as exc:
            raise AnalysisFailure(FailureCode.RATE_LIMIT, RATE_LIMIT_MESSAGE) from exc
        except anthropic.APIStatusError as exc:
            if exc.status_code == 429:
                raise AnalysisFailure(FailureCode.RATE_LIMIT, RATE_LIMIT_MESSAGE) from exc
            if exc.status_code == 402:
                raise AnalysisFailure(FailureCode.CREDITS, CREDITS_MESSAGE) from exc
            logger.error("AI gateway error: %s %s", exc.status_code, exc.message)
            raise AnalysisFailure(FailureCode.UNKNOWN, GENERIC_MESSAGE) from exc
        except anthropic.APIError as exc:
            logger.error("AI gateway unreachable: %s", exc)
            raise AnalysisFailure(FailureCode.UNKNOWN, GENERIC_MESSAGE) from exc

        try:
            result = validate_analysis_payload(extract_tool_input(msg))
        except ValidationError as exc:
            logger.error("No usable tool call in AI response (id=%s): %s", getattr(msg, "id", None), exc)
            raise AnalysisFailure(FailureCode.UNKNOWN, NO_STRUCTURED_MESSAGE) from exc

        logger.info(
            "Hair analysis complete: overall=%d alert=%s photos=%d",
            result.overall_score,
            result.alert_triggered,
            len(photos),
        )
        return result
