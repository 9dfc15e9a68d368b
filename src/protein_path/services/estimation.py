"""Nutrition estimation from meal descriptions and photos using LLMs."""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Protocol

import httpx
from pydantic import ValidationError as PydanticValidationError

from protein_path.domain.estimation import EstimatePayload
from protein_path.domain.meals import NutritionData, NutritionEstimate
from protein_path.errors import EstimationError, ValidationError

logger = logging.getLogger(__name__)

NUTRITION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {
            "type": "string",
            "description": "A short, concise name of the identified food.",
        },
        "calories": {
            "type": "number",
            "description": "Estimated total calories (kcal).",
        },
        "protein": {
            "type": "number",
            "description": "Estimated protein content (g).",
        },
        "fat": {"type": "number", "description": "Estimated fat content (g)."},
        "carbs": {
            "type": "number",
            "description": "Estimated carbohydrate content (g).",
        },
        "sugar": {
            "type": "number",
            "description": (
                "Estimated sugar content (g). "
                "Include added sugars and natural sugars."
            ),
        },
        "estimatedWeight": {
            "type": "string",
            "description": (
                "Estimated serving size or weight (e.g., '200g' or '1 bowl')."
            ),
        },
        "confidence": {
            "type": "string",
            "description": "Low, Medium, or High confidence in this estimation.",
        },
    },
    "required": [
        "name",
        "calories",
        "protein",
        "fat",
        "carbs",
        "sugar",
        "estimatedWeight",
        "confidence",
    ],
    "additionalProperties": False,
}

SYSTEM_INSTRUCTION = (
    "You are an expert nutritionist. Be conservative but realistic with calorie "
    "and macro estimates. Ensure you provide estimates for Protein, Carbs, Fats, "
    "and Sugar. Provide a single object response in valid JSON format."
)

_UNAUTHORIZED = {401, 403}
_TOO_MANY_REQUESTS = 429
_SERVER_ERROR = 500

_BREAKDOWN = (
    "Identify the food and provide a detailed nutritional breakdown properly "
    "estimating calories, protein, fats, carbs, and sugar."
)


class EstimationProvider(Protocol):
    """Interface for a generative model that returns nutrition JSON."""

    async def generate(
        self,
        *,
        system_instruction: str,
        prompt: str,
        image: bytes | None,
        mime_type: str | None,
        schema: dict[str, object],
    ) -> str | None:
        """Return the raw JSON text produced by the model."""


@dataclass
class EstimationService:
    """Builds estimation prompts and normalizes provider output."""

    provider: EstimationProvider

    async def estimate(
        self, description: str, image: bytes | None = None
    ) -> NutritionEstimate:
        """Estimate nutrition for a described and/or photographed meal."""
        text = (description or "").strip()
        if not text and not image:
            raise ValidationError("Describe the meal or attach a photo")

        mime_type = detect_mime_type(image) if image else None
        try:
            raw = await self.provider.generate(
                system_instruction=SYSTEM_INSTRUCTION,
                prompt=build_prompt(text, has_image=bool(image)),
                image=image or None,
                mime_type=mime_type,
                schema=NUTRITION_SCHEMA,
            )
        except EstimationError:
            raise
        except Exception as exc:
            logger.exception("Estimation provider failed")
            raise EstimationError(
                f"Failed to analyze meal: {exc}", category=classify_failure(exc)
            ) from exc
        return parse_estimate(raw)


def build_prompt(description: str, *, has_image: bool) -> str:
    """Return the user prompt for a description and optional photo."""
    if description:
        subject = "meal description/image" if has_image else "meal description"
        return f'Analyze this {subject}. {_BREAKDOWN} Description: "{description}"'
    return f"Analyze this food image. {_BREAKDOWN}"


def parse_estimate(raw: str | None) -> NutritionEstimate:
    """Parse provider JSON and fill defaults for missing fields."""
    if raw is None or not raw.strip():
        raise EstimationError(
            "The model returned an empty response", category="invalid_response"
        )
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise EstimationError(
            "The model response was not valid JSON", category="invalid_response"
        ) from exc
    if not isinstance(data, dict):
        raise EstimationError(
            "The model response was not a JSON object", category="invalid_response"
        )
    try:
        payload = EstimatePayload.model_validate(data)
    except PydanticValidationError as exc:
        raise EstimationError(
            "The model response did not match the nutrition shape",
            category="invalid_response",
        ) from exc
    return NutritionEstimate(
        name=payload.name,
        nutrition=NutritionData(
            calories=payload.calories,
            protein=payload.protein,
            carbs=payload.carbs,
            fat=payload.fat,
            sugar=payload.sugar,
            estimated_weight=payload.estimated_weight,
        ),
        confidence=payload.confidence,
    )


def classify_failure(exc: Exception) -> str:
    """Map a provider failure onto a user-facing category."""
    status_code = _status_code_from_exception(exc)
    if status_code in _UNAUTHORIZED:
        return "invalid_credentials"
    if status_code == _TOO_MANY_REQUESTS:
        return "quota_exceeded" if _mentions_quota(exc) else "rate_limited"
    if status_code is not None and status_code >= _SERVER_ERROR:
        return "transient"
    if isinstance(exc, httpx.TransportError | TimeoutError | ConnectionError):
        return "transient"
    return "unknown"


def to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"


def _status_code_from_exception(exc: Exception) -> int | None:
    """Extract an HTTP status code from an SDK exception, if available."""
    for attribute in ("status_code", "code"):
        value = getattr(exc, attribute, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return status_code
    return None


def _mentions_quota(exc: Exception) -> bool:
    if getattr(exc, "code", None) == "insufficient_quota":
        return True
    return "quota" in str(exc).lower()
