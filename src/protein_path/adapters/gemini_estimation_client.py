"""Google Gemini client for nutrition estimation."""

from dataclasses import dataclass

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from protein_path.errors import EstimationError
from protein_path.services.estimation import EstimationProvider, classify_failure

_SCHEMA_TYPES = {
    "object": types.Type.OBJECT,
    "string": types.Type.STRING,
    "number": types.Type.NUMBER,
    "integer": types.Type.INTEGER,
    "boolean": types.Type.BOOLEAN,
}


@dataclass
class GeminiEstimationClient(EstimationProvider):
    """Estimation provider using Gemini constrained JSON decoding."""

    client: genai.Client
    model: str

    @classmethod
    def create(cls, api_key: str, model: str) -> "GeminiEstimationClient":
        """Create a Gemini estimation client."""
        return cls(client=genai.Client(api_key=api_key), model=model)

    async def generate(
        self,
        *,
        system_instruction: str,
        prompt: str,
        image: bytes | None,
        mime_type: str | None,
        schema: dict[str, object],
    ) -> str | None:
        """Call Gemini with inline image data and a response schema."""
        parts: list[types.Part] = []
        if image is not None:
            parts.append(
                types.Part.from_bytes(data=image, mime_type=mime_type or "image/jpeg")
            )
        parts.append(types.Part.from_text(text=prompt))
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=to_gemini_schema(schema),
        )
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=parts,
                config=config,
            )
        except genai_errors.APIError as exc:
            raise EstimationError(
                f"Gemini request failed: {exc.message or exc}",
                category=classify_failure(exc),
            ) from exc
        except httpx.TransportError as exc:
            raise EstimationError(
                "Could not reach Gemini, try again", category="transient"
            ) from exc
        return response.text

    async def close(self) -> None:
        """Close the async HTTP session."""
        await self.client.aio.aclose()


def to_gemini_schema(schema: dict[str, object]) -> types.Schema:
    """Convert a flat JSON schema object into a Gemini ``Schema``."""
    properties = schema.get("properties") or {}
    required = schema.get("required") or []
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            name: types.Schema(
                type=_SCHEMA_TYPES[str(field_schema.get("type", "string"))],
                description=field_schema.get("description"),
            )
            for name, field_schema in properties.items()
        },
        required=list(required),
    )
