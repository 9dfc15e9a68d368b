"""OpenAI Responses API client for nutrition estimation."""

import base64
from dataclasses import dataclass

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from protein_path.errors import EstimationError
from protein_path.services.estimation import EstimationProvider, classify_failure


@dataclass
class OpenAIEstimationClient(EstimationProvider):
    """Estimation provider backed by OpenAI structured outputs."""

    client: AsyncOpenAI
    model: str
    temperature: float | None = None
    store: bool = False

    @classmethod
    def create(
        cls, api_key: str, model: str, temperature: float | None = None
    ) -> "OpenAIEstimationClient":
        """Create an OpenAI estimation client."""
        return cls(
            client=AsyncOpenAI(api_key=api_key), model=model, temperature=temperature
        )

    async def generate(
        self,
        *,
        system_instruction: str,
        prompt: str,
        image: bytes | None,
        mime_type: str | None,
        schema: dict[str, object],
    ) -> str | None:
        """Call OpenAI Responses API with a strict JSON schema."""
        content: list[dict[str, object]] = []
        if image is not None:
            encoded = base64.b64encode(image).decode("utf-8")
            content.append(
                {
                    "type": "input_image",
                    "image_url": f"data:{mime_type or 'image/jpeg'};base64,{encoded}",
                }
            )
        content.append({"type": "input_text", "text": prompt})
        request_payload: dict[str, object] = {
            "model": self.model,
            "instructions": system_instruction,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "nutrition_estimate",
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": self.store,
        }
        if self.temperature is not None:
            request_payload["temperature"] = self.temperature

        try:
            response = await self.client.responses.create(**request_payload)
        except APIConnectionError as exc:
            raise EstimationError(
                "Could not reach OpenAI, try again", category="transient"
            ) from exc
        except APIStatusError as exc:
            raise EstimationError(
                f"OpenAI request failed: {exc.message}",
                category=classify_failure(exc),
            ) from exc
        return response.output_text

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
