"""Tests for estimation provider adapters."""

import asyncio
import json
from types import SimpleNamespace

import httpx
import pytest
from google.genai import errors as genai_errors
from google.genai import types
from openai import APIConnectionError, RateLimitError

from protein_path.adapters.gemini_estimation_client import (
    GeminiEstimationClient,
    to_gemini_schema,
)
from protein_path.adapters.openai_estimation_client import OpenAIEstimationClient
from protein_path.errors import EstimationError
from protein_path.services.estimation import NUTRITION_SCHEMA, SYSTEM_INSTRUCTION
from tests.conftest import default_estimate_payload

_OPENAI_URL = "https://api.openai.com/v1/responses"


class _FakeResponses:
    def __init__(self, error: Exception | None = None) -> None:
        self.last_payload: dict[str, object] | None = None
        self.error = error

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        if self.error is not None:
            raise self.error
        return type(
            "Resp", (), {"output_text": json.dumps(default_estimate_payload())}
        )()


class _FakeOpenAI:
    def __init__(self, error: Exception | None = None) -> None:
        self.responses = _FakeResponses(error)


class _FakeGeminiModels:
    def __init__(self, error: Exception | None = None) -> None:
        self.last_call: dict[str, object] | None = None
        self.error = error

    async def generate_content(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_call = kwargs
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=json.dumps(default_estimate_payload()))


class _FakeGeminiAio:
    def __init__(self, error: Exception | None = None) -> None:
        self.models = _FakeGeminiModels(error)
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


def _fake_gemini(error: Exception | None = None) -> SimpleNamespace:
    return SimpleNamespace(aio=_FakeGeminiAio(error))


def _generate(provider, image: bytes | None = None):  # type: ignore[no-untyped-def]
    return asyncio.run(
        provider.generate(
            system_instruction=SYSTEM_INSTRUCTION,
            prompt="Analyze this food item: oatmeal",
            image=image,
            mime_type="image/png" if image else None,
            schema=NUTRITION_SCHEMA,
        )
    )


def test_openai_client_sends_strict_schema_and_image() -> None:
    fake = _FakeOpenAI()
    client = OpenAIEstimationClient(client=fake, model="gpt-4o-mini", temperature=0.7)

    text = _generate(client, image=b"\x89PNG")

    payload = fake.responses.last_payload
    assert payload is not None
    assert payload["model"] == "gpt-4o-mini"
    assert payload["instructions"] == SYSTEM_INSTRUCTION
    assert payload["temperature"] == 0.7
    assert payload["store"] is False
    content = payload["input"][0]["content"]
    assert content[0]["type"] == "input_image"
    assert content[0]["image_url"].startswith("data:image/png;base64,")
    assert content[1] == {
        "type": "input_text",
        "text": "Analyze this food item: oatmeal",
    }
    text_format = payload["text"]["format"]
    assert text_format["strict"] is True
    assert text_format["schema"] is NUTRITION_SCHEMA
    assert json.loads(text)["name"] == "Oatmeal with berries"


def test_openai_client_omits_temperature_when_unset() -> None:
    fake = _FakeOpenAI()
    client = OpenAIEstimationClient(client=fake, model="gpt-4o-mini")

    _generate(client)

    payload = fake.responses.last_payload
    assert payload is not None
    assert "temperature" not in payload
    assert len(payload["input"][0]["content"]) == 1


def test_openai_client_maps_quota_errors() -> None:
    request = httpx.Request("POST", _OPENAI_URL)
    error = RateLimitError(
        "You exceeded your current quota",
        response=httpx.Response(429, request=request),
        body={"code": "insufficient_quota"},
    )
    client = OpenAIEstimationClient(client=_FakeOpenAI(error), model="gpt-4o-mini")

    with pytest.raises(EstimationError) as exc_info:
        _generate(client)

    assert exc_info.value.category == "quota_exceeded"
    assert not exc_info.value.retryable


def test_openai_client_maps_connection_errors() -> None:
    error = APIConnectionError(request=httpx.Request("POST", _OPENAI_URL))
    client = OpenAIEstimationClient(client=_FakeOpenAI(error), model="gpt-4o-mini")

    with pytest.raises(EstimationError) as exc_info:
        _generate(client)

    assert exc_info.value.category == "transient"
    assert exc_info.value.retryable


def test_gemini_client_sends_parts_and_schema() -> None:
    fake = _fake_gemini()
    client = GeminiEstimationClient(client=fake, model="gemini-2.0-flash")

    text = _generate(client, image=b"\x89PNG")

    call = fake.aio.models.last_call
    assert call is not None
    assert call["model"] == "gemini-2.0-flash"
    parts = call["contents"]
    assert parts[0].inline_data.mime_type == "image/png"
    assert parts[0].inline_data.data == b"\x89PNG"
    assert parts[1].text == "Analyze this food item: oatmeal"
    config = call["config"]
    assert config.response_mime_type == "application/json"
    assert config.response_schema.type == types.Type.OBJECT
    assert json.loads(text)["calories"] == 350


def test_gemini_client_maps_server_errors() -> None:
    error = genai_errors.ServerError(
        503, {"error": {"message": "The model is overloaded", "status": "UNAVAILABLE"}}
    )
    client = GeminiEstimationClient(
        client=_fake_gemini(error), model="gemini-2.0-flash"
    )

    with pytest.raises(EstimationError) as exc_info:
        _generate(client)

    assert exc_info.value.category == "transient"


def test_gemini_client_maps_invalid_key() -> None:
    error = genai_errors.ClientError(
        403, {"error": {"message": "API key not valid", "status": "PERMISSION_DENIED"}}
    )
    client = GeminiEstimationClient(
        client=_fake_gemini(error), model="gemini-2.0-flash"
    )

    with pytest.raises(EstimationError) as exc_info:
        _generate(client)

    assert exc_info.value.category == "invalid_credentials"


def test_gemini_client_closes_async_session() -> None:
    fake = _fake_gemini()
    client = GeminiEstimationClient(client=fake, model="gemini-2.0-flash")

    asyncio.run(client.close())

    assert fake.aio.closed


def test_to_gemini_schema_keeps_fields_and_required() -> None:
    schema = to_gemini_schema(NUTRITION_SCHEMA)

    assert schema.type == types.Type.OBJECT
    assert schema.properties is not None
    assert schema.properties["calories"].type == types.Type.NUMBER
    assert schema.properties["estimatedWeight"].type == types.Type.STRING
    assert set(schema.required or []) == set(NUTRITION_SCHEMA["required"])
