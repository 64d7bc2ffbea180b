from __future__ import annotations

import inspect

import pytest
from google.genai import types

from nano_banana_mcp.config import Settings
from nano_banana_mcp.dispatcher import ToolDispatcher


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-png-payload"
JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-payload"


def image_response(
    data: bytes = PNG_BYTES,
    mime_type: str = "image/png",
    text: str | None = None,
) -> types.GenerateContentResponse:
    parts = []
    if text:
        parts.append(types.Part.from_text(text=text))
    parts.append(types.Part.from_bytes(data=data, mime_type=mime_type))
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=parts))]
    )


def text_response(text: str) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(role="model", parts=[types.Part.from_text(text=text)])
            )
        ]
    )


class StubClient:
    """Stands in for GeminiClient; records every request it is given."""

    def __init__(self, respond=None) -> None:
        self.requests = []
        self._respond = respond or (lambda request: image_response())

    async def generate(self, request):
        self.requests.append(request)
        result = self._respond(request)
        if inspect.isawaitable(result):
            result = await result
        return result


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(api_key="test-key", output_dir=str(tmp_path / "out"))


@pytest.fixture
def stub_client() -> StubClient:
    return StubClient()


@pytest.fixture
def dispatcher(stub_client: StubClient, settings: Settings) -> ToolDispatcher:
    return ToolDispatcher(stub_client, settings)
