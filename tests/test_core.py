from __future__ import annotations

import base64
from types import SimpleNamespace

import pytest
from google.genai import types

from nano_banana_mcp import core
from nano_banana_mcp.core import GeminiClient, build_request, extract_image, extract_text, sampling_kwargs
from nano_banana_mcp.errors import EmptyResponseError, ModelRequestError
from nano_banana_mcp.images import ResolvedImage
from nano_banana_mcp.schemas import GenerationConfig

from conftest import JPEG_BYTES, PNG_BYTES, image_response, text_response


def test_prompt_first_then_images_in_order() -> None:
    images = [ResolvedImage(b"one", "image/png"), ResolvedImage(b"two", "image/jpeg")]
    request = build_request("model-x", "combine these", images, expect_image=True)

    assert request.model == "model-x"
    assert request.prompt == "combine these"
    assert len(request.parts) == 3
    assert request.parts[1].inline_data.data == b"one"
    assert request.parts[2].inline_data.data == b"two"
    assert request.parts[2].inline_data.mime_type == "image/jpeg"


def test_image_tools_request_text_and_image() -> None:
    request = build_request("m", "a cat", expect_image=True)
    assert request.config == {"response_modalities": ["TEXT", "IMAGE"]}


def test_text_tools_send_no_modalities() -> None:
    request = build_request("m", "what is this", [ResolvedImage(b"x")], expect_image=False)
    assert request.config == {}


def test_config_passthrough_drops_unset_fields() -> None:
    config = GenerationConfig(temperature=0.4, topK=12)
    assert sampling_kwargs(config) == {"temperature": 0.4, "top_k": 12}
    assert sampling_kwargs(None) == {}


def test_config_fields_forwarded_verbatim() -> None:
    config = GenerationConfig(temperature=1.5, topP=0.8, topK=40, maxOutputTokens=100)
    request = build_request("m", "p", config=config, expect_image=False)
    assert request.config == {
        "temperature": 1.5,
        "top_p": 0.8,
        "top_k": 40,
        "max_output_tokens": 100,
    }


def test_default_temperature_only_when_unset() -> None:
    request = build_request("m", "p", expect_image=True, default_temperature=0.3)
    assert request.config["temperature"] == 0.3

    config = GenerationConfig(temperature=1.9, topP=0.5)
    request = build_request("m", "p", config=config, expect_image=True, default_temperature=0.3)
    assert request.config["temperature"] == 1.9
    assert request.config["top_p"] == 0.5


def test_config_accepted_by_sdk() -> None:
    config = GenerationConfig(temperature=0.2, topP=0.9, topK=5, maxOutputTokens=50)
    request = build_request("m", "p", config=config, expect_image=True)
    sdk_config = types.GenerateContentConfig(**request.config)
    assert sdk_config.top_k == 5


def test_extract_first_image() -> None:
    response = image_response(JPEG_BYTES, "image/jpeg", text="Here you go")
    image = extract_image(response)
    assert image.data == JPEG_BYTES
    assert image.mime_type == "image/jpeg"


def test_extract_image_takes_first_of_several() -> None:
    parts = [
        types.Part.from_bytes(data=b"first", mime_type="image/png"),
        types.Part.from_bytes(data=b"second", mime_type="image/png"),
    ]
    response = types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=parts))]
    )
    assert extract_image(response).data == b"first"


def test_extract_image_decodes_base64_strings() -> None:
    inline = SimpleNamespace(data=base64.b64encode(PNG_BYTES).decode("ascii"), mime_type="image/png")
    part = SimpleNamespace(inline_data=inline, text=None)
    response = SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))])
    assert extract_image(response).data == PNG_BYTES


def test_no_candidates() -> None:
    with pytest.raises(EmptyResponseError, match="No candidates"):
        extract_image(types.GenerateContentResponse(candidates=[]))
    with pytest.raises(EmptyResponseError, match="No candidates"):
        extract_text(types.GenerateContentResponse())


def test_no_parts() -> None:
    response = types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=[]))]
    )
    with pytest.raises(EmptyResponseError, match="No content parts"):
        extract_image(response)


def test_text_only_reply_when_image_expected() -> None:
    with pytest.raises(EmptyResponseError, match="Model said: I cannot draw that"):
        extract_image(text_response("I cannot draw that"))


def test_extract_text() -> None:
    assert extract_text(text_response("A red barn.")) == "A red barn."


def test_extract_text_missing() -> None:
    with pytest.raises(EmptyResponseError, match="No response text"):
        extract_text(image_response())


def _text_parts_response(*parts: types.Part) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def test_extract_text_joins_all_parts() -> None:
    response = _text_parts_response(
        types.Part.from_text(text="The image shows a cat. "),
        types.Part.from_text(text="It is sitting on a red mat."),
    )
    assert extract_text(response) == "The image shows a cat. It is sitting on a red mat."


def test_extract_text_skips_thoughts() -> None:
    response = _text_parts_response(
        types.Part(text="Let me look closely...", thought=True),
        types.Part.from_text(text="A red barn."),
    )
    assert extract_text(response) == "A red barn."


def test_extract_text_only_thoughts_is_empty() -> None:
    response = _text_parts_response(types.Part(text="hmm", thought=True))
    with pytest.raises(EmptyResponseError, match="No response text"):
        extract_text(response)


def _gemini_client(monkeypatch: pytest.MonkeyPatch, generate_content) -> GeminiClient:
    client = GeminiClient("test-key")
    monkeypatch.setattr(client._client.aio.models, "generate_content", generate_content)
    return client


@pytest.mark.asyncio
async def test_generate_wraps_parts_in_user_content(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = {}

    async def fake_generate_content(**kwargs):
        seen.update(kwargs)
        return image_response()

    client = _gemini_client(monkeypatch, fake_generate_content)
    request = build_request(
        "img-model",
        "a cat",
        [ResolvedImage(b"x")],
        GenerationConfig(temperature=0.4, topK=7),
        expect_image=True,
    )

    response = await client.generate(request)

    assert extract_image(response).data == PNG_BYTES
    assert seen["model"] == "img-model"
    [content] = seen["contents"]
    assert isinstance(content, types.Content)
    assert content.role == "user"
    assert content.parts == request.parts
    config = seen["config"]
    assert isinstance(config, types.GenerateContentConfig)
    assert config.temperature == 0.4
    assert config.top_k == 7
    assert config.top_p is None
    assert config.response_modalities is not None


@pytest.mark.asyncio
async def test_generate_omits_empty_config(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = {}

    async def fake_generate_content(**kwargs):
        seen.update(kwargs)
        return text_response("ok")

    client = _gemini_client(monkeypatch, fake_generate_content)
    await client.generate(build_request("txt-model", "describe", expect_image=False))

    assert "config" not in seen


@pytest.mark.asyncio
async def test_generate_wraps_sdk_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_generate_content(**kwargs):
        raise ValueError("429 RESOURCE_EXHAUSTED")

    client = _gemini_client(monkeypatch, fake_generate_content)

    with pytest.raises(ModelRequestError, match="Gemini API request failed: 429 RESOURCE_EXHAUSTED") as exc:
        await client.generate(build_request("m", "p", expect_image=True))
    assert isinstance(exc.value.__cause__, ValueError)


@pytest.mark.parametrize("no_ssl_verify", [False, True])
def test_client_tls_options(monkeypatch: pytest.MonkeyPatch, no_ssl_verify: bool) -> None:
    seen = {}

    class _FakeSdkClient:
        def __init__(self, **kwargs) -> None:
            seen.update(kwargs)

    monkeypatch.setattr(core.genai, "Client", _FakeSdkClient)
    GeminiClient("test-key", no_ssl_verify=no_ssl_verify)

    assert seen["api_key"] == "test-key"
    if no_ssl_verify:
        assert seen["http_options"].client_args == {"verify": False}
        assert seen["http_options"].async_client_args == {"verify": False}
    else:
        assert seen["http_options"] is None
