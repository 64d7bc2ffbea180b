"""
Core Gemini functionality: request shaping, the model client, and response extraction.
"""
import base64
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from google import genai
from google.genai import types

from .errors import EmptyResponseError, ModelRequestError
from .images import DEFAULT_MIME_TYPE, ResolvedImage
from .schemas import GenerationConfig


logger = logging.getLogger(__name__)

# Image-producing tools ask for both; text-only tools send no modality hint.
IMAGE_RESPONSE_MODALITIES = ["TEXT", "IMAGE"]


@dataclass
class GenerationRequest:
    """A single generate_content call: model id, ordered parts, and config kwargs."""

    model: str
    parts: list
    config: dict = field(default_factory=dict)

    @property
    def prompt(self) -> Optional[str]:
        return self.parts[0].text if self.parts else None


def sampling_kwargs(config: Optional[GenerationConfig]) -> dict:
    """Map the caller's sampling config onto SDK field names, dropping unset fields."""
    if config is None:
        return {}
    return config.model_dump(by_alias=False, exclude_none=True)


def build_request(
    model: str,
    prompt: str,
    images: Sequence[ResolvedImage] = (),
    config: Optional[GenerationConfig] = None,
    *,
    expect_image: bool,
    default_temperature: Optional[float] = None,
) -> GenerationRequest:
    """Build the request payload: prompt first, then image parts in input order.

    Args:
        model: Gemini model ID.
        prompt: Text prompt.
        images: Input images, sent after the prompt in the given order.
        config: Caller-supplied sampling config, forwarded field by field.
        expect_image: Request TEXT and IMAGE response modalities.
        default_temperature: Used only when the caller did not set temperature.
    """
    parts = [types.Part.from_text(text=prompt)]
    for image in images:
        parts.append(types.Part.from_bytes(data=image.data, mime_type=image.mime_type))

    gen_config = sampling_kwargs(config)
    if default_temperature is not None and "temperature" not in gen_config:
        gen_config["temperature"] = default_temperature
    if expect_image:
        gen_config["response_modalities"] = list(IMAGE_RESPONSE_MODALITIES)

    return GenerationRequest(model=model, parts=parts, config=gen_config)


class GeminiClient:
    """Async handle on the Gemini API, created once per process."""

    def __init__(self, api_key: str, *, no_ssl_verify: bool = False):
        http_options = None
        if no_ssl_verify:
            # Scoped to the SDK's own httpx clients.
            http_options = types.HttpOptions(
                client_args={"verify": False},
                async_client_args={"verify": False},
            )
        self._client = genai.Client(api_key=api_key, http_options=http_options)

    async def generate(self, request: GenerationRequest) -> types.GenerateContentResponse:
        call_kwargs: dict = {
            "model": request.model,
            "contents": [types.Content(role="user", parts=request.parts)],
        }
        if request.config:
            call_kwargs["config"] = types.GenerateContentConfig(**request.config)

        logger.debug("generate_content model=%s parts=%d", request.model, len(request.parts))
        try:
            return await self._client.aio.models.generate_content(**call_kwargs)
        except Exception as e:
            raise ModelRequestError(f"Gemini API request failed: {e}") from e


def _response_parts(response) -> list:
    candidates = getattr(response, "candidates", None)
    if not candidates:
        raise EmptyResponseError("No candidates returned from Gemini.")

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) if content is not None else None
    if not parts:
        raise EmptyResponseError("No content parts in the response")
    return parts


def extract_image(response) -> ResolvedImage:
    """Return the first part carrying inline data.

    Raises:
        EmptyResponseError: no candidates, no parts, or no inline data part.
    """
    text_response = None

    for part in _response_parts(response):
        inline = getattr(part, "inline_data", None)
        if inline is None:
            inline = getattr(part, "inlineData", None)

        if inline is not None:
            data = getattr(inline, "data", None)
            if data is not None:
                if isinstance(data, str):
                    data = base64.b64decode(data)
                mime = getattr(inline, "mime_type", None) or getattr(inline, "mimeType", None)
                return ResolvedImage(data, str(mime) if mime else DEFAULT_MIME_TYPE)

        text = getattr(part, "text", None)
        if text and text_response is None:
            text_response = text

    error_msg = "No image data found in the response"
    if text_response:
        error_msg += f". Model said: {text_response}"
    raise EmptyResponseError(error_msg)


def extract_text(response) -> str:
    """Return all text parts of the first candidate, joined in order.

    Parts flagged as model thoughts are skipped.

    Raises:
        EmptyResponseError: no candidates, no parts, or no text part.
    """
    text_parts = []
    for part in _response_parts(response):
        if getattr(part, "thought", None):
            continue
        text = getattr(part, "text", None)
        if text:
            text_parts.append(text)

    if not text_parts:
        raise EmptyResponseError("No response text generated")
    return "".join(text_parts)
