"""
Error types raised by the Nano Banana tools.

Every handler-level error is caught once by the dispatcher and turned into an
``isError`` tool result, so these only need to carry a readable message.
"""


class NanoBananaError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(NanoBananaError):
    """Startup configuration is missing or invalid."""


class ValidationError(NanoBananaError):
    """Tool arguments failed validation."""


class UnknownToolError(NanoBananaError):
    """No handler is registered under the requested tool name."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ImageNotFoundError(NanoBananaError, FileNotFoundError):
    """A referenced image path does not exist."""


class ImageReadError(NanoBananaError, OSError):
    """A referenced image exists but could not be read."""


class EmptyResponseError(NanoBananaError, RuntimeError):
    """The model returned no usable content."""


class ModelRequestError(NanoBananaError, RuntimeError):
    """The request to the Gemini API failed."""
