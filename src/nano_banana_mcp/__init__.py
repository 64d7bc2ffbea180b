"""Nano Banana MCP server: Gemini image generation, editing and analysis tools."""
__version__ = "1.0.0"

from .core import GeminiClient, build_request, extract_image, extract_text
from .dispatcher import ToolDispatcher
from .schemas import validate_arguments

__all__ = [
    "GeminiClient",
    "ToolDispatcher",
    "build_request",
    "extract_image",
    "extract_text",
    "validate_arguments",
    "__version__",
]
