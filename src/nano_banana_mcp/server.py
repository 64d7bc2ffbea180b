"""
MCP Server for Nano Banana: Gemini image generation, editing and analysis tools.
"""
import asyncio
import logging
import sys
from typing import get_args

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import CallToolResult, Tool

from . import __version__
from .config import Settings, configure_logging, load_dotenv
from .core import GeminiClient
from .dispatcher import ToolDispatcher
from .errors import ConfigurationError
from .schemas import TemplateName


logger = logging.getLogger(__name__)

SERVER_NAME = "nano-banana-mcp"

_CONFIG_SCHEMA = {
    "type": "object",
    "description": "Advanced generation configuration",
    "properties": {
        "temperature": {
            "type": "number",
            "minimum": 0,
            "maximum": 2,
            "description": "Controls randomness (0.0-2.0, default: 1.0)"
        },
        "topP": {
            "type": "number",
            "minimum": 0,
            "maximum": 1,
            "description": "Nucleus sampling threshold (0.0-1.0)"
        },
        "topK": {
            "type": "integer",
            "minimum": 1,
            "maximum": 40,
            "description": "Top-k sampling (1-40)"
        },
        "maxOutputTokens": {
            "type": "integer",
            "minimum": 1,
            "description": "Maximum number of output tokens"
        }
    }
}

_OUTPUT_DIR_SCHEMA = {
    "type": "string",
    "description": "Directory to save the result (optional, defaults to current directory)"
}

_IMAGE_REQUIRED = [{"required": ["imageData"]}, {"required": ["imagePath"]}]


def _image_properties(verb: str) -> dict:
    return {
        "imageData": {
            "type": "string",
            "description": f"Base64 encoded image data to {verb} (optional if imagePath is provided)"
        },
        "imagePath": {
            "type": "string",
            "description": f"Path to the image file to {verb} (optional if imageData is provided)"
        },
    }


def tool_definitions() -> list[Tool]:
    """Tool list advertised to clients."""
    return [
        Tool(
            name="generate_image",
            description="Generate an image from a text prompt using Gemini 2.5 Flash Image (nano-banana)",
            inputSchema={
                "type": "object",
                "properties": {
                    "prompt": {
                        "type": "string",
                        "description": "The text prompt describing the image to generate"
                    },
                    "outputDir": _OUTPUT_DIR_SCHEMA,
                    "config": _CONFIG_SCHEMA,
                },
                "required": ["prompt"]
            }
        ),
        Tool(
            name="edit_image",
            description="Edit an existing image based on text instructions using Gemini 2.5 Flash Image",
            inputSchema={
                "type": "object",
                "properties": {
                    "prompt": {
                        "type": "string",
                        "description": "The text prompt describing how to edit the image"
                    },
                    **_image_properties("edit"),
                    "outputDir": _OUTPUT_DIR_SCHEMA,
                    "config": _CONFIG_SCHEMA,
                },
                "required": ["prompt"],
                "anyOf": _IMAGE_REQUIRED
            }
        ),
        Tool(
            name="analyze_image",
            description="Analyze an image and answer questions about it using Gemini",
            inputSchema={
                "type": "object",
                "properties": {
                    "prompt": {
                        "type": "string",
                        "description": "Question or instruction about the image"
                    },
                    **_image_properties("analyze"),
                    "config": _CONFIG_SCHEMA,
                },
                "required": ["prompt"],
                "anyOf": _IMAGE_REQUIRED
            }
        ),
        Tool(
            name="multi_image_edit",
            description=(
                "Edit or combine multiple images using Gemini 2.5 Flash Image "
                "(e.g., transfer pose, style, combine elements)"
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "prompt": {
                        "type": "string",
                        "description": "The text prompt describing how to combine or edit the images"
                    },
                    "images": {
                        "type": "array",
                        "description": "Array of images to process, sent to the model in this order",
                        "items": {
                            "type": "object",
                            "properties": {
                                **_image_properties("use"),
                                "description": {
                                    "type": "string",
                                    "description": "Optional description of this image's role (e.g., 'reference pose', 'target person')"
                                },
                            },
                            "anyOf": _IMAGE_REQUIRED
                        },
                        "minItems": 1
                    },
                    "outputDir": _OUTPUT_DIR_SCHEMA,
                    "config": _CONFIG_SCHEMA,
                },
                "required": ["prompt", "images"]
            }
        ),
        Tool(
            name="batch_generate",
            description="Generate multiple images from an array of prompts",
            inputSchema={
                "type": "object",
                "properties": {
                    "prompts": {
                        "type": "array",
                        "description": "Array of prompts to generate images for",
                        "items": {"type": "string"},
                        "minItems": 1
                    },
                    "outputDir": _OUTPUT_DIR_SCHEMA,
                    "config": _CONFIG_SCHEMA,
                    "parallel": {
                        "type": "boolean",
                        "description": "Process prompts in parallel (default: false)",
                        "default": False
                    },
                },
                "required": ["prompts"]
            }
        ),
        Tool(
            name="generate_variations",
            description="Generate variations of an existing image",
            inputSchema={
                "type": "object",
                "properties": {
                    **_image_properties("vary"),
                    "count": {
                        "type": "integer",
                        "description": "Number of variations to generate (1-5)",
                        "minimum": 1,
                        "maximum": 5,
                        "default": 3
                    },
                    "variationStrength": {
                        "type": "string",
                        "enum": ["subtle", "moderate", "strong"],
                        "description": "How different the variations should be",
                        "default": "moderate"
                    },
                    "outputDir": _OUTPUT_DIR_SCHEMA,
                    "config": _CONFIG_SCHEMA,
                },
                "required": [],
                "anyOf": _IMAGE_REQUIRED
            }
        ),
        Tool(
            name="generate_with_template",
            description="Generate an image using a pre-defined style template",
            inputSchema={
                "type": "object",
                "properties": {
                    "template": {
                        "type": "string",
                        "enum": list(get_args(TemplateName)),
                        "description": "Pre-defined prompt template"
                    },
                    "customization": {
                        "type": "string",
                        "description": "Your specific requirements to customize the template"
                    },
                    "outputDir": _OUTPUT_DIR_SCHEMA,
                    "config": _CONFIG_SCHEMA,
                },
                "required": ["template", "customization"]
            }
        ),
        Tool(
            name="compare_images",
            description="Compare two images and analyze their differences or similarities",
            inputSchema={
                "type": "object",
                "properties": {
                    "image1Path": {
                        "type": "string",
                        "description": "Path to the first image"
                    },
                    "image2Path": {
                        "type": "string",
                        "description": "Path to the second image"
                    },
                    "compareType": {
                        "type": "string",
                        "enum": ["differences", "similarities", "both"],
                        "description": "Type of comparison",
                        "default": "both"
                    },
                },
                "required": ["image1Path", "image2Path"]
            }
        ),
    ]


def create_server(dispatcher: ToolDispatcher) -> Server:
    """Build the MCP server around an already-configured dispatcher."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available Nano Banana tools."""
        return tool_definitions()

    # Arguments are validated by the dispatcher's own models.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict) -> CallToolResult:
        """Handle tool calls."""
        return await dispatcher.dispatch(name, arguments)

    return server


async def run_server(server: Server):
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Nano Banana MCP Server running on stdio")
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options()
        )


def main():
    """Entry point for the MCP server."""
    load_dotenv()

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        configure_logging()
        logger.error("%s", e)
        sys.exit(1)

    configure_logging(settings.log_level)
    if settings.no_ssl_verify:
        logger.warning("TLS certificate verification is disabled for Gemini requests")

    dispatcher = ToolDispatcher(
        GeminiClient(settings.api_key, no_ssl_verify=settings.no_ssl_verify),
        settings,
    )
    asyncio.run(run_server(create_server(dispatcher)))


if __name__ == "__main__":
    main()
