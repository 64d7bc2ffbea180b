"""
Tool dispatch: validates a tool call, runs its handler, and wraps the outcome
as an MCP tool result.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from mcp.types import CallToolResult, TextContent

from .config import Settings
from .core import build_request, extract_image, extract_text
from .errors import UnknownToolError
from .images import read_image_file, resolve_image, save_artifact
from .schemas import (
    AnalyzeImageArgs,
    BatchGenerateArgs,
    CompareImagesArgs,
    EditImageArgs,
    GenerateImageArgs,
    GenerateVariationsArgs,
    GenerateWithTemplateArgs,
    MultiImageEditArgs,
    validate_arguments,
)


logger = logging.getLogger(__name__)

PROMPT_TEMPLATES = {
    "photorealistic": "Ultra-realistic photograph, professional photography, highly detailed, sharp focus, natural lighting, 8K resolution, shot with DSLR camera",
    "artistic": "Artistic interpretation, creative style, expressive brushstrokes, vibrant colors, artistic composition, gallery-worthy artwork",
    "logo": "Minimalist logo design, clean vector graphics, scalable, professional branding, modern design, simple geometric shapes, memorable icon",
    "portrait": "Professional portrait photography, well-lit, shallow depth of field, bokeh background, natural skin tones, expressive eyes, studio lighting",
    "landscape": "Breathtaking landscape photography, golden hour lighting, wide angle shot, dramatic sky, natural scenery, high dynamic range",
    "product": "Product photography, white background, studio lighting, clean composition, commercial quality, detailed texture, professional presentation",
    "architectural": "Architectural photography, precise lines, dramatic perspective, professional composition, detailed structure, impressive scale",
    "fashion": "Fashion photography, editorial style, high-end fashion, professional model pose, stylish composition, magazine quality",
    "food": "Food photography, appetizing presentation, professional styling, natural lighting, shallow depth of field, culinary art",
    "abstract": "Abstract art, non-representational, creative composition, bold colors or monochrome, experimental style, artistic expression",
}

VARIATION_PROMPTS = {
    "subtle": "Create a very similar variation of this image with minimal changes, keeping the same style and composition",
    "moderate": "Create a variation of this image with moderate changes while maintaining the core concept and style",
    "strong": "Create a significantly different variation of this image, exploring new interpretations while keeping the main subject",
}

VARIATION_TEMPERATURES = {
    "subtle": 0.3,
    "moderate": 0.7,
    "strong": 1.2,
}

COMPARE_PROMPTS = {
    "differences": "Compare these two images and describe all the differences between them in detail.",
    "similarities": "Compare these two images and describe all the similarities between them in detail.",
    "both": "Compare these two images. First, describe their similarities, then describe their differences. Be thorough and detailed.",
}


@dataclass
class BatchOutcome:
    prompt: str
    success: bool
    filepath: Optional[str] = None
    error: Optional[str] = None


def _text_result(text: str, is_error: bool = False) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


class ToolDispatcher:
    """Routes tool calls to handlers.

    Holds no per-call state; the model client is shared read-only across
    overlapping calls.
    """

    def __init__(self, client, settings: Settings):
        self.client = client
        self.image_model = settings.image_model
        self.text_model = settings.text_model
        self.default_output_dir = settings.output_dir
        self._handlers = {
            "generate_image": self.generate_image,
            "edit_image": self.edit_image,
            "analyze_image": self.analyze_image,
            "multi_image_edit": self.multi_image_edit,
            "batch_generate": self.batch_generate,
            "generate_variations": self.generate_variations,
            "generate_with_template": self.generate_with_template,
            "compare_images": self.compare_images,
        }

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers)

    async def dispatch(self, name: str, arguments: Optional[dict]) -> CallToolResult:
        """Run one tool call. Never raises; failures come back with ``isError`` set."""
        try:
            handler = self._handlers.get(name)
            if handler is None:
                raise UnknownToolError(name)
            args = validate_arguments(name, arguments)
            text = await handler(args)
        except Exception as e:
            logger.warning("Tool %s failed: %s", name, e)
            return _text_result(f"Error: {e}", is_error=True)
        return _text_result(text)

    def _output_dir(self, requested: Optional[str]) -> str:
        return requested or self.default_output_dir

    async def _generate_and_save(self, request, output_dir: str, prefix: str) -> str:
        response = await self.client.generate(request)
        image = extract_image(response)
        return save_artifact(image.data, image.mime_type, output_dir, prefix)

    async def generate_image(self, args: GenerateImageArgs) -> str:
        request = build_request(self.image_model, args.prompt, config=args.config, expect_image=True)
        path = await self._generate_and_save(request, self._output_dir(args.output_dir), "generated-image")
        return f"Image generated successfully and saved to: {path}"

    async def edit_image(self, args: EditImageArgs) -> str:
        image = resolve_image(args.image_data, args.image_path)
        request = build_request(self.image_model, args.prompt, [image], args.config, expect_image=True)
        path = await self._generate_and_save(request, self._output_dir(args.output_dir), "edited-image")
        return f"Image edited successfully and saved to: {path}"

    async def analyze_image(self, args: AnalyzeImageArgs) -> str:
        image = resolve_image(args.image_data, args.image_path)
        request = build_request(self.text_model, args.prompt, [image], args.config, expect_image=False)
        response = await self.client.generate(request)
        return extract_text(response)

    async def multi_image_edit(self, args: MultiImageEditArgs) -> str:
        images = [resolve_image(img.image_data, img.image_path) for img in args.images]
        request = build_request(self.image_model, args.prompt, images, args.config, expect_image=True)
        path = await self._generate_and_save(request, self._output_dir(args.output_dir), "multi-image-result")
        return f"Multi-image processing completed successfully and saved to: {path}"

    async def _batch_item(self, index: int, prompt: str, args: BatchGenerateArgs, output_dir: str) -> BatchOutcome:
        request = build_request(self.image_model, prompt, config=args.config, expect_image=True)
        try:
            path = await self._generate_and_save(request, output_dir, f"batch-{index + 1}")
        except Exception as e:
            logger.warning("Batch item %d failed: %s", index + 1, e)
            return BatchOutcome(prompt=prompt, success=False, error=str(e))
        return BatchOutcome(prompt=prompt, success=True, filepath=path)

    async def run_batch(self, args: BatchGenerateArgs) -> list[BatchOutcome]:
        output_dir = self._output_dir(args.output_dir)

        if args.parallel:
            # gather returns results in argument order, not completion order
            return list(await asyncio.gather(*(
                self._batch_item(i, prompt, args, output_dir)
                for i, prompt in enumerate(args.prompts)
            )))

        outcomes = []
        for i, prompt in enumerate(args.prompts):
            outcomes.append(await self._batch_item(i, prompt, args, output_dir))
        return outcomes

    async def batch_generate(self, args: BatchGenerateArgs) -> str:
        outcomes = await self.run_batch(args)

        successful = sum(1 for o in outcomes if o.success)
        failed = len(outcomes) - successful
        lines = [f"Batch generation completed: {successful} successful, {failed} failed"]
        for o in outcomes:
            lines.append(f"✓ {o.filepath}" if o.success else f"✗ {o.prompt}: {o.error}")
        return "\n".join(lines)

    async def generate_variations(self, args: GenerateVariationsArgs) -> str:
        image = resolve_image(args.image_data, args.image_path)
        output_dir = self._output_dir(args.output_dir)
        base_prompt = VARIATION_PROMPTS[args.variation_strength]
        temperature = VARIATION_TEMPERATURES[args.variation_strength]

        paths = []
        skipped = []
        for i in range(args.count):
            request = build_request(
                self.image_model,
                f"{base_prompt} (variation {i + 1} of {args.count})",
                [image],
                args.config,
                expect_image=True,
                default_temperature=temperature,
            )
            try:
                paths.append(await self._generate_and_save(request, output_dir, f"variation-{i + 1}"))
            except Exception as e:
                logger.warning("Failed to generate variation %d: %s", i + 1, e)
                skipped.append(f"Skipped variation {i + 1}: {e}")

        lines = [f"Generated {len(paths)} variations:"]
        lines.extend(f"- {p}" for p in paths)
        lines.extend(skipped)
        return "\n".join(lines)

    async def generate_with_template(self, args: GenerateWithTemplateArgs) -> str:
        full_prompt = f"{PROMPT_TEMPLATES[args.template]}. {args.customization}"
        request = build_request(self.image_model, full_prompt, config=args.config, expect_image=True)
        path = await self._generate_and_save(request, self._output_dir(args.output_dir), args.template)
        return f"Generated {args.template} style image: {path}\nPrompt used: {full_prompt}"

    async def compare_images(self, args: CompareImagesArgs) -> str:
        first = read_image_file(args.image1_path)
        second = read_image_file(args.image2_path)
        request = build_request(
            self.text_model,
            COMPARE_PROMPTS[args.compare_type],
            [first, second],
            expect_image=False,
        )
        response = await self.client.generate(request)
        return f"Image Comparison ({args.compare_type}):\n\n{extract_text(response)}"
