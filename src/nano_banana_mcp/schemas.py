"""
Input models for the eight image tools.

Clients send camelCase keys (``imageData``, ``outputDir``); the models expose
them as snake_case attributes through field aliases.
"""
import base64
import binascii
from typing import Literal, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import UnknownToolError, ValidationError


VariationStrength = Literal["subtle", "moderate", "strong"]
CompareType = Literal["differences", "similarities", "both"]
TemplateName = Literal[
    "photorealistic",
    "artistic",
    "logo",
    "portrait",
    "landscape",
    "product",
    "architectural",
    "fashion",
    "food",
    "abstract",
]


class ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GenerationConfig(ToolArgs):
    """Sampling knobs forwarded to the model. Unset fields are never sent."""

    temperature: Optional[float] = Field(default=None, ge=0, le=2)
    top_p: Optional[float] = Field(default=None, ge=0, le=1, alias="topP")
    top_k: Optional[int] = Field(default=None, ge=1, le=40, alias="topK")
    max_output_tokens: Optional[int] = Field(default=None, gt=0, alias="maxOutputTokens")


class ImageSource(ToolArgs):
    """An image given either inline (base64) or as a filesystem path."""

    image_data: Optional[str] = Field(default=None, alias="imageData")
    image_path: Optional[str] = Field(default=None, alias="imagePath")

    @field_validator("image_data")
    @classmethod
    def validate_image_data(cls, v: Optional[str]) -> Optional[str]:
        if v:
            try:
                base64.b64decode(v)
            except (binascii.Error, ValueError):
                raise ValueError("imageData is not valid base64")
        return v

    @model_validator(mode="after")
    def require_image(self):
        if not self.image_data and not self.image_path:
            raise ValueError("Either imageData or imagePath must be provided")
        return self


class ImageInput(ImageSource):
    description: Optional[str] = None


class GenerateImageArgs(ToolArgs):
    prompt: str = Field(..., min_length=1)
    output_dir: Optional[str] = Field(default=None, alias="outputDir")
    config: Optional[GenerationConfig] = None


class EditImageArgs(ImageSource):
    prompt: str = Field(..., min_length=1)
    output_dir: Optional[str] = Field(default=None, alias="outputDir")
    config: Optional[GenerationConfig] = None


class AnalyzeImageArgs(ImageSource):
    prompt: str = Field(..., min_length=1)
    config: Optional[GenerationConfig] = None


class MultiImageEditArgs(ToolArgs):
    prompt: str = Field(..., min_length=1)
    images: list[ImageInput] = Field(..., min_length=1)
    output_dir: Optional[str] = Field(default=None, alias="outputDir")
    config: Optional[GenerationConfig] = None


class BatchGenerateArgs(ToolArgs):
    prompts: list[str] = Field(..., min_length=1)
    output_dir: Optional[str] = Field(default=None, alias="outputDir")
    config: Optional[GenerationConfig] = None
    parallel: bool = False


class GenerateVariationsArgs(ImageSource):
    count: int = Field(default=3, ge=1, le=5)
    variation_strength: VariationStrength = Field(default="moderate", alias="variationStrength")
    output_dir: Optional[str] = Field(default=None, alias="outputDir")
    config: Optional[GenerationConfig] = None


class GenerateWithTemplateArgs(ToolArgs):
    template: TemplateName
    customization: str
    output_dir: Optional[str] = Field(default=None, alias="outputDir")
    config: Optional[GenerationConfig] = None


class CompareImagesArgs(ToolArgs):
    image1_path: str = Field(..., min_length=1, alias="image1Path")
    image2_path: str = Field(..., min_length=1, alias="image2Path")
    compare_type: CompareType = Field(default="both", alias="compareType")


TOOL_ARGUMENTS: dict[str, type[ToolArgs]] = {
    "generate_image": GenerateImageArgs,
    "edit_image": EditImageArgs,
    "analyze_image": AnalyzeImageArgs,
    "multi_image_edit": MultiImageEditArgs,
    "batch_generate": BatchGenerateArgs,
    "generate_variations": GenerateVariationsArgs,
    "generate_with_template": GenerateWithTemplateArgs,
    "compare_images": CompareImagesArgs,
}


def _describe(exc: pydantic.ValidationError) -> str:
    messages = []
    for err in exc.errors():
        msg = err["msg"].removeprefix("Value error, ")
        loc = ".".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "Invalid arguments: " + "; ".join(messages)


def validate_arguments(name: str, arguments) -> ToolArgs:
    """Validate raw tool arguments into the typed record for ``name``.

    Raises:
        UnknownToolError: if ``name`` is not one of the eight tools.
        ValidationError: if any field or cross-field constraint fails.
    """
    model = TOOL_ARGUMENTS.get(name)
    if model is None:
        raise UnknownToolError(name)
    try:
        return model.model_validate(arguments if arguments is not None else {})
    except pydantic.ValidationError as exc:
        raise ValidationError(_describe(exc)) from exc
