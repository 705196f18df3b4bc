"""Schemas for the cinematic prompt generation and revision workflow."""
from __future__ import annotations

import re
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
PALETTE_SIZE = 5


class CamelModel(BaseModel):
    """Immutable model exchanged as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class UserInputs(CamelModel):
    storyline: str = Field(default="", description="Storyline or concept of the scene")
    subject: str = Field(default="", description="Who or what the shot is about")
    environment: str = Field(default="", description="Where the scene takes place")
    mood: str = Field(default="", description="Emotional register of the scene")

    def filled_fields(self) -> List[Tuple[str, str]]:
        """Return ``(label, value)`` for every non-blank field, in display order."""

        pairs = [
            ("Storyline/Concept", self.storyline),
            ("Subject", self.subject),
            ("Environment", self.environment),
            ("Mood/Feeling", self.mood),
        ]
        return [(label, value) for label, value in pairs if value and value.strip()]

    def has_content(self) -> bool:
        return bool(self.filled_fields())


class InlineImage(CamelModel):
    type: Literal["base64"] = "base64"
    data: str = Field(..., description="Base64-encoded image bytes")
    mime_type: str = Field(default="image/jpeg", description="MIME type of the encoded bytes")

    def to_url(self) -> str:
        """Render as a data URI accepted by the gateway."""

        media_type = (self.mime_type or "image/jpeg").split(";")[0]
        return f"data:{media_type};base64,{self.data}"


class ReferenceImage(CamelModel):
    type: Literal["url"] = "url"
    url: str = Field(..., description="Remote image URL forwarded as-is")

    def to_url(self) -> str:
        return self.url


ImageAttachment = Annotated[
    Union[InlineImage, ReferenceImage], Field(discriminator="type")
]


class VisualStyleCues(CamelModel):
    description: str = Field(..., description="Moodboard synthesis shared by the references")
    hex_palette: List[str] = Field(..., description="Exactly five #RRGGBB colours")
    cinematic_keywords: List[str] = Field(
        ..., description="Short cinematic phrases recurring across the references"
    )

    @field_validator("description")
    @classmethod
    def _description_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("description must not be empty")
        return value.strip()

    @field_validator("hex_palette")
    @classmethod
    def _palette_is_five_hex_colours(cls, value: List[str]) -> List[str]:
        if len(value) != PALETTE_SIZE:
            raise ValueError(f"expected {PALETTE_SIZE} colours, got {len(value)}")
        cleaned = [colour.strip() for colour in value]
        bad = [colour for colour in cleaned if not HEX_COLOR.match(colour)]
        if bad:
            raise ValueError(f"not #RRGGBB colours: {', '.join(bad)}")
        return cleaned

    @field_validator("cinematic_keywords")
    @classmethod
    def _keywords_not_blank(cls, value: List[str]) -> List[str]:
        cleaned = [keyword.strip() for keyword in value]
        if not cleaned or any(not keyword for keyword in cleaned):
            raise ValueError("keywords must be a non-empty list of non-empty phrases")
        return cleaned


class GeneratedPrompt(CamelModel):
    label: str = Field(..., min_length=1, description="Camera angle of the shot")
    prompt: str = Field(..., min_length=1, description="Image generation prompt text")

    @field_validator("label", "prompt")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class GenerationPayload(CamelModel):
    prompts: List[GeneratedPrompt]


class RevisionPayload(CamelModel):
    prompt: str


class GenerateRequest(CamelModel):
    api_key: Optional[str] = Field(default=None, description="Gateway bearer credential")
    images: List[ImageAttachment] = Field(default_factory=list)
    user_inputs: UserInputs = Field(default_factory=UserInputs)
    prompt_count: Optional[int] = Field(
        default=None, description="Number of prompts to write; defaults to DEFAULT_PROMPT_COUNT"
    )


class GenerateResponse(CamelModel):
    prompts: List[GeneratedPrompt]
    visual_style_cues: Optional[VisualStyleCues] = None

    def with_revised_prompt(self, index: int, text: str) -> "GenerateResponse":
        """Return a copy where prompt ``index`` carries ``text``; ``self`` is untouched."""

        if not 0 <= index < len(self.prompts):
            raise IndexError(f"prompt index {index} out of range")
        prompts = list(self.prompts)
        prompts[index] = prompts[index].model_copy(update={"prompt": text})
        return self.model_copy(update={"prompts": prompts})


class ReviseRequest(CamelModel):
    api_key: Optional[str] = Field(default=None, description="Gateway bearer credential")
    prompt: str = Field(default="", description="Prompt text to revise")
    label: str = Field(default="", description="Camera angle label of the prompt")
    revision_note: str = Field(default="", description="What should change")
    user_inputs: UserInputs = Field(default_factory=UserInputs)
    visual_style_cues: Optional[VisualStyleCues] = None
    item_id: Optional[str] = Field(
        default=None, description="Caller identity of the card; serializes revisions"
    )


class ReviseResponse(CamelModel):
    prompt: str


__all__ = [
    "UserInputs",
    "InlineImage",
    "ReferenceImage",
    "ImageAttachment",
    "VisualStyleCues",
    "GeneratedPrompt",
    "GenerationPayload",
    "RevisionPayload",
    "GenerateRequest",
    "GenerateResponse",
    "ReviseRequest",
    "ReviseResponse",
]
