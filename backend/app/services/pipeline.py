"""Two-stage prompt pipeline: moodboard analysis, then batch prompt writing."""
from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, List, Optional, Sequence
from uuid import uuid4

from app.core.config import Settings
from app.schemas.prompts import (
    GeneratedPrompt,
    GenerateResponse,
    GenerationPayload,
    ImageAttachment,
    RevisionPayload,
    UserInputs,
    VisualStyleCues,
)
from app.services.errors import (
    EmptyResultError,
    ParseError,
    PipelineValidationError,
    PromptPipelineError,
    SchemaError,
)
from app.services.json_extract import extract_json, validate_payload
from app.services.openrouter import (
    ChatMessage,
    OpenRouterClient,
    async_gateway_client,
    image_part,
    text_part,
)
from app.services.prompt_templates import (
    build_generation_message,
    build_revision_message,
    build_system_prompt,
    build_vision_prompt,
)

logger = logging.getLogger(__name__)

AGENT_ID = "PromptPipeline"
KEYWORD_RANGE = (6, 10)


class PipelineStage(str, Enum):
    IDLE = "idle"
    ANALYZING_VISUALS = "analyzing_visuals"
    GENERATING_PROMPTS = "generating_prompts"
    REVISING = "revising"
    DONE = "done"


class PromptPipelineService:
    """Coordinate the vision and text model calls behind generate and revise.

    Holds configuration only; every call opens its own gateway client and
    receives the credential explicitly.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def generate(
        self,
        *,
        api_key: str,
        images: Sequence[ImageAttachment],
        user_inputs: UserInputs,
        prompt_count: int,
    ) -> GenerateResponse:
        request_id = uuid4().hex
        images = list(images)
        self._validate_generate(
            api_key=api_key,
            images=images,
            user_inputs=user_inputs,
            prompt_count=prompt_count,
        )

        logger.info(
            "Starting prompt generation",
            extra={
                "agent_id": AGENT_ID,
                "request_id": request_id,
                "count": prompt_count,
                "image_count": len(images),
            },
        )

        stage = PipelineStage.IDLE
        timings: dict[str, float] = {}
        visual_style_cues: Optional[VisualStyleCues] = None

        try:
            async with async_gateway_client(self._settings) as http:
                client = OpenRouterClient(http, self._settings)

                if images:
                    stage = PipelineStage.ANALYZING_VISUALS
                    vision_started = time.perf_counter()
                    visual_style_cues = await self._analyze_visuals(
                        client=client,
                        api_key=api_key,
                        images=images,
                        request_id=request_id,
                    )
                    timings["vision_ms"] = (time.perf_counter() - vision_started) * 1000

                stage = PipelineStage.GENERATING_PROMPTS
                prompt_started = time.perf_counter()
                prompts = await self._generate_prompts(
                    client=client,
                    api_key=api_key,
                    user_inputs=user_inputs,
                    prompt_count=prompt_count,
                    visual_style_cues=visual_style_cues,
                    request_id=request_id,
                )
                timings["prompt_ms"] = (time.perf_counter() - prompt_started) * 1000
        except PromptPipelineError as exc:
            logger.error(
                "Prompt generation failed",
                extra={
                    "agent_id": AGENT_ID,
                    "request_id": request_id,
                    "stage": stage.value,
                    "error_type": type(exc).__name__,
                },
                exc_info=exc,
            )
            raise

        stage = PipelineStage.DONE
        logger.info(
            "Prompt generation completed",
            extra={
                "agent_id": AGENT_ID,
                "request_id": request_id,
                "stage": stage.value,
                "prompt_count": len(prompts),
                "has_style_cues": visual_style_cues is not None,
                "timings_ms": timings,
            },
        )
        return GenerateResponse(prompts=prompts, visual_style_cues=visual_style_cues)

    async def revise(
        self,
        *,
        api_key: str,
        prompt: str,
        label: str,
        revision_note: str,
        user_inputs: UserInputs,
        visual_style_cues: Optional[VisualStyleCues] = None,
    ) -> str:
        """Return a full replacement for ``prompt``; never a partial edit."""

        request_id = uuid4().hex
        stage = PipelineStage.REVISING
        self._require_api_key(api_key, stage=stage)
        if not (prompt or "").strip() or not (revision_note or "").strip():
            raise PipelineValidationError(
                "Both prompt and revisionNote are required.", stage=stage.value
            )

        logger.info(
            "Starting prompt revision",
            extra={"agent_id": AGENT_ID, "request_id": request_id, "label": label},
        )
        started = time.perf_counter()
        messages: List[ChatMessage] = [
            {"role": "system", "content": build_system_prompt()},
            {
                "role": "user",
                "content": build_revision_message(
                    prompt, label, revision_note, user_inputs, visual_style_cues
                ),
            },
        ]

        try:
            async with async_gateway_client(self._settings) as http:
                client = OpenRouterClient(http, self._settings)
                raw = await client.send(
                    model=self._settings.prompt_model,
                    messages=messages,
                    api_key=api_key,
                    json_mode=True,
                    stage=stage.value,
                )
            data = extract_json(raw, stage=stage.value)
            revised = self._parse_revision(data, stage=stage)
        except PromptPipelineError as exc:
            logger.error(
                "Prompt revision failed",
                extra={
                    "agent_id": AGENT_ID,
                    "request_id": request_id,
                    "stage": stage.value,
                    "error_type": type(exc).__name__,
                },
                exc_info=exc,
            )
            raise

        logger.info(
            "Prompt revision completed",
            extra={
                "agent_id": AGENT_ID,
                "request_id": request_id,
                "duration_ms": (time.perf_counter() - started) * 1000,
            },
        )
        return revised

    def _require_api_key(self, api_key: str, *, stage: PipelineStage) -> None:
        if not (api_key or "").strip():
            raise PipelineValidationError("API key is required", stage=stage.value)

    def _validate_generate(
        self,
        *,
        api_key: str,
        images: Sequence[ImageAttachment],
        user_inputs: UserInputs,
        prompt_count: int,
    ) -> None:
        stage = PipelineStage.IDLE
        self._require_api_key(api_key, stage=stage)
        if not images and not user_inputs.has_content():
            raise PipelineValidationError(
                "Provide reference images or describe your concept to get started",
                stage=stage.value,
            )
        if len(images) > self._settings.max_reference_images:
            raise PipelineValidationError(
                f"At most {self._settings.max_reference_images} reference images are allowed",
                stage=stage.value,
            )
        allowed = self._settings.allowed_prompt_counts
        if prompt_count not in allowed:
            raise PipelineValidationError(
                f"promptCount must be one of {', '.join(str(n) for n in allowed)}",
                stage=stage.value,
            )

    async def _analyze_visuals(
        self,
        *,
        client: OpenRouterClient,
        api_key: str,
        images: Sequence[ImageAttachment],
        request_id: str,
    ) -> Optional[VisualStyleCues]:
        stage = PipelineStage.ANALYZING_VISUALS
        content = [image_part(image.to_url()) for image in images]
        content.append(text_part(build_vision_prompt()))

        # Transport failures propagate: the vision call is a hard dependency.
        raw = await client.send(
            model=self._settings.vision_model,
            messages=[{"role": "user", "content": content}],
            api_key=api_key,
            json_mode=True,
            stage=stage.value,
        )

        # Only the parsed result is optional.
        try:
            data = extract_json(raw, stage=stage.value)
            cues = validate_payload(data, VisualStyleCues, stage=stage.value)
        except (ParseError, SchemaError) as exc:
            logger.warning(
                "Vision analysis unusable, continuing without style cues",
                extra={
                    "agent_id": AGENT_ID,
                    "request_id": request_id,
                    "stage": stage.value,
                    "reason": exc.message,
                },
            )
            return None

        low, high = KEYWORD_RANGE
        if not low <= len(cues.cinematic_keywords) <= high:
            logger.info(
                "Vision keyword count outside requested range",
                extra={
                    "request_id": request_id,
                    "keyword_count": len(cues.cinematic_keywords),
                },
            )
        return cues

    async def _generate_prompts(
        self,
        *,
        client: OpenRouterClient,
        api_key: str,
        user_inputs: UserInputs,
        prompt_count: int,
        visual_style_cues: Optional[VisualStyleCues],
        request_id: str,
    ) -> List[GeneratedPrompt]:
        stage = PipelineStage.GENERATING_PROMPTS
        raw = await client.send(
            model=self._settings.prompt_model,
            messages=[
                {"role": "system", "content": build_system_prompt()},
                {
                    "role": "user",
                    "content": build_generation_message(
                        user_inputs, prompt_count, visual_style_cues
                    ),
                },
            ],
            api_key=api_key,
            json_mode=True,
            stage=stage.value,
        )

        data = extract_json(raw, stage=stage.value)
        if isinstance(data, dict) and not data.get("prompts"):
            raise EmptyResultError(
                "Model returned no prompts. Please try again.", stage=stage.value
            )
        payload = validate_payload(data, GenerationPayload, stage=stage.value)

        prompts = list(payload.prompts)
        if len(prompts) != prompt_count:
            logger.warning(
                "Prompt count mismatch",
                extra={
                    "request_id": request_id,
                    "expected": prompt_count,
                    "actual": len(prompts),
                },
            )
            prompts = prompts[:prompt_count]

        labels = [item.label for item in prompts]
        if len(set(labels)) != len(labels):
            logger.info(
                "Model repeated camera angles",
                extra={"request_id": request_id, "labels": labels},
            )
        return prompts

    @staticmethod
    def _parse_revision(data: Any, *, stage: PipelineStage) -> str:
        if isinstance(data, dict):
            value = data.get("prompt")
            if value is None or (isinstance(value, str) and not value.strip()):
                raise EmptyResultError(
                    "Model returned an empty prompt. Please try again.",
                    stage=stage.value,
                )
        payload = validate_payload(data, RevisionPayload, stage=stage.value)
        return payload.prompt


__all__ = ["PipelineStage", "PromptPipelineService"]
