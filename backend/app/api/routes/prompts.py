"""Prompt generation and revision endpoints."""
from __future__ import annotations

from contextlib import AsyncExitStack

from fastapi import APIRouter, Depends, HTTPException, status

from app.core.config import Settings, get_settings
from app.deps import get_prompt_pipeline, get_revision_registry
from app.schemas.prompts import (
    GenerateRequest,
    GenerateResponse,
    ReviseRequest,
    ReviseResponse,
)
from app.services.errors import (
    GatewayTimeoutError,
    PipelineValidationError,
    PromptPipelineError,
    RevisionInProgressError,
)
from app.services.pipeline import PromptPipelineService
from app.services.revision_locks import RevisionRegistry

router = APIRouter(tags=["prompts"])


@router.post(
    "/generate",
    response_model=GenerateResponse,
    response_model_exclude_none=True,
    summary="Generate cinematic prompts from references and concept fields",
)
async def generate_prompts(
    payload: GenerateRequest,
    settings: Settings = Depends(get_settings),
    service: PromptPipelineService = Depends(get_prompt_pipeline),
) -> GenerateResponse:
    """Return a batch of labelled prompts plus the style cues that shaped them."""

    api_key = _resolve_api_key(payload.api_key, settings)
    prompt_count = payload.prompt_count
    if prompt_count is None:
        prompt_count = settings.default_prompt_count
    try:
        return await service.generate(
            api_key=api_key,
            images=payload.images,
            user_inputs=payload.user_inputs,
            prompt_count=prompt_count,
        )
    except PromptPipelineError as exc:
        raise _to_http_error(exc) from exc


@router.post(
    "/revise",
    response_model=ReviseResponse,
    summary="Revise a single generated prompt",
)
async def revise_prompt(
    payload: ReviseRequest,
    settings: Settings = Depends(get_settings),
    service: PromptPipelineService = Depends(get_prompt_pipeline),
    registry: RevisionRegistry = Depends(get_revision_registry),
) -> ReviseResponse:
    """Return the replacement text; the caller swaps it into its own card."""

    api_key = _resolve_api_key(payload.api_key, settings)
    try:
        async with AsyncExitStack() as stack:
            if payload.item_id:
                await stack.enter_async_context(registry.claim(payload.item_id))
            revised = await service.revise(
                api_key=api_key,
                prompt=payload.prompt,
                label=payload.label,
                revision_note=payload.revision_note,
                user_inputs=payload.user_inputs,
                visual_style_cues=payload.visual_style_cues,
            )
    except PromptPipelineError as exc:
        raise _to_http_error(exc) from exc
    return ReviseResponse(prompt=revised)


def _resolve_api_key(request_key: str | None, settings: Settings) -> str:
    api_key = (request_key or "").strip() or (settings.openrouter_api_key or "").strip()
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="API key is required"
        )
    return api_key


def _to_http_error(exc: PromptPipelineError) -> HTTPException:
    if isinstance(exc, PipelineValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, RevisionInProgressError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, GatewayTimeoutError):
        code = status.HTTP_504_GATEWAY_TIMEOUT
    else:
        code = status.HTTP_502_BAD_GATEWAY
    return HTTPException(status_code=code, detail=exc.message)
