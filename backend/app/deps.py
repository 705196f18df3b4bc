"""FastAPI dependency helpers."""
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from app.core.config import Settings, get_settings
from app.services.pipeline import PromptPipelineService
from app.services.revision_locks import RevisionRegistry


@lru_cache
def get_revision_registry() -> RevisionRegistry:
    """Return the process-wide registry of in-flight revisions."""

    return RevisionRegistry()


def get_prompt_pipeline(
    settings: Settings = Depends(get_settings),
) -> PromptPipelineService:
    """Provide a prompt pipeline service instance per request."""

    return PromptPipelineService(settings)
