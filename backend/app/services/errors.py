"""Error taxonomy shared by the transport, extraction and pipeline layers."""
from __future__ import annotations


class PromptPipelineError(RuntimeError):
    """Base class for every failure surfaced by the prompt pipeline."""

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage


class PipelineValidationError(PromptPipelineError):
    """Raised when request preconditions are not met; no gateway call was made."""


class GatewayError(PromptPipelineError):
    """Raised when the model gateway answers with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message, stage=stage)
        self.status_code = status_code
        self.body = body


class GatewayTimeoutError(PromptPipelineError, TimeoutError):
    """Raised when a gateway call exceeds the configured deadline."""


class EmptyResponseError(PromptPipelineError):
    """Raised when the gateway succeeded but returned no text payload."""


class ParseError(PromptPipelineError):
    """Raised when no structured object can be recovered from model text."""


class SchemaError(PromptPipelineError):
    """Raised when parsed model output does not have the expected shape."""


class EmptyResultError(PromptPipelineError):
    """Raised when the model output parsed cleanly but holds nothing usable."""


class RevisionInProgressError(PromptPipelineError):
    """Raised when a revision for the same item is already in flight."""


__all__ = [
    "PromptPipelineError",
    "PipelineValidationError",
    "GatewayError",
    "GatewayTimeoutError",
    "EmptyResponseError",
    "ParseError",
    "SchemaError",
    "EmptyResultError",
    "RevisionInProgressError",
]
