"""Failure taxonomy for the generation pipeline.

Every failure the gateway can report is one of these.  Stages raise them,
the pipeline catches them and turns them into a ``FAILED`` outcome, and the
route renders that outcome as the uniform ``{"error", "details"}`` body.
"""
from __future__ import annotations

from enum import Enum


class BackendErrorKind(str, Enum):
    """Why a backend call did not produce a usable JSON payload."""

    UPSTREAM_UNREACHABLE = "upstream_unreachable"
    TIMEOUT = "timeout"
    MALFORMED_UPSTREAM_OUTPUT = "malformed_upstream_output"


class GatewayError(Exception):
    """Base class for every error the pipeline knows how to report."""

    label: str = "gateway_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BackendError(GatewayError):
    """A call to a backend failed before a valid JSON payload arrived.

    ``upstream_body`` holds the decoded error body when the backend did
    answer (non-2xx).  ``elapsed_ms`` is the time spent on the failed call so
    partial metrics can still be recorded.
    """

    def __init__(
        self,
        kind: BackendErrorKind,
        message: str,
        *,
        target: str,
        upstream_body: object | None = None,
        elapsed_ms: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.target = target
        self.upstream_body = upstream_body
        self.elapsed_ms = elapsed_ms

    @property
    def label(self) -> str:  # type: ignore[override]
        return self.kind.value


class StageValidationError(GatewayError):
    """A backend answered 2xx but the payload is structurally unusable."""

    label = "validation_error"

    def __init__(
        self,
        reason: str,
        *,
        elapsed_ms: int | None = None,
        size_bytes: int | None = None,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.elapsed_ms = elapsed_ms
        self.size_bytes = size_bytes


class PipelineCancelled(GatewayError):
    """The run was cancelled while a stage was still in flight."""

    label = "cancelled"

    def __init__(self, message: str = "generation cancelled") -> None:
        super().__init__(message)
