"""ServiceResult and ServiceError — the contract between services and adapters.

INVARIANT: Public service operations return ServiceResult instead of
raising. Exceptions stay inside the service layer, where per-candidate
failures become warnings and pass-level failures become ``ok=False``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# Error codes carried by ServiceError.code
LOOKUP_FAILED = "LOOKUP_FAILED"
NO_PROPERTY = "NO_PROPERTY"
SELECTOR_PROTOCOL_VIOLATION = "SELECTOR_PROTOCOL_VIOLATION"
INVALID_GRAPH = "INVALID_GRAPH"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Return type for service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"rewrite"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues, such as rejected candidates.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (telemetry spans).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: str,
        message: str,
        **detail: Any,
    ) -> ServiceResult:
        """Shorthand for an ``ok=False`` result."""
        return cls(
            ok=False,
            op=op,
            error=ServiceError(code=code, message=message, detail=detail),
        )
