"""ServiceResult and ServiceError: the store's action contract.

INVARIANT: every DisplayStateStore action returns a ServiceResult.
The CLI and any embedding UI consume this type; exceptions never cross
the service boundary.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from dpui.domain.errors import DpuiError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: DpuiError, **detail: Any) -> ServiceError:
        """Build an error payload carrying kind, retry policy and a hint."""
        return cls(
            code=exc.code,
            message=exc.message,
            detail={
                "kind": exc.kind.value,
                "retryable": exc.retryable,
                "hint": exc.hint,
                **detail,
            },
        )


class ServiceResult(BaseModel):
    """Return type of every store action.

    Attributes:
        ok: Whether the action succeeded.
        op: Name of the action (e.g. ``"apply_config"``).
        data: Action-specific payload on success.
        warnings: Non-fatal issues (event plugin failures, pruned bindings).
        error: Structured error if ``ok`` is False.
        meta: Optional metadata.
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None
