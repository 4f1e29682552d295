"""Typed compiler error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    VALIDATION = "E_VALIDATION"
    CYCLE = "E_CYCLE"
    RECIPE_PERSIST = "E_RECIPE_PERSIST"
    RECIPE_STORE = "E_RECIPE_STORE"


class KintsugiError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ValidationError(KintsugiError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class CycleDetectedError(KintsugiError):
    """A ``deps`` graph re-entered a derivation that was still being resolved."""

    derivation_name: str
    derivation_out: str

    def __init__(
        self,
        message: str,
        *,
        derivation_name: str,
        derivation_out: str,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        merged = {"name": derivation_name, "out": derivation_out, **(context or {})}
        super().__init__(message, code=ErrorCode.CYCLE, hint=hint, context=merged)
        self.derivation_name = derivation_name
        self.derivation_out = derivation_out


class RecipePersistError(KintsugiError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.RECIPE_PERSIST, hint=hint, context=context)


class RecipeStoreError(KintsugiError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.RECIPE_STORE, hint=hint, context=context)


class RecipePersistWarning(UserWarning):
    """Emitted when a recipe could not be written but the derivation stays usable."""


__all__ = [
    "CycleDetectedError",
    "ErrorCode",
    "KintsugiError",
    "RecipePersistError",
    "RecipePersistWarning",
    "RecipeStoreError",
    "ValidationError",
]
