"""Compiler configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from kintsugi.errors import ValidationError

PersistFailurePolicy = Literal["warn", "error"]

RECIPES_DIR_ENV = "KINTSUGI_RECIPES_DIR"


@dataclass(frozen=True, slots=True)
class Config:
    store_dir: Path | None = None
    persist_failure_policy: PersistFailurePolicy = "warn"

    def __post_init__(self) -> None:
        if self.persist_failure_policy not in ("warn", "error"):
            raise ValidationError(
                f"Unsupported persist_failure_policy value: {self.persist_failure_policy}",
                hint="Use 'warn' or 'error'.",
            )
        if self.store_dir is not None and not isinstance(self.store_dir, Path):
            object.__setattr__(self, "store_dir", Path(self.store_dir))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        """Build a config from ``KINTSUGI_RECIPES_DIR``; unset or empty means no store."""
        env = os.environ if environ is None else environ
        raw = env.get(RECIPES_DIR_ENV, "")
        return cls(store_dir=Path(raw) if raw else None)
