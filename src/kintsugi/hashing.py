"""Content hashing and finalization of derivation drafts.

A draft is hashed over every field except ``deps``: the owned object graph
never enters the identity, only the identifiers it contributes through
``dependencies``. A nested ``run_in_build.build`` derivation is reduced to its
``out`` string for the same reason.
"""

from __future__ import annotations

import hashlib
import warnings
from dataclasses import dataclass, field, replace
from typing import Any

from kintsugi.canonical import canonical_json
from kintsugi.config import Config
from kintsugi.errors import RecipePersistError, RecipePersistWarning, ValidationError
from kintsugi.models import Derivation, DerivationDraft, RunInBuild, freeze_source
from kintsugi.observability import StructuredLogger
from kintsugi.store import RecipeStore

FINGERPRINT_LENGTH = 32


def fingerprint(payload: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form, truncated to 128 bits of hex."""
    try:
        encoded = canonical_json(payload).encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValidationError(
            "Derivation text is not valid Unicode.",
            hint="Remove lone surrogate code points from string fields.",
            context={"operation": "fingerprint"},
        ) from exc
    digest = hashlib.sha256(encoded).hexdigest()
    return digest[:FINGERPRINT_LENGTH]


def hash_payload(draft: DerivationDraft) -> dict[str, Any]:
    """Return the structure whose fingerprint identifies *draft*."""
    _validate_draft(draft)
    src = draft.src.to_payload()
    if isinstance(draft.src, RunInBuild):
        src["build"] = _reduce_build(draft.src)
    payload: dict[str, Any] = {
        "name": draft.name,
        "version": draft.version,
        "src": src,
    }
    dependencies = _dependency_ids(draft)
    if dependencies is not None:
        payload["dependencies"] = list(dependencies)
    if draft.permissions is not None:
        payload["permissions"] = list(draft.permissions)
    if draft.postbuild is not None:
        payload["postbuild"] = draft.postbuild
    return payload


def out_identifier(draft: DerivationDraft) -> str:
    return f"{fingerprint(hash_payload(draft))}-{draft.name}-{draft.version}"


@dataclass(slots=True)
class Finalizer:
    """Turns drafts into identified derivations, optionally persisting recipes."""

    config: Config = field(default_factory=Config)
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    _store: RecipeStore | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        if self.config.store_dir is not None:
            self._store = RecipeStore(self.config.store_dir)

    @property
    def store(self) -> RecipeStore | None:
        return self._store

    def finalize(self, draft: DerivationDraft) -> Derivation:
        # Hash the detached copy so later edits to caller-owned containers
        # can reach neither the identity nor the recipe.
        draft = replace(
            draft,
            src=freeze_source(draft.src),
            dependencies=None if draft.dependencies is None else tuple(draft.dependencies),
            deps=tuple(draft.deps),
            permissions=None if draft.permissions is None else tuple(draft.permissions),
        )
        out = out_identifier(draft)
        derivation = Derivation(
            name=draft.name,
            version=draft.version,
            out=out,
            src=draft.src,
            dependencies=_dependency_ids(draft),
            deps=draft.deps,
            permissions=draft.permissions,
            postbuild=draft.postbuild,
        )
        self.logger.log(
            operation="finalize",
            derivation=out,
            message="Finalized derivation.",
            extra={"dependencies": list(derivation.dependencies or ())},
        )
        if self._store is not None:
            self._persist(self._store, derivation)
        return derivation

    def _persist(self, store: RecipeStore, derivation: Derivation) -> None:
        try:
            path = store.save(derivation)
        except RecipePersistError as exc:
            self.logger.log(
                operation="persist_recipe",
                derivation=derivation.out,
                message="Failed to write recipe.",
                level="error",
                extra={"error": exc.to_dict()},
            )
            if self.config.persist_failure_policy == "error":
                raise
            warnings.warn(
                f"Failed to write recipe for {derivation.out}: {exc}",
                RecipePersistWarning,
                stacklevel=3,
            )
            return
        self.logger.log(
            operation="persist_recipe",
            derivation=derivation.out,
            message="Wrote recipe.",
            extra={"path": str(path)},
        )


def _validate_draft(draft: DerivationDraft) -> None:
    for key in ("name", "version"):
        value = getattr(draft, key)
        if not isinstance(value, str) or not value:
            raise ValidationError(
                f"Derivation `{key}` must be a non-empty string.",
                context={"operation": "finalize", "name": str(draft.name)},
            )


def _dependency_ids(draft: DerivationDraft) -> tuple[str, ...] | None:
    if not draft.deps:
        return None if draft.dependencies is None else tuple(draft.dependencies)
    from_deps = tuple(dep.out for dep in draft.deps)
    if draft.dependencies is not None and tuple(draft.dependencies) != from_deps:
        raise ValidationError(
            "Derivation `dependencies` disagree with the identifiers of `deps`.",
            hint="Pass only `deps` and let finalization derive `dependencies`.",
            context={"operation": "finalize", "name": draft.name},
        )
    return from_deps


def _reduce_build(src: RunInBuild) -> str:
    if isinstance(src.build, Derivation):
        return src.build.out
    if isinstance(src.build, str) and src.build:
        return src.build
    raise ValidationError(
        "run_in_build `build` must be a finalized derivation or its identifier.",
        context={"operation": "finalize"},
    )
