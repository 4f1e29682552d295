"""Content-addressed recipe store: one pretty-printed JSON file per identifier."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

import cbor2

from kintsugi.errors import RecipePersistError, RecipeStoreError

if TYPE_CHECKING:
    from kintsugi.models import Derivation


class RecipeStore:
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, out: str) -> Path:
        return self.root / f"{out}.json"

    def exists(self, out: str) -> bool:
        return self.path_for(out).is_file()

    def save(self, derivation: Derivation) -> Path:
        recipe = derivation.to_recipe()
        encoded = json.dumps(recipe, indent=2, sort_keys=True, ensure_ascii=False) + "\n"
        path = self.path_for(derivation.out)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            # Sorted keys make the bytes a function of ``out`` alone; a writer
            # losing the rename race leaves identical content behind.
            fd, tmp_name = tempfile.mkstemp(
                dir=self.root, prefix=f".{derivation.out}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(encoded)
                os.replace(tmp_name, path)
            finally:
                Path(tmp_name).unlink(missing_ok=True)
        except OSError as exc:
            raise RecipePersistError(
                "Failed to write recipe.",
                hint=str(exc),
                context={"operation": "persist_recipe", "path": str(path)},
            ) from exc
        return path

    def load(self, out: str) -> dict[str, Any]:
        path = self.path_for(out)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise RecipeStoreError(
                "Recipe does not exist.",
                hint="Finalize the derivation with a store directory configured.",
                context={"operation": "load_recipe", "out": out, "path": str(path)},
            ) from exc
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise RecipeStoreError(
                "Recipe is not valid JSON.",
                hint=str(exc),
                context={"operation": "load_recipe", "path": str(path)},
            ) from exc
        if not isinstance(parsed, dict) or parsed.get("out") != out:
            raise RecipeStoreError(
                "Recipe has invalid structure.",
                hint="Delete the recipe file and finalize the derivation again.",
                context={"operation": "load_recipe", "path": str(path)},
            )
        return parsed

    def missing_closure(self, out: str) -> tuple[str, ...]:
        """Identifiers reachable from *out* that have no recipe file, in discovery order."""
        missing: list[str] = []
        seen: set[str] = set()
        pending = [out]
        while pending:
            current = pending.pop()
            if current in seen:
                continue
            seen.add(current)
            if not self.exists(current):
                missing.append(current)
                continue
            pending.extend(reversed(referenced_ids(self.load(current))))
        return tuple(missing)

    def export_cbor(self, out: str, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self.load(out), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded


def referenced_ids(recipe: dict[str, Any]) -> tuple[str, ...]:
    """Every identifier a recipe points at, deduplicated, first occurrence first."""
    refs: list[str] = []
    dependencies = recipe.get("dependencies")
    if isinstance(dependencies, list):
        refs.extend(item for item in dependencies if isinstance(item, str))
    src = recipe.get("src")
    if isinstance(src, dict):
        if src.get("type") == "fetch_build" and isinstance(src.get("layers"), list):
            refs.extend(item for item in src["layers"] if isinstance(item, str))
        if src.get("type") == "run_in_build" and isinstance(src.get("build"), str):
            refs.append(src["build"])
    return tuple(dict.fromkeys(refs))
