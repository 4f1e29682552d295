"""Shard helpers for common single-source derivations."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace

from kintsugi.hashing import Finalizer
from kintsugi.models import Derivation, DerivationDraft, FetchLocal, FetchUrl, Umu, WriteJson

RUN_SPEC_DIR = "kintsugi/exec"


def mk_shard(draft: DerivationDraft, finalizer: Finalizer | None = None) -> Derivation:
    """Finalize *draft* with ``dependencies`` mapped from its ``deps``, empty if none."""
    finalizer = finalizer or Finalizer()
    if draft.deps:
        draft = replace(draft, dependencies=tuple(dep.out for dep in draft.deps))
    elif draft.dependencies is None:
        draft = replace(draft, dependencies=())
    return finalizer.finalize(draft)


def mk_local(
    name: str,
    version: str,
    path: str,
    *,
    exclude: Sequence[str] | None = None,
    finalizer: Finalizer | None = None,
) -> Derivation:
    return mk_shard(
        DerivationDraft(name=name, version=version, src=FetchLocal(path=path, exclude=exclude)),
        finalizer,
    )


def mk_url(
    name: str,
    version: str,
    url: str,
    sha256: str,
    *,
    unpack: bool | None = None,
    finalizer: Finalizer | None = None,
) -> Derivation:
    return mk_shard(
        DerivationDraft(
            name=name,
            version=version,
            src=FetchUrl(url=url, sha256=sha256, unpack=unpack),
        ),
        finalizer,
    )


@dataclass(frozen=True, slots=True)
class RunSpecArgs:
    name: str
    entrypoint: str
    umu: Umu | None = None
    args: Sequence[str] | None = None
    env: Mapping[str, str] | None = None


def write_run_spec(args: RunSpecArgs, finalizer: Finalizer | None = None) -> Derivation:
    """Shard that writes ``kintsugi/exec/<name>.run.json`` for the launcher."""
    content: dict[str, object] = {
        "entrypoint": args.entrypoint,
        "args": list(args.args or ()),
        "env": dict(args.env or {}),
    }
    if args.umu is not None:
        content["umu"] = args.umu.to_payload()
    return mk_shard(
        DerivationDraft(
            name=f"run-spec-{args.name}",
            version="1.0.0",
            src=WriteJson(path=f"{RUN_SPEC_DIR}/{args.name}.run.json", content=content),
        ),
        finalizer,
    )
