"""Layered composition of derivations."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from kintsugi.hashing import Finalizer
from kintsugi.models import COMPOSITE_VERSION, Derivation, DerivationDraft, FetchBuild
from kintsugi.resolve import resolve_transitive_layers


@dataclass(frozen=True, slots=True)
class BuildOptions:
    name: str
    layers: Sequence[Derivation]
    entrypoint: str | None = None
    umu: str | None = None
    args: Sequence[str] | None = None
    env: Mapping[str, str] | None = None
    permissions: Sequence[str] | None = None
    postbuild: str | None = None


def mk_composition(options: BuildOptions, finalizer: Finalizer | None = None) -> Derivation:
    """Compose *options.layers* and their transitive dependencies into one derivation.

    The resolved layer identifiers become both the ``fetch_build`` layer stack
    and the composite's ``dependencies``; the resolved objects are kept as
    ``deps`` so the result can itself be layered into further compositions.
    Composite-level fields are passed through unvalidated.
    """
    finalizer = finalizer or Finalizer()
    resolved = resolve_transitive_layers(options.layers)
    layer_ids = tuple(layer.out for layer in resolved)
    finalizer.logger.log(
        operation="resolve_layers",
        derivation=None,
        message="Resolved transitive layers.",
        extra={"composition": options.name, "layers": list(layer_ids)},
    )

    src = FetchBuild(
        layers=layer_ids,
        entrypoint=options.entrypoint,
        umu=options.umu,
        args=options.args,
        env=options.env,
        permissions=options.permissions,
    )
    composite = finalizer.finalize(
        DerivationDraft(
            name=options.name,
            version=COMPOSITE_VERSION,
            src=src,
            dependencies=layer_ids,
            deps=tuple(resolved),
            permissions=options.permissions,
            postbuild=options.postbuild,
        )
    )
    finalizer.logger.log(
        operation="compose",
        derivation=composite.out,
        message="Composed layered derivation.",
        extra={"layer_count": len(layer_ids)},
    )
    return composite


mk_build = mk_composition
