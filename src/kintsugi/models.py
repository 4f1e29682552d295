"""Core typed dataclasses for sources and derivations."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields, is_dataclass, replace
from types import MappingProxyType
from typing import Any, ClassVar, Literal

from kintsugi.canonical import canonicalize
from kintsugi.errors import ValidationError

HttpMethod = Literal["GET", "POST"]

COMPOSITE_VERSION = "generated"


def _compact(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop unset optional fields; ``None`` on a source field means absent."""
    return {key: value for key, value in payload.items() if value is not None}


def _list_or_none(values: Sequence[str] | None) -> list[str] | None:
    return None if values is None else list(values)


def _dict_or_none(values: Mapping[str, str] | None) -> dict[str, str] | None:
    return None if values is None else dict(values)


@dataclass(frozen=True, slots=True)
class Umu:
    version: str
    id: str

    def to_payload(self) -> dict[str, Any]:
        return {"version": self.version, "id": self.id}


@dataclass(frozen=True, slots=True)
class BuildCommand:
    entrypoint: str
    args: Sequence[str] | None = None
    umu: Umu | None = None

    def to_payload(self) -> dict[str, Any]:
        return _compact(
            {
                "entrypoint": self.entrypoint,
                "args": _list_or_none(self.args),
                "umu": None if self.umu is None else self.umu.to_payload(),
            }
        )


@dataclass(frozen=True, slots=True)
class FetchUrl:
    type: ClassVar[str] = "fetch_url"

    url: str
    sha256: str
    unpack: bool | None = None
    method: HttpMethod | None = None
    headers: Mapping[str, str] | None = None
    cookies: Mapping[str, str] | None = None
    body: str | None = None
    post_fetch: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return _compact(
            {
                "type": self.type,
                "url": self.url,
                "sha256": self.sha256,
                "unpack": self.unpack,
                "method": self.method,
                "headers": _dict_or_none(self.headers),
                "cookies": _dict_or_none(self.cookies),
                "body": self.body,
                "postFetch": self.post_fetch,
            }
        )


@dataclass(frozen=True, slots=True)
class FetchGit:
    type: ClassVar[str] = "fetch_git"

    url: str
    rev: str | None = None
    ref: str | None = None
    post_fetch: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return _compact(
            {
                "type": self.type,
                "url": self.url,
                "rev": self.rev,
                "ref": self.ref,
                "postFetch": self.post_fetch,
            }
        )


@dataclass(frozen=True, slots=True)
class FetchLocal:
    type: ClassVar[str] = "fetch_local"

    path: str
    exclude: Sequence[str] | None = None
    post_fetch: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return _compact(
            {
                "type": self.type,
                "path": self.path,
                "exclude": _list_or_none(self.exclude),
                "postFetch": self.post_fetch,
            }
        )


@dataclass(frozen=True, slots=True)
class FetchVase:
    type: ClassVar[str] = "fetch_vase"

    vase: str

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "vase": self.vase}


@dataclass(frozen=True, slots=True)
class WriteText:
    type: ClassVar[str] = "write_text"

    path: str
    content: str

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "path": self.path, "content": self.content}


@dataclass(frozen=True, slots=True)
class WriteJson:
    type: ClassVar[str] = "write_json"

    path: str
    content: Any

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "path": self.path, "content": self.content}


@dataclass(frozen=True, slots=True)
class WriteToml:
    type: ClassVar[str] = "write_toml"

    path: str
    content: Any

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type, "path": self.path, "content": self.content}


@dataclass(frozen=True, slots=True)
class FetchBuild:
    """Layered composite: ``layers`` are applied in order by the executor."""

    type: ClassVar[str] = "fetch_build"

    layers: Sequence[str]
    entrypoint: str | None = None
    umu: str | None = None
    args: Sequence[str] | None = None
    env: Mapping[str, str] | None = None
    permissions: Sequence[str] | None = None

    def to_payload(self) -> dict[str, Any]:
        return _compact(
            {
                "type": self.type,
                "layers": list(self.layers),
                "entrypoint": self.entrypoint,
                "umu": self.umu,
                "args": _list_or_none(self.args),
                "env": _dict_or_none(self.env),
                "permissions": _list_or_none(self.permissions),
            }
        )


@dataclass(frozen=True, slots=True)
class RunInBuild:
    """Run a command inside another derivation's build output.

    ``build`` holds the finalized derivation in memory. Recipes and hashes only
    ever see its ``out`` identifier, so after loading a recipe it is a string.
    """

    type: ClassVar[str] = "run_in_build"

    build: Derivation | str
    command: BuildCommand
    outputs: Sequence[str] = ()

    @property
    def build_out(self) -> str:
        return self.build if isinstance(self.build, str) else self.build.out

    def to_payload(self) -> dict[str, Any]:
        # ``build`` is left as-is; hashing and recipe output reduce it.
        return {
            "type": self.type,
            "build": self.build,
            "command": self.command.to_payload(),
            "outputs": list(self.outputs),
        }


@dataclass(frozen=True, slots=True)
class BlankSource:
    """Placeholder source; ignored by the build executor."""

    type: ClassVar[str] = "blank_source"

    def to_payload(self) -> dict[str, Any]:
        return {"type": self.type}


Source = (
    FetchUrl
    | FetchGit
    | FetchLocal
    | FetchVase
    | WriteText
    | WriteJson
    | WriteToml
    | FetchBuild
    | RunInBuild
    | BlankSource
)

SOURCE_TYPES: dict[str, type[Source]] = {
    cls.type: cls
    for cls in (
        FetchUrl,
        FetchGit,
        FetchLocal,
        FetchVase,
        WriteText,
        WriteJson,
        WriteToml,
        FetchBuild,
        RunInBuild,
        BlankSource,
    )
}


def freeze_source(src: Source) -> Source:
    """Detached, read-only copy of *src*: mappings become proxies, sequences tuples.

    A nested ``run_in_build.build`` derivation is already immutable and is kept.
    """
    return _freeze(src)


def _freeze(value: Any) -> Any:
    if isinstance(value, Derivation):
        return value
    if is_dataclass(value) and not isinstance(value, type):
        return replace(
            value,
            **{item.name: _freeze(getattr(value, item.name)) for item in fields(value) if item.init},
        )
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


@dataclass(frozen=True, slots=True)
class DerivationDraft:
    """A derivation before finalization: every field except ``out``."""

    name: str
    version: str
    src: Source
    dependencies: Sequence[str] | None = None
    deps: Sequence[Derivation] = ()
    permissions: Sequence[str] | None = None
    postbuild: str | None = None


@dataclass(frozen=True, slots=True)
class Derivation:
    """Immutable, content-addressed derivation identified by ``out``."""

    name: str
    version: str
    out: str
    src: Source
    dependencies: tuple[str, ...] | None = None
    deps: tuple[Derivation, ...] = field(default=(), repr=False, compare=False)
    permissions: tuple[str, ...] | None = None
    postbuild: str | None = None

    def to_recipe(self) -> dict[str, Any]:
        """Recipe form: no ``deps``, nested ``run_in_build.build`` reduced to its id."""
        src = self.src.to_payload()
        if isinstance(self.src, RunInBuild):
            src["build"] = self.src.build_out
        return canonicalize(
            _compact(
                {
                    "out": self.out,
                    "name": self.name,
                    "version": self.version,
                    "src": src,
                    "dependencies": _list_or_none(self.dependencies),
                    "permissions": _list_or_none(self.permissions),
                    "postbuild": self.postbuild,
                }
            )
        )


def source_from_payload(payload: Mapping[str, Any]) -> Source:
    """Rebuild a source variant from its recipe payload."""
    kind = payload.get("type")
    if not isinstance(kind, str) or kind not in SOURCE_TYPES:
        raise ValidationError(
            f"Unknown source type: {kind!r}",
            hint=f"Expected one of: {', '.join(sorted(SOURCE_TYPES))}.",
            context={"operation": "source_from_payload"},
        )
    fields = {key: value for key, value in payload.items() if key != "type"}
    try:
        if kind in ("fetch_url", "fetch_git", "fetch_local"):
            if "postFetch" in fields:
                fields["post_fetch"] = fields.pop("postFetch")
        if kind == "run_in_build":
            command = dict(fields["command"])
            umu = command.get("umu")
            fields["command"] = BuildCommand(
                entrypoint=command["entrypoint"],
                args=command.get("args"),
                umu=None if umu is None else Umu(**umu),
            )
        return SOURCE_TYPES[kind](**fields)
    except (KeyError, TypeError) as exc:
        raise ValidationError(
            f"Malformed `{kind}` source payload.",
            hint=str(exc),
            context={"operation": "source_from_payload"},
        ) from exc
