"""Public package entrypoint for the kintsugi derivation compiler."""

from .canonical import canonical_json, canonicalize
from .compose import BuildOptions, mk_build, mk_composition
from .config import Config
from .errors import (
    CycleDetectedError,
    ErrorCode,
    KintsugiError,
    RecipePersistError,
    RecipePersistWarning,
    RecipeStoreError,
    ValidationError,
)
from .hashing import Finalizer, fingerprint, out_identifier
from .models import (
    BlankSource,
    BuildCommand,
    Derivation,
    DerivationDraft,
    FetchBuild,
    FetchGit,
    FetchLocal,
    FetchUrl,
    FetchVase,
    RunInBuild,
    Source,
    Umu,
    WriteJson,
    WriteText,
    WriteToml,
    freeze_source,
    source_from_payload,
)
from .observability import StructuredLogger
from .resolve import resolve_transitive_layers
from .shards import RunSpecArgs, mk_local, mk_shard, mk_url, write_run_spec
from .store import RecipeStore, referenced_ids

__all__ = [
    "BlankSource",
    "BuildCommand",
    "BuildOptions",
    "Config",
    "CycleDetectedError",
    "Derivation",
    "DerivationDraft",
    "ErrorCode",
    "FetchBuild",
    "FetchGit",
    "FetchLocal",
    "FetchUrl",
    "FetchVase",
    "Finalizer",
    "KintsugiError",
    "RecipePersistError",
    "RecipePersistWarning",
    "RecipeStore",
    "RecipeStoreError",
    "RunInBuild",
    "RunSpecArgs",
    "Source",
    "StructuredLogger",
    "Umu",
    "ValidationError",
    "WriteJson",
    "WriteText",
    "WriteToml",
    "canonical_json",
    "canonicalize",
    "fingerprint",
    "freeze_source",
    "mk_build",
    "mk_composition",
    "mk_local",
    "mk_shard",
    "mk_url",
    "out_identifier",
    "referenced_ids",
    "resolve_transitive_layers",
    "source_from_payload",
    "write_run_spec",
]
