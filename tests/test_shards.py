import json
from pathlib import Path

from kintsugi import (
    DerivationDraft,
    FetchLocal,
    FetchUrl,
    Finalizer,
    RunSpecArgs,
    Umu,
    WriteJson,
    mk_local,
    mk_shard,
    mk_url,
    write_run_spec,
)


def test_mk_local_builds_local_source(finalizer: Finalizer) -> None:
    drv = mk_local("local-game", "1.6.117", "/games/local", finalizer=finalizer)

    assert drv.out.endswith("-local-game-1.6.117")
    assert drv.src == FetchLocal(path="/games/local")
    assert drv.dependencies == ()


def test_mk_url_builds_url_source(finalizer: Finalizer) -> None:
    drv = mk_url("url-tool", "2.0.0", "https://example.invalid/t.zip", "sha", finalizer=finalizer)

    assert drv.out.endswith("-url-tool-2.0.0")
    assert isinstance(drv.src, FetchUrl)
    assert drv.src.url == "https://example.invalid/t.zip"


def test_mk_shard_maps_deps_to_dependencies(finalizer: Finalizer) -> None:
    base = mk_local("base", "1.0.0", "/base", finalizer=finalizer)

    drv = mk_shard(
        DerivationDraft(name="mod", version="1.0.0", src=FetchLocal(path="/mod"), deps=[base]),
        finalizer,
    )

    assert drv.dependencies == (base.out,)
    assert drv.deps == (base,)


def test_helpers_default_to_a_store_free_finalizer() -> None:
    assert mk_local("a", "1", "/a").out == mk_local("a", "1", "/a").out


def test_write_run_spec_writes_launcher_manifest(storing_finalizer: Finalizer, store_dir: Path) -> None:
    drv = write_run_spec(
        RunSpecArgs(name="default", entrypoint="game.exe", umu=Umu(version="GE-9", id="42")),
        storing_finalizer,
    )

    assert drv.name == "run-spec-default"
    assert drv.version == "1.0.0"
    assert isinstance(drv.src, WriteJson)
    assert drv.src.path == "kintsugi/exec/default.run.json"
    assert drv.to_recipe()["src"]["content"] == {
        "entrypoint": "game.exe",
        "umu": {"version": "GE-9", "id": "42"},
        "args": [],
        "env": {},
    }
    recipe = json.loads((store_dir / f"{drv.out}.json").read_text(encoding="utf-8"))
    assert recipe["src"]["type"] == "write_json"
