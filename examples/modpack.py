"""Layered modpack: a local game install, a downloaded tool and a launcher spec."""

from kintsugi import (
    BuildOptions,
    Config,
    DerivationDraft,
    FetchUrl,
    Finalizer,
    RunSpecArgs,
    mk_composition,
    mk_local,
    mk_url,
    write_run_spec,
)


def build_modpack() -> str:
    finalizer = Finalizer(config=Config.from_env())
    game = mk_local("local-game", "1.6.117", "/games/local", finalizer=finalizer)
    tool = mk_url(
        "url-tool",
        "2.0.0",
        "https://example.invalid/tool.zip",
        "0" * 64,
        unpack=True,
        finalizer=finalizer,
    )
    plugin = finalizer.finalize(
        DerivationDraft(
            name="tool-plugin",
            version="0.3.1",
            src=FetchUrl(url="https://example.invalid/plugin.zip", sha256="1" * 64),
            deps=(tool,),
        )
    )
    launcher = write_run_spec(RunSpecArgs(name="default", entrypoint="tool_loader.exe"), finalizer)
    modpack = mk_composition(
        BuildOptions(
            name="test-modpack",
            layers=[game, plugin, launcher],
            entrypoint="tool_loader.exe",
            env={"WINEDLLOVERRIDES": "winhttp=n,b"},
        ),
        finalizer,
    )
    return modpack.out


if __name__ == "__main__":
    print(build_modpack())
