"""Patch step that runs inside a composed build and captures its outputs."""

from kintsugi import (
    BuildCommand,
    BuildOptions,
    Config,
    DerivationDraft,
    Finalizer,
    RunInBuild,
    mk_composition,
    mk_local,
)


def build_patched() -> str:
    finalizer = Finalizer(config=Config.from_env())
    game = mk_local("local-game", "1.6.117", "/games/local", finalizer=finalizer)
    base = mk_composition(BuildOptions(name="base-pack", layers=[game]), finalizer)
    patched = finalizer.finalize(
        DerivationDraft(
            name="patched-index",
            version="1.0.0",
            src=RunInBuild(
                build=base,
                command=BuildCommand(entrypoint="indexer.exe", args=["--rebuild"]),
                outputs=["Data/index.bin"],
            ),
            deps=(base,),
        )
    )
    return patched.out


if __name__ == "__main__":
    print(build_patched())
