import pytest

from kintsugi import Derivation, WriteText
from kintsugi.errors import CycleDetectedError, ErrorCode
from kintsugi.resolve import resolve_transitive_layers

DUMMY_SRC = WriteText(path="test.txt", content="hello")


def _drv(name: str, *deps: Derivation) -> Derivation:
    return Derivation(
        name=name,
        version="1.0.0",
        out=f"{name}-drv-1.0.0",
        src=DUMMY_SRC,
        dependencies=tuple(dep.out for dep in deps),
        deps=deps,
    )


def _names(resolved: list[Derivation]) -> list[str]:
    return [drv.name for drv in resolved]


def _assert_dependencies_first(resolved: list[Derivation]) -> None:
    index = {drv.out: position for position, drv in enumerate(resolved)}
    for position, drv in enumerate(resolved):
        for dep in drv.deps:
            assert index[dep.out] < position


def test_linear_chain_is_dependency_first() -> None:
    base = _drv("base")
    mod_a = _drv("modA", base)
    mod_b = _drv("modB", mod_a)

    assert _names(resolve_transitive_layers([mod_b])) == ["base", "modA", "modB"]


def test_diamond_resolves_shared_dependency_once() -> None:
    d = _drv("D")
    b = _drv("B", d)
    c = _drv("C", d)
    a = _drv("A", b, c)

    resolved = resolve_transitive_layers([a])

    assert _names(resolved) == ["D", "B", "C", "A"]
    _assert_dependencies_first(resolved)


def test_roots_already_reached_are_not_repeated() -> None:
    x = _drv("X")
    y = _drv("Y", x)

    assert _names(resolve_transitive_layers([x, y, x])) == ["X", "Y"]
    assert _names(resolve_transitive_layers([y, x])) == ["X", "Y"]


def test_unrelated_roots_keep_visitation_order() -> None:
    a = _drv("A")
    b = _drv("B", a)
    c = _drv("C", a)
    d = _drv("D", c)
    e = _drv("E", c)

    assert _names(resolve_transitive_layers([c, b])) == ["A", "C", "B"]
    assert _names(resolve_transitive_layers([e, d])) == ["A", "C", "E", "D"]


def test_first_discovered_object_wins_for_duplicate_identifiers() -> None:
    first = _drv("shared")
    second = Derivation(name="shared", version="1.0.0", out=first.out, src=DUMMY_SRC)
    root = _drv("root", first, second)

    resolved = resolve_transitive_layers([root])

    assert _names(resolved) == ["shared", "root"]
    assert resolved[0] is first


def test_cycle_is_detected() -> None:
    # modA depends on modB, and modB's dependency re-enters modA by identifier.
    mod_a_stub = _drv("modA")
    mod_b = _drv("modB", mod_a_stub)
    mod_a = _drv("modA", mod_b)

    with pytest.raises(CycleDetectedError) as excinfo:
        resolve_transitive_layers([mod_a])

    assert "Circular dependency detected" in str(excinfo.value)
    assert excinfo.value.derivation_name == "modA"
    assert excinfo.value.derivation_out == mod_a.out
    assert excinfo.value.code == ErrorCode.CYCLE.value


def test_self_dependency_is_a_cycle() -> None:
    stub = _drv("self")
    looped = _drv("self", stub)

    with pytest.raises(CycleDetectedError):
        resolve_transitive_layers([looped])


def test_empty_roots_resolve_to_empty_list() -> None:
    assert resolve_transitive_layers([]) == []


def test_wide_graph_is_ordered_and_deduplicated() -> None:
    base = _drv("base")
    libs = [_drv(f"lib{i}", base) for i in range(20)]
    apps = [_drv(f"app{i}", *libs[i : i + 3]) for i in range(18)]

    resolved = resolve_transitive_layers(apps)

    assert len(resolved) == 1 + 20 + 18
    assert len({drv.out for drv in resolved}) == len(resolved)
    _assert_dependencies_first(resolved)
