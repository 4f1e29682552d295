"""Transitive dependency resolution over in-memory ``deps`` graphs."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from kintsugi.errors import CycleDetectedError
from kintsugi.models import Derivation


class _VisitState(Enum):
    IN_PROGRESS = "in_progress"
    DONE = "done"


def resolve_transitive_layers(roots: Iterable[Derivation]) -> list[Derivation]:
    """Flatten the ``deps`` DAG under *roots* into a dependency-first build order.

    Every derivation appears after all of its dependencies and exactly once,
    keyed by ``out``; the first object discovered for an identifier wins.
    Unrelated derivations keep depth-first visitation order of *roots* and of
    each node's ``deps``. Raises :class:`CycleDetectedError` without returning
    a partial order.
    """
    ordered: list[Derivation] = []
    states: dict[str, _VisitState] = {}

    def visit(drv: Derivation) -> None:
        state = states.get(drv.out)
        if state is _VisitState.DONE:
            return
        if state is _VisitState.IN_PROGRESS:
            raise CycleDetectedError(
                f"Circular dependency detected involving {drv.name} ({drv.out})",
                derivation_name=drv.name,
                derivation_out=drv.out,
                hint="Remove the dependency edge that points back at this derivation.",
                context={"operation": "resolve_transitive_layers"},
            )
        states[drv.out] = _VisitState.IN_PROGRESS
        for dep in drv.deps:
            visit(dep)
        states[drv.out] = _VisitState.DONE
        ordered.append(drv)

    for root in roots:
        visit(root)
    return ordered
