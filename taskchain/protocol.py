"""Structural protocols for the things a collection runs."""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class WorkUnit(Protocol):
    """Anything with a ``run()`` method returning an ``Outcome`` or exit code.

    ``@runtime_checkable`` lets ``Collection.add`` use
    ``isinstance(unit, WorkUnit)`` to reject objects early with a clear error.
    A ``Collection`` satisfies this protocol, so collections nest.
    """

    def run(self) -> Any: ...


@runtime_checkable
class RollbackAware(Protocol):
    """A unit that knows how to undo its own effects.

    ``undo()`` is pushed onto the rollback stack just before the unit runs.
    """

    def undo(self) -> Any: ...


@runtime_checkable
class CompletionAware(Protocol):
    """A unit with cleanup that must happen whether or not the run fails."""

    def complete(self) -> Any: ...


def as_callable(body: object) -> Callable[[], Any]:
    """Return a zero-argument callable for *body*.

    Work units are invoked through ``run``; any other callable (typically a
    bound method of a unit, so state persists on the instance) is used as is.
    """
    run = getattr(body, "run", None)
    if callable(run):
        return run
    if callable(body):
        return body
    raise TypeError(
        f"{type(body).__name__} is neither a work unit nor callable."
    )
