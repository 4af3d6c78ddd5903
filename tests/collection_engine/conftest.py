"""Shared fixtures and reusable dummy work units for collection engine tests.

Every unit here is a generic dummy that only uses the collection primitives
(Outcome, exit codes, the WorkUnit protocol).
"""

from __future__ import annotations

import pytest

from taskchain import Collection, Outcome

# ---------------------------------------------------------------------------
# Reusable dummy units
# ---------------------------------------------------------------------------


class CountingTask:
    """Counts how many times it ran.  Always succeeds."""

    def __init__(self):
        self.count = 0

    def run(self):
        self.count += 1
        return Outcome.success()


class MarkupTask:
    """Produces ``{key: value}``; its hook methods rewrite ``value`` in place.

    Hooks return the same key as ``run()``, so their result overwrites the
    primary value when merged into the same slot.
    """

    def __init__(self, key: str, value: str):
        self.key = key
        self.value = value

    def run(self):
        return self._current()

    def _current(self):
        return Outcome.success(data={self.key: self.value})

    def parenthesizer(self):
        self.value = f"({self.value})"
        return self._current()

    def emphasizer(self):
        self.value = f"*{self.value}*"
        return self._current()


class PassthruTask:
    """Returns whatever data was provided to it."""

    def __init__(self):
        self.data: dict = {}

    def run(self):
        return Outcome.success(data=self.data)

    def provide_data(self, key, value):
        self.data[key] = value


class ExitCodeTask:
    """Returns a bare exit code instead of an Outcome."""

    def __init__(self, code: int):
        self.code = code
        self.ran = False

    def run(self):
        self.ran = True
        return self.code


class Boom:
    """Always raises RuntimeError."""

    def run(self):
        raise RuntimeError("boom")


class UndoableTask:
    """Self-registering unit: exposes ``undo()`` and ``complete()``."""

    def __init__(self, code: int = 0):
        self.code = code
        self.log: list[str] = []

    def run(self):
        self.log.append("run")
        return self.code

    def undo(self):
        self.log.append("undo")

    def complete(self):
        self.log.append("complete")


class Recorder:
    """Appends its label to a shared list each time it runs."""

    def __init__(self, label: str, sink: list):
        self.label = label
        self.sink = sink

    def run(self):
        self.sink.append(self.label)
        return Outcome.success()


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def collection():
    return Collection()


@pytest.fixture
def task_a():
    return MarkupTask("a", "value-a")


@pytest.fixture
def task_b():
    return MarkupTask("b", "value-b")


@pytest.fixture
def sink():
    return []
