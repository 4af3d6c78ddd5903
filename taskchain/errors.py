"""Collection error types."""

from __future__ import annotations


class CollectionError(Exception):
    """Base class for errors raised by the collection engine."""


class CollectionConfigError(CollectionError):
    """Invalid collection wiring.

    Examples:
    - ``add()`` given an object without a ``run()`` method.
    - ``defer()`` targeting a unit that was never added, or added twice.
    - ``store_state()`` called before any task was added.
    """


class DuplicateNameError(CollectionConfigError):
    """An explicit entry name is already taken (or is a reserved key)."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Entry name {name!r} is already in use in this collection.")


class UnknownAttachPointError(CollectionConfigError):
    """One or more hooks reference a name that no entry carries.

    ``names`` lists every unresolved attach point, in attachment order.
    """

    def __init__(self, names: list[str]) -> None:
        self.names = names
        super().__init__(
            f"{len(names)} hook attach point(s) could not be resolved: "
            + ", ".join(repr(n) for n in names)
        )
