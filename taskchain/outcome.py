"""Immutable outcome record returned by every work unit to the collection."""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

EXIT_OK = 0
EXIT_ERROR = 1


@dataclass(frozen=True)
class Outcome:
    """Result of one work-unit invocation.

    ``code`` follows process exit-code convention: ``0`` is success, anything
    else is failure.  ``data`` is the keyed bag of values the unit produced;
    it is coerced to ``MappingProxyType`` so mutation is a hard runtime error.

    Item access reads from ``data``, so ``outcome["a-name"]["a"]`` works on
    the outcome returned by ``Collection.run()``.
    """

    code: int = EXIT_OK
    message: str = ""
    data: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.data, MappingProxyType):
            object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def success(
        cls, message: str = "", data: Mapping[str, Any] | None = None, **values: Any
    ) -> "Outcome":
        """Successful outcome carrying *data* plus any keyword *values*."""
        return cls(code=EXIT_OK, message=message, data={**(data or {}), **values})

    @classmethod
    def error(
        cls,
        message: str = "",
        code: int = EXIT_ERROR,
        data: Mapping[str, Any] | None = None,
    ) -> "Outcome":
        if code == EXIT_OK:
            raise ValueError("An error outcome needs a non-zero code.")
        return cls(code=code, message=message, data=data or {})

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def succeeded(self) -> bool:
        return self.code == EXIT_OK

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __contains__(self, key: object) -> bool:
        return key in self.data

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def replace(self, **changes: Any) -> "Outcome":
        """Return a new Outcome with the given fields replaced."""
        return dataclasses.replace(self, **changes)


def normalize(value: Any) -> Outcome:
    """Coerce whatever a unit or code step returned into an ``Outcome``.

    - ``Outcome`` is returned unchanged.
    - ``None`` means "nothing to report" and becomes a bare success.
    - ``bool`` maps ``True``/``False`` to success/``EXIT_ERROR``.
    - ``int`` becomes the exit code; success iff it is ``0``.
    - Any other ``Mapping`` becomes a success carrying that data.
    """
    if isinstance(value, Outcome):
        return value
    if value is None:
        return Outcome()
    if isinstance(value, bool):
        return Outcome(code=EXIT_OK if value else EXIT_ERROR)
    if isinstance(value, int):
        return Outcome(code=value)
    if isinstance(value, Mapping):
        return Outcome(data=value)
    raise TypeError(
        f"Cannot interpret {type(value).__name__} as an Outcome; return an "
        f"Outcome, an exit code, a mapping or None."
    )
