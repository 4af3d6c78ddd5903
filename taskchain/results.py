"""Named-result map: per-entry data accumulated over one run."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Iterator

TIME_KEY = "time"


class NamedResults(Mapping):
    """Maps entry names to the merged data of every outcome aimed at them.

    Keys keep first-write order.  Merging into an existing slot adds new keys
    and overwrites existing ones, so a hook that returns the same key as its
    attach point replaces the attach point's value.  ``TIME_KEY`` is reserved
    and only ever written by ``finalize()``, which places it last.
    """

    def __init__(self) -> None:
        self._slots: dict[str, dict[str, Any]] = {}
        self._elapsed: float | None = None

    def merge(self, name: str, data: Mapping[str, Any]) -> None:
        if name == TIME_KEY:
            raise KeyError(f"{TIME_KEY!r} is reserved for the run duration.")
        self._slots.setdefault(name, {}).update(data)

    def finalize(self, elapsed: float) -> MappingProxyType:
        """Record the run duration and return a read-only snapshot."""
        self._elapsed = elapsed
        snapshot: dict[str, Any] = {
            name: MappingProxyType(dict(slot)) for name, slot in self._slots.items()
        }
        snapshot[TIME_KEY] = elapsed
        return MappingProxyType(snapshot)

    def __getitem__(self, name: str) -> Any:
        if name == TIME_KEY and self._elapsed is not None:
            return self._elapsed
        return self._slots[name]

    def __iter__(self) -> Iterator[str]:
        yield from self._slots
        if self._elapsed is not None:
            yield TIME_KEY

    def __len__(self) -> int:
        return len(self._slots) + (self._elapsed is not None)
