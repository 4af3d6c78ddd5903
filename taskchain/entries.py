"""Entry kinds a collection queues or attaches.

Queue entries (``TaskEntry``, ``CodeEntry``, ``ProgressMessage``,
``RegisterRollback``, ``RegisterCompletion``) run in the order they were
added.  ``Hook`` and ``DeferredConfig`` are not queued: they are attached to
a named entry and fire around it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class Position(Enum):
    BEFORE = "before"
    AFTER = "after"


@dataclass
class TaskEntry:
    """A primary work unit queued under ``name``."""

    name: str
    unit: Any
    state_keys: list[str] = field(default_factory=list)


@dataclass
class CodeEntry:
    """A callable that receives the shared state by reference."""

    name: str
    fn: Callable[[dict], Any]
    state_keys: list[str] = field(default_factory=list)


@dataclass
class Hook:
    """A body fired immediately before or after ``attach_point``.

    Without ``result_name`` the hook's data merges into the attach point's
    slot; with one it gets a slot of its own and can itself be an attach point.
    """

    attach_point: str
    position: Position
    body: Any
    result_name: str | None = None

    @property
    def target(self) -> str:
        return self.result_name or self.attach_point


@dataclass
class DeferredConfig:
    """Configures ``unit`` from the shared state just before it runs."""

    unit: Any
    configurator: Callable[[Any, dict], Any]


@dataclass
class ProgressMessage:
    text: str
    context: dict[str, Any] = field(default_factory=dict)
    level: int | None = None

    def resolved_level(self, default: int = logging.INFO) -> int:
        return default if self.level is None else self.level


@dataclass
class RegisterRollback:
    """Pushes ``action`` onto the rollback stack when reached.

    With ``pass_state`` the action is called with the shared state.
    """

    action: Callable[..., Any]
    pass_state: bool = False


@dataclass
class RegisterCompletion:
    """Pushes ``action`` onto the completion stack when reached."""

    action: Callable[..., Any]
    pass_state: bool = False
