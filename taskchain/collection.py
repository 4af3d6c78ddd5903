"""Collection: ordered task queue with hooks, shared state and rollback."""

from __future__ import annotations

import functools
import inspect
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable

from .config import CollectionSettings
from .entries import (
    CodeEntry,
    DeferredConfig,
    Hook,
    Position,
    ProgressMessage,
    RegisterCompletion,
    RegisterRollback,
    TaskEntry,
)
from .errors import CollectionConfigError, DuplicateNameError, UnknownAttachPointError
from .outcome import Outcome, normalize
from .progress import interpolate
from .protocol import CompletionAware, RollbackAware, WorkUnit, as_callable
from .results import TIME_KEY, NamedResults

logger = logging.getLogger(__name__)


@dataclass
class _Run:
    """Mutable bookkeeping for a single ``Collection.run()`` call."""

    state: dict[str, Any]
    deferred: dict[str, list[DeferredConfig]]
    results: NamedResults = field(default_factory=NamedResults)
    rollbacks: list[Callable[[], Any]] = field(default_factory=list)
    completions: list[Callable[[], Any]] = field(default_factory=list)
    halted: bool = False
    terminal: Outcome | None = None


class Collection:
    """Sequential pipeline of work units.  Satisfies ``WorkUnit``, so it can be nested.

    Build via the fluent API::

        collection = (
            Collection()
            .progress_message("Deploying {release}")
            .rollback(RemoveReleaseDir())
            .add(CopyFiles(), "copy")
            .after("copy", fix_permissions)
            .completion(DeleteTempDir())
        )
        outcome = collection.run()

    ``run()`` stops at the first entry that fails.  Rollback actions
    registered before that point then fire; completion actions registered
    before that point always fire.  The returned ``Outcome`` carries the
    failing code (or ``0``) and the named-result map, with ``time`` last.
    """

    def __init__(self, settings: CollectionSettings | None = None) -> None:
        self.settings = settings or CollectionSettings()
        self._queue: list = []
        self._hooks: dict[str, list[Hook]] = {}
        self._deferred: list[DeferredConfig] = []
        self._names: set[str] = set()
        self._counter = 0
        self._last_named: TaskEntry | CodeEntry | None = None
        self._logger: Any = None
        self._state: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    def _claim(self, name: str) -> str:
        if name == TIME_KEY or name in self._names:
            raise DuplicateNameError(name)
        self._names.add(name)
        return name

    def _next_name(self) -> str:
        """Generate a fresh name from the per-instance counter."""
        while True:
            candidate = f"{self.settings.unnamed_prefix}{self._counter}"
            self._counter += 1
            if candidate not in self._names and candidate != TIME_KEY:
                return self._claim(candidate)

    # ------------------------------------------------------------------
    # Fluent builder
    # ------------------------------------------------------------------

    def add(self, unit: object, name: str | None = None) -> "Collection":
        """Queue *unit*; its results are stored under *name* (or a generated one)."""
        if not isinstance(unit, WorkUnit):
            raise CollectionConfigError(
                f"{type(unit).__name__} has no run() method and cannot be added."
            )
        entry = TaskEntry(name=self._claim(name) if name else self._next_name(), unit=unit)
        self._queue.append(entry)
        self._last_named = entry
        return self

    def add_code(
        self, fn: Callable[[dict], Any], name: str | None = None
    ) -> "Collection":
        """Queue *fn*, which is called with the shared state dict.

        Returning ``None`` records nothing; an exit code or ``Outcome`` is
        handled like a work unit's result.
        """
        if not callable(fn):
            raise CollectionConfigError(f"{type(fn).__name__} is not callable.")
        entry = CodeEntry(name=self._claim(name) if name else self._next_name(), fn=fn)
        self._queue.append(entry)
        self._last_named = entry
        return self

    def before(
        self, attach_point: str, body: object, result_name: str | None = None
    ) -> "Collection":
        return self._attach(attach_point, Position.BEFORE, body, result_name)

    def after(
        self, attach_point: str, body: object, result_name: str | None = None
    ) -> "Collection":
        return self._attach(attach_point, Position.AFTER, body, result_name)

    def _attach(
        self,
        attach_point: str,
        position: Position,
        body: object,
        result_name: str | None,
    ) -> "Collection":
        try:
            as_callable(body)
        except TypeError as exc:
            raise CollectionConfigError(str(exc)) from exc
        if result_name:
            self._claim(result_name)
        hook = Hook(attach_point, position, body, result_name)
        self._hooks.setdefault(attach_point, []).append(hook)
        return self

    def rollback(self, action: object) -> "Collection":
        """Queue registration of *action* (a work unit or zero-argument callable)."""
        self._queue.append(RegisterRollback(self._action(action)))
        return self

    def rollback_code(self, fn: Callable[[dict], Any]) -> "Collection":
        """Like ``rollback`` but *fn* must accept the shared state as its one argument."""
        self._queue.append(RegisterRollback(self._state_action(fn), pass_state=True))
        return self

    def completion(self, action: object) -> "Collection":
        self._queue.append(RegisterCompletion(self._action(action)))
        return self

    def completion_code(self, fn: Callable[[dict], Any]) -> "Collection":
        """Like ``completion`` but *fn* must accept the shared state as its one argument."""
        self._queue.append(RegisterCompletion(self._state_action(fn), pass_state=True))
        return self

    @staticmethod
    def _action(action: object) -> Callable[..., Any]:
        try:
            return as_callable(action)
        except TypeError as exc:
            raise CollectionConfigError(str(exc)) from exc

    @staticmethod
    def _state_action(fn: object) -> Callable[[dict], Any]:
        """Reject anything that cannot be called as ``fn(state)``."""
        if not callable(fn):
            raise CollectionConfigError(f"{type(fn).__name__} is not callable.")
        try:
            inspect.signature(fn).bind({})
        except TypeError as exc:
            raise CollectionConfigError(
                f"{fn!r} must accept the shared state as its only argument: {exc}"
            ) from exc
        except ValueError:
            # No introspectable signature (some builtins); trust the caller.
            pass
        return fn

    def defer(
        self, unit: object, configurator: Callable[[Any, dict], Any]
    ) -> "Collection":
        """Call ``configurator(unit, state)`` right before *unit* runs.

        *unit* is matched by identity when the run starts, so it may be added
        before or after this call.
        """
        self._deferred.append(DeferredConfig(unit, configurator))
        return self

    def defer_task_configuration(
        self, unit: object, method_name: str, state_key: str
    ) -> "Collection":
        """Call ``unit.<method_name>(state[state_key])`` right before *unit* runs."""

        def configure(task: Any, state: dict) -> None:
            getattr(task, method_name)(state[state_key])

        return self.defer(unit, configure)

    def store_state(self, key: str) -> "Collection":
        """Copy the message of the most recently added task into ``state[key]``."""
        if self._last_named is None:
            raise CollectionConfigError("store_state() needs a preceding task or code step.")
        self._last_named.state_keys.append(key)
        return self

    def progress_message(
        self,
        text: str,
        context: Mapping[str, Any] | None = None,
        level: int | None = None,
    ) -> "Collection":
        """Queue a log message; ``{key}`` placeholders read *context*, then state."""
        self._queue.append(ProgressMessage(text, dict(context or {}), level))
        return self

    def set_logger(self, progress_logger: Any) -> "Collection":
        """Route progress messages to *progress_logger* (anything with ``log(level, msg)``)."""
        self._logger = progress_logger
        return self

    @property
    def logger(self) -> Any:
        return self._logger or logging.getLogger(self.settings.logger_name)

    def get_state(self) -> MappingProxyType:
        """Read-only snapshot of the shared state left by the last run."""
        return MappingProxyType(dict(self._state))

    # ------------------------------------------------------------------
    # Validation (at run start, before anything executes)
    # ------------------------------------------------------------------

    def _check_attach_points(self) -> None:
        unknown = [point for point in self._hooks if point not in self._names]
        if not unknown:
            return
        if self.settings.strict_attach_points:
            raise UnknownAttachPointError(unknown)
        logger.warning("Skipping hooks for unknown attach point(s): %s", unknown)

    def _resolve_deferred(self) -> dict[str, list[DeferredConfig]]:
        by_name: dict[str, list[DeferredConfig]] = {}
        for deferred in self._deferred:
            names = [
                entry.name
                for entry in self._queue
                if isinstance(entry, TaskEntry) and entry.unit is deferred.unit
            ]
            if len(names) != 1:
                problem = "was never added" if not names else f"was added {len(names)} times"
                raise CollectionConfigError(
                    f"defer() target {type(deferred.unit).__name__} {problem}."
                )
            by_name.setdefault(names[0], []).append(deferred)
        return by_name

    # ------------------------------------------------------------------
    # run()
    # ------------------------------------------------------------------

    def run(self, state: Mapping[str, Any] | None = None) -> Outcome:
        """Execute the queue once and return the aggregate ``Outcome``.

        *state* seeds the shared state (for chaining from another
        collection's ``get_state()``); otherwise it starts empty.  If an
        entry raises, rollback and completion actions fire and the exception
        propagates.
        """
        return self._execute(state, parent=None)

    def _execute(self, state: Mapping[str, Any] | None, parent: _Run | None) -> Outcome:
        """Drain the queue.  With a *parent* run, rollback and completion
        actions are handed to it instead of firing here."""
        self._check_attach_points()
        current = _Run(state=dict(state or {}), deferred=self._resolve_deferred())
        self._state = current.state

        started = time.monotonic()
        try:
            for entry in self._queue:
                self._fire(entry, current)
                if current.halted:
                    break
        except Exception:
            if parent is None:
                logger.warning("Collection aborted by an exception; unwinding.")
                self._unwind(current, failed=True)
            else:
                self._hand_off(current, parent)
            raise
        elapsed = time.monotonic() - started

        if parent is None:
            self._unwind(current, failed=current.halted)
        else:
            self._hand_off(current, parent)
        data = current.results.finalize(elapsed)
        if current.terminal is not None:
            return Outcome(
                code=current.terminal.code, message=current.terminal.message, data=data
            )
        return Outcome(data=data)

    def _fire(self, entry: object, current: _Run) -> None:
        if isinstance(entry, TaskEntry):
            # A nested collection merges its own state back; its result map
            # only goes into the result slot.
            self._run_element(
                entry.name, entry.name, functools.partial(self._invoke_task, entry, current),
                current, entry.state_keys,
                merge_state=not isinstance(entry.unit, Collection),
            )
        elif isinstance(entry, CodeEntry):
            self._run_element(
                entry.name, entry.name, functools.partial(self._invoke_code, entry, current),
                current, entry.state_keys,
            )
        elif isinstance(entry, ProgressMessage):
            text = interpolate(entry.text, {**current.state, **entry.context})
            self.logger.log(entry.resolved_level(self.settings.progress_level), text)
        elif isinstance(entry, RegisterRollback):
            current.rollbacks.append(self._bind(entry.action, entry.pass_state, current))
        elif isinstance(entry, RegisterCompletion):
            current.completions.append(self._bind(entry.action, entry.pass_state, current))
        else:
            raise CollectionConfigError(f"Unknown entry type {type(entry).__name__}.")

    @staticmethod
    def _bind(action: Callable[..., Any], pass_state: bool, current: _Run) -> Callable[[], Any]:
        return functools.partial(action, current.state) if pass_state else action

    def _run_element(
        self,
        name: str | None,
        target: str,
        invoke: Callable[[], Outcome | None],
        current: _Run,
        state_keys: Sequence[str] = (),
        merge_state: bool = True,
    ) -> None:
        """Fire deferred configs and ``before`` hooks, the body, then ``after`` hooks.

        *name* is the attach point hooks are looked up by (``None`` for an
        unnamed hook); *target* is the result slot the body's outcome merges into.
        """
        hooks = self._hooks.get(name, []) if name else []

        for deferred in current.deferred.get(name, []) if name else []:
            logger.debug("Configuring %r from shared state", name)
            deferred.configurator(deferred.unit, current.state)

        for hook in hooks:
            if hook.position is Position.BEFORE:
                self._run_hook(hook, current)
                if current.halted:
                    return

        logger.debug("Running %r", name or target)
        outcome = invoke()
        if outcome is not None:
            self._record(target, outcome, current, merge_state)
            for key in state_keys:
                current.state[key] = outcome.message
        if current.halted:
            return

        for hook in hooks:
            if hook.position is Position.AFTER:
                self._run_hook(hook, current)
                if current.halted:
                    return

    def _run_hook(self, hook: Hook, current: _Run) -> None:
        body = as_callable(hook.body)
        self._run_element(
            hook.result_name, hook.target, lambda: normalize(body()), current
        )

    @staticmethod
    def _invoke_task(entry: TaskEntry, current: _Run) -> Outcome:
        unit = entry.unit
        if isinstance(unit, Collection):
            outcome = unit._execute(current.state, parent=current)
            current.state.update(unit.get_state())
            return outcome
        if isinstance(unit, RollbackAware):
            current.rollbacks.append(unit.undo)
        if isinstance(unit, CompletionAware):
            current.completions.append(unit.complete)
        return normalize(unit.run())

    @staticmethod
    def _invoke_code(entry: CodeEntry, current: _Run) -> Outcome | None:
        returned = entry.fn(current.state)
        return None if returned is None else normalize(returned)

    def _record(
        self, target: str, outcome: Outcome, current: _Run, merge_state: bool = True
    ) -> None:
        if merge_state:
            current.state.update(outcome.data)
        current.results.merge(target, outcome.data)
        if not outcome.succeeded:
            current.halted = True
            current.terminal = outcome
            logger.warning(
                "Entry %r failed with code %d: %s", target, outcome.code, outcome.message
            )

    # ------------------------------------------------------------------
    # Rollback / completion
    # ------------------------------------------------------------------

    @staticmethod
    def _hand_off(current: _Run, parent: _Run) -> None:
        """Queue this run's actions on the enclosing run, in registration order."""
        parent.rollbacks.extend(current.rollbacks)
        parent.completions.extend(current.completions)

    def _unwind(self, current: _Run, failed: bool) -> None:
        if failed:
            self._drain("rollback", current.rollbacks)
        self._drain("completion", current.completions)

    @staticmethod
    def _drain(kind: str, actions: list[Callable[[], Any]]) -> None:
        """Run every action in registration order; failures are logged, not raised."""
        failures = 0
        for action in actions:
            try:
                outcome = normalize(action())
            except Exception as exc:  # noqa: BLE001
                failures += 1
                logger.error("%s action %r raised: %s", kind.capitalize(), action, exc)
                continue
            if not outcome.succeeded:
                failures += 1
                logger.warning(
                    "%s action %r failed with code %d: %s",
                    kind.capitalize(), action, outcome.code, outcome.message,
                )
        if failures:
            logger.warning("%d of %d %s action(s) failed", failures, len(actions), kind)
