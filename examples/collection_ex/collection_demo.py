#!/usr/bin/env python3
# %% [markdown]
# # Collection Engine: Interactive Demo
#
# Walks through the collection engine feature by feature.  Each cell is
# self-contained; run them top to bottom.
#
# Settings are read from `TASKCHAIN_*` variables (a `.env` file is honoured).

# %% [markdown]
# ## Setup & Imports

# %%
import logging
import shutil
import sys
import tempfile
from pathlib import Path

# Walk up until we find the project root (the directory holding `taskchain/`).
_here = Path(__file__).resolve().parent if "__file__" in dir() else Path.cwd()
_root = _here
for _p in [_here] + list(_here.parents):
    if (_p / "taskchain" / "__init__.py").exists():
        _root = _p
        break
sys.path.insert(0, str(_root))

from taskchain import Collection, CollectionSettings, Outcome

logging.basicConfig(level=logging.INFO, format="    %(name)s: %(message)s")
settings = CollectionSettings.from_env()


def show(outcome: Outcome) -> None:
    """Pretty-print the outcome of a collection run."""
    tag = "OK" if outcome.succeeded else f"FAIL code={outcome.code}"
    print(f"  [{tag}] {outcome.message}")
    for name, data in outcome.data.items():
        if name == "time":
            print(f"         time: {data:.4f}s")
        else:
            print(f"         {name}: {dict(data)}")


# %% [markdown]
# ## Work Units
#
# A **work unit** is any object with `run()` returning an `Outcome` or a bare
# exit code.  No base class; `WorkUnit` is a structural protocol.

# %%
class MakeWorkDir:
    """Creates a scratch directory and offers to remove it again."""

    def __init__(self):
        self.path = None

    def run(self):
        self.path = tempfile.mkdtemp(prefix="taskchain-demo-")
        return Outcome.success(f"created {self.path}", workdir=self.path)

    def complete(self):
        shutil.rmtree(self.path, ignore_errors=True)
        print(f"    [MakeWorkDir] removed {self.path}")


class WriteFile:
    """Writes ``content`` to ``name`` inside the work directory."""

    def __init__(self, name):
        self.name = name
        self.workdir = None
        self.content = ""

    def run(self):
        target = Path(self.workdir) / self.name
        target.write_text(self.content)
        return Outcome.success(files=[str(target)])


class Fail:
    def run(self):
        return Outcome.error("simulated failure", code=3)


# %% [markdown]
# ---
# ## 1. Shared State and Deferred Configuration
#
# Data produced by one unit lands in the shared state.  `defer()` configures a
# later unit from that state right before it runs.

# %%
workdir = MakeWorkDir()
readme = WriteFile("README.txt")

collection = (
    Collection(settings)
    .progress_message("Preparing scratch space")
    .add(workdir, "workdir")
    .add_code(lambda state: state.update(greeting="hello from taskchain"))
    .add(readme, "readme")
    .defer(readme, lambda task, state: setattr(task, "workdir", state["workdir"]))
    .defer(readme, lambda task, state: setattr(task, "content", state["greeting"]))
    .progress_message("Wrote {files}")
)
show(collection.run())

# %% [markdown]
# ---
# ## 2. Hooks
#
# `before()` / `after()` attach a body to a named entry.  Unnamed hooks merge
# into the attach point's slot; a named hook gets a slot of its own.

# %%
class Counter:
    def __init__(self):
        self.n = 0

    def run(self):
        return Outcome.success(n=self.n)

    def bump(self):
        self.n += 1
        return Outcome.success(n=self.n)


counter = Counter()
show(
    Collection(settings)
    .add(counter, "counter")
    .after("counter", counter.bump)
    .after("counter", counter.bump)
    .after("counter", counter.bump, "snapshot")
    .run()
)

# %% [markdown]
# ---
# ## 3. Rollback and Completion
#
# The run stops at the first failure.  Rollback actions registered before the
# failure fire; completion actions registered before it always fire.  Actions
# declared after the failing step never register.

# %%
show(
    Collection(settings)
    .rollback(lambda: print("    [rollback] undoing step one"))
    .completion(lambda: print("    [completion] closing connections"))
    .add_code(lambda state: print("    [step one] done"))
    .add(Fail(), "failing-step")
    .rollback(lambda: print("    never printed"))
    .run()
)
