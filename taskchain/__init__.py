"""Task collection engine: compose work units into one ordered, transactional run.

Public surface::

    from taskchain import (
        Collection,
        CollectionSettings,
        Outcome,
        normalize,
        WorkUnit,
        RollbackAware,
        CompletionAware,
        CollectionError,
        CollectionConfigError,
        DuplicateNameError,
        UnknownAttachPointError,
    )
"""

from .collection import Collection
from .config import CollectionSettings
from .errors import (
    CollectionConfigError,
    CollectionError,
    DuplicateNameError,
    UnknownAttachPointError,
)
from .outcome import EXIT_ERROR, EXIT_OK, Outcome, normalize
from .protocol import CompletionAware, RollbackAware, WorkUnit
from .results import TIME_KEY

__all__ = [
    "Collection",
    "CollectionSettings",
    "Outcome",
    "normalize",
    "EXIT_OK",
    "EXIT_ERROR",
    "TIME_KEY",
    "WorkUnit",
    "RollbackAware",
    "CompletionAware",
    "CollectionError",
    "CollectionConfigError",
    "DuplicateNameError",
    "UnknownAttachPointError",
]
