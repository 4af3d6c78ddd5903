"""Placeholder interpolation for progress messages."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

_PLACEHOLDER = re.compile(r"\{([A-Za-z0-9_.\-]+)\}")


def interpolate(text: str, values: Mapping[str, Any]) -> str:
    """Replace ``{key}`` in *text* with ``values[key]``.

    Placeholders without a matching key are left as they are, so literal
    braces in a message survive untouched.
    """

    def _sub(match: re.Match) -> str:
        key = match.group(1)
        if key in values:
            return str(values[key])
        return match.group(0)

    return _PLACEHOLDER.sub(_sub, text)
