"""Canonical JSON serialization for report files.

Reports written with ``--output`` go through this one function so the same
usages always produce the same bytes, whichever platform ran the check.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Byte-stable JSON serialization.

    Rules:
    - UTF-8, no ASCII escaping
    - Sorted keys
    - Compact separators (",", ":")
    - Lists are emitted as given (callers sort them first)

    Args:
        obj: Python object to serialize

    Returns:
        Canonical JSON string
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False
    )
