# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Edit-distance suggestions for misspelled step references."""

import difflib
from typing import Iterable, Optional


def suggest(ref: str, candidates: Iterable[str], n: int = 3, cutoff: float = 0.6) -> Optional[str]:
    """Return a human-readable suggestion string for *ref*, or None if no close match."""
    pool = [c for c in dict.fromkeys(candidates) if c != ref]
    matches = difflib.get_close_matches(ref, pool, n=n, cutoff=cutoff)
    return ", ".join(f"'{m}'" for m in matches) if matches else None
