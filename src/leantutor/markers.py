"""Placeholder keywords that stand in for unfinished proofs."""

from __future__ import annotations

import re

INCOMPLETE_MARKERS: tuple[str, ...] = ("sorry", "admit")

_MARKER_PATTERNS = tuple((marker, re.compile(rf"\b{re.escape(marker)}\b")) for marker in INCOMPLETE_MARKERS)


def find_incomplete_markers(text: str) -> tuple[str, ...]:
    """Return markers present as standalone tokens, in table order."""
    return tuple(marker for marker, pattern in _MARKER_PATTERNS if pattern.search(text))


def has_incomplete_work(text: str) -> bool:
    """Return whether the text still contains a placeholder keyword."""
    return bool(find_incomplete_markers(text))


def placeholder_diagnostic(markers: tuple[str, ...]) -> str:
    """Build the failure line shown when placeholders block a pass."""
    quoted = " and ".join(f'"{marker}"' for marker in markers)
    return f"Remove {quoted} and complete the work."
