"""Lightweight structural checks run before any grading."""

from __future__ import annotations

import re
from dataclasses import dataclass

BRACKETS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = frozenset(BRACKETS.values())
DEFINITION_PREFIX = "def "
_BODY_MARKER = re.compile(r":=|\bwhere\b")


@dataclass(frozen=True)
class SyntaxCheck:
    """Result of the structural pre-check."""

    valid: bool
    errors: tuple[str, ...]


def check_syntax(text: str) -> SyntaxCheck:
    """Check bracket balance and obviously unfinished definitions.

    This is a heuristic over raw text. Brackets inside strings or comments are
    counted like any other, and a mismatch does not stop the scan, so one
    stray closer can produce several errors.
    """
    errors = _bracket_errors(text)
    errors.extend(_incomplete_definition_errors(text))
    return SyntaxCheck(valid=not errors, errors=tuple(errors))


def _bracket_errors(text: str) -> list[str]:
    errors: list[str] = []
    stack: list[str] = []
    for char in text:
        if char in BRACKETS:
            stack.append(BRACKETS[char])
        elif char in CLOSERS:
            expected = stack.pop() if stack else None
            if expected != char:
                errors.append(f"Mismatched bracket: {char}")
    if stack:
        errors.append(f"Unclosed bracket(s): {', '.join(stack)}")
    return errors


def _incomplete_definition_errors(text: str) -> list[str]:
    """Flag `def` lines with no `:=` or `where` on that line or any later one."""
    errors: list[str] = []
    lines = text.split("\n")
    for index, raw_line in enumerate(lines):
        line = raw_line.strip()
        if not line.startswith(DEFINITION_PREFIX) or _BODY_MARKER.search(line):
            continue
        remainder = "\n".join(lines[index + 1 :])
        if not _BODY_MARKER.search(remainder):
            errors.append(f"Line {index + 1}: Definition appears incomplete. Use ':=' or 'where'.")
    return errors
