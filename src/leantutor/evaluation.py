"""Simulated compiler output for submitted Lean source.

Nothing here runs Lean. Top-level constructs get a fixed acceptance message,
and `#eval` / `#check` directives are echoed back with a marker so the learner
sees which lines would have produced output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .markers import find_incomplete_markers

# Output order is fixed by this table, not by source order.
CONSTRUCT_MESSAGES: tuple[tuple[str, re.Pattern[str], str], ...] = (
    ("definition", re.compile(r"\bdef\s+\w+"), "Definition compiled successfully."),
    ("theorem", re.compile(r"\btheorem\s+\w+"), "Theorem compiled successfully."),
    ("lemma", re.compile(r"\blemma\s+\w+"), "Lemma compiled successfully."),
    ("structure", re.compile(r"\bstructure\s+\w+"), "Structure defined successfully."),
    ("inductive", re.compile(r"\binductive\s+\w+"), "Inductive type defined successfully."),
)

EVAL_DIRECTIVE = re.compile(r"#eval[ \t]+(\S.*)")
CHECK_DIRECTIVE = re.compile(r"#check[ \t]+(\S.*)")


@dataclass(frozen=True)
class EvaluationReport:
    """Synthetic compiler output for one submission."""

    compiler_messages: tuple[str, ...]
    eval_lines: tuple[str, ...]
    warnings: tuple[str, ...]

    @property
    def lines(self) -> tuple[str, ...]:
        """Return acceptance messages followed by directive output."""
        return self.compiler_messages + self.eval_lines


def report(text: str) -> EvaluationReport:
    """Build simulated output for text that already passed the syntax check."""
    compiler_messages = tuple(message for _, pattern, message in CONSTRUCT_MESSAGES if pattern.search(text))

    eval_lines = [f"#eval {match.group(1).strip()}: [evaluated]" for match in EVAL_DIRECTIVE.finditer(text)]
    eval_lines.extend(f"#check {match.group(1).strip()}: [type checked]" for match in CHECK_DIRECTIVE.finditer(text))

    warnings = tuple(
        f"Warning: '{marker}' found - this proof is incomplete." for marker in find_incomplete_markers(text)
    )
    return EvaluationReport(compiler_messages=compiler_messages, eval_lines=tuple(eval_lines), warnings=warnings)
