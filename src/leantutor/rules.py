"""Pattern rules and requirement evaluation over raw submission text."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .models import RequirementCheck


@dataclass(frozen=True)
class PatternRule:
    """Predicate combining required, alternative, and forbidden patterns.

    A submission satisfies the rule when every `required` pattern matches,
    at least one `alternatives` pattern matches (if any are given), and no
    `forbidden` pattern matches. Patterns are searched over the whole text.
    """

    required: tuple[re.Pattern[str], ...] = ()
    alternatives: tuple[re.Pattern[str], ...] = ()
    forbidden: tuple[re.Pattern[str], ...] = ()

    @classmethod
    def from_patterns(
        cls,
        required: Iterable[str] = (),
        alternatives: Iterable[str] = (),
        forbidden: Iterable[str] = (),
    ) -> PatternRule:
        """Compile pattern strings, raising ValueError for invalid expressions."""
        rule = cls(
            required=_compile_all(required),
            alternatives=_compile_all(alternatives),
            forbidden=_compile_all(forbidden),
        )
        if not (rule.required or rule.alternatives or rule.forbidden):
            raise ValueError("Pattern rule needs at least one pattern.")
        return rule

    def __call__(self, text: str) -> bool:
        if not all(pattern.search(text) for pattern in self.required):
            return False
        if self.alternatives and not any(pattern.search(text) for pattern in self.alternatives):
            return False
        return not any(pattern.search(text) for pattern in self.forbidden)


@dataclass(frozen=True)
class RequirementResults:
    """Check descriptions partitioned by outcome, in declared order."""

    passed: tuple[str, ...]
    failed: tuple[str, ...]


def pattern_check(
    description: str,
    required: Iterable[str] = (),
    alternatives: Iterable[str] = (),
    forbidden: Iterable[str] = (),
) -> RequirementCheck:
    """Build a requirement check backed by a pattern rule."""
    return RequirementCheck(
        description=description,
        predicate=PatternRule.from_patterns(required, alternatives, forbidden),
    )


def evaluate_requirements(text: str, checks: Sequence[RequirementCheck]) -> RequirementResults:
    """Run every check in order and partition descriptions by result."""
    passed: list[str] = []
    failed: list[str] = []
    for check in checks:
        if check.predicate(text):
            passed.append(check.description)
        else:
            failed.append(check.description)
    return RequirementResults(passed=tuple(passed), failed=tuple(failed))


def _compile_all(patterns: Iterable[str]) -> tuple[re.Pattern[str], ...]:
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise ValueError(f"Invalid pattern {pattern!r}: {exc}") from exc
    return tuple(compiled)
