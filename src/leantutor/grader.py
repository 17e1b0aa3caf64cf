"""Grade one submission against one exercise."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from . import evaluation
from .markers import find_incomplete_markers, placeholder_diagnostic
from .models import Exercise
from .rules import evaluate_requirements
from .syntax import check_syntax

LOG = logging.getLogger(__name__)

INTERNAL_ERROR = "An internal error occurred while grading this submission."
FAILURE_HINT = "Hint: Check the exercise requirements and make sure your code matches the expected pattern."


@dataclass(frozen=True)
class GradingReport:
    """Structured outcome of one grading call."""

    success: bool
    passed: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()
    output: str = ""


def grade(submission: str, exercise: Exercise) -> GradingReport:
    """Grade submission text and return a fresh report.

    Structural errors stop grading before any requirement runs. A placeholder
    keyword fails the submission even when every requirement passes. A check
    that raises turns the whole call into a single internal error.
    """
    syntax = check_syntax(submission)
    if not syntax.valid:
        LOG.debug("Exercise %s: syntax check failed with %d error(s)", exercise.id, len(syntax.errors))
        return GradingReport(success=False, errors=syntax.errors)

    try:
        return _grade_checked(submission, exercise)
    except Exception as exc:
        LOG.error("Requirement evaluation crashed for exercise %s: %s", exercise.id, exc, exc_info=True)
        return GradingReport(success=False, errors=(INTERNAL_ERROR,))


def _grade_checked(submission: str, exercise: Exercise) -> GradingReport:
    simulated = evaluation.report(submission)
    results = evaluate_requirements(submission, exercise.checks)
    markers = find_incomplete_markers(submission)

    failed = results.failed
    if markers:
        failed = failed + (placeholder_diagnostic(markers),)
    success = not failed

    transcript = list(simulated.lines)
    if transcript:
        transcript.append("")
    if success:
        transcript.append(f"All {len(results.passed)} requirement(s) passed.")
        transcript.append("")
        transcript.append("Passed:")
        transcript.extend(f"  ✓ {item}" for item in results.passed)
    else:
        transcript.append(f"Requirements: {len(results.passed)}/{len(exercise.checks)} passed")
        if results.passed:
            transcript.append("")
            transcript.append("Passed:")
            transcript.extend(f"  ✓ {item}" for item in results.passed)
        transcript.append("")
        transcript.append("Failed:")
        transcript.extend(f"  ✗ {item}" for item in failed)
        transcript.append("")
        transcript.append(FAILURE_HINT)

    LOG.debug(
        "Exercise %s graded: success=%s passed=%d failed=%d",
        exercise.id,
        success,
        len(results.passed),
        len(failed),
    )
    return GradingReport(
        success=success,
        passed=results.passed,
        failed=failed,
        warnings=simulated.warnings,
        output="\n".join(transcript),
    )
