import logging

import pytest

from leantutor.grader import FAILURE_HINT, INTERNAL_ERROR, grade
from leantutor.models import RequirementCheck
from leantutor.rules import pattern_check

SQUARE_CHECK = pattern_check(
    "def square",
    required=[r"def\s+square\s*\([^)]*\)\s*:\s*Nat\s*:=\s*n\s*\*\s*n"],
)


def test_square_definition_passes(make_exercise) -> None:
    report = grade("def square (n : Nat) : Nat := n * n", make_exercise((SQUARE_CHECK,)))
    assert report.success is True
    assert report.passed == ("def square",)
    assert report.failed == ()
    assert report.errors == ()
    assert report.warnings == ()
    assert report.output.splitlines() == [
        "Definition compiled successfully.",
        "",
        "All 1 requirement(s) passed.",
        "",
        "Passed:",
        "  ✓ def square",
    ]


def test_placeholder_fails_even_when_checks_pass(make_exercise) -> None:
    exercise = make_exercise((pattern_check("def x", required=[r"def\s+x"]),))
    report = grade("def x := 1\nsorry", exercise)
    assert report.success is False
    assert report.passed == ("def x",)
    assert report.failed == ('Remove "sorry" and complete the work.',)
    assert report.warnings == ("Warning: 'sorry' found - this proof is incomplete.",)


def test_appending_marker_flips_passing_submission(make_exercise) -> None:
    exercise = make_exercise((SQUARE_CHECK,))
    passing = "def square (n : Nat) : Nat := n * n"
    assert grade(passing, exercise).success is True
    assert grade(passing + "\nadmit", exercise).success is False


def test_marker_inside_identifier_does_not_gate(make_exercise) -> None:
    exercise = make_exercise((pattern_check("def", required=[r"\bdef\b"]),))
    assert grade("def sorryCount := 0", exercise).success is True


def test_syntax_failure_skips_requirements(make_exercise) -> None:
    calls: list[str] = []

    def spy(text: str) -> bool:
        calls.append(text)
        return True

    exercise = make_exercise((RequirementCheck("spy", spy),))
    report = grade("def f (x : Nat := x", exercise)
    assert report.success is False
    assert report.errors == ("Unclosed bracket(s): )",)
    assert report.passed == ()
    assert report.failed == ()
    assert report.warnings == ()
    assert report.output == ""
    assert calls == []


def test_failure_transcript_lists_passed_and_failed(make_exercise) -> None:
    exercise = make_exercise(
        (
            pattern_check("has def", required=[r"\bdef\b"]),
            pattern_check("has theorem", required=[r"\btheorem\b"]),
        )
    )
    report = grade("def x := 1\n#eval x", exercise)
    assert report.success is False
    assert report.failed == ("has theorem",)
    assert report.output.splitlines() == [
        "Definition compiled successfully.",
        "#eval x: [evaluated]",
        "",
        "Requirements: 1/2 passed",
        "",
        "Passed:",
        "  ✓ has def",
        "",
        "Failed:",
        "  ✗ has theorem",
        "",
        FAILURE_HINT,
    ]


def test_failure_transcript_without_any_pass(make_exercise) -> None:
    exercise = make_exercise((pattern_check("has theorem", required=[r"\btheorem\b"]),))
    lines = grade("-- nothing yet", exercise).output.splitlines()
    assert lines[0] == "Requirements: 0/1 passed"
    assert "Passed:" not in lines
    assert "  ✗ has theorem" in lines


def test_placeholder_counts_against_declared_total(make_exercise) -> None:
    exercise = make_exercise((pattern_check("theorem", required=["theorem"]),))
    output = grade("theorem t : True := by sorry", exercise).output
    assert "Requirements: 1/1 passed" in output
    assert '  ✗ Remove "sorry" and complete the work.' in output


def test_grading_is_idempotent(make_exercise) -> None:
    exercise = make_exercise((SQUARE_CHECK,))
    text = "def square (n : Nat) : Nat := n * n\n#check square\nsorry"
    assert grade(text, exercise) == grade(text, exercise)


def test_raising_check_becomes_internal_error(make_exercise, caplog: pytest.LogCaptureFixture) -> None:
    def explode(text: str) -> bool:
        raise RuntimeError("boom")

    exercise = make_exercise((SQUARE_CHECK, RequirementCheck("explodes", explode)))
    with caplog.at_level(logging.ERROR, logger="leantutor.grader"):
        report = grade("def square (n : Nat) : Nat := n * n", exercise)
    assert report.success is False
    assert report.errors == (INTERNAL_ERROR,)
    assert report.passed == ()
    assert report.failed == ()
    assert "ex-test: boom" in caplog.text
    assert caplog.records[-1].exc_info is not None


def test_exercise_without_checks_passes_clean_code(make_exercise) -> None:
    report = grade("def x := 1", make_exercise(()))
    assert report.success is True
    assert "All 0 requirement(s) passed." in report.output
