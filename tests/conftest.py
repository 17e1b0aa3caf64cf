from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from leantutor.models import Exercise, RequirementCheck  # noqa: E402
from leantutor.service import LearnService  # noqa: E402


def build_exercise(checks: tuple[RequirementCheck, ...], exercise_id: str = "ex-test") -> Exercise:
    """Exercise with the given checks and throwaway text fields."""
    return Exercise(
        id=exercise_id,
        title="Test exercise",
        description="",
        starter="-- YOUR CODE HERE\n",
        solution="def x := 1",
        explanation="",
        hints=("first", "second"),
        checks=checks,
    )


@pytest.fixture
def make_exercise() -> Callable[..., Exercise]:
    return build_exercise


@pytest.fixture
def service() -> Iterator[LearnService]:
    svc = LearnService(":memory:")
    try:
        yield svc
    finally:
        svc.close()
