"""Core domain models for lessons and graded exercises."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

Predicate = Callable[[str], bool]


@dataclass(frozen=True)
class RequirementCheck:
    """One named condition a submission must satisfy."""

    description: str
    predicate: Predicate


@dataclass(frozen=True)
class Exercise:
    """One graded coding task."""

    id: str
    title: str
    description: str
    starter: str
    solution: str
    explanation: str
    hints: tuple[str, ...]
    checks: tuple[RequirementCheck, ...]


@dataclass(frozen=True)
class Section:
    """Lesson page: either prose or an exercise."""

    kind: str
    title: str
    content: str = ""
    exercise: Exercise | None = None


@dataclass(frozen=True)
class Lesson:
    """Ordered lesson containing prose and exercises."""

    id: str
    title: str
    description: str
    category: str
    order: int
    sections: tuple[Section, ...]

    @property
    def exercises(self) -> tuple[Exercise, ...]:
        """Return exercises in section order."""
        return tuple(section.exercise for section in self.sections if section.exercise is not None)
