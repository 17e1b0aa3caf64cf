"""Load declarative lesson content from bundled JSON resources."""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from .models import Exercise, Lesson, RequirementCheck, Section
from .rules import pattern_check

LOG = logging.getLogger(__name__)

CONTENT_PACKAGE = "leantutor.content.lessons"
SECTION_KINDS = {"content", "exercise"}
LESSON_CATEGORIES = {"basics", "cryptography", "advanced"}


def _text(raw: object) -> str:
    """Join multi-line text stored as a list of lines."""
    if raw is None:
        return ""
    if isinstance(raw, list):
        return "\n".join(str(line) for line in raw)
    return str(raw)


def _required(owner: str, raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if value is None or not str(value).strip():
        raise ValueError(f"{owner} is missing required field '{key}'.")
    return str(value)


def _check_from_dict(exercise_id: str, raw: object) -> RequirementCheck:
    """Build a requirement check from raw JSON content."""
    if not isinstance(raw, dict):
        raise ValueError(f"Exercise '{exercise_id}' has a check that is not an object.")
    description = str(raw.get("description", "")).strip()
    if not description:
        raise ValueError(f"Exercise '{exercise_id}' has a check without a description.")
    try:
        return pattern_check(
            description,
            required=[str(item) for item in raw.get("all", [])],
            alternatives=[str(item) for item in raw.get("any", [])],
            forbidden=[str(item) for item in raw.get("none", [])],
        )
    except ValueError as exc:
        raise ValueError(f"Exercise '{exercise_id}' check '{description}': {exc}") from exc


def _exercise_from_dict(lesson_id: str, raw: dict[str, Any]) -> Exercise:
    """Build an exercise from raw JSON content."""
    exercise_id = _required(f"Exercise in lesson '{lesson_id}'", raw, "id")
    title = _required(f"Exercise '{exercise_id}'", raw, "title")
    checks = tuple(_check_from_dict(exercise_id, item) for item in raw.get("checks", []))
    if not checks:
        raise ValueError(f"Exercise '{exercise_id}' has no requirement checks.")
    solution = _text(raw.get("solution"))
    if not solution.strip():
        raise ValueError(f"Exercise '{exercise_id}' has no reference solution.")
    return Exercise(
        id=exercise_id,
        title=title,
        description=_text(raw.get("description")),
        starter=_text(raw.get("starter")),
        solution=solution,
        explanation=_text(raw.get("explanation")),
        hints=tuple(str(hint) for hint in raw.get("hints", [])),
        checks=checks,
    )


def _section_from_dict(lesson_id: str, raw: object) -> Section:
    """Build a lesson section from raw JSON content."""
    if not isinstance(raw, dict):
        raise ValueError(f"Lesson '{lesson_id}' has a section that is not an object.")
    kind = str(raw.get("type", ""))
    if kind not in SECTION_KINDS:
        raise ValueError(f"Lesson '{lesson_id}' has section with unknown type '{kind}'.")
    title = str(raw.get("title", ""))
    if kind == "exercise":
        exercise_raw = raw.get("exercise")
        if not isinstance(exercise_raw, dict):
            raise ValueError(f"Lesson '{lesson_id}' exercise section '{title}' has no exercise.")
        return Section(kind=kind, title=title, exercise=_exercise_from_dict(lesson_id, exercise_raw))
    return Section(kind=kind, title=title, content=_text(raw.get("content")))


def _lesson_from_dict(raw: object, source: str = "<lesson>") -> Lesson:
    """Build a lesson from raw JSON content."""
    if not isinstance(raw, dict):
        raise ValueError(f"Lesson file '{source}' does not contain a JSON object.")
    lesson_id = _required(f"Lesson in '{source}'", raw, "id")
    title = _required(f"Lesson '{lesson_id}'", raw, "title")
    category = str(raw.get("category", "basics"))
    if category not in LESSON_CATEGORIES:
        raise ValueError(f"Lesson '{lesson_id}' has unknown category '{category}'.")
    sections_raw = raw.get("sections", [])
    if not isinstance(sections_raw, list):
        raise ValueError(f"Lesson '{lesson_id}' sections must be a list.")
    try:
        order = int(raw.get("order", 0))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Lesson '{lesson_id}' has a non-integer order.") from exc
    return Lesson(
        id=lesson_id,
        title=title,
        description=str(raw.get("description", "")),
        category=category,
        order=order,
        sections=tuple(_section_from_dict(lesson_id, item) for item in sections_raw),
    )


def load_lessons() -> list[Lesson]:
    """Load bundled lessons ordered by lesson order."""
    lessons: list[Lesson] = []
    for entry in sorted(resources.files(CONTENT_PACKAGE).iterdir(), key=lambda item: item.name):
        if entry.name.endswith(".json"):
            lessons.append(_lesson_from_dict(json.loads(entry.read_text(encoding="utf-8-sig")), entry.name))
    return _finalize(lessons)


def load_lessons_from_dir(path: Path) -> list[Lesson]:
    """Load lessons from directory for tests/tools."""
    lessons = [
        _lesson_from_dict(json.loads(file_path.read_text(encoding="utf-8-sig")), file_path.name)
        for file_path in sorted(path.glob("*.json"))
    ]
    return _finalize(lessons)


def _finalize(lessons: list[Lesson]) -> list[Lesson]:
    _validate_unique_ids(lessons)
    lessons.sort(key=lambda item: (item.order, item.id))
    LOG.debug(
        "Loaded %d lesson(s) with %d exercise(s)",
        len(lessons),
        sum(len(lesson.exercises) for lesson in lessons),
    )
    return lessons


def _validate_unique_ids(lessons: list[Lesson]) -> None:
    """Validate lesson ids and globally unique exercise ids."""
    seen_lessons: set[str] = set()
    seen_exercises: dict[str, str] = {}
    for lesson in lessons:
        if lesson.id in seen_lessons:
            raise ValueError(f"Duplicate lesson id: {lesson.id}")
        seen_lessons.add(lesson.id)
        for exercise in lesson.exercises:
            previous = seen_exercises.get(exercise.id)
            if previous is not None:
                raise ValueError(f"Duplicate exercise id: {exercise.id} (in {previous} and {lesson.id})")
            seen_exercises[exercise.id] = lesson.id
