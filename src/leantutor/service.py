"""Application service tying lessons, grading, and learner progress together."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .content_loader import load_lessons
from .grader import GradingReport, grade
from .models import Exercise, Lesson
from .progress import Profile, ProgressStore

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class LessonState:
    """Lesson completion state for one profile."""

    lesson: Lesson
    completed: bool
    exercises_completed: int
    exercises_total: int


@dataclass(frozen=True)
class SubmissionResult:
    """Grading report plus the progress changes it caused."""

    report: GradingReport
    exercise_completed: bool
    lesson_completed: bool


class LearnService:
    """Coordinates profile state and exercise grading."""

    def __init__(self, db_path: Path | str, lessons: list[Lesson] | None = None) -> None:
        """Initialize service with database path and optional lesson set."""
        self.lessons = lessons if lessons is not None else load_lessons()
        self.progress = ProgressStore(db_path)
        self._exercise_index: dict[str, tuple[Lesson, Exercise]] = {
            exercise.id: (lesson, exercise) for lesson in self.lessons for exercise in lesson.exercises
        }

    def list_profiles(self) -> list[Profile]:
        """Return all profiles."""
        return self.progress.list_profiles()

    def create_profile(self, name: str) -> Profile:
        """Create profile by name."""
        return self.progress.create_profile(name.strip())

    def delete_profile(self, profile_id: int) -> bool:
        """Delete one profile by id."""
        return self.progress.delete_profile(profile_id)

    def get_lesson(self, lesson_id: str) -> Lesson | None:
        """Get lesson by id."""
        for lesson in self.lessons:
            if lesson.id == lesson_id:
                return lesson
        return None

    def find_exercise(self, exercise_id: str) -> tuple[Lesson, Exercise]:
        """Return the owning lesson and exercise for an exercise id."""
        found = self._exercise_index.get(exercise_id)
        if found is None:
            raise KeyError(exercise_id)
        return found

    def list_lesson_states(self, profile_id: int) -> list[LessonState]:
        """Return lessons in order with completion counts."""
        completed_lessons = self.progress.completed_lesson_ids(profile_id)
        states: list[LessonState] = []
        for lesson in self.lessons:
            exercise_ids = [exercise.id for exercise in lesson.exercises]
            done = self.progress.completed_exercise_ids(profile_id, exercise_ids)
            states.append(
                LessonState(
                    lesson=lesson,
                    completed=lesson.id in completed_lessons,
                    exercises_completed=len(done),
                    exercises_total=len(exercise_ids),
                )
            )
        return states

    def is_exercise_completed(self, profile_id: int, exercise_id: str) -> bool:
        """Return whether the profile has passed an exercise."""
        return self.progress.is_exercise_completed(profile_id, exercise_id)

    def current_code(self, profile_id: int, exercise: Exercise) -> str:
        """Return the latest saved submission, or the starter code."""
        saved = self.progress.get_exercise_progress(profile_id, exercise.id)
        if saved is None:
            return exercise.starter
        return saved.last_code

    def hint(self, exercise: Exercise, index: int) -> str | None:
        """Return hint number `index` (0-based) or None once hints run out."""
        if 0 <= index < len(exercise.hints):
            return exercise.hints[index]
        return None

    def check(self, exercise_id: str, code: str) -> GradingReport:
        """Grade code without touching stored progress."""
        _, exercise = self.find_exercise(exercise_id)
        return grade(code, exercise)

    def submit(self, profile_id: int, lesson_id: str, exercise: Exercise, code: str) -> SubmissionResult:
        """Grade code and record the outcome for the profile.

        The exercise must belong to `lesson_id`. A pass marks the exercise
        complete (idempotent) and completes the lesson once all of its exercises
        are done. A failure bumps the attempt counter and keeps the code as the
        latest submission.
        """
        lesson = self.get_lesson(lesson_id)
        if lesson is None:
            raise KeyError(lesson_id)
        owner, _ = self.find_exercise(exercise.id)
        if owner.id != lesson.id:
            raise ValueError(f"Exercise '{exercise.id}' belongs to lesson '{owner.id}', not '{lesson_id}'.")

        report = grade(code, exercise)
        self.progress.log_attempt(profile_id, exercise.id, code, report.success)
        if not report.success:
            self.progress.record_attempt(profile_id, lesson_id, exercise.id, code)
            return SubmissionResult(report=report, exercise_completed=False, lesson_completed=False)

        first_time = self.progress.complete_exercise(profile_id, lesson_id, exercise.id, code)
        lesson_completed = self._complete_lesson_if_done(profile_id, lesson)
        if first_time:
            LOG.info("Profile %s completed exercise %s", profile_id, exercise.id)
        return SubmissionResult(report=report, exercise_completed=first_time, lesson_completed=lesson_completed)

    def _complete_lesson_if_done(self, profile_id: int, lesson: Lesson) -> bool:
        """Mark lesson complete when every exercise has a passing attempt."""
        exercise_ids = [exercise.id for exercise in lesson.exercises]
        done = self.progress.completed_exercise_ids(profile_id, exercise_ids)
        if len(done) < len(exercise_ids):
            return False
        return self.progress.complete_lesson(profile_id, lesson.id)

    def total_points(self, profile_id: int) -> int:
        """Return accumulated points."""
        return self.progress.total_points(profile_id)

    def reset_progress(self, profile_id: int) -> None:
        """Clear all lesson and exercise progress for a profile."""
        self.progress.reset_progress(profile_id)

    def close(self) -> None:
        """Close resources."""
        self.progress.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort cleanup for test/process teardown."""
        try:
            self.close()
        except Exception:
            pass
