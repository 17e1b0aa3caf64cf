"""SQLite persistence for profiles, exercise attempts, and lesson completion."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

SCHEMA_VERSION = 1
EXERCISE_POINTS = 25
LESSON_POINTS = 100


@dataclass(frozen=True)
class Profile:
    """User profile record."""

    id: int
    name: str


@dataclass(frozen=True)
class ExerciseProgress:
    """Stored state for one exercise."""

    lesson_id: str
    exercise_id: str
    completed: bool
    last_code: str
    attempts: int


class ProgressStore:
    """Database access layer for learner progress."""

    def __init__(self, db_path: Path | str) -> None:
        """Initialize database and schema."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self) -> None:
        """Create core tables."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS profiles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE,
                    points INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS exercise_progress (
                    profile_id INTEGER NOT NULL,
                    exercise_id TEXT NOT NULL,
                    lesson_id TEXT NOT NULL,
                    completed_at TEXT,
                    last_code TEXT NOT NULL,
                    attempts INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (profile_id, exercise_id)
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS lesson_progress (
                    profile_id INTEGER NOT NULL,
                    lesson_id TEXT NOT NULL,
                    completed_at TEXT NOT NULL,
                    PRIMARY KEY (profile_id, lesson_id)
                )
                """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS attempts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    profile_id INTEGER NOT NULL,
                    exercise_id TEXT NOT NULL,
                    code TEXT NOT NULL,
                    is_correct INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
                """)

    def list_profiles(self) -> list[Profile]:
        """Return profiles ordered by name."""
        rows = self._conn.execute("SELECT id, name FROM profiles ORDER BY name").fetchall()
        return [Profile(id=int(row["id"]), name=str(row["name"])) for row in rows]

    def create_profile(self, name: str) -> Profile:
        """Create a new profile."""
        now = datetime.now(UTC).isoformat()
        with self._conn:
            cursor = self._conn.execute(
                "INSERT INTO profiles (name, created_at) VALUES (?, ?)",
                (name, now),
            )
        row_id = cursor.lastrowid
        if row_id is None:
            raise RuntimeError("Could not create profile.")
        return Profile(id=int(row_id), name=name)

    def get_profile(self, profile_id: int) -> Profile | None:
        """Get one profile by id."""
        row = self._conn.execute("SELECT id, name FROM profiles WHERE id = ?", (profile_id,)).fetchone()
        if row is None:
            return None
        return Profile(id=int(row["id"]), name=str(row["name"]))

    def delete_profile(self, profile_id: int) -> bool:
        """Delete profile and all associated progress data."""
        with self._conn:
            self._clear_progress(profile_id)
            cursor = self._conn.execute("DELETE FROM profiles WHERE id = ?", (profile_id,))
        return cursor.rowcount > 0

    def reset_progress(self, profile_id: int) -> None:
        """Forget all progress and points for a profile, keeping the profile."""
        with self._conn:
            self._clear_progress(profile_id)
            self._conn.execute("UPDATE profiles SET points = 0 WHERE id = ?", (profile_id,))

    def _clear_progress(self, profile_id: int) -> None:
        self._conn.execute("DELETE FROM attempts WHERE profile_id = ?", (profile_id,))
        self._conn.execute("DELETE FROM exercise_progress WHERE profile_id = ?", (profile_id,))
        self._conn.execute("DELETE FROM lesson_progress WHERE profile_id = ?", (profile_id,))

    def complete_exercise(self, profile_id: int, lesson_id: str, exercise_id: str, code: str) -> bool:
        """Mark an exercise complete and store the passing code.

        Points are awarded only the first time. Returns whether this call
        completed the exercise for the first time.
        """
        now = datetime.now(UTC).isoformat()
        first_time = not self.is_exercise_completed(profile_id, exercise_id)
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO exercise_progress (
                    profile_id,
                    exercise_id,
                    lesson_id,
                    completed_at,
                    last_code,
                    attempts,
                    updated_at
                )
                VALUES (?, ?, ?, ?, ?, 1, ?)
                ON CONFLICT(profile_id, exercise_id) DO UPDATE SET
                    completed_at = COALESCE(exercise_progress.completed_at, excluded.completed_at),
                    last_code = excluded.last_code,
                    attempts = exercise_progress.attempts + 1,
                    updated_at = excluded.updated_at
                """,
                (profile_id, exercise_id, lesson_id, now, code, now),
            )
            if first_time:
                self._add_points(profile_id, EXERCISE_POINTS)
        return first_time

    def record_attempt(self, profile_id: int, lesson_id: str, exercise_id: str, code: str) -> int:
        """Store the latest failing code and return the new attempt count."""
        now = datetime.now(UTC).isoformat()
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO exercise_progress (
                    profile_id,
                    exercise_id,
                    lesson_id,
                    completed_at,
                    last_code,
                    attempts,
                    updated_at
                )
                VALUES (?, ?, ?, NULL, ?, 1, ?)
                ON CONFLICT(profile_id, exercise_id) DO UPDATE SET
                    last_code = excluded.last_code,
                    attempts = exercise_progress.attempts + 1,
                    updated_at = excluded.updated_at
                """,
                (profile_id, exercise_id, lesson_id, code, now),
            )
        progress = self.get_exercise_progress(profile_id, exercise_id)
        return progress.attempts if progress is not None else 0

    def log_attempt(self, profile_id: int, exercise_id: str, code: str, is_correct: bool) -> None:
        """Append one graded submission to the attempt history."""
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO attempts (profile_id, exercise_id, code, is_correct, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (profile_id, exercise_id, code, int(is_correct), datetime.now(UTC).isoformat()),
            )

    def attempt_history(self, profile_id: int, exercise_id: str) -> list[tuple[str, bool]]:
        """Return (code, is_correct) rows oldest first."""
        rows = self._conn.execute(
            """
            SELECT code, is_correct
            FROM attempts
            WHERE profile_id = ? AND exercise_id = ?
            ORDER BY id ASC
            """,
            (profile_id, exercise_id),
        ).fetchall()
        return [(str(row["code"]), bool(row["is_correct"])) for row in rows]

    def get_exercise_progress(self, profile_id: int, exercise_id: str) -> ExerciseProgress | None:
        """Return stored exercise state if present."""
        row = self._conn.execute(
            """
            SELECT lesson_id, exercise_id, completed_at, last_code, attempts
            FROM exercise_progress
            WHERE profile_id = ? AND exercise_id = ?
            """,
            (profile_id, exercise_id),
        ).fetchone()
        if row is None:
            return None
        return ExerciseProgress(
            lesson_id=str(row["lesson_id"]),
            exercise_id=str(row["exercise_id"]),
            completed=row["completed_at"] is not None,
            last_code=str(row["last_code"]),
            attempts=int(row["attempts"]),
        )

    def is_exercise_completed(self, profile_id: int, exercise_id: str) -> bool:
        """Return whether an exercise has been passed at least once."""
        progress = self.get_exercise_progress(profile_id, exercise_id)
        return progress is not None and progress.completed

    def completed_exercise_ids(self, profile_id: int, exercise_ids: list[str]) -> set[str]:
        """Return the subset of exercise ids completed by the profile."""
        if not exercise_ids:
            return set()
        placeholders = ", ".join("?" for _ in exercise_ids)
        rows = self._conn.execute(
            f"""
            SELECT exercise_id
            FROM exercise_progress
            WHERE profile_id = ? AND completed_at IS NOT NULL AND exercise_id IN ({placeholders})
            """,
            (profile_id, *exercise_ids),
        ).fetchall()
        return {str(row["exercise_id"]) for row in rows}

    def complete_lesson(self, profile_id: int, lesson_id: str) -> bool:
        """Mark a lesson complete; returns False if it already was."""
        now = datetime.now(UTC).isoformat()
        with self._conn:
            cursor = self._conn.execute(
                "INSERT OR IGNORE INTO lesson_progress (profile_id, lesson_id, completed_at) VALUES (?, ?, ?)",
                (profile_id, lesson_id, now),
            )
            inserted = cursor.rowcount > 0
            if inserted:
                self._add_points(profile_id, LESSON_POINTS)
        return inserted

    def completed_lesson_ids(self, profile_id: int) -> set[str]:
        """Return completed lesson ids."""
        rows = self._conn.execute(
            "SELECT lesson_id FROM lesson_progress WHERE profile_id = ?",
            (profile_id,),
        ).fetchall()
        return {str(row["lesson_id"]) for row in rows}

    def total_points(self, profile_id: int) -> int:
        """Return accumulated points for a profile."""
        row = self._conn.execute("SELECT points FROM profiles WHERE id = ?", (profile_id,)).fetchone()
        return int(row["points"]) if row is not None else 0

    def _add_points(self, profile_id: int, points: int) -> None:
        self._conn.execute("UPDATE profiles SET points = points + ? WHERE id = ?", (points, profile_id))

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass
