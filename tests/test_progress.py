import sqlite3
from pathlib import Path

from leantutor.progress import EXERCISE_POINTS, LESSON_POINTS, SCHEMA_VERSION, ProgressStore


def test_profiles_listed_by_name() -> None:
    store = ProgressStore(":memory:")
    store.create_profile("zed")
    alice = store.create_profile("alice")
    assert [profile.name for profile in store.list_profiles()] == ["alice", "zed"]
    assert store.get_profile(alice.id) == alice
    assert store.get_profile(9999) is None


def test_duplicate_profile_name_raises_integrity_error() -> None:
    store = ProgressStore(":memory:")
    store.create_profile("dup")
    try:
        store.create_profile("dup")
        raise AssertionError("Expected IntegrityError for duplicate profile name.")
    except sqlite3.IntegrityError:
        pass


def test_failed_attempts_count_and_keep_latest_code() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("p")
    assert store.record_attempt(profile.id, "lesson", "ex-1", "first") == 1
    assert store.record_attempt(profile.id, "lesson", "ex-1", "second") == 2

    progress = store.get_exercise_progress(profile.id, "ex-1")
    assert progress is not None
    assert progress.completed is False
    assert progress.last_code == "second"
    assert progress.attempts == 2
    assert store.total_points(profile.id) == 0


def test_complete_exercise_awards_points_once() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("p")
    store.record_attempt(profile.id, "lesson", "ex-1", "wrong")

    assert store.complete_exercise(profile.id, "lesson", "ex-1", "right") is True
    assert store.complete_exercise(profile.id, "lesson", "ex-1", "right again") is False

    progress = store.get_exercise_progress(profile.id, "ex-1")
    assert progress is not None
    assert progress.completed is True
    assert progress.last_code == "right again"
    assert progress.attempts == 3
    assert store.total_points(profile.id) == EXERCISE_POINTS


def test_failed_attempt_after_completion_keeps_completion() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("p")
    store.complete_exercise(profile.id, "lesson", "ex-1", "right")
    store.record_attempt(profile.id, "lesson", "ex-1", "broken")
    assert store.is_exercise_completed(profile.id, "ex-1") is True


def test_completed_exercise_ids_filters_requested_ids() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("p")
    store.complete_exercise(profile.id, "lesson", "ex-1", "ok")
    store.record_attempt(profile.id, "lesson", "ex-2", "nope")
    store.complete_exercise(profile.id, "lesson", "ex-3", "ok")
    assert store.completed_exercise_ids(profile.id, ["ex-1", "ex-2"]) == {"ex-1"}
    assert store.completed_exercise_ids(profile.id, []) == set()


def test_complete_lesson_is_idempotent() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("p")
    assert store.complete_lesson(profile.id, "lesson") is True
    assert store.complete_lesson(profile.id, "lesson") is False
    assert store.completed_lesson_ids(profile.id) == {"lesson"}
    assert store.total_points(profile.id) == LESSON_POINTS


def test_attempt_history_is_oldest_first() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("p")
    store.log_attempt(profile.id, "ex-1", "a", False)
    store.log_attempt(profile.id, "ex-1", "b", True)
    store.log_attempt(profile.id, "ex-2", "c", False)
    assert store.attempt_history(profile.id, "ex-1") == [("a", False), ("b", True)]


def test_reset_progress_keeps_profile() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("p")
    store.complete_exercise(profile.id, "lesson", "ex-1", "ok")
    store.complete_lesson(profile.id, "lesson")
    store.log_attempt(profile.id, "ex-1", "ok", True)

    store.reset_progress(profile.id)
    assert store.get_profile(profile.id) == profile
    assert store.get_exercise_progress(profile.id, "ex-1") is None
    assert store.completed_lesson_ids(profile.id) == set()
    assert store.attempt_history(profile.id, "ex-1") == []
    assert store.total_points(profile.id) == 0


def test_delete_profile_removes_related_progress() -> None:
    store = ProgressStore(":memory:")
    profile = store.create_profile("remove-me")
    store.complete_exercise(profile.id, "lesson", "ex-1", "ok")
    store.log_attempt(profile.id, "ex-1", "ok", True)

    assert store.delete_profile(profile.id) is True
    assert store.get_profile(profile.id) is None
    assert store.get_exercise_progress(profile.id, "ex-1") is None
    assert store.attempt_history(profile.id, "ex-1") == []
    assert store.delete_profile(profile.id) is False


def test_migration_sets_user_version_and_schema_history() -> None:
    store = ProgressStore(":memory:")
    version = int(store._conn.execute("PRAGMA user_version").fetchone()[0])  # noqa: SLF001
    assert version == SCHEMA_VERSION
    rows = store._conn.execute("SELECT version FROM schema_migrations ORDER BY version").fetchall()  # noqa: SLF001
    assert [int(row["version"]) for row in rows] == [1]


def test_newer_schema_version_is_rejected(tmp_path: Path) -> None:
    db_path = tmp_path / "future.db"
    conn = sqlite3.connect(db_path)
    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION + 1}")
    conn.commit()
    conn.close()
    try:
        ProgressStore(db_path)
        raise AssertionError("Expected RuntimeError for newer schema version.")
    except RuntimeError as exc:
        assert "newer than supported" in str(exc)


def test_progress_persists_across_reopen(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "progress.db"
    store = ProgressStore(db_path)
    profile = store.create_profile("p")
    store.complete_exercise(profile.id, "lesson", "ex-1", "ok")
    store.close()

    reopened = ProgressStore(db_path)
    assert reopened.is_exercise_completed(profile.id, "ex-1") is True
    assert reopened.total_points(profile.id) == EXERCISE_POINTS
    reopened.close()
