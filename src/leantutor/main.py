"""CLI entrypoint for the interactive Lean lessons app."""

from __future__ import annotations

import argparse
import logging
import sqlite3
from collections.abc import Callable
from pathlib import Path

from .content_loader import load_lessons
from .grader import GradingReport
from .models import Exercise, Lesson
from .service import LearnService

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
DEFAULT_DB_PATH = Path(".leantutor") / "progress.db"
BACK_COMMANDS = {":back", ":b", "back"}
MENU_QUIT_COMMANDS = {"q"}
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q"}
MENU_BACK_COMMANDS = {"b"}
EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNKNOWN_EXERCISE = 2


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def _service(db_path: Path | str = DEFAULT_DB_PATH) -> LearnService:
    """Create app service with local database path."""
    return LearnService(db_path=db_path)


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="leantutor", description="Interactive Lean 4 lessons with graded exercises")
    parser.add_argument("--db", type=Path, default=DEFAULT_DB_PATH, help="Progress database path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("play", help="Start the interactive lesson shell (default)")
    subparsers.add_parser("lessons", help="List lessons and exercise ids")
    check_parser = subparsers.add_parser("check", help="Grade a file against one exercise")
    check_parser.add_argument("exercise_id")
    check_parser.add_argument("file", type=Path)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "lessons":
        return list_lessons(print)
    if args.command == "check":
        return check_file(args.exercise_id, args.file, print)
    return play_shell(db_path=args.db)


def list_lessons(print_fn: PrintFn = print) -> int:
    """Print bundled lessons with their exercise ids."""
    for lesson in load_lessons():
        print_fn(f"{lesson.order:>2}. {lesson.title} [{lesson.id}] ({lesson.category})")
        for exercise in lesson.exercises:
            print_fn(f"    - {exercise.id}: {exercise.title}")
    return EXIT_OK


def check_file(exercise_id: str, path: Path, print_fn: PrintFn = print) -> int:
    """Grade one file without touching stored progress."""
    service = _service(":memory:")
    try:
        try:
            service.find_exercise(exercise_id)
        except KeyError:
            print_fn(f"Unknown exercise: {exercise_id}")
            return EXIT_UNKNOWN_EXERCISE
        try:
            code = path.read_text(encoding="utf-8")
        except OSError as exc:
            print_fn(f"Could not read {path}: {exc}")
            return EXIT_FAILED
        report = service.check(exercise_id, code)
    finally:
        service.close()
    _print_report(report, print_fn)
    return EXIT_OK if report.success else EXIT_FAILED


def play_shell(
    input_fn: InputFn = input, print_fn: PrintFn = print, db_path: Path | str = DEFAULT_DB_PATH
) -> int:
    """Run persistent menu-driven shell."""
    service = _service(db_path)
    try:
        selected = _select_profile(service, input_fn, print_fn, allow_cancel=False)
        if selected is None:
            return 0
        profile_id, profile_name = selected
        try:
            while True:
                print_fn("\n=== Lean Lessons ===")
                print_fn(f"Profile: {profile_name} ({service.total_points(profile_id)} points)")
                print_fn("1) Lessons")
                print_fn("2) Status")
                print_fn("3) Reset progress")
                print_fn("b) Back")
                print_fn("q) Quit")
                choice = input_fn("Choose: ").strip().lower()

                if choice == "1":
                    _lessons_flow(service, profile_id, input_fn, print_fn)
                elif choice == "2":
                    _status_flow(service, profile_id, print_fn)
                elif choice == "3":
                    _reset_flow(service, profile_id, input_fn, print_fn)
                elif choice in MENU_BACK_COMMANDS:
                    switched = _select_profile(service, input_fn, print_fn, allow_cancel=True)
                    if switched is None:
                        return 0
                    profile_id, profile_name = switched
                elif choice in MENU_QUIT_COMMANDS:
                    return 0
                else:
                    print_fn("Invalid choice.")
        except QuitApp:
            return 0
    finally:
        service.close()


def _select_profile(
    service: LearnService, input_fn: InputFn, print_fn: PrintFn, *, allow_cancel: bool
) -> tuple[int, str] | None:
    """Select existing profile or create new one."""
    while True:
        profiles = service.list_profiles()
        print_fn("\n=== Profiles ===")
        if profiles:
            for idx, profile in enumerate(profiles, start=1):
                print_fn(f"{idx}) {profile.name}")
        else:
            print_fn("No profiles yet.")
        print_fn("n) New profile")
        print_fn("d) Delete profile")
        print_fn("q) Quit")

        choice = input_fn("Select profile: ").strip().lower()
        if choice in MENU_QUIT_COMMANDS:
            return None
        if choice == "n":
            name = input_fn("New profile name: ").strip()
            if not name:
                print_fn("Profile name is required.")
                continue
            try:
                created = service.create_profile(name)
            except sqlite3.IntegrityError:
                print_fn("Could not create profile (name may already exist).")
                continue
            return (created.id, created.name)
        if choice == "d":
            _delete_profile_flow(service, input_fn, print_fn)
            continue

        if choice.isdigit():
            index = int(choice) - 1
            if 0 <= index < len(profiles):
                selected = profiles[index]
                return (selected.id, selected.name)

        print_fn("Invalid profile selection.")


def _delete_profile_flow(service: LearnService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Delete a profile with explicit confirmation safeguard."""
    profiles = service.list_profiles()
    if not profiles:
        print_fn("No profiles available to delete.")
        return

    print_fn("\nDelete profile")
    for idx, profile in enumerate(profiles, start=1):
        print_fn(f"{idx}) {profile.name}")
    print_fn("b) Back")
    choice = input_fn("Choose profile to delete: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    if not choice.isdigit() or not (0 <= int(choice) - 1 < len(profiles)):
        print_fn("Invalid choice.")
        return

    target = profiles[int(choice) - 1]
    print_fn(f"WARNING: This permanently deletes profile '{target.name}' and all exercise progress.")
    confirm = input_fn("Type YES to confirm deletion: ").strip()
    if confirm != "YES":
        print_fn("Deletion cancelled.")
        return
    if service.delete_profile(target.id):
        print_fn(f"Deleted profile '{target.name}'.")
    else:
        print_fn("Profile was not found.")


def _reset_flow(service: LearnService, profile_id: int, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Reset all progress for the current profile after confirmation."""
    print_fn("WARNING: This clears completed lessons, saved code, attempts, and points.")
    confirm = input_fn("Type YES to confirm reset: ").strip()
    if confirm != "YES":
        print_fn("Reset cancelled.")
        return
    service.reset_progress(profile_id)
    print_fn("Progress reset.")


def _status_flow(service: LearnService, profile_id: int, print_fn: PrintFn) -> None:
    """Print lesson progress status."""
    print_fn("\n=== Lesson Status ===")
    states = service.list_lesson_states(profile_id)
    if not states:
        print_fn("No lessons available.")
        return
    rows: list[tuple[str, str, str, str]] = []
    for state in states:
        if state.completed:
            stage = "completed"
        elif state.exercises_completed:
            stage = "started"
        else:
            stage = "new"
        rows.append(
            (state.lesson.id, f"{state.exercises_completed}/{state.exercises_total}", stage, state.lesson.title)
        )

    lesson_width = max(len("Lesson"), max(len(row[0]) for row in rows))
    done_width = max(len("Exercises"), max(len(row[1]) for row in rows))
    stage_width = max(len("Stage"), max(len(row[2]) for row in rows))
    header = f"{'Lesson':<{lesson_width}} {'Exercises':>{done_width}} {'Stage':<{stage_width}} Title"
    print_fn(header)
    print_fn("-" * len(header))
    for row in rows:
        print_fn(f"{row[0]:<{lesson_width}} {row[1]:>{done_width}} {row[2]:<{stage_width}} {row[3]}")
    print_fn(f"\nTotal points: {service.total_points(profile_id)}")


def _lessons_flow(service: LearnService, profile_id: int, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Choose a lesson and walk through it."""
    states = service.list_lesson_states(profile_id)
    if not states:
        print_fn("No lessons available.")
        return

    print_fn("\n=== Lessons ===")
    for idx, state in enumerate(states, start=1):
        marker = "x" if state.completed else " "
        print_fn(
            f"{idx:>2}) [{marker}] {state.lesson.title} "
            f"({state.exercises_completed}/{state.exercises_total} exercises)"
        )
    print_fn("b) Back")
    print_fn("q) Quit")
    choice = input_fn("Choose lesson: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    if choice in MENU_QUIT_COMMANDS:
        raise QuitApp()
    if not choice.isdigit() or not (0 <= int(choice) - 1 < len(states)):
        print_fn("Invalid choice.")
        return
    _run_lesson(service, profile_id, states[int(choice) - 1].lesson, input_fn, print_fn)


def _run_lesson(service: LearnService, profile_id: int, lesson: Lesson, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Show lesson sections in order, stopping at each exercise."""
    print_fn(f"\n=== {lesson.title} ===")
    print_fn(lesson.description)
    print_fn("Type :b or :q to leave the lesson.")

    for section in lesson.sections:
        if section.exercise is not None:
            if not _run_exercise(service, profile_id, lesson, section.exercise, input_fn, print_fn):
                print_fn("Leaving lesson. Progress saved.")
                return
            continue
        print_fn(f"\n--- {section.title} ---")
        print_fn(section.content)
        answer = input_fn("Press Enter to continue: ").strip().lower()
        if answer in BACK_COMMANDS or answer in FLOW_EXIT_COMMANDS:
            print_fn("Leaving lesson. Progress saved.")
            return

    print_fn(f"\nReached the end of {lesson.title}.")


def _run_exercise(
    service: LearnService,
    profile_id: int,
    lesson: Lesson,
    exercise: Exercise,
    input_fn: InputFn,
    print_fn: PrintFn,
) -> bool:
    """Edit and grade one exercise; returns False when the learner leaves."""
    print_fn(f"\n=== Exercise: {exercise.title} ===")
    if service.is_exercise_completed(profile_id, exercise.id):
        print_fn("(already completed)")
    print_fn(exercise.description)
    code = service.current_code(profile_id, exercise)
    print_fn("\nCurrent code:")
    print_fn(code)
    print_fn(
        "Type code lines, then :run to grade them. Other commands: "
        ":code :clear :load <file> :reset :hint :solution :next :b"
    )

    draft: list[str] = []
    hints_shown = 0
    while True:
        line = input_fn("lean> ")
        command = line.strip()
        lowered = command.lower()
        if lowered in BACK_COMMANDS or lowered in FLOW_EXIT_COMMANDS:
            return False
        if lowered == ":next":
            return True
        if lowered == ":run":
            if draft:
                code = "\n".join(draft)
                draft = []
            result = service.submit(profile_id, lesson.id, exercise, code)
            _print_report(result.report, print_fn)
            if result.report.success:
                print_fn("Correct! Well done.")
                if result.lesson_completed:
                    print_fn(f"Lesson complete: {lesson.title}")
                return True
            continue
        if lowered == ":code":
            print_fn(code)
            if draft:
                print_fn("Unsubmitted lines:")
                print_fn("\n".join(draft))
            continue
        if lowered == ":clear":
            draft = []
            print_fn("Draft cleared.")
            continue
        if lowered.startswith(":load"):
            path_text = command[len(":load") :].strip()
            if not path_text:
                print_fn("File path is required.")
                continue
            try:
                code = Path(path_text).read_text(encoding="utf-8")
            except OSError as exc:
                print_fn(f"Load failed: {exc}")
                continue
            draft = []
            print_fn(f"Loaded {path_text}. Type :run to grade it.")
            continue
        if lowered == ":reset":
            code = exercise.starter
            draft = []
            print_fn("Code reset to starter.")
            print_fn(code)
            continue
        if lowered == ":hint":
            hint = service.hint(exercise, hints_shown)
            if hint is None:
                print_fn("No more hints.")
            else:
                hints_shown += 1
                print_fn(f"Hint {hints_shown} of {len(exercise.hints)}: {hint}")
            continue
        if lowered == ":solution":
            confirm = input_fn("Show the reference solution? (y/N): ").strip().lower()
            if confirm == "y":
                print_fn(exercise.solution)
                if exercise.explanation:
                    print_fn(f"\n{exercise.explanation}")
            continue
        draft.append(line)


def _print_report(report: GradingReport, print_fn: PrintFn) -> None:
    """Render a grading report as plain text."""
    for error in report.errors:
        print_fn(f"Error: {error}")
    for warning in report.warnings:
        print_fn(warning)
    if report.output:
        print_fn(report.output)


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
