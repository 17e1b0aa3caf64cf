from leantutor.markers import (
    INCOMPLETE_MARKERS,
    find_incomplete_markers,
    has_incomplete_work,
    placeholder_diagnostic,
)


def test_marker_table_is_sorry_then_admit() -> None:
    assert INCOMPLETE_MARKERS == ("sorry", "admit")


def test_markers_are_found_as_whole_words() -> None:
    assert find_incomplete_markers("theorem t : True := by sorry") == ("sorry",)
    assert find_incomplete_markers("  admit") == ("admit",)


def test_markers_inside_identifiers_are_ignored() -> None:
    assert find_incomplete_markers("def sorryState := 1\ndef readmit := 2") == ()
    assert has_incomplete_work("def sorry_count := 0") is False


def test_markers_reported_in_table_order() -> None:
    assert find_incomplete_markers("admit\nsorry") == ("sorry", "admit")


def test_marker_in_comment_still_counts() -> None:
    assert has_incomplete_work("def x := 1 -- sorry, not done") is True


def test_placeholder_diagnostic_single_marker() -> None:
    assert placeholder_diagnostic(("sorry",)) == 'Remove "sorry" and complete the work.'


def test_placeholder_diagnostic_both_markers() -> None:
    assert placeholder_diagnostic(("sorry", "admit")) == 'Remove "sorry" and "admit" and complete the work.'
