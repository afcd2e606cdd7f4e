import pytest

from vue_i18n_extract.edits import Edit, apply_edits, resolve_overlaps


def test_no_edits_returns_source() -> None:
    assert apply_edits("abc", []) == "abc"


def test_edits_applied_in_offset_order() -> None:
    edits = [Edit(4, 5, "E"), Edit(0, 1, "A")]
    assert apply_edits("abcdef", edits) == "AbcdEf"


def test_adjacent_edits_both_kept() -> None:
    assert apply_edits("abcdef", [Edit(2, 4, "y"), Edit(0, 2, "x")]) == "xyef"


def test_longer_span_wins() -> None:
    edits = [Edit(1, 3, "inner"), Edit(0, 6, "outer")]
    assert resolve_overlaps(edits) == [Edit(0, 6, "outer")]
    assert apply_edits("abcdef", edits) == "outer"


def test_equal_length_overlap_keeps_earlier() -> None:
    assert resolve_overlaps([Edit(1, 3, "b"), Edit(0, 2, "a")]) == [Edit(0, 2, "a")]


def test_duplicates_collapse() -> None:
    assert resolve_overlaps([Edit(0, 1, "x"), Edit(0, 1, "x")]) == [Edit(0, 1, "x")]


def test_survivors_do_not_overlap() -> None:
    edits = [Edit(0, 4, "a"), Edit(2, 8, "b"), Edit(6, 9, "c"), Edit(9, 10, "d")]
    kept = resolve_overlaps(edits)
    for left, right in zip(kept, kept[1:]):
        assert left.end <= right.start
    assert Edit(2, 8, "b") in kept


def test_out_of_range_edit_rejected() -> None:
    with pytest.raises(ValueError):
        apply_edits("abc", [Edit(2, 10, "z")])
