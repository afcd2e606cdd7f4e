from __future__ import annotations

import bisect
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class Edit:
    start: int
    end: int
    replacement: str

    @property
    def length(self) -> int:
        return self.end - self.start

    def overlaps(self, other: Edit) -> bool:
        return self.start < other.end and other.start < self.end


def resolve_overlaps(edits: Iterable[Edit]) -> list[Edit]:
    """Drop edits that overlap a longer one; return the survivors ordered by offset.

    Longer spans are considered first, so an encompassing edit (a whole compound
    expression) always beats the nested edits inside it. Equal lengths keep the
    earlier offset.
    """
    starts: list[int] = []
    accepted: list[Edit] = []
    for edit in sorted(edits, key=lambda e: (-e.length, e.start, e.end)):
        idx = bisect.bisect_right(starts, edit.start)
        if idx > 0 and accepted[idx - 1].overlaps(edit):
            continue
        if idx < len(accepted) and accepted[idx].overlaps(edit):
            continue
        if idx > 0 and accepted[idx - 1] == edit:
            continue
        starts.insert(idx, edit.start)
        accepted.insert(idx, edit)
    return accepted


def apply_edits(source: str, edits: Iterable[Edit]) -> str:
    ordered = resolve_overlaps(edits)
    if not ordered:
        return source

    out: list[str] = []
    cursor = 0
    for edit in ordered:
        if edit.start < cursor or edit.end > len(source) or edit.start > edit.end:
            raise ValueError(
                f"Edit out of range: [{edit.start}, {edit.end}) for buffer of {len(source)}"
            )
        out.append(source[cursor : edit.start])
        out.append(edit.replacement)
        cursor = edit.end
    out.append(source[cursor:])
    return "".join(out)
