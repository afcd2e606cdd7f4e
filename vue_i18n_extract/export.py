from __future__ import annotations

import csv
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from typing import Any

from .resources import iter_leaves


def iter_rows(dictionary: Mapping[str, Any]) -> Iterator[tuple[str, str, str]]:
    """(module, local key, text) for every leaf, in dictionary order."""
    for path, text in iter_leaves(dictionary):
        module, _, key = path.rpartition(".")
        yield module, key, text


def export_csv(
    dictionary: Mapping[str, Any],
    path: Path,
    languages: Sequence[str] = ("zh_CN", "en_US"),
) -> int:
    """Write a translator sheet; the first language column holds the source text."""
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    # utf-8-sig so spreadsheet tools pick up the encoding.
    with path.open("w", encoding="utf-8-sig", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(["module", "key", *languages])
        blanks = [""] * max(len(languages) - 1, 0)
        for module, key, text in iter_rows(dictionary):
            writer.writerow([module, key, text, *blanks])
            count += 1
    return count
