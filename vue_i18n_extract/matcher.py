from __future__ import annotations

import re
from collections.abc import Sequence

HAN_RE = re.compile(r"[\u3400-\u4DBF\u4E00-\u9FFF\uF900-\uFAFF]")
# t( / $t( anywhere on a line, used by the audit scan.
WRAPPED_LINE_RE = re.compile(r"\$t\s*\(|\bt\s*\(")
TRANSLATION_CALL_RE = re.compile(r"^\s*(?:[A-Za-z_$][\w$]*\s*\.\s*)*\$?t\s*\(")
TRANSLATION_CALLEE_RE = re.compile(r"^(?:[A-Za-z_$][\w$]*\.)*\$?t$")


def has_han(text: str) -> bool:
    return bool(HAN_RE.search(text))


def looks_like_translation_call(expr: str) -> bool:
    return bool(TRANSLATION_CALL_RE.match(expr))


def is_translation_callee(callee: str) -> bool:
    return bool(TRANSLATION_CALLEE_RE.match(re.sub(r"\s+", "", callee)))


def render_call(
    function_name: str,
    key: str,
    quote: str = "'",
    args: Sequence[str] | None = None,
) -> str:
    if not args:
        return f"{function_name}({quote}{key}{quote})"
    params = ", ".join(f"{index}: {expr}" for index, expr in enumerate(args))
    return f"{function_name}({quote}{key}{quote}, {{ {params} }})"


def split_outer_whitespace(text: str, start: int = 0) -> tuple[int, int]:
    """Return the absolute span of ``text`` without leading/trailing whitespace."""
    stripped_left = len(text) - len(text.lstrip())
    stripped_right = len(text.rstrip())
    if stripped_right <= stripped_left:
        return start + stripped_left, start + stripped_left
    return start + stripped_left, start + stripped_right
