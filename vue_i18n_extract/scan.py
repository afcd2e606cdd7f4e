"""Read-only audit: lines with Chinese text that are not wrapped in t()/$t() yet.

The report is a markdown checklist grouped by file:

    ## `src/pages/home/index.vue`
    - [ ] `src/pages/home/index.vue:12` <span>暂无数据</span>
"""

from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .matcher import WRAPPED_LINE_RE, has_han
from .processor import collect_files

HTML_COMMENT_EXTENSIONS = {".vue", ".html", ".htm"}


@dataclass(frozen=True)
class Finding:
    path: Path
    line: int
    snippet: str


def strip_js_like_comments(text: str, include_html_comments: bool) -> str:
    """Blank out comments, keeping strings, offsets and line breaks intact."""
    normal = 0
    line_comment = 1
    block_comment = 2
    html_comment = 3
    quoted = 4

    state = normal
    quote = ""
    out: list[str] = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if state == normal:
            if include_html_comments and text.startswith("<!--", i):
                out.append(" " * 4)
                i += 4
                state = html_comment
            elif ch == "/" and nxt == "/":
                out.append("  ")
                i += 2
                state = line_comment
            elif ch == "/" and nxt == "*":
                out.append("  ")
                i += 2
                state = block_comment
            else:
                if ch in "'\"`":
                    quote = ch
                    state = quoted
                out.append(ch)
                i += 1
            continue

        if state == line_comment:
            if ch in "\r\n":
                out.append(ch)
                state = normal
            else:
                out.append(" ")
            i += 1
            continue

        if state == block_comment:
            if ch == "*" and nxt == "/":
                out.append("  ")
                i += 2
                state = normal
            else:
                out.append(ch if ch in "\r\n" else " ")
                i += 1
            continue

        if state == html_comment:
            if text.startswith("-->", i):
                out.append(" " * 3)
                i += 3
                state = normal
            else:
                out.append(ch if ch in "\r\n" else " ")
                i += 1
            continue

        # quoted
        if ch == "\\" and i + 1 < n:
            out.append(text[i : i + 2])
            i += 2
            continue
        out.append(ch)
        i += 1
        # Plain quotes never span lines; recover instead of drifting.
        if ch == quote or (ch in "\r\n" and quote != "`"):
            state = normal

    return "".join(out)


def scan_text(path: Path, text: str) -> list[Finding]:
    include_html_comments = path.suffix.lower() in HTML_COMMENT_EXTENSIONS
    stripped = strip_js_like_comments(text, include_html_comments)
    findings: list[Finding] = []
    for idx, (raw_line, code_line) in enumerate(
        zip(text.split("\n"), stripped.split("\n")), start=1
    ):
        if not has_han(code_line):
            continue
        if WRAPPED_LINE_RE.search(code_line):
            continue
        findings.append(Finding(path=path, line=idx, snippet=raw_line.strip()))
    return findings


def scan_directory(
    root: Path,
    extensions: Iterable[str] = (".vue", ".js", ".ts"),
    exclude_dirs: Iterable[str] = (),
) -> tuple[list[Finding], list[str]]:
    findings: list[Finding] = []
    errors: list[str] = []
    for path in collect_files(root, extensions, exclude_dirs):
        try:
            text = path.read_text(encoding="utf-8")
            findings.extend(scan_text(path, text))
        except Exception as exc:  # noqa: BLE001
            rel = path.relative_to(root).as_posix()
            errors.append(f"{rel}: {exc}")
    return findings, errors


def normalize_snippet(text: str, max_len: int = 140) -> str:
    collapsed = re.sub(r"\s+", " ", text).strip()
    if len(collapsed) <= max_len:
        return collapsed
    return f"{collapsed[: max_len - 3]}..."


def to_markdown(findings: Iterable[Finding], root: Path) -> str:
    findings_sorted = sorted(findings, key=lambda x: (x.path.as_posix(), x.line))
    grouped: dict[str, list[Finding]] = defaultdict(list)
    for finding in findings_sorted:
        grouped[finding.path.relative_to(root).as_posix()].append(finding)

    now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%SZ")
    lines: list[str] = [
        "# i18n scan",
        "",
        f"- Generated at (UTC): `{now}`",
        f"- Root: `{root.as_posix()}`",
        f"- Files with untranslated text: `{len(grouped)}`",
        f"- Total lines: `{len(findings_sorted)}`",
        "",
        "> Lines already calling `t(` / `$t(` are not listed.",
        "",
    ]

    if not grouped:
        lines.append("No untranslated Chinese text found.")
        lines.append("")
        return "\n".join(lines)

    for rel_path in sorted(grouped):
        lines.append(f"## `{rel_path}`")
        for item in grouped[rel_path]:
            snippet = normalize_snippet(item.snippet).replace("`", "\\`")
            lines.append(f"- [ ] `{rel_path}:{item.line}` {snippet}")
        lines.append("")

    return "\n".join(lines)
