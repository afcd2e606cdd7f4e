from pathlib import Path

from vue_i18n_extract.scan import (
    normalize_snippet,
    scan_directory,
    scan_text,
    strip_js_like_comments,
    to_markdown,
)

VUE = """<template>
  <!-- 顶部注释 -->
  <p>未翻译</p>
  <p>{{ $t('home.key_1') }}</p>
  <p :title="t('已包裹')">x</p>
</template>
<script>
// 行注释
/* 块注释
   第二行 */
const a = '仍需翻译' // 尾注释
const url = 'http://example.com' // 中文注释
</script>
"""


def test_strip_comments_keeps_line_structure() -> None:
    stripped = strip_js_like_comments(VUE, include_html_comments=True)
    assert len(stripped) == len(VUE)
    assert stripped.count("\n") == VUE.count("\n")
    assert "注释" not in stripped
    assert "'仍需翻译'" in stripped


def test_scan_text_lists_unwrapped_lines() -> None:
    findings = scan_text(Path("page.vue"), VUE)
    assert [(f.line, f.snippet) for f in findings] == [
        (3, "<p>未翻译</p>"),
        (11, "const a = '仍需翻译' // 尾注释"),
    ]


def test_scan_directory_and_markdown(write_files) -> None:
    root = write_files(
        {
            "home/index.vue": VUE,
            "home/api.js": "export const msg = '提示'\n",
            "node_modules/x/index.js": "alert('第三方')\n",
        }
    )
    findings, errors = scan_directory(root, [".vue", ".js"], ["node_modules"])
    assert errors == []
    assert {f.path.relative_to(root).as_posix() for f in findings} == {
        "home/index.vue",
        "home/api.js",
    }

    report = to_markdown(findings, root)
    assert "## `home/api.js`" in report
    assert "- [ ] `home/api.js:1` export const msg = '提示'" in report
    assert "- Total lines: `3`" in report


def test_markdown_when_clean(tmp_path: Path) -> None:
    assert "No untranslated Chinese text found." in to_markdown([], tmp_path)


def test_normalize_snippet() -> None:
    assert normalize_snippet("  a \n  b ") == "a b"
    assert normalize_snippet("x" * 200, max_len=10) == "xxxxxxx..."
