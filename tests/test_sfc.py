import pytest

from vue_i18n_extract.errors import TemplateSyntaxError
from vue_i18n_extract.sfc import parse_attrs, parse_sfc

SFC = """<!-- <template>ignored</template> -->
<template>
  <my-table>
    <template #header>表头</template>
  </my-table>
</template>

<script setup lang="ts">
const a = '中文'
</script>

<style scoped>
.a { color: red; }
</style>

<docs>说明</docs>
"""


def test_blocks_and_offsets() -> None:
    descriptor = parse_sfc(SFC)
    template = descriptor.template
    assert template is not None
    content = SFC[template.start : template.end]
    assert content.startswith("\n  <my-table>")
    assert content.endswith("</my-table>\n")

    (script,) = descriptor.scripts
    assert script.setup
    assert script.lang == "ts"
    assert SFC[script.start : script.end] == "\nconst a = '中文'\n"
    assert descriptor.script_lang == "ts"

    (style,) = descriptor.styles
    assert style.attrs == {"scoped": True}
    assert [b.type for b in descriptor.custom] == ["docs"]


def test_script_lang_defaults_to_js() -> None:
    descriptor = parse_sfc("<script>export default {}</script>")
    assert descriptor.template is None
    assert descriptor.script_lang == "js"


def test_parse_attrs() -> None:
    assert parse_attrs(' lang="ts" setup src=\'./a.js\'') == {
        "lang": "ts",
        "setup": True,
        "src": "./a.js",
    }


def test_two_templates_rejected() -> None:
    with pytest.raises(TemplateSyntaxError):
        parse_sfc("<template><p/></template><template><p/></template>")


def test_unclosed_block_rejected() -> None:
    with pytest.raises(TemplateSyntaxError):
        parse_sfc("<script>const a = 1")
