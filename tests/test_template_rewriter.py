"""Template rewriting, module prefix ``common`` unless stated otherwise."""

import pytest

from vue_i18n_extract.errors import TemplateSyntaxError
from vue_i18n_extract.key_store import KeyStore
from vue_i18n_extract.template_rewriter import TemplateRewriter


def rewrite(rewriter: TemplateRewriter, source: str) -> str:
    return rewriter.rewrite(source, "common")


class TestTextAndAttributes:
    def test_static_attribute_becomes_binding(self, template_rewriter: TemplateRewriter) -> None:
        out = rewrite(template_rewriter, '<div title="标题"></div>')
        assert out == "<div :title=\"$t('common.key_1')\"></div>"

    def test_single_quoted_attribute_swaps_inner_quote(
        self, template_rewriter: TemplateRewriter
    ) -> None:
        out = rewrite(template_rewriter, "<div title='标题'></div>")
        assert out == "<div :title='$t(\"common.key_1\")'></div>"

    def test_unquoted_attribute_gets_quotes(self, template_rewriter: TemplateRewriter) -> None:
        out = rewrite(template_rewriter, "<p title=标题></p>")
        assert out == "<p :title=\"$t('common.key_1')\"></p>"

    def test_text_node_keeps_surrounding_whitespace(
        self, template_rewriter: TemplateRewriter, store: KeyStore
    ) -> None:
        out = rewrite(template_rewriter, "<div>\n  这是一段文本...\n</div>")
        assert out == "<div>\n  {{ $t('common.key_1') }}\n</div>"
        assert store.extracted == {"common.key_1": "这是一段文本..."}

    def test_comments_untouched(self, template_rewriter: TemplateRewriter) -> None:
        source = "<div><!-- 这里是注释 --></div>"
        assert rewrite(template_rewriter, source) == source

    def test_no_chinese_is_byte_identical(self, template_rewriter: TemplateRewriter) -> None:
        source = '<div class="a" :title="msg">\r\n  {{ count }} items\r\n</div>'
        assert rewrite(template_rewriter, source) == source

    def test_character_references_decoded_in_message(
        self, template_rewriter: TemplateRewriter, store: KeyStore
    ) -> None:
        out = rewrite(
            template_rewriter, '<p title="标题&amp;说明">你好&nbsp;世界</p>'
        )
        assert out == "<p :title=\"$t('common.key_1')\">{{ $t('common.key_2') }}</p>"
        assert store.extracted == {
            "common.key_1": "标题&说明",
            "common.key_2": "你好\xa0世界",
        }

    def test_text_whitespace_condensed_outside_pre(
        self, template_rewriter: TemplateRewriter, store: KeyStore
    ) -> None:
        rewrite(template_rewriter, "<p>第一行\n    第二行</p><pre>第一行\n  第二行</pre>")
        assert store.extracted == {
            "common.key_1": "第一行 第二行",
            "common.key_2": "第一行\n  第二行",
        }


class TestConditionals:
    def test_each_branch_gets_own_key(self, template_rewriter: TemplateRewriter) -> None:
        out = rewrite(
            template_rewriter, '<div v-if="c">A的文本</div><div v-else>B的文本</div>'
        )
        assert out == (
            "<div v-if=\"c\">{{ $t('common.key_1') }}</div>"
            "<div v-else>{{ $t('common.key_2') }}</div>"
        )

    def test_condition_not_rewritten(self, template_rewriter: TemplateRewriter) -> None:
        source = "<p v-if=\"status === '启用'\">ok</p>"
        assert rewrite(template_rewriter, source) == source


class TestExpressions:
    def test_ternary_in_interpolation(self, template_rewriter: TemplateRewriter) -> None:
        out = rewrite(template_rewriter, "<span>{{ ok ? '成功' : '失败' }}</span>")
        assert out == "<span>{{ ok ? $t('common.key_1') : $t('common.key_2') }}</span>"

    def test_ternary_with_one_chinese_branch(
        self, template_rewriter: TemplateRewriter, store: KeyStore
    ) -> None:
        out = rewrite(template_rewriter, "<span>{{ ok ? '成功' : 'OK' }}</span>")
        assert out == "<span>{{ ok ? $t('common.key_1') : 'OK' }}</span>"
        assert list(store.extracted) == ["common.key_1"]

    def test_bound_attribute_string(self, template_rewriter: TemplateRewriter) -> None:
        out = rewrite(template_rewriter, "<el-input :placeholder=\"'请输入'\" />")
        assert out == "<el-input :placeholder=\"$t('common.key_1')\" />"

    def test_event_handler_argument(self, template_rewriter: TemplateRewriter) -> None:
        out = rewrite(template_rewriter, "<button @click=\"notify('保存成功')\">OK</button>")
        assert out == "<button @click=\"notify($t('common.key_1'))\">OK</button>"

    def test_v_for_only_source_rewritten(self, template_rewriter: TemplateRewriter) -> None:
        out = rewrite(
            template_rewriter, "<li v-for=\"item in ['一', '二']\">{{ item }}</li>"
        )
        assert out == (
            "<li v-for=\"item in [$t('common.key_1'), $t('common.key_2')]\">{{ item }}</li>"
        )

    def test_slot_props_and_v_pre_skipped(self, template_rewriter: TemplateRewriter) -> None:
        source = (
            "<comp><template #default=\"{ label = '默认' }\">x</template></comp>"
            "<div v-pre>{{ 原样输出 }}</div>"
        )
        assert rewrite(template_rewriter, source) == source

    def test_existing_translation_call_untouched(
        self, template_rewriter: TemplateRewriter
    ) -> None:
        source = "<p>{{ $t('home.key_1') }}</p>"
        assert rewrite(template_rewriter, source) == source


class TestCompound:
    def test_collapses_into_one_call(
        self, template_rewriter: TemplateRewriter, store: KeyStore
    ) -> None:
        out = rewrite(
            template_rewriter, "<p>今天天气{{ weather }}, 温度{{ temperature }}</p>"
        )
        assert out == "<p>{{ $t('common.key_1', { 0: weather, 1: temperature }) }}</p>"
        assert store.extracted == {"common.key_1": "今天天气{0}, 温度{1}"}

    def test_property_chain_argument(self, template_rewriter: TemplateRewriter) -> None:
        out = rewrite(template_rewriter, "<p>\n  共{{ page.total }}条\n</p>")
        assert out == "<p>\n  {{ $t('common.key_1', { 0: page.total }) }}\n</p>"

    def test_multiline_text_condensed(
        self, template_rewriter: TemplateRewriter, store: KeyStore
    ) -> None:
        out = rewrite(template_rewriter, "<p>\n  共\n    {{ n }}\n    条\n</p>")
        assert out == "<p>\n  {{ $t('common.key_1', { 0: n }) }}\n</p>"
        assert store.extracted == {"common.key_1": "共 {0} 条"}

    def test_rich_expression_reported(self, template_rewriter: TemplateRewriter) -> None:
        source = "<p>合计{{ a + b }}元</p>"
        edits, diagnostics = template_rewriter.collect_edits(source, "common")
        assert edits == []
        assert len(diagnostics) == 1
        assert "translate manually" in diagnostics[0].message
        assert diagnostics[0].offset == source.index("合计")

    def test_existing_call_in_compound_is_silent(
        self, template_rewriter: TemplateRewriter
    ) -> None:
        source = "<p>标签：{{ $t('home.key_1') }}</p>"
        edits, diagnostics = template_rewriter.collect_edits(source, "common")
        assert edits == []
        assert diagnostics == []

    def test_compound_without_chinese_visits_interpolations(
        self, template_rewriter: TemplateRewriter
    ) -> None:
        out = rewrite(template_rewriter, "<p>Total: {{ n > 0 ? '有' : '无' }}</p>")
        assert out == "<p>Total: {{ n > 0 ? $t('common.key_1') : $t('common.key_2') }}</p>"


class TestDiagnosticsAndErrors:
    def test_unquoted_directive_reported(self, template_rewriter: TemplateRewriter) -> None:
        source = "<p :title=中文></p>"
        edits, diagnostics = template_rewriter.collect_edits(source, "common")
        assert edits == []
        assert "Unquoted" in diagnostics[0].message

    def test_unparsable_expression_reported(self, template_rewriter: TemplateRewriter) -> None:
        source = "<p>{{ '中文' + }}</p>"
        edits, diagnostics = template_rewriter.collect_edits(source, "common")
        assert edits == []
        assert diagnostics[0].message.startswith("Cannot parse expression")

    def test_broken_template_raises(self, template_rewriter: TemplateRewriter) -> None:
        with pytest.raises(TemplateSyntaxError):
            template_rewriter.rewrite("<div>中文</span>", "common")


def test_second_pass_is_a_no_op(store: KeyStore) -> None:
    rewriter = TemplateRewriter(store)
    source = (
        '<div title="标题">\n'
        "  <p v-if=\"ok\">今天天气{{ weather }}</p>\n"
        "  <span>{{ ok ? '成功' : '失败' }}</span>\n"
        "</div>"
    )
    once = rewriter.rewrite(source, "common")
    keys = dict(store.extracted)
    assert rewriter.rewrite(once, "common") == once
    assert store.extracted == keys
