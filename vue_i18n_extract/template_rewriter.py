from __future__ import annotations

import html
import re
from dataclasses import dataclass, field

from .edits import Edit, apply_edits
from .errors import Diagnostic
from .key_store import KeyStore
from .matcher import has_han, looks_like_translation_call, render_call, split_outer_whitespace
from .script_rewriter import ScriptRewriter
from .template_ast import (
    AttributeNode,
    CommentNode,
    CompoundNode,
    DirectiveNode,
    ElementNode,
    IfNode,
    InterpolationNode,
    RootNode,
    TemplateNode,
    TextNode,
    parse_template,
)

# Branch conditions and slot props are never rewritten.
SKIPPED_DIRECTIVES = {"if", "else-if", "else", "slot", "pre", "cloak", "once"}
FOR_ALIAS_RE = re.compile(r"^[\s\S]*?\s+(?:in|of)\s+(?P<source>[\s\S]*)$")
HTML_WHITESPACE_RE = re.compile(r"[\t\r\n\f ]+")


@dataclass
class _TemplateWalk:
    source: str
    module: str
    lang: str
    edits: list[Edit] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    pre_depth: int = 0


class TemplateRewriter:
    def __init__(self, store: KeyStore, *, function_name: str = "$t") -> None:
        self.store = store
        self.function_name = function_name
        self.expressions = ScriptRewriter(store, function_name=function_name)

    def rewrite(self, source: str, module: str, *, lang: str = "js") -> str:
        edits, _ = self.collect_edits(source, module, lang=lang)
        return apply_edits(source, edits)

    def collect_edits(
        self,
        source: str,
        module: str,
        *,
        start: int = 0,
        end: int | None = None,
        lang: str = "js",
    ) -> tuple[list[Edit], list[Diagnostic]]:
        root = parse_template(source, start, end)
        walk = _TemplateWalk(source=source, module=module, lang=lang)
        self._visit(walk, root)
        return walk.edits, walk.diagnostics

    def _visit(self, walk: _TemplateWalk, node: TemplateNode) -> None:
        if isinstance(node, CommentNode):
            return
        if isinstance(node, RootNode):
            for child in node.children:
                self._visit(walk, child)
        elif isinstance(node, ElementNode):
            self._visit_element(walk, node)
        elif isinstance(node, IfNode):
            for branch in node.branches:
                self._visit_element(walk, branch.element)
        elif isinstance(node, TextNode):
            self._visit_text(walk, node)
        elif isinstance(node, InterpolationNode):
            self._visit_expression(walk, node.exp_start, node.exp_end, "'")
        elif isinstance(node, CompoundNode):
            self._visit_compound(walk, node)
        elif isinstance(node, AttributeNode):
            self._visit_attribute(walk, node)
        elif isinstance(node, DirectiveNode):
            self._visit_directive(walk, node)
        else:
            raise TypeError(f"Unhandled template node: {type(node).__name__}")

    def _visit_element(self, walk: _TemplateWalk, element: ElementNode) -> None:
        if element.find_directive("pre") is not None:
            return
        for prop in element.props:
            self._visit(walk, prop)
        pre = element.tag.lower() == "pre"
        walk.pre_depth += pre
        for child in element.children:
            self._visit(walk, child)
        walk.pre_depth -= pre

    def _key(self, walk: _TemplateWalk, text: str) -> str:
        return self.store.get_or_create_key(text, walk.module)

    def _message(self, walk: _TemplateWalk, raw: str, *, condense: bool = True) -> str:
        """Message text as the browser renders it: whitespace condensed outside
        <pre>, character references decoded."""
        if condense and not walk.pre_depth:
            raw = HTML_WHITESPACE_RE.sub(" ", raw)
        return html.unescape(raw)

    def _visit_text(self, walk: _TemplateWalk, node: TextNode) -> None:
        if not has_han(node.content):
            return
        start, end = split_outer_whitespace(node.content, node.start)
        key = self._key(walk, self._message(walk, node.content))
        call = render_call(self.function_name, key)
        walk.edits.append(Edit(start, end, f"{{{{ {call} }}}}"))

    def _visit_attribute(self, walk: _TemplateWalk, node: AttributeNode) -> None:
        if node.value is None or not has_han(node.value):
            return
        quote = node.quote or '"'
        inner = "'" if quote == '"' else '"'
        key = self._key(walk, self._message(walk, node.value, condense=False))
        call = render_call(self.function_name, key, inner)
        value_start, value_end = node.value_span
        walk.edits.append(Edit(node.name_start, node.name_end, f":{node.name}"))
        walk.edits.append(Edit(value_start, value_end, f"{quote}{call}{quote}"))

    def _visit_directive(self, walk: _TemplateWalk, node: DirectiveNode) -> None:
        if node.exp is None or node.name in SKIPPED_DIRECTIVES or not has_han(node.exp):
            return
        if not node.quote:
            walk.diagnostics.append(
                Diagnostic(
                    node.name_start,
                    "Unquoted directive value contains Chinese text, quote it and re-run",
                    f"{node.raw_name}={node.exp}",
                )
            )
            return

        start = node.exp_start
        if node.name == "for":
            alias = FOR_ALIAS_RE.match(node.exp)
            if alias is not None:
                start = node.exp_start + alias.start("source")
        inner = "'" if node.quote == '"' else '"'
        self._visit_expression(walk, start, node.exp_end, inner)

    def _visit_expression(self, walk: _TemplateWalk, start: int, end: int, quote: str) -> None:
        edits, diagnostics = self.expressions.collect_expression_edits(
            walk.source, start, end, walk.module, quote=quote, lang=walk.lang
        )
        walk.edits.extend(edits)
        walk.diagnostics.extend(diagnostics)

    def _visit_compound(self, walk: _TemplateWalk, node: CompoundNode) -> None:
        texts = [c for c in node.children if isinstance(c, TextNode)]
        interpolations = [c for c in node.children if isinstance(c, InterpolationNode)]

        if not any(has_han(t.content) for t in texts):
            for child in interpolations:
                self._visit(walk, child)
            return

        rich = [
            c for c in interpolations
            if not self.expressions.is_reference(c.expression, lang=walk.lang)
        ]
        if rich:
            if all(looks_like_translation_call(c.expression) for c in rich):
                return
            snippet = walk.source[node.start : node.end].strip()
            start, _ = split_outer_whitespace(walk.source[node.start : node.end], node.start)
            walk.diagnostics.append(
                Diagnostic(
                    start,
                    "Text mixed with a non-trivial expression, translate manually",
                    snippet,
                )
            )
            return

        parts: list[str] = []
        args: list[str] = []
        for child in node.children:
            if isinstance(child, TextNode):
                parts.append(child.content)
            else:
                parts.append(f"{{{len(args)}}}")
                args.append(child.expression.strip())
        key = self._key(walk, self._message(walk, "".join(parts)))
        call = render_call(self.function_name, key, "'", args)
        start, end = split_outer_whitespace(walk.source[node.start : node.end], node.start)
        walk.edits.append(Edit(start, end, f"{{{{ {call} }}}}"))
