"""Rewrite Chinese string literals in JavaScript / TypeScript into t() calls.

Works on the tree-sitter syntax tree, so every replacement is pinned to the
literal's own source offsets:

    message.error('提交失败')          -> message.error(t('common.key_1'))
    `共${total}条`                      -> t('common.key_2', { 0: total })
    `共${list.length + 1}条`            -> `${t('common.key_3')}${list.length + 1}${t('common.key_4')}`

Skipped on purpose: import/require paths, object and class member keys,
computed member indices, type positions, tagged templates and literals that
are already the argument of a translation call.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .edits import Edit, apply_edits
from .errors import Diagnostic, ScriptSyntaxError
from .key_store import KeyStore
from .matcher import has_han, is_translation_callee, render_call, split_outer_whitespace

SKIPPED_SUBTREES = {
    "comment",
    "regex",
    "literal_type",
    "type_annotation",
    "type_arguments",
    "type_parameters",
    "type_alias_declaration",
    "interface_declaration",
    "enum_declaration",
    "ambient_declaration",
}
# A string sitting in one of these fields of its parent is a name, not a message.
EXCLUDED_FIELDS = ("key", "name", "property", "index", "source")
MODULE_LOADERS = {"import", "require"}
REFERENCE_PROPERTY_TYPES = {"property_identifier", "private_property_identifier"}

JS_ESCAPE_RE = re.compile(
    r"\\(?:u\{(?P<cp>[0-9A-Fa-f]+)\}|u(?P<u4>[0-9A-Fa-f]{4})|x(?P<x2>[0-9A-Fa-f]{2})"
    r"|(?P<nl>\r\n|[\n\r\u2028\u2029])|(?P<ch>[\s\S]))"
)
SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


@lru_cache(maxsize=None)
def get_parser(lang: str) -> Parser:
    if lang == "ts":
        language = Language(tree_sitter_typescript.language_typescript())
    elif lang == "tsx":
        language = Language(tree_sitter_typescript.language_tsx())
    else:
        language = Language(tree_sitter_javascript.language())
    return Parser(language)


def lang_for_suffix(suffix: str) -> str:
    suffix = suffix.lower()
    if suffix in {".ts", ".mts", ".cts"}:
        return "ts"
    if suffix == ".tsx":
        return "tsx"
    return "js"


def decode_js_string(raw: str) -> str:
    def repl(match: re.Match[str]) -> str:
        if match.group("cp"):
            code = int(match.group("cp"), 16)
            return chr(code) if code <= 0x10FFFF else match.group(0)
        if match.group("u4"):
            return chr(int(match.group("u4"), 16))
        if match.group("x2"):
            return chr(int(match.group("x2"), 16))
        if match.group("nl") is not None:
            return ""
        ch = match.group("ch")
        return SIMPLE_ESCAPES.get(ch, ch)

    decoded = JS_ESCAPE_RE.sub(repl, raw)
    try:
        # Join \uD83D\uDE00 style surrogate pairs.
        return decoded.encode("utf-16", "surrogatepass").decode("utf-16")
    except UnicodeDecodeError:
        return raw


class _Source:
    """Maps tree-sitter byte offsets of a parsed snippet back to buffer indices."""

    def __init__(self, text: str, base: int, prefix_bytes: int = 0) -> None:
        self.text = text
        self.base = base
        self.prefix_bytes = prefix_bytes
        self._table: list[int] | None = None
        if not text.isascii():
            table: list[int] = []
            for index, ch in enumerate(text):
                table.extend([index] * len(ch.encode("utf-8", "surrogatepass")))
            table.append(len(text))
            self._table = table

    def local(self, byte_offset: int) -> int:
        offset = byte_offset - self.prefix_bytes
        if self._table is None:
            return max(0, min(offset, len(self.text)))
        offset = max(0, min(offset, len(self._table) - 1))
        return self._table[offset]

    def pos(self, byte_offset: int) -> int:
        return self.base + self.local(byte_offset)

    def slice(self, start_byte: int, end_byte: int) -> str:
        return self.text[self.local(start_byte) : self.local(end_byte)]

    def node_text(self, node: Node) -> str:
        return self.slice(node.start_byte, node.end_byte)


@dataclass
class _Walk:
    src: _Source
    module: str
    quote: str
    edits: list[Edit] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


def _same(a: Node, b: Node) -> bool:
    return a.start_byte == b.start_byte and a.end_byte == b.end_byte and a.type == b.type


def _first_error(root: Node) -> Node:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        if node.has_error:
            stack.extend(reversed(node.children))
    return root


def _is_reference(node: Node) -> bool:
    """identifier, this, or a plain property-access chain on one of them."""
    if node.type in {"identifier", "this"}:
        return True
    if node.type == "member_expression":
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        return (
            obj is not None
            and prop is not None
            and prop.type in REFERENCE_PROPERTY_TYPES
            and _is_reference(obj)
        )
    return False


def _single_named_child(node: Node) -> Node | None:
    children = [c for c in node.named_children if c.type != "comment"]
    return children[0] if len(children) == 1 else None


def _unwrap_expression(root: Node) -> Node | None:
    statement = _single_named_child(root)
    if statement is None or statement.type != "expression_statement":
        return None
    expr = _single_named_child(statement)
    while expr is not None and expr.type == "parenthesized_expression":
        expr = _single_named_child(expr)
    return expr


def _is_excluded_string(node: Node) -> bool:
    parent = node.parent
    if parent is None:
        return False
    for name in EXCLUDED_FIELDS:
        target = parent.child_by_field_name(name)
        if target is not None and _same(target, node):
            return True
    if parent.type == "arguments":
        call = parent.parent
        callee = call.child_by_field_name("function") if call is not None else None
        if call is not None and call.type == "call_expression" and callee is not None:
            if callee.type in MODULE_LOADERS:
                return True
            callee_text = callee.text.decode("utf-8", "replace")
            if callee_text in MODULE_LOADERS or is_translation_callee(callee_text):
                return True
    return False


def _is_tagged_template(node: Node) -> bool:
    parent = node.parent
    if parent is None or parent.type != "call_expression":
        return False
    args = parent.child_by_field_name("arguments")
    return args is not None and _same(args, node)


class ScriptRewriter:
    def __init__(self, store: KeyStore, *, function_name: str = "t", quote: str = "'") -> None:
        self.store = store
        self.function_name = function_name
        self.quote = quote

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
        """Edits for a whole program (a script file or a ``<script>`` block)."""
        end = len(source) if end is None else end
        text = source[start:end]
        if not has_han(text):
            return [], []

        src = _Source(text, start)
        tree = get_parser(lang).parse(text.encode("utf-8", "surrogatepass"))
        if tree.root_node.has_error:
            bad = _first_error(tree.root_node)
            raise ScriptSyntaxError(
                f"Cannot parse {lang} source near {src.node_text(bad)[:40]!r}",
                offset=src.pos(bad.start_byte),
            )

        walk = _Walk(src=src, module=module, quote=self.quote)
        self._walk(walk, tree.root_node)
        return walk.edits, walk.diagnostics

    def collect_expression_edits(
        self,
        source: str,
        start: int,
        end: int,
        module: str,
        *,
        quote: str | None = None,
        lang: str = "js",
    ) -> tuple[list[Edit], list[Diagnostic]]:
        """Edits for one embedded expression, e.g. a template binding."""
        text = source[start:end]
        if not has_han(text):
            return [], []

        parsed = self._parse_expression(text, start, lang)
        if parsed is None:
            return [], [
                Diagnostic(start, "Cannot parse expression, left untouched", text.strip())
            ]
        root, src = parsed
        walk = _Walk(src=src, module=module, quote=quote or self.quote)
        self._walk(walk, root)
        return walk.edits, walk.diagnostics

    def is_reference(self, expr: str, *, lang: str = "js") -> bool:
        parsed = self._parse_expression(expr, 0, lang)
        if parsed is None:
            return False
        node = _unwrap_expression(parsed[0])
        return node is not None and _is_reference(node)

    def _parse_expression(
        self, text: str, base: int, lang: str
    ) -> tuple[Node, _Source] | None:
        parser = get_parser(lang)
        # Parenthesized first so `{ a: '...' }` reads as an object, not a block.
        wrapped = parser.parse(b"(" + text.encode("utf-8", "surrogatepass") + b"\n)")
        if not wrapped.root_node.has_error:
            return wrapped.root_node, _Source(text, base, prefix_bytes=1)
        # Statement lists, e.g. v-on handlers like `a = 1; notify('...')`.
        plain = parser.parse(text.encode("utf-8", "surrogatepass"))
        if not plain.root_node.has_error:
            return plain.root_node, _Source(text, base)
        return None

    def _walk(self, walk: _Walk, root: Node) -> None:
        stack = [root]
        while stack:
            node = stack.pop()
            kind = node.type
            if kind in SKIPPED_SUBTREES:
                continue
            if kind == "string":
                self._visit_string(walk, node)
                continue
            if kind == "jsx_text":
                self._visit_jsx_text(walk, node)
                continue
            if kind == "template_string" and self._visit_template_string(walk, node):
                continue
            stack.extend(reversed(node.children))

    def _call(self, walk: _Walk, text: str, args: list[str] | None = None) -> str:
        key = self.store.get_or_create_key(text, walk.module)
        return render_call(self.function_name, key, walk.quote, args)

    def _visit_string(self, walk: _Walk, node: Node) -> None:
        raw = walk.src.node_text(node)
        if len(raw) < 2 or not has_han(raw) or _is_excluded_string(node):
            return
        value = decode_js_string(raw[1:-1])
        if not value.strip():
            return
        replacement = self._call(walk, value)
        if node.parent is not None and node.parent.type == "jsx_attribute":
            replacement = f"{{{replacement}}}"
        walk.edits.append(
            Edit(walk.src.pos(node.start_byte), walk.src.pos(node.end_byte), replacement)
        )

    def _visit_jsx_text(self, walk: _Walk, node: Node) -> None:
        raw = walk.src.node_text(node)
        if not has_han(raw):
            return
        start, end = split_outer_whitespace(raw, walk.src.pos(node.start_byte))
        walk.edits.append(Edit(start, end, f"{{{self._call(walk, raw.strip())}}}"))

    def _visit_template_string(self, walk: _Walk, node: Node) -> bool:
        """Return True when the literal was handled whole (no need to descend)."""
        if _is_tagged_template(node):
            return True

        substitutions = [c for c in node.named_children if c.type == "template_substitution"]
        chunks: list[tuple[int, int]] = []
        cursor = node.start_byte + 1
        for sub in substitutions:
            chunks.append((cursor, sub.start_byte))
            cursor = sub.end_byte
        chunks.append((cursor, node.end_byte - 1))
        texts = [walk.src.slice(a, b) for a, b in chunks]
        if not any(has_han(text) for text in texts):
            return False

        exprs = [_single_named_child(sub) for sub in substitutions]
        if all(expr is not None and _is_reference(expr) for expr in exprs):
            parts: list[str] = []
            for index, text in enumerate(texts):
                parts.append(decode_js_string(text))
                if index < len(exprs):
                    parts.append(f"{{{index}}}")
            args = [walk.src.node_text(expr) for expr in exprs if expr is not None]
            replacement = self._call(walk, "".join(parts), args)
            walk.edits.append(
                Edit(walk.src.pos(node.start_byte), walk.src.pos(node.end_byte), replacement)
            )
            return True

        # Richer substitutions: translate matching chunks in place and keep
        # descending so literals inside the substitutions are still seen.
        for (chunk_start, _), text in zip(chunks, texts):
            if not has_han(text):
                continue
            start, end = split_outer_whitespace(text, walk.src.pos(chunk_start))
            call = self._call(walk, decode_js_string(text.strip()))
            walk.edits.append(Edit(start, end, f"${{{call}}}"))
        return False
