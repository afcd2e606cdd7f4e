"""Vue template syntax tree.

The parser keeps absolute offsets into the original buffer for every node, so
the rewriter can emit edits without re-locating text. After an element closes
its children are normalized the way the Vue compiler does it:

- ``v-if`` / ``v-else-if`` / ``v-else`` siblings become one ``IfNode``;
- adjacent text and ``{{ }}`` runs become one ``CompoundNode``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Union

from .errors import TemplateSyntaxError

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})

TAG_NAME_RE = re.compile(r"[A-Za-z][^\s/>]*")
ATTR_NAME_RE = re.compile(r"[^\s\"'<>/=]+")
UNQUOTED_VALUE_RE = re.compile(r"[^\s>]+")
WHITESPACE_RE = re.compile(r"\s*")
TEXT_BREAK_RE = re.compile(r"\{\{|<[A-Za-z/!?]")
V_DIRECTIVE_RE = re.compile(r"^v-(?P<name>[A-Za-z0-9-]+)(?::(?P<arg>\[[^\]]*\]|[^.]*))?(?P<mods>.*)$")
SHORTHAND_RE = re.compile(r"^(?P<arg>\[[^\]]*\]|[^.]*)(?P<mods>.*)$")
SHORTHANDS = {":": "bind", ".": "bind", "@": "on", "#": "slot"}


@dataclass
class TextNode:
    content: str
    start: int
    end: int


@dataclass
class CommentNode:
    content: str
    start: int
    end: int


@dataclass
class InterpolationNode:
    expression: str
    start: int
    end: int
    exp_start: int
    exp_end: int


@dataclass
class AttributeNode:
    name: str
    name_start: int
    name_end: int
    value: str | None = None
    value_start: int = -1
    value_end: int = -1
    quote: str = ""

    @property
    def value_span(self) -> tuple[int, int]:
        """Value offsets including the quotes."""
        width = 1 if self.quote else 0
        return self.value_start - width, self.value_end + width


@dataclass
class DirectiveNode:
    name: str
    raw_name: str
    name_start: int
    name_end: int
    arg: str | None = None
    modifiers: tuple[str, ...] = ()
    exp: str | None = None
    exp_start: int = -1
    exp_end: int = -1
    quote: str = ""


Prop = Union[AttributeNode, DirectiveNode]


@dataclass
class ElementNode:
    tag: str
    start: int
    end: int
    props: list[Prop] = field(default_factory=list)
    children: list[TemplateChild] = field(default_factory=list)
    self_closing: bool = False

    def find_directive(self, name: str) -> DirectiveNode | None:
        for prop in self.props:
            if isinstance(prop, DirectiveNode) and prop.name == name:
                return prop
        return None


@dataclass
class CompoundNode:
    children: list[Union[TextNode, InterpolationNode]]

    @property
    def start(self) -> int:
        return self.children[0].start

    @property
    def end(self) -> int:
        return self.children[-1].end


@dataclass
class IfBranch:
    condition: DirectiveNode | None
    element: ElementNode


@dataclass
class IfNode:
    branches: list[IfBranch]


@dataclass
class RootNode:
    start: int
    end: int
    children: list[TemplateChild] = field(default_factory=list)


TemplateChild = Union[ElementNode, TextNode, CommentNode, InterpolationNode, CompoundNode, IfNode]
TemplateNode = Union[RootNode, TemplateChild, AttributeNode, DirectiveNode, IfBranch]


def parse_template(source: str, start: int = 0, end: int | None = None) -> RootNode:
    return _TemplateParser(source, start, len(source) if end is None else end).parse()


def make_prop(
    raw_name: str,
    name_start: int,
    value: str | None,
    value_start: int,
    quote: str,
) -> Prop:
    name_end = name_start + len(raw_name)
    value_end = value_start + len(value) if value is not None else -1

    name: str | None = None
    arg: str | None = None
    mods = ""
    match = V_DIRECTIVE_RE.match(raw_name)
    if match:
        name, arg, mods = match.group("name"), match.group("arg"), match.group("mods")
    elif raw_name[0] in SHORTHANDS and len(raw_name) > 1:
        short = SHORTHAND_RE.match(raw_name[1:])
        if short:
            name = SHORTHANDS[raw_name[0]]
            arg, mods = short.group("arg"), short.group("mods")

    if name is None:
        return AttributeNode(
            name=raw_name,
            name_start=name_start,
            name_end=name_end,
            value=value,
            value_start=value_start,
            value_end=value_end,
            quote=quote,
        )
    return DirectiveNode(
        name=name,
        raw_name=raw_name,
        name_start=name_start,
        name_end=name_end,
        arg=arg or None,
        modifiers=tuple(m for m in mods.split(".") if m),
        exp=value,
        exp_start=value_start,
        exp_end=value_end,
        quote=quote,
    )


def _is_blank(node: TemplateChild) -> bool:
    return isinstance(node, CommentNode) or (
        isinstance(node, TextNode) and not node.content.strip()
    )


def _branch_directive(node: TemplateChild, names: tuple[str, ...]) -> DirectiveNode | None:
    if not isinstance(node, ElementNode):
        return None
    for name in names:
        directive = node.find_directive(name)
        if directive is not None:
            return directive
    return None


def group_if_chains(children: list[TemplateChild]) -> list[TemplateChild]:
    out: list[TemplateChild] = []
    i = 0
    while i < len(children):
        node = children[i]
        condition = _branch_directive(node, ("if",))
        if condition is None:
            out.append(node)
            i += 1
            continue

        assert isinstance(node, ElementNode)
        if_node = IfNode(branches=[IfBranch(condition=condition, element=node)])
        i += 1
        while i < len(children):
            j = i
            while j < len(children) and _is_blank(children[j]):
                j += 1
            if j >= len(children):
                break
            follower = children[j]
            else_if = _branch_directive(follower, ("else-if",))
            otherwise = _branch_directive(follower, ("else",))
            if else_if is None and otherwise is None:
                break
            assert isinstance(follower, ElementNode)
            if_node.branches.append(IfBranch(condition=else_if, element=follower))
            i = j + 1
            if otherwise is not None:
                break
        out.append(if_node)
    return out


def merge_text_runs(children: list[TemplateChild]) -> list[TemplateChild]:
    out: list[TemplateChild] = []
    run: list[Union[TextNode, InterpolationNode]] = []

    def flush() -> None:
        if len(run) > 1 and any(isinstance(n, InterpolationNode) for n in run):
            out.append(CompoundNode(children=list(run)))
        else:
            out.extend(run)
        run.clear()

    for node in children:
        if isinstance(node, (TextNode, InterpolationNode)):
            run.append(node)
            continue
        flush()
        out.append(node)
    flush()
    return out


def normalize_children(children: list[TemplateChild]) -> list[TemplateChild]:
    return merge_text_runs(group_if_chains(children))


class _TemplateParser:
    def __init__(self, source: str, start: int, end: int) -> None:
        self.source = source
        self.start = start
        self.end = end
        self.pos = start
        self.stack: list[ElementNode] = []
        self.root = RootNode(start=start, end=end)

    def _children(self) -> list[TemplateChild]:
        return self.stack[-1].children if self.stack else self.root.children

    def _peek(self, offset: int = 0) -> str:
        index = self.pos + offset
        return self.source[index] if index < self.end else ""

    def parse(self) -> RootNode:
        src = self.source
        while self.pos < self.end:
            if src.startswith("<!--", self.pos):
                self._comment()
            elif self._peek() == "<" and self._peek(1) in ("!", "?"):
                self._bogus_comment()
            elif self._peek() == "<" and self._peek(1) == "/":
                if _is_tag_start(self._peek(2)):
                    self._end_tag()
                else:
                    self._bogus_comment()
            elif self._peek() == "<" and _is_tag_start(self._peek(1)):
                self._start_tag()
            else:
                self._text()

        if self.stack:
            open_el = self.stack[-1]
            raise TemplateSyntaxError(
                f"Element is missing end tag: <{open_el.tag}>", open_el.start
            )
        self.root.children = normalize_children(self.root.children)
        return self.root

    def _comment(self) -> None:
        start = self.pos
        close = self.source.find("-->", start + 4, self.end)
        if close == -1:
            raise TemplateSyntaxError("Unterminated comment", start)
        self.pos = close + 3
        self._children().append(
            CommentNode(content=self.source[start + 4 : close], start=start, end=self.pos)
        )

    def _bogus_comment(self) -> None:
        start = self.pos
        close = self.source.find(">", start, self.end)
        self.pos = self.end if close == -1 else close + 1
        self._children().append(
            CommentNode(content=self.source[start : self.pos], start=start, end=self.pos)
        )

    def _skip_whitespace(self) -> None:
        match = WHITESPACE_RE.match(self.source, self.pos, self.end)
        if match:
            self.pos = match.end()

    def _end_tag(self) -> None:
        start = self.pos
        name_match = TAG_NAME_RE.match(self.source, start + 2, self.end)
        assert name_match is not None
        tag = name_match.group(0)
        close = self.source.find(">", name_match.end(), self.end)
        if close == -1:
            raise TemplateSyntaxError(f"Unterminated end tag </{tag}>", start)
        self.pos = close + 1

        if not self.stack or not _same_tag(self.stack[-1].tag, tag):
            if tag.lower() in VOID_ELEMENTS:
                return
            raise TemplateSyntaxError(f"Invalid end tag </{tag}>", start)

        element = self.stack.pop()
        element.end = self.pos
        element.children = normalize_children(element.children)

    def _start_tag(self) -> None:
        start = self.pos
        name_match = TAG_NAME_RE.match(self.source, start + 1, self.end)
        assert name_match is not None
        element = ElementNode(tag=name_match.group(0), start=start, end=-1)
        self.pos = name_match.end()

        while True:
            self._skip_whitespace()
            if self.pos >= self.end:
                raise TemplateSyntaxError(f"Unterminated start tag <{element.tag}>", start)
            if self.source.startswith("/>", self.pos):
                element.self_closing = True
                self.pos += 2
                break
            ch = self.source[self.pos]
            if ch == ">":
                self.pos += 1
                break
            if ch == "/":
                self.pos += 1
                continue
            element.props.append(self._attribute(element))

        self._children().append(element)
        tag = element.tag.lower()
        if element.self_closing or tag in VOID_ELEMENTS:
            element.end = self.pos
            return
        if tag in RAW_TEXT_ELEMENTS:
            close_re = re.compile(rf"</{re.escape(element.tag)}\s*>", re.IGNORECASE)
            close = close_re.search(self.source, self.pos, self.end)
            if close is None:
                raise TemplateSyntaxError(f"Element is missing end tag: <{element.tag}>", start)
            self.pos = close.end()
            element.end = self.pos
            return
        self.stack.append(element)

    def _attribute(self, element: ElementNode) -> Prop:
        name_match = ATTR_NAME_RE.match(self.source, self.pos, self.end)
        if name_match is None:
            raise TemplateSyntaxError(
                f"Unexpected character {self.source[self.pos]!r} in <{element.tag}>",
                self.pos,
            )
        raw_name = name_match.group(0)
        name_start = self.pos
        self.pos = name_match.end()

        after_name = self.pos
        self._skip_whitespace()
        if self._peek() != "=":
            self.pos = after_name
            return make_prop(raw_name, name_start, None, -1, "")

        self.pos += 1
        self._skip_whitespace()
        quote = self._peek()
        if quote in ("'", '"'):
            close = self.source.find(quote, self.pos + 1, self.end)
            if close == -1:
                raise TemplateSyntaxError(f"Unterminated attribute value for {raw_name}", self.pos)
            value_start = self.pos + 1
            self.pos = close + 1
            return make_prop(raw_name, name_start, self.source[value_start:close], value_start, quote)

        value_match = UNQUOTED_VALUE_RE.match(self.source, self.pos, self.end)
        if value_match is None:
            return make_prop(raw_name, name_start, "", self.pos, "")
        self.pos = value_match.end()
        return make_prop(raw_name, name_start, value_match.group(0), value_match.start(), "")

    def _flush_text(self, start: int, end: int) -> None:
        if end <= start:
            return
        children = self._children()
        last = children[-1] if children else None
        if isinstance(last, TextNode) and last.end == start:
            last.content += self.source[start:end]
            last.end = end
            return
        children.append(TextNode(content=self.source[start:end], start=start, end=end))

    def _text(self) -> None:
        seg_start = self.pos
        while self.pos < self.end:
            match = TEXT_BREAK_RE.search(self.source, self.pos, self.end)
            if match is None:
                self.pos = self.end
                break
            if match.group(0) != "{{":
                self.pos = match.start()
                break
            close = self.source.find("}}", match.end(), self.end)
            if close == -1:
                self.pos = self.end
                break
            self._flush_text(seg_start, match.start())
            self._children().append(
                InterpolationNode(
                    expression=self.source[match.end() : close],
                    start=match.start(),
                    end=close + 2,
                    exp_start=match.end(),
                    exp_end=close,
                )
            )
            self.pos = close + 2
            seg_start = self.pos
        self._flush_text(seg_start, self.pos)


def _same_tag(open_tag: str, close_tag: str) -> bool:
    return open_tag == close_tag or open_tag.lower() == close_tag.lower()


def _is_tag_start(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()
