"""Split a ``.vue`` single-file component into its top-level blocks."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .errors import TemplateSyntaxError

TOP_LEVEL_RE = re.compile(
    r"<!--|<(?P<tag>[A-Za-z][\w-]*)(?P<attrs>(?:[^>\"']|\"[^\"]*\"|'[^']*')*)>"
)
TEMPLATE_TAG_RE = re.compile(
    r"<(?P<close>/?)template\b(?P<attrs>(?:[^>\"']|\"[^\"]*\"|'[^']*')*)>",
    re.IGNORECASE,
)
ATTR_RE = re.compile(r"""([^\s=/>]+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s>]+)))?""")


@dataclass
class SfcBlock:
    type: str
    start: int
    end: int
    attrs: dict[str, str | bool] = field(default_factory=dict)

    @property
    def lang(self) -> str | None:
        value = self.attrs.get("lang")
        return value if isinstance(value, str) else None

    @property
    def setup(self) -> bool:
        return bool(self.attrs.get("setup"))


@dataclass
class SfcDescriptor:
    template: SfcBlock | None = None
    scripts: list[SfcBlock] = field(default_factory=list)
    styles: list[SfcBlock] = field(default_factory=list)
    custom: list[SfcBlock] = field(default_factory=list)

    @property
    def script_lang(self) -> str:
        for block in self.scripts:
            if block.lang in ("ts", "tsx"):
                return block.lang
        return "js"


def parse_attrs(raw: str) -> dict[str, str | bool]:
    attrs: dict[str, str | bool] = {}
    for match in ATTR_RE.finditer(raw.rstrip("/")):
        name = match.group(1)
        values = [v for v in match.group(2, 3, 4) if v is not None]
        attrs[name] = values[0] if values else True
    return attrs


def _template_end(source: str, pos: int, block_start: int) -> tuple[int, int]:
    depth = 1
    for match in TEMPLATE_TAG_RE.finditer(source, pos):
        if match.group("close"):
            depth -= 1
            if depth == 0:
                return match.start(), match.end()
        elif not match.group("attrs").rstrip().endswith("/"):
            depth += 1
    raise TemplateSyntaxError("Unclosed <template> block", block_start)


def parse_sfc(source: str) -> SfcDescriptor:
    descriptor = SfcDescriptor()
    pos = 0
    while True:
        match = TOP_LEVEL_RE.search(source, pos)
        if match is None:
            break
        if match.group(0) == "<!--":
            close = source.find("-->", match.end())
            if close == -1:
                break
            pos = close + 3
            continue

        tag = match.group("tag")
        raw_attrs = match.group("attrs")
        attrs = parse_attrs(raw_attrs)
        content_start = match.end()
        if raw_attrs.rstrip().endswith("/"):
            content_end = content_start
            pos = content_start
        elif tag.lower() == "template":
            content_end, pos = _template_end(source, content_start, match.start())
        else:
            close_re = re.compile(rf"</{re.escape(tag)}\s*>", re.IGNORECASE)
            close_match = close_re.search(source, content_start)
            if close_match is None:
                raise TemplateSyntaxError(f"Unclosed <{tag}> block", match.start())
            content_end, pos = close_match.start(), close_match.end()

        block = SfcBlock(type=tag.lower(), start=content_start, end=content_end, attrs=attrs)
        if block.type == "template":
            if descriptor.template is not None:
                raise TemplateSyntaxError(
                    "A single file component can contain only one <template> block",
                    match.start(),
                )
            descriptor.template = block
        elif block.type == "script":
            descriptor.scripts.append(block)
        elif block.type == "style":
            descriptor.styles.append(block)
        else:
            descriptor.custom.append(block)
    return descriptor
