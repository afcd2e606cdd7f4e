from __future__ import annotations

from dataclasses import dataclass


class I18nExtractError(Exception):
    pass


class ConfigError(I18nExtractError):
    """Invalid configuration or resource dictionary. Aborts the whole run."""


class ParseError(I18nExtractError):
    def __init__(self, message: str, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class TemplateSyntaxError(ParseError):
    pass


class ScriptSyntaxError(ParseError):
    pass


@dataclass(frozen=True)
class Diagnostic:
    """A span left untouched that needs a manual look."""

    offset: int
    message: str
    snippet: str


def line_col(source: str, offset: int) -> tuple[int, int]:
    line = source.count("\n", 0, offset) + 1
    col = offset - (source.rfind("\n", 0, offset) + 1) + 1
    return line, col
