"""Delimiters and markers recognised when scanning build templates."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TemplateSyntax:
    """Lexical markers shared by the reference scanner and variable resolver."""

    open_marker: str = "{{"
    close_marker: str = "}}"
    # Any of these characters marks a reference as still templated.
    variable_chars: str = "{}"
    default_delimiter: str = '"'
    delimiters: str = "'\" "
    line_break: str = "\n"
    user_prefix: str = "user"
    user_quote: str = "`"
    special_prefix: str = "."

    def is_templated(self, text: str) -> bool:
        return any(char in text for char in self.variable_chars)


DEFAULT_SYNTAX = TemplateSyntax()


__all__ = ["DEFAULT_SYNTAX", "TemplateSyntax"]
