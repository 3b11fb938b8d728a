"""Expansion of template variables found inside file references."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from .errors import MissingVariableError, UnknownVariableTypeError, VariableSyntaxError
from .syntax import DEFAULT_SYNTAX, TemplateSyntax

USER_VARIABLE = "user"
SPECIAL_VARIABLE = "special"


@dataclass(frozen=True)
class VariableSpan:
    """A single ``{{ ... }}`` occurrence."""

    raw: str
    body: str
    end: int


class VariableResolver:
    """Resolves user (``{{ user `name` }}``) and special (``{{ .Name }}``) variables."""

    def __init__(self, syntax: TemplateSyntax = DEFAULT_SYNTAX) -> None:
        self.syntax = syntax

    def resolve(self, text: str, known: Mapping[str, str]) -> str:
        """Return ``text`` with every variable replaced by its known value.

        Raises UnknownVariableTypeError for spans that are neither user nor
        special variables, and MissingVariableError for the first variable
        absent from ``known``.
        """
        resolved = text
        index = 0
        while index < len(text):
            span = self.next_variable(text, index)
            if span is None:
                break
            index = span.end

            kind, name = self.classify(span.body)
            if kind is None:
                raise UnknownVariableTypeError(span.raw)
            if name not in known:
                raise MissingVariableError(name, span.raw)
            resolved = resolved.replace(span.raw, known[name])
        return resolved

    def next_variable(self, text: str, start: int = 0) -> Optional[VariableSpan]:
        open_marker = self.syntax.open_marker
        close_marker = self.syntax.close_marker

        open_index = text.find(open_marker, start)
        if open_index < 0:
            return None
        close_index = text.find(close_marker, open_index + len(open_marker))
        if close_index < 0:
            return None

        end = close_index + len(close_marker)
        raw = text[open_index:end]
        body = text[open_index + len(open_marker) : close_index].strip()
        return VariableSpan(raw=raw, body=body, end=end)

    def classify(self, body: str) -> Tuple[Optional[str], str]:
        """Return ``(kind, name)``; ``kind`` is None for unknown shapes."""
        syntax = self.syntax
        if body.startswith(syntax.user_prefix):
            first = body.find(syntax.user_quote)
            last = body.rfind(syntax.user_quote)
            if first < 0 or last <= first:
                return None, ""
            name = body[first + 1 : last]
            if not name:
                return None, ""
            return USER_VARIABLE, name
        if body.startswith(syntax.special_prefix):
            name = body[len(syntax.special_prefix) :].strip()
            if not name:
                return None, ""
            return SPECIAL_VARIABLE, name
        return None, ""

    def trim_to_file(self, text: str) -> Tuple[str, str]:
        """Split the text after the last close marker into ``(dir_hint, name)``."""
        close_index = text.rfind(self.syntax.close_marker)
        if close_index < 0:
            raise VariableSyntaxError(f"'{text}' does not contain a template variable")
        remainder = text[close_index + len(self.syntax.close_marker) :]
        return posixpath.dirname(remainder), posixpath.basename(remainder)


__all__ = ["SPECIAL_VARIABLE", "USER_VARIABLE", "VariableResolver", "VariableSpan"]
