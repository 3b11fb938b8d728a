"""Suffix-driven discovery of file references inside raw template bytes.

The scanner deliberately works on bytes rather than a parsed template. Each
step applies a small set of named heuristics:

* ``locate``: find the next occurrence of the suffix after the cursor.
* ``pick delimiter``: the byte right after the suffix (quote, apostrophe or
  space) hints at how the reference was enclosed; default is a double quote.
* ``find start``: the last such delimiter before the suffix opens the match.
* ``widen to variable``: when the candidate contains a variable close marker,
  the start moves to the first open marker on the same line so that quotes
  inside ``{{ ... }}`` do not truncate the reference.
* ``discard bare suffix``: a match consisting only of the suffix is dropped.

A suffix that is not followed by a recognised delimiter falls back to the
double quote and can produce an over-broad match. That is a known limitation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional

from .errors import ReferenceDecodeError
from .models import FileMeta
from .syntax import DEFAULT_SYNTAX, TemplateSyntax


@dataclass(frozen=True)
class ScanMatch:
    """A candidate reference and its byte range in the template."""

    text: str
    start: int
    end: int


class ReferenceScanner:
    """Finds substrings ending in a suffix that look like paths or URLs."""

    def __init__(self, syntax: TemplateSyntax = DEFAULT_SYNTAX) -> None:
        self.syntax = syntax
        self._open = syntax.open_marker.encode("utf-8")
        self._close = syntax.close_marker.encode("utf-8")
        self._line_break = syntax.line_break.encode("utf-8")
        self._default_delimiter = syntax.default_delimiter.encode("utf-8")
        self._delimiters = syntax.delimiters.encode("utf-8")

    def scan(self, raw: bytes, suffix: str) -> List[FileMeta]:
        """Return references ending in ``suffix`` in scan order.

        References still containing template-variable syntax are returned
        with ``unresolved=True`` and must be resolved by the caller.
        """
        results: List[FileMeta] = []
        for match in self.iter_matches(raw, suffix):
            if self.syntax.is_templated(match.text):
                results.append(FileMeta.unresolved_reference(match.text))
            else:
                results.append(FileMeta.from_path(match.text))
        return results

    def iter_matches(self, raw: bytes, suffix: str) -> Iterator[ScanMatch]:
        encoded = suffix.encode("utf-8")
        if not encoded:
            return
        cursor = 0
        while cursor < len(raw):
            suffix_start = raw.find(encoded, cursor)
            if suffix_start < 0:
                return
            suffix_end = suffix_start + len(encoded)
            match = self._match_at(raw, cursor, suffix_start, suffix_end)
            cursor = suffix_end
            if match is None or match.end - match.start == len(encoded):
                continue
            yield match

    def find_next(self, raw: bytes, suffix: str, start: int = 0) -> Optional[ScanMatch]:
        """Return the first match in ``raw[start:]``, bare suffixes included."""
        encoded = suffix.encode("utf-8")
        if not encoded:
            return None
        cursor = start
        while True:
            suffix_start = raw.find(encoded, cursor)
            if suffix_start < 0:
                return None
            suffix_end = suffix_start + len(encoded)
            match = self._match_at(raw, start, suffix_start, suffix_end)
            if match is not None:
                return match
            cursor = suffix_end

    # ------------------------------------------------------------------
    # Heuristics

    def _match_at(
        self, raw: bytes, floor: int, suffix_start: int, suffix_end: int
    ) -> Optional[ScanMatch]:
        delimiter = self._pick_delimiter(raw, suffix_end)
        delimiter_index = raw.rfind(delimiter, floor, suffix_start)
        if delimiter_index < 0:
            return None

        start = delimiter_index + 1
        if raw.find(self._close, delimiter_index, suffix_end) > delimiter_index:
            start = self._widen_to_variable(raw, floor, suffix_end, default=start)

        try:
            text = raw[start:suffix_end].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ReferenceDecodeError(start + exc.start) from exc
        return ScanMatch(text=text, start=start, end=suffix_end)

    def _pick_delimiter(self, raw: bytes, suffix_end: int) -> bytes:
        if suffix_end < len(raw):
            following = raw[suffix_end : suffix_end + 1]
            if following in self._delimiters:
                return following
        return self._default_delimiter

    def _widen_to_variable(self, raw: bytes, floor: int, suffix_end: int, *, default: int) -> int:
        # Line breaks are assumed to be "\n".
        line_start = raw.rfind(self._line_break, floor, suffix_end)
        if line_start < 0:
            line_start = floor
        open_index = raw.find(self._open, line_start, suffix_end)
        if open_index < 0:
            return default
        return open_index


__all__ = ["ReferenceScanner", "ScanMatch"]
