"""Query compilation and match scanning shared by the search engines."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator


class InvalidPatternError(ValueError):
    """Raised when a user-supplied pattern or replacement template cannot be compiled."""


@dataclass(frozen=True, slots=True)
class SearchOptions:
    case_sensitive: bool = False
    whole_word: bool = False
    use_regex: bool = False


@dataclass(frozen=True, slots=True)
class SearchQuery:
    pattern: str
    case_sensitive: bool = False
    whole_word: bool = False
    use_regex: bool = False
    replacement: str = ""

    @property
    def options(self) -> SearchOptions:
        return SearchOptions(
            case_sensitive=self.case_sensitive,
            whole_word=self.whole_word,
            use_regex=self.use_regex,
        )


@dataclass(frozen=True, slots=True)
class CompiledQuery:
    raw: str
    regex: re.Pattern[str]
    literal: bool

    def iter_matches(self, line: str) -> Iterator[re.Match[str]]:
        pos = 0
        length = len(line)
        while pos <= length:
            match = self.regex.search(line, pos)
            if match is None:
                return
            yield match
            start, end = match.span()
            # Zero-width matches must still move the cursor forward.
            pos = end if end > start else end + 1

    def find_all(self, line: str) -> list[tuple[int, int]]:
        return [match.span() for match in self.iter_matches(line)]

    def expand(self, match: re.Match[str], replacement: str) -> str:
        if self.literal:
            return replacement
        try:
            return match.expand(_python_template(replacement))
        except (re.error, IndexError) as exc:
            raise InvalidPatternError(f"Invalid replacement ({exc}).") from exc

    def substitute(self, text: str, replacement: str) -> tuple[str, int]:
        """Replace matches one line at a time, the same way the search scans.

        Zero-width matches are left alone; line separators are never touched.
        """
        count = 0

        def _replace(match: re.Match[str]) -> str:
            nonlocal count
            if match.end() <= match.start():
                return match.group(0)
            count += 1
            return self.expand(match, replacement)

        lines: list[str] = []
        for line in text.split("\n"):
            body, cr = (line[:-1], "\r") if line.endswith("\r") else (line, "")
            lines.append(self.regex.sub(_replace, body) + cr)
        return "\n".join(lines), count


_DOLLAR_REFERENCE = re.compile(r"\$(\$|&|\d+|<\w+>)")


def _python_template(replacement: str) -> str:
    """Accept ``$1``, ``$&``, ``$<name>`` and ``$$`` next to ``\\1`` style references."""

    def _convert(ref: re.Match[str]) -> str:
        token = ref.group(1)
        if token == "$":
            return "$"
        if token == "&":
            return r"\g<0>"
        if token.startswith("<"):
            return rf"\g{token}"
        return rf"\g<{token}>"

    return _DOLLAR_REFERENCE.sub(_convert, replacement)


def build_query(
    raw: str,
    case_sensitive: bool = False,
    whole_word: bool = False,
    use_regex: bool = False,
) -> CompiledQuery | None:
    """Compile user input into a query, or ``None`` when there is nothing to search for.

    Literal input is escaped before any word-boundary wrapping, so whole-word
    literals become regex-backed queries that still match the text verbatim.
    """
    text = str(raw or "")
    if not text:
        return None

    pattern_text = text if use_regex else re.escape(text)
    if whole_word:
        if use_regex:
            pattern_text = f"(?:{pattern_text})"
        pattern_text = r"\b" + pattern_text + r"\b"
    flags = 0 if case_sensitive else re.IGNORECASE
    try:
        regex = re.compile(pattern_text, flags)
    except re.error as exc:
        raise InvalidPatternError(f"Invalid regular expression ({exc}).") from exc
    return CompiledQuery(raw=text, regex=regex, literal=not use_regex)


def build_search_query(query: SearchQuery) -> CompiledQuery | None:
    return build_query(
        query.pattern,
        case_sensitive=query.case_sensitive,
        whole_word=query.whole_word,
        use_regex=query.use_regex,
    )


def find_all(haystack_line: str, query: CompiledQuery) -> list[tuple[int, int]]:
    return query.find_all(haystack_line)


def find_literal_occurrences(haystack: str, needle: str) -> Iterator[tuple[int, int]]:
    """Yield non-overlapping ``(start, end)`` spans of ``needle`` over the whole text."""
    if not needle:
        return
    step = len(needle)
    pos = 0
    while True:
        idx = haystack.find(needle, pos)
        if idx == -1:
            return
        yield idx, idx + step
        pos = idx + step


def iter_lines_with_offsets(text: str) -> Iterator[tuple[int, int, str]]:
    """Yield ``(line_number, offset, line_text)`` for each ``\\n``-separated line.

    A trailing ``\\r`` is dropped from the line text; offsets still point into
    the original text.
    """
    offset = 0
    for line_number, line in enumerate(text.split("\n"), start=1):
        next_offset = offset + len(line) + 1
        if line.endswith("\r"):
            line = line[:-1]
        yield line_number, offset, line
        offset = next_offset
