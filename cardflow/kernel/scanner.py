"""
cardflow Kernel — JSON structure scanner

A small hand-written scanner that walks JSON text character by character,
tracking string state (with one-character escape lookahead) and the stack of
unmatched `{` / `[`. Regular expressions cannot follow nested or escaped string
state, so recovery, the syntax deficit hints and content hashing all go
through here.

Nothing in this module parses values; it only reasons about structure.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

_OPENERS = {"{": "}", "[": "]"}
_CLOSERS = {"}": "{", "]": "["}
_WHITESPACE = frozenset(" \t\r\n")


@dataclass
class ScanState:
    """Where a left-to-right scan ended up."""

    in_string: bool = False
    dangling_escape: bool = False
    stack: list[str] = field(default_factory=list)

    @property
    def missing_braces(self) -> int:
        return self.stack.count("{")

    @property
    def missing_brackets(self) -> int:
        return self.stack.count("[")

    def closers(self) -> str:
        """Closing characters for every unmatched opener, innermost first."""
        return "".join(_OPENERS[opener] for opener in reversed(self.stack))


@dataclass(frozen=True)
class ObjectCandidate:
    """One top-level `{...}` carved out of an array body."""

    text: str
    start: int
    complete: bool


def scan(text: str) -> ScanState:
    """Walk the whole text once and report string state and unmatched openers."""
    state = ScanState()
    i = 0
    n = len(text)
    while i < n:
        char = text[i]
        if state.in_string:
            if char == "\\":
                if i + 1 >= n:
                    state.dangling_escape = True
                i += 2
                continue
            if char == '"':
                state.in_string = False
        elif char == '"':
            state.in_string = True
        elif char in _OPENERS:
            state.stack.append(char)
        elif char in _CLOSERS:
            # A stray closer with no matching opener is left for the strict
            # parser to complain about.
            if state.stack and state.stack[-1] == _CLOSERS[char]:
                state.stack.pop()
        i += 1
    return state


def strip_trailing_commas(text: str) -> str:
    """Drop commas that sit (modulo whitespace) right before `}` or `]`, outside strings."""
    out: list[str] = []
    in_string = False
    i = 0
    n = len(text)
    while i < n:
        char = text[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue
        if char == '"':
            in_string = True
        elif char == ",":
            j = i + 1
            while j < n and text[j] in _WHITESPACE:
                j += 1
            if j < n and text[j] in _CLOSERS:
                i += 1
                continue
        out.append(char)
        i += 1
    return "".join(out)


def close_open_structures(text: str) -> tuple[str, list[str]]:
    """
    Balance truncated JSON text.

    Closes an open string (dropping a dangling lone backslash first), then
    appends exactly the missing closers, innermost first, and strips any
    trailing comma the closers exposed.

    Returns:
        (repaired_text, notes) — notes describe what was appended
    """
    state = scan(text)
    notes: list[str] = []
    repaired = text
    if state.in_string:
        if state.dangling_escape:
            repaired = repaired[:-1]
        repaired += '"'
        notes.append("closed unterminated string")
    closers = state.closers()
    if closers:
        repaired = repaired.rstrip() + closers
        notes.append(
            f"appended {state.missing_brackets} closing bracket(s) and {state.missing_braces} closing brace(s)"
        )
        repaired = strip_trailing_commas(repaired)
    return repaired, notes


def count_unmatched(text: str) -> tuple[int, int]:
    """Return (missing closing braces, missing closing brackets)."""
    state = scan(text)
    return state.missing_braces, state.missing_brackets


def iter_top_level_objects(text: str, start: int = 0) -> Iterator[ObjectCandidate]:
    """
    Carve complete objects out of an array body.

    `start` points just past the array's opening `[`. Objects are delimited by
    brace depth; commas and whitespace between them are skipped. The scan stops
    at the `]` that closes the array. If the text ends inside an object, that
    last candidate is yielded with `complete=False`.
    """
    stack: list[str] = []
    in_string = False
    obj_start = -1
    i = start
    n = len(text)
    while i < n:
        char = text[i]
        if in_string:
            if char == "\\":
                i += 2
                continue
            if char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
        elif char in _OPENERS:
            if not stack and char == "{":
                obj_start = i
            stack.append(char)
        elif char in _CLOSERS:
            if not stack:
                # closing bracket of the surrounding array
                return
            if stack[-1] == _CLOSERS[char]:
                stack.pop()
            if not stack and obj_start >= 0:
                yield ObjectCandidate(text=text[obj_start : i + 1], start=obj_start, complete=True)
                obj_start = -1
        i += 1

    if stack and obj_start >= 0:
        yield ObjectCandidate(text=text[obj_start:], start=obj_start, complete=False)


def strip_insignificant_whitespace(text: str) -> str:
    """Remove whitespace outside string literals. String contents are kept byte for byte."""
    out: list[str] = []
    in_string = False
    i = 0
    n = len(text)
    while i < n:
        char = text[i]
        if in_string:
            out.append(char)
            if char == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if char == '"':
                in_string = False
        elif char == '"':
            in_string = True
            out.append(char)
        elif char not in _WHITESPACE:
            out.append(char)
        i += 1
    return "".join(out)
