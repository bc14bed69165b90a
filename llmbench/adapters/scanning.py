# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
A small lexical scanner for C-family source text.

Extraction for languages we don't parse properly (JavaScript) is regex to
find a declaration, then this scanner to find where it ends. Counting
braces naively breaks on the first `"}"` inside a string or a `{` in a
comment. This module walks the text skipping string literals, template
literals, line comments and block comments, and only reports the
characters that are actually code.

Known limits: regex literals aren't recognized (a `/[{]/` will confuse the
brace count), and a template literal is treated as one opaque string, so
backticks nested inside `${...}` aren't handled. Generated code rarely
does either.
"""

from collections.abc import Iterator

_QUOTES = "'\"`"
_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {v: k for k, v in _OPENERS.items()}


def iter_code_chars(source: str, start: int = 0) -> Iterator[tuple[int, str]]:
    """Yield (index, char) for every character outside strings and comments."""
    i = start
    n = len(source)
    quote: str | None = None

    while i < n:
        ch = source[i]

        if quote is not None:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
            i += 1
            continue

        if ch in _QUOTES:
            quote = ch
            i += 1
            continue

        if source.startswith("//", i):
            newline = source.find("\n", i)
            i = n if newline == -1 else newline
            continue

        if source.startswith("/*", i):
            close = source.find("*/", i + 2)
            i = n if close == -1 else close + 2
            continue

        yield i, ch
        i += 1


def find_matching(source: str, open_index: int) -> int:
    """
    Index just past the bracket that closes the one at `open_index`.

    Works for (), [] and {}. Raises ValueError when the text runs out first.
    """
    opener = source[open_index]
    if opener not in _OPENERS:
        raise ValueError(f"Expected an opening bracket at {open_index}, found {opener!r}")
    closer = _OPENERS[opener]

    depth = 0
    for index, ch in iter_code_chars(source, open_index):
        if ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return index + 1
    raise ValueError(f"Unbalanced {opener!r} starting at offset {open_index}")


def find_expression_end(source: str, start: int) -> int:
    """
    End of an expression that starts at `start`: the first `;` or newline
    at bracket depth zero, or the first closer that would go negative, or
    the end of the text.
    """
    depth = 0
    for index, ch in iter_code_chars(source, start):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            if depth == 0:
                return index
            depth -= 1
        elif depth == 0 and ch in ";\n":
            return index
    return len(source)


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on `separator` wherever it isn't nested inside brackets or a string."""
    parts: list[str] = []
    depth = 0
    last = 0
    for index, ch in iter_code_chars(text):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth -= 1
        elif ch == separator and depth == 0:
            parts.append(text[last:index])
            last = index + 1
    parts.append(text[last:])
    return [part.strip() for part in parts if part.strip()]
