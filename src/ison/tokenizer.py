"""Line tokenizer for ISON and ISONL text."""

from typing import List, Tuple


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` and strip one trailing ``\\r`` per line."""
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def tokenize_line(line: str) -> List[str]:
    """
    Split one line into tokens.

    Rules:
        - Space and tab separate tokens outside quotes; runs collapse.
        - A double quote toggles quoted mode and is never emitted.
        - Inside quotes a backslash escapes the next character:
          \\n, \\t, \\" and \\\\ are decoded, anything else passes
          through literally without the backslash.
        - Outside quotes a backslash is an ordinary character.

    Example:
        tokenize_line('1 "Alice Smith" alice@example.com')
        -> ["1", "Alice Smith", "alice@example.com"]

    A quoted token is kept even when empty, so ``1 "" x`` yields three
    tokens and the empty string keeps its column.
    """
    tokens: List[str] = []
    current: List[str] = []
    in_quotes = False
    quoted = False
    escaped = False

    for ch in line:
        if escaped:
            if ch == "n":
                current.append("\n")
            elif ch == "t":
                current.append("\t")
            else:
                current.append(ch)
            escaped = False
            continue

        if ch == "\\" and in_quotes:
            escaped = True
            continue

        if ch == '"':
            in_quotes = not in_quotes
            quoted = True
            continue

        if not in_quotes and ch in (" ", "\t"):
            if current or quoted:
                tokens.append("".join(current))
                current = []
                quoted = False
            continue

        current.append(ch)

    if current or quoted:
        tokens.append("".join(current))

    return tokens


def parse_field_def(token: str) -> Tuple[str, str]:
    """
    Split a field declaration ``name:hint`` on the first colon.

    A token without a colon (or starting with one) has no hint.
    """
    idx = token.find(":")
    if idx > 0:
        return token[:idx], token[idx + 1:]
    return token, ""
