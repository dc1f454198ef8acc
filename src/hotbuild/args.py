"""Tokenizer for compiler flags and child-program argument strings."""

from __future__ import annotations

SEPARATORS = frozenset(" =")
QUOTE = '"'


def split_args(raw: str) -> list[str]:
    """Split *raw* into an ordered argument list.

    Spaces and ``=`` separate tokens outside of double quotes, so ``key=value``
    yields two tokens. A quoted span is kept as a single token with its inner
    spaces and ``=`` intact; an unterminated quote runs to the end of input.
    Quotes cannot be escaped. Tokens are trimmed and empty tokens dropped.
    """
    tokens: list[str] = []
    pending: list[str] = []
    quoted = False

    for char in raw:
        if char == QUOTE:
            _flush(tokens, pending)
            quoted = not quoted
        elif quoted or char not in SEPARATORS:
            pending.append(char)
        else:
            _flush(tokens, pending)

    _flush(tokens, pending)
    return tokens


def _flush(tokens: list[str], pending: list[str]) -> None:
    token = "".join(pending).strip()
    pending.clear()
    if token:
        tokens.append(token)
