"""Quote-aware command line tokenizer."""

from __future__ import annotations

WHITESPACE = (" ", "\t")
QUOTES = ('"', "'")


class Token(str):
    """A command line token.

    Behaves as the plain token text. ``quoted`` is True when any part of
    the token was read inside a quoted context, so ``"42"`` stays a
    string literal even though its text looks numeric.
    """

    quoted: bool

    def __new__(cls, text: str = "", quoted: bool = False):
        token = super().__new__(cls, text)
        token.quoted = quoted
        return token

    def __repr__(self) -> str:
        if self.quoted:
            return f"Token({str.__repr__(self)}, quoted=True)"
        return f"Token({str.__repr__(self)})"


def tokenize(line: str) -> list[Token]:
    """Split a command line into tokens.

    Splits on spaces and tabs outside of quotes. Single and double quotes
    are independent contexts: inside one, the other kind is literal text.
    A closing quote ends the token even when no whitespace follows it, and
    an explicitly quoted empty string yields an empty token. An
    unterminated quote absorbs the rest of the line.

    Args:
        line: Raw command line

    Returns:
        List of tokens
    """
    tokens: list[Token] = []
    buffer: list[str] = []
    quote: str | None = None
    pending = False
    quoted = False

    def push() -> None:
        nonlocal buffer, pending, quoted
        tokens.append(Token("".join(buffer), quoted))
        buffer = []
        pending = False
        quoted = False

    for char in line:
        if quote is not None:
            if char == quote:
                quote = None
                push()
            else:
                buffer.append(char)
        elif char in WHITESPACE:
            if pending:
                push()
        elif char in QUOTES:
            quote = char
            pending = True
            quoted = True
        else:
            buffer.append(char)
            pending = True

    if pending:
        push()

    return tokens
