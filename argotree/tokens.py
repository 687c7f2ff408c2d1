"""
Argotree tokenizer: raw argv strings to typed tokens.

Grammar (informal)
- long:        "--" name ["=" value]       → LONG (name, value split on the first "=")
- short:       "-" chars                   → SHORT (a cluster "-abc" or a single-dash long "-name")
- terminator:  "--"                        → TERMINATOR; every later token is FORCED
- bare:        anything else, and "-"      → VALUE

Numbers
- "-5", "-1.5", "-1e3" are SHORT tokens flagged numeric=True. The binder decides whether
  they are an option or a negative number for a pending positional/option value.

The tokenizer is a single-pass generator; a fresh one is created for every parse.
"""
import enum
import re
from typing import NamedTuple

from .utils import Unset, UnsetType


class TokenKind(enum.Enum):
    LONG = "long"
    SHORT = "short"
    VALUE = "value"
    TERMINATOR = "terminator"
    FORCED = "forced"


class Token(NamedTuple):
    """
    One argv element, classified.

    - kind: TokenKind.
    - text: the raw argv string.
    - index: 1-based position in argv (used by every diagnostic).
    - name: the option part for LONG/SHORT tokens ("--name", "-abc"), else Unset.
    - value: the inline value of "--name=value" tokens, else Unset.
    - numeric: True for SHORT tokens that also read as a negative number.
    """
    kind: TokenKind
    text: str
    index: int
    name: str | UnsetType = Unset
    value: str | UnsetType = Unset
    numeric: bool = False

    @property
    def bare(self):
        """
        True for tokens that can only be a value (VALUE and FORCED).
        """
        return self.kind in (TokenKind.VALUE, TokenKind.FORCED)


NUMBER = re.compile(r"-(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def tokenize(argv, /):
    """
    Yield a Token for each argv string, in order.

    Raises
    - TypeError: if argv is a string or holds non-string items.
    """
    if isinstance(argv, str):
        raise TypeError("tokenize() argument must be an iterable of strings, not a string")

    forced = False
    for index, text in enumerate(argv, 1):
        if not isinstance(text, str):
            raise TypeError("tokenize() argument must be an iterable of strings")

        if forced:
            yield Token(TokenKind.FORCED, text, index)
        elif text == "--":
            forced = True
            yield Token(TokenKind.TERMINATOR, text, index)
        elif text.startswith("--"):
            name, separator, value = text.partition("=")
            yield Token(TokenKind.LONG, text, index, name, value if separator else Unset)
        elif text.startswith("-") and len(text) > 1:
            if NUMBER.fullmatch(text):
                yield Token(TokenKind.SHORT, text, index, text, numeric=True)
                continue
            name, separator, value = text.partition("=")
            yield Token(TokenKind.SHORT, text, index, name, value if separator else Unset)
        else:
            yield Token(TokenKind.VALUE, text, index)


__all__ = (
    "TokenKind",
    "Token",
    "tokenize",
)
