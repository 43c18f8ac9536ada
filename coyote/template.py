# --------------------------------------------------------------------
# template.py: Placeholder expansion for project strings.
#
# Author: Lain Musgrove (lain.proliant@gmail.com)
# Date: Saturday September 26, 2020
#
# Distributed under terms of the MIT license.
# --------------------------------------------------------------------
from enum import Enum
from typing import Callable, Generator, List, Mapping, Optional, Tuple

from .errors import MalformedTemplate, UnresolvedVariable
from .util import uniq_list

# --------------------------------------------------------------------
Substitution = Callable[[str], str]


# --------------------------------------------------------------------
class TokenKind(Enum):
    TEXT = "Text"
    VARIABLE = "Variable"
    COMMAND = "Command"


Token = Tuple[TokenKind, str]


# --------------------------------------------------------------------
def _scan(raw: str, commands: bool) -> Generator[Token, None, None]:
    text: List[str] = []
    offset = 0

    while offset < len(raw):
        c = raw[offset]

        if c == "{":
            if raw.startswith("{", offset + 1):
                text.append("{")
                offset += 2
                continue
            end = raw.find("}", offset + 1)
            if end < 0:
                raise MalformedTemplate(raw, "unmatched '{' at offset %d" % offset)
            if text:
                yield (TokenKind.TEXT, "".join(text))
                text = []
            yield (TokenKind.VARIABLE, raw[offset + 1 : end])
            offset = end + 1

        elif c == "`" and commands:
            if raw.startswith("`", offset + 1):
                text.append("`")
                offset += 2
                continue
            end = raw.find("`", offset + 1)
            if end < 0:
                raise MalformedTemplate(raw, "unmatched '`' at offset %d" % offset)
            if text:
                yield (TokenKind.TEXT, "".join(text))
                text = []
            yield (TokenKind.COMMAND, raw[offset + 1 : end])
            offset = end + 1

        else:
            text.append(c)
            offset += 1

    if text:
        yield (TokenKind.TEXT, "".join(text))


# --------------------------------------------------------------------
def tokenize(raw: str, commands=False) -> List[Token]:
    """Split a raw string into text, placeholder and (optionally)
    command substitution tokens.

    `{{` is an escaped `{`, and a lone `}` is plain text.  When `commands`
    is set, a span between backticks is a command substitution and a
    doubled backtick is an escaped backtick.  The whole string is scanned
    before anything is returned, so a malformed template is always
    reported before any substitution takes place."""
    return list(_scan(raw, commands))


# --------------------------------------------------------------------
def references(raw: str, commands=False) -> List[str]:
    """ The variable names referenced by the given raw string, in order. """
    return uniq_list(
        value for kind, value in tokenize(raw, commands) if kind == TokenKind.VARIABLE
    )


# --------------------------------------------------------------------
def expand(
    raw: str, table: Mapping[str, str], substitute: Optional[Substitution] = None
) -> str:
    """Expand every placeholder in `raw` using the resolved variable table.

    If `substitute` is provided, backtick-quoted spans are replaced by
    the result of calling it with the enclosed command text."""

    result: List[str] = []

    for kind, value in tokenize(raw, substitute is not None):
        if kind == TokenKind.VARIABLE:
            if value not in table:
                raise UnresolvedVariable(value, raw)
            result.append(table[value])
        elif kind == TokenKind.COMMAND and substitute is not None:
            result.append(substitute(value))
        else:
            result.append(value)

    return "".join(result)
