"""Semconv – SQL statement sanitising and summarising.

``SELECT * FROM orders WHERE id = 42 AND name = 'x'`` becomes
``SELECT * FROM orders WHERE id = ? AND name = ?`` with operation
``SELECT`` and main identifier ``orders``.
"""
from __future__ import annotations

import dataclasses
import functools
import re

_TOKEN = re.compile(
    r"""
    (?P<string>'(?:[^']|'')*'?)
  | (?P<quoted>"(?:[^"]|"")*"|`[^`]*`|\[[^\]]*\])
  | (?P<comment>--[^\n]*|/\*.*?\*/)
  | (?P<number>0[xX][0-9a-fA-F]+|(?<![\w$])\d+(?:\.\d*)?(?:[eE][+-]?\d+)?|(?<![\w$])\.\d+)
  | (?P<word>[A-Za-z_][\w$]*)
  | (?P<punct>\S)
    """,
    re.VERBOSE | re.DOTALL,
)

_OPERATIONS = frozenset(
    {"SELECT", "INSERT", "DELETE", "UPDATE", "MERGE", "CREATE", "DROP", "ALTER", "CALL", "TRUNCATE"}
)
_JOIN_WORDS = frozenset({"JOIN", "INNER", "LEFT", "RIGHT", "FULL", "CROSS", "OUTER", "NATURAL"})
_DDL_SKIP = frozenset({"IF", "NOT", "EXISTS", "TEMPORARY", "TEMP", "UNIQUE"})
_DDL_OBJECTS = frozenset({"TABLE", "INDEX", "VIEW", "SCHEMA", "DATABASE", "PROCEDURE", "FUNCTION", "SEQUENCE"})

_CACHE_SIZE = 1000


@dataclasses.dataclass(frozen=True)
class SqlStatementInfo:
    full_statement: str | None
    operation: str | None
    main_identifier: str | None


@dataclasses.dataclass(frozen=True)
class _Token:
    kind: str
    text: str

    @property
    def upper(self) -> str:
        return self.text.upper()

    @property
    def is_identifier(self) -> bool:
        return self.kind in ("word", "quoted")


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] in '"`[' and text[-1] in '"`]':
        return text[1:-1]
    return text


def _read_identifier(tokens: list[_Token], i: int) -> tuple[str | None, int]:
    if i >= len(tokens) or not tokens[i].is_identifier:
        return None, i
    parts = [_unquote(tokens[i].text)]
    i += 1
    while i + 1 < len(tokens) and tokens[i].text == "." and tokens[i + 1].is_identifier:
        parts.append(_unquote(tokens[i + 1].text))
        i += 2
    return ".".join(parts), i


def _find_word(tokens: list[_Token], word: str, start: int = 0) -> int:
    depth = 0
    for i in range(start, len(tokens)):
        text = tokens[i].text
        if text == "(":
            depth += 1
        elif text == ")":
            depth -= 1
        elif depth == 0 and tokens[i].kind == "word" and tokens[i].upper == word:
            return i
    return -1


def _main_identifier(operation: str, tokens: list[_Token]) -> str | None:
    if operation == "SELECT":
        i = _find_word(tokens, "FROM", 1)
        if i < 0:
            return None
        identifier, after = _read_identifier(tokens, i + 1)
        if identifier is None:
            return None
        # an optional alias, then anything listing a second table
        if after < len(tokens) and tokens[after].kind == "word" and tokens[after].upper == "AS":
            after += 1
        if after < len(tokens) and tokens[after].kind == "word" and tokens[after].upper not in _JOIN_WORDS:
            if tokens[after].upper not in ("WHERE", "GROUP", "ORDER", "LIMIT", "HAVING", "UNION", "FOR", "OFFSET"):
                after += 1
        if after < len(tokens) and (tokens[after].text == "," or tokens[after].upper in _JOIN_WORDS):
            return None
        return identifier

    if operation in ("INSERT", "MERGE"):
        i = _find_word(tokens, "INTO", 1)
        return _read_identifier(tokens, i + 1)[0] if i >= 0 else None

    if operation == "DELETE":
        i = _find_word(tokens, "FROM", 1)
        return _read_identifier(tokens, i + 1)[0] if i >= 0 else None

    if operation in ("UPDATE", "CALL"):
        return _read_identifier(tokens, 1)[0]

    if operation == "TRUNCATE":
        i = 2 if len(tokens) > 1 and tokens[1].upper == "TABLE" else 1
        return _read_identifier(tokens, i)[0]

    # CREATE / DROP / ALTER
    i = 1
    while i < len(tokens) and tokens[i].kind == "word" and tokens[i].upper not in _DDL_OBJECTS:
        i += 1
    if i >= len(tokens):
        return None
    i += 1
    while i < len(tokens) and tokens[i].kind == "word" and tokens[i].upper in _DDL_SKIP:
        i += 1
    return _read_identifier(tokens, i)[0]


@functools.lru_cache(maxsize=_CACHE_SIZE)
def _sanitize(statement: str, mask_literals: bool) -> SqlStatementInfo:
    pieces: list[str] = []
    tokens: list[_Token] = []
    last = 0
    for match in _TOKEN.finditer(statement):
        kind = match.lastgroup or "punct"
        text = match.group()
        pieces.append(statement[last : match.start()])
        last = match.end()
        if mask_literals and kind in ("string", "number"):
            pieces.append("?")
        else:
            pieces.append(text)
        if kind != "comment":
            tokens.append(_Token(kind, text))
    pieces.append(statement[last:])

    operation = tokens[0].upper if tokens and tokens[0].kind == "word" else None
    if operation not in _OPERATIONS:
        operation = None
    identifier = _main_identifier(operation, tokens) if operation else None
    return SqlStatementInfo("".join(pieces), operation, identifier)


class SqlStatementSanitizer:
    """Masks literals in SQL and extracts the operation and main table.

    Results are cached per distinct statement.  With ``enabled=False`` the
    statement is returned untouched but still summarised.
    """

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled

    @classmethod
    def create(cls, enabled: bool = True) -> "SqlStatementSanitizer":
        return cls(enabled)

    def sanitize(self, statement: str | None) -> SqlStatementInfo:
        if statement is None:
            return SqlStatementInfo(None, None, None)
        return _sanitize(statement, self._enabled)


__all__ = ["SqlStatementInfo", "SqlStatementSanitizer"]
