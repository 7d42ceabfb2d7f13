"""
SQL text helpers: placeholder handling, identifier validation and quoting.

Statement templates use positional placeholders, written either as ``?``
(qmark) or ``%s`` (format). Before execution a template is rewritten to the
placeholder style of the connection's driver in a single tokenizing pass that
leaves string literals, quoted identifiers and comments untouched:

    SQL → Tokenize → Rewrite placeholders / escape literal percent → SQL

Identifiers (table and column names) never travel as bind parameters, so any
name that is spliced into statement text must pass `validate_identifier`
first.
"""
import re
from dataclasses import dataclass
from enum import Enum, auto

from dbwrap.exceptions import InvalidIdentifier

__all__ = [
    'tokenize_sql',
    'has_placeholders',
    'count_placeholders',
    'standardize_placeholders',
    'validate_identifier',
    'quote_identifier',
]


class TokenType(Enum):
    """Token types identified during SQL scanning."""
    SQL_TEXT = auto()
    STRING_LITERAL = auto()
    QUOTED_IDENT = auto()
    COMMENT = auto()
    PLACEHOLDER = auto()


@dataclass(slots=True)
class Token:
    """Token from SQL scanning."""
    type: TokenType
    text: str


# String literals, quoted identifiers, comments, then placeholders
_TOKENIZE = re.compile(r"""
    (?P<string>'(?:[^'\\]|''|\\.)*')
    |(?P<ident>"(?:[^"]|"")*"|`(?:[^`]|``)*`)
    |(?P<comment>--[^\n]*|/\*.*?(?:\*/|\Z))
    |(?P<placeholder>%s|\?)
""", re.VERBOSE | re.DOTALL)

_IDENTIFIER = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')

_UNESCAPED_PERCENT = re.compile(r'(?<!%)%(?!%)')

_PERCENT_ESCAPED = {TokenType.STRING_LITERAL, TokenType.COMMENT}


def tokenize_sql(sql: str) -> list[Token]:
    """Split SQL into literal, identifier, comment, placeholder and plain-text tokens.

    >>> [t.type.name for t in tokenize_sql("a = ? and b = 'x?'")]
    ['SQL_TEXT', 'PLACEHOLDER', 'SQL_TEXT', 'STRING_LITERAL']
    """
    tokens = []
    last_end = 0

    for match in _TOKENIZE.finditer(sql):
        start, end = match.span()
        if start > last_end:
            tokens.append(Token(TokenType.SQL_TEXT, sql[last_end:start]))

        if match.group('string'):
            ttype = TokenType.STRING_LITERAL
        elif match.group('ident'):
            ttype = TokenType.QUOTED_IDENT
        elif match.group('comment'):
            ttype = TokenType.COMMENT
        else:
            ttype = TokenType.PLACEHOLDER

        tokens.append(Token(ttype, match.group(0)))
        last_end = end

    if last_end < len(sql):
        tokens.append(Token(TokenType.SQL_TEXT, sql[last_end:]))

    return tokens


def count_placeholders(sql: str | None) -> int:
    """Count positional placeholders outside literals, quoted names and comments.

    >>> count_placeholders("select * from t where a = ? and b like '%?%'")
    1
    """
    if not sql:
        return 0
    return sum(1 for t in tokenize_sql(sql) if t.type == TokenType.PLACEHOLDER)


def has_placeholders(sql: str | None) -> bool:
    """Check if SQL has any positional placeholders.
    """
    if not sql or ('%s' not in sql and '?' not in sql):
        return False
    return count_placeholders(sql) > 0


def standardize_placeholders(sql: str, paramstyle: str = 'qmark') -> str:
    """Rewrite placeholders for a driver's paramstyle.

    For ``format`` drivers (psycopg, pymysql) literal percent signs inside
    string literals and comments are doubled, since those drivers interpolate
    the whole statement when parameters are supplied.

    >>> standardize_placeholders('select * from t where a = %s', 'qmark')
    'select * from t where a = ?'
    >>> standardize_placeholders("select '5%' where a = ?", 'format')
    "select '5%%' where a = %s"
    """
    if not sql:
        return sql

    target = '?' if paramstyle == 'qmark' else '%s'
    result = []
    for token in tokenize_sql(sql):
        if token.type == TokenType.PLACEHOLDER:
            result.append(target)
        elif token.type in _PERCENT_ESCAPED and paramstyle == 'format':
            result.append(_UNESCAPED_PERCENT.sub('%%', token.text))
        else:
            result.append(token.text)
    return ''.join(result)


def validate_identifier(identifier: str, kind: str = 'identifier') -> str:
    """Validate a table or column name before it is spliced into SQL.

    A valid identifier starts with an ASCII letter or underscore followed by
    ASCII letters, digits or underscores. The name is returned unchanged.

    >>> validate_identifier('user_data', 'table')
    'user_data'
    >>> validate_identifier('1users', 'table')
    Traceback (most recent call last):
    ...
    dbwrap.exceptions.InvalidIdentifier: Invalid table name: '1users'. ...
    """
    if not isinstance(identifier, str):
        raise InvalidIdentifier(
            f'Invalid {kind} name: expected a string, got {type(identifier).__name__}.')

    if identifier == '':
        raise InvalidIdentifier(f'Invalid {kind} name: cannot be empty.')

    if not _IDENTIFIER.fullmatch(identifier):
        reason = 'Must start with a letter or underscore and contain only ' \
                 'alphanumeric characters and underscores.'
        if identifier[0].isdigit():
            reason = f'Identifiers cannot start with a number. {reason}'
        raise InvalidIdentifier(f'Invalid {kind} name: {identifier!r}. {reason}')

    return identifier


def quote_identifier(identifier: str, dialect: str = 'postgresql') -> str:
    """Quote a validated identifier for a dialect.

    >>> quote_identifier('users', 'mysql')
    '`users`'
    >>> quote_identifier('users', 'sqlite')
    '"users"'
    """
    if dialect == 'mysql':
        return '`' + identifier.replace('`', '``') + '`'
    if dialect in {'postgresql', 'sqlite'}:
        return '"' + identifier.replace('"', '""') + '"'

    raise ValueError(f'Unknown dialect: {dialect}')


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
