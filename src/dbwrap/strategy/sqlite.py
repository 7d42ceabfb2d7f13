"""
SQLite-specific strategy implementation.

This module implements the DatabaseStrategy interface for SQLite. It handles
SQLite's differences from the server databases:
- qmark placeholders
- no built-in REGEXP_REPLACE (a Python function is registered per connection)
- LIKE folds ASCII case, so case-sensitive search terms use GLOB
- errors for unknown tables or columns surface as OperationalError text
"""
import logging
import re
import sqlite3
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbwrap.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from dbwrap.options import DatabaseOptions

logger = logging.getLogger(__name__)

_PREPARE_ERRORS = re.compile(
    r'syntax error|incomplete input|unrecognized token|no such table'
    r'|no such column|no such function|ambiguous column',
    re.IGNORECASE)


def regexp_replace(value: Any, pattern: str, replacement: str) -> str | None:
    """Replace every match of pattern, as MySQL's REGEXP_REPLACE does.

    >>> regexp_replace('iPhone-12 Case!', '[^a-zA-Z0-9]', '')
    'iPhone12Case'
    """
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode(errors='replace')
    return re.sub(pattern, replacement, str(value))


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    paramstyle = 'qmark'

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for SQLite."""
        return 'sqlite'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for SQLite."""
        return sa.URL.create(drivername='sqlite', database=options.database)

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return SQLAlchemy create_engine kwargs for SQLite."""
        return {
            'connect_args': {
                'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES
            }
        }

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for SQLite connections."""
        return ['database']

    def configure_connection(self, raw_conn: Any) -> None:
        """Register REGEXP_REPLACE and switch to autocommit.
        """
        raw_conn.create_function('regexp_replace', 3, regexp_replace,
                                 deterministic=True)
        raw_conn.execute('PRAGMA foreign_keys = ON')
        self.enable_autocommit(raw_conn)

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode for SQLite.
        """
        raw_conn.isolation_level = None

    def strip_expression(self, quoted_column: str) -> str:
        return f"regexp_replace({quoted_column}, '[^a-zA-Z0-9]', '')"

    def match_term(self, quoted_column: str, case_sensitive: bool) -> str:
        """SQLite's LIKE ignores ASCII case, so exact matching uses GLOB.
        """
        if case_sensitive:
            stripped = self.strip_expression(quoted_column)
            return f'(CASE WHEN {stripped} GLOB ? THEN 2 ELSE 0 END)'
        return super().match_term(quoted_column, case_sensitive)

    def match_pattern(self, keyword: str, case_sensitive: bool) -> str:
        if case_sensitive:
            return f'*{keyword}*'
        return super().match_pattern(keyword, case_sensitive)

    def last_insert_id(self, cursor: Any, raw_conn: Any) -> int:
        """The cursor holds last_insert_rowid() after an INSERT, else None.
        """
        return int(cursor.lastrowid or 0)

    def is_prepare_error(self, exc: BaseException) -> bool:
        if not isinstance(exc, sqlite3.OperationalError):
            return False
        return bool(_PREPARE_ERRORS.search(str(exc)))
