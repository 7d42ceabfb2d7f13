"""
MySQL-specific strategy implementation.

This module implements the DatabaseStrategy interface for MySQL and
MariaDB via PyMySQL:
- format placeholders, with literal percent signs escaped
- backtick identifier quoting
- REGEXP_REPLACE replaces every match natively (MySQL 8.0+, MariaDB 10.0.5+)
- the last inserted identifier comes from the protocol's insert_id
"""
import logging
from typing import TYPE_CHECKING, Any

import pymysql
import sqlalchemy as sa
from dbwrap.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from dbwrap.options import DatabaseOptions

logger = logging.getLogger(__name__)

# Server error codes raised while the statement is parsed or resolved
PREPARE_ERROR_CODES = {
    1054,  # ER_BAD_FIELD_ERROR
    1052,  # ER_NON_UNIQ_ERROR
    1064,  # ER_PARSE_ERROR
    1146,  # ER_NO_SUCH_TABLE
    1149,  # ER_SYNTAX_ERROR
    1305,  # ER_SP_DOES_NOT_EXIST
    }


def error_code(exc: BaseException) -> int | None:
    """Return the server error code carried by a PyMySQL exception."""
    if exc.args and isinstance(exc.args[0], int):
        return exc.args[0]
    return None


@register_strategy('mysql')
class MySQLStrategy(DatabaseStrategy):
    """MySQL-specific operations.
    """

    paramstyle = 'format'

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for MySQL."""
        return 'mysql'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for MySQL.

        The database name is optional so a session can be opened against the
        server alone.
        """
        query = {'charset': options.charset}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        if options.appname:
            query['program_name'] = options.appname

        return sa.URL.create(
            drivername='mysql+pymysql',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query,
            )

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for MySQL connections."""
        return ['hostname', 'username']

    def configure_connection(self, raw_conn: Any) -> None:
        """Configure connection settings for MySQL.
        """
        self.enable_autocommit(raw_conn)

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode for MySQL.
        """
        raw_conn.autocommit(True)

    def strip_expression(self, quoted_column: str) -> str:
        return f"REGEXP_REPLACE({quoted_column}, '[^a-zA-Z0-9]', '')"

    def last_insert_id(self, cursor: Any, raw_conn: Any) -> int:
        return int(cursor.lastrowid or 0)

    def is_prepare_error(self, exc: BaseException) -> bool:
        if not isinstance(exc, pymysql.err.Error):
            return False
        return error_code(exc) in PREPARE_ERROR_CODES

    def error_text(self, exc: BaseException) -> str:
        if len(exc.args) > 1 and isinstance(exc.args[1], str):
            return exc.args[1]
        return str(exc)
