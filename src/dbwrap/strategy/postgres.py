"""
PostgreSQL-specific strategy implementation.

This module implements the DatabaseStrategy interface for PostgreSQL via
psycopg:
- format placeholders, with literal percent signs escaped
- REGEXP_REPLACE needs the 'g' flag to replace every match
- the last inserted identifier comes from lastval()
- SQLSTATE class 42 (syntax error or access rule violation) marks errors
  raised while the statement is parsed
"""
import logging
from typing import TYPE_CHECKING, Any

import psycopg
import sqlalchemy as sa
from dbwrap.strategy.base import DatabaseStrategy, register_strategy

if TYPE_CHECKING:
    from dbwrap.options import DatabaseOptions

logger = logging.getLogger(__name__)


@register_strategy('postgresql')
class PostgresStrategy(DatabaseStrategy):
    """PostgreSQL-specific operations.
    """

    paramstyle = 'format'

    @property
    def dialect_name(self) -> str:
        """Return the dialect identifier for PostgreSQL."""
        return 'postgresql'

    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for PostgreSQL."""
        query = {}
        if options.timeout:
            query['connect_timeout'] = str(options.timeout)
        if options.appname:
            query['application_name'] = options.appname

        return sa.URL.create(
            drivername='postgresql+psycopg',
            username=options.username,
            password=options.password,
            host=options.hostname,
            port=options.port or None,
            database=options.database,
            query=query,
            )

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Return required options for PostgreSQL connections."""
        return ['hostname', 'username', 'database']

    def configure_connection(self, raw_conn: Any) -> None:
        """Configure connection settings for PostgreSQL.
        """
        self.enable_autocommit(raw_conn)

    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode for PostgreSQL.
        """
        raw_conn.autocommit = True

    def strip_expression(self, quoted_column: str) -> str:
        return f"regexp_replace(CAST({quoted_column} AS TEXT), '[^a-zA-Z0-9]', '', 'g')"

    def last_insert_id(self, cursor: Any, raw_conn: Any) -> int:
        """Return lastval(), or 0 when no sequence was used in this session.
        """
        with raw_conn.cursor() as cur:
            try:
                cur.execute('select lastval()')
            except psycopg.errors.ObjectNotInPrerequisiteState:
                logger.debug('lastval() is not yet defined in this session')
                return 0
            row = cur.fetchone()
        return int(row[0]) if row and row[0] is not None else 0

    def is_prepare_error(self, exc: BaseException) -> bool:
        sqlstate = getattr(exc, 'sqlstate', None) or ''
        return sqlstate.startswith('42')

    def error_text(self, exc: BaseException) -> str:
        diag = getattr(exc, 'diag', None)
        primary = getattr(diag, 'message_primary', None)
        return primary or str(exc)
