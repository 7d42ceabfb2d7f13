"""
Query executor bound to one injected connection.

The executor holds no connection of its own. A connection is injected with
`set_connection` (or the constructor) and every statement runs on it:

    Validate return mode → Check connection → Prepare → Bind → Execute
        → Materialize → Return (ResultSet | None | last insert id)

A `QueryExecutor` is not safe to share between concurrent call paths: the
last-error slot and the driver session are both per-instance state. Give each
thread or task its own executor and connection.
"""
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from dbwrap.connection import ConnectionWrapper, connect_db, connect_host
from dbwrap.cursor import Statement
from dbwrap.exceptions import ConnectionNotConfigured, QueryError
from dbwrap.exceptions import SearchResultInvalid
from dbwrap.result import ResultSet
from dbwrap.result import collect_rows as _collect_rows
from dbwrap.search import SearchOptions, build_search
from dbwrap.sql import validate_identifier
from dbwrap.strategy import get_db_strategy
from dbwrap.types import ReturnMode, is_empty
from dbwrap.utils import get_raw_connection

logger = logging.getLogger(__name__)

__all__ = ['QueryExecutor']


class QueryExecutor:
    """Runs parameterized statements on an injected connection.

    Usage:
        executor = QueryExecutor(cn)
        rows = executor.execute('select * from users where id = ?', [1])
        new_id = executor.execute('insert into users (name) values (?)',
                                  ['alice'], 'id')
    """

    def __init__(self, connection: Any | None = None) -> None:
        self._connection = None
        self._last_error = ''
        if connection is not None:
            self.set_connection(connection)

    def __repr__(self) -> str:
        state = 'connected' if self._connection is not None else 'unconfigured'
        return f'QueryExecutor({state})'

    def set_connection(self, connection: Any) -> None:
        """Inject the connection every later statement runs on.

        Replaces any previous connection and clears the last error. A bare
        DBAPI connection is configured in place the way `connect()` configures
        its own (autocommit, plus SQLite's `regexp_replace`), and is still
        stored as given.
        """
        if not isinstance(connection, ConnectionWrapper):
            strategy = get_db_strategy(connection)
            strategy.configure_connection(get_raw_connection(connection))
        self._connection = connection
        self._last_error = ''
        logger.debug(f'Executor connection set: {type(connection).__name__}')

    def get_connection(self) -> Any | None:
        """Return the injected connection, unchanged, or None."""
        return self._connection

    def error(self) -> str:
        """Return the backend diagnostic text of the last failed statement.

        Empty when no connection is set or the last statement succeeded.
        """
        if self._connection is None:
            return ''
        return self._last_error

    def execute(self, template: str, parameters: Sequence[Any] = (),
                return_mode: ReturnMode | str = ReturnMode.RESULT) -> ResultSet | int | None:
        """Execute a parameterized statement.

        Args:
            template: SQL text with positional ``?`` or ``%s`` placeholders
            parameters: Values bound in order, as plain values or `BindParam`
            return_mode: 'result' for the row-set, 'id' for the last insert id

        Returns
            ResultSet for row-returning statements in 'result' mode, None for
            other statements in 'result' mode, the last insert id (0 if none)
            in 'id' mode

        Raises
            InvalidReturnMode: If return_mode is not 'result' or 'id'
            ConnectionNotConfigured: If no connection has been set
            PrepareError: If the backend rejects the statement text
            ExecutionError: If the statement fails while running
            TypeConversionError: If a value cannot be bound as its tag
        """
        mode = ReturnMode.parse(return_mode)
        connection = self._require_connection()

        parameters = list(parameters or ())
        try:
            with Statement(connection, template) as stmt:
                if parameters:
                    stmt.bind(parameters)
                stmt.execute()
                if mode is ReturnMode.ID:
                    result = stmt.last_insert_id()
                else:
                    result = stmt.materialize()
        except QueryError as exc:
            self._last_error = exc.diagnostic or str(exc)
            raise
        self._last_error = ''
        return result

    def collect_rows(self, result: ResultSet | Iterable[Mapping[str, Any]]) -> dict[Any, dict[str, Any]]:
        """Fold a row-set into a mapping keyed by each row's ``id``."""
        return _collect_rows(result)

    def search(self, table: str, text: str, columns: Iterable[str] = ('name',),
               options: SearchOptions | Mapping[str, Any] | None = None) -> ResultSet:
        """Run a relevance-ranked keyword search.

        Raises
            InvalidIdentifier: If the table or a column name is invalid
            SearchResultInvalid: If the statement produced no row-set
        """
        strategy = get_db_strategy(self._require_connection())
        sql, params = build_search(table, text, columns, options, dialect=strategy)
        result = self.execute(sql, params)
        if not isinstance(result, ResultSet):
            raise SearchResultInvalid('Search query did not return a valid result set.')
        return result

    def count_rows(self, table: str, column: str | None = None, value: Any = None) -> int:
        """Count the rows of a table, optionally where column equals value.

        The filter applies only when both column and value are non-empty, so
        a value of 0 or '0' counts the whole table.

        >>> executor = QueryExecutor()
        >>> executor.count_rows('1users')
        Traceback (most recent call last):
        ...
        dbwrap.exceptions.InvalidIdentifier: Invalid table name: '1users'. ...
        """
        table = validate_identifier(table, 'table')
        strategy = get_db_strategy(self._require_connection())
        sql = f'SELECT COUNT(*) FROM {strategy.quote_identifier(table)}'
        params = []
        if not is_empty(column) and not is_empty(value):
            column = validate_identifier(column, 'column')
            sql += f' WHERE {strategy.quote_identifier(column)} = ?'
            params.append(value)
        result = self.execute(sql, params)
        row = result.fetch_row() if isinstance(result, ResultSet) else None
        if row is None:
            raise QueryError('count_rows query did not return a valid result set.')
        return int(row[0])

    def get_unique_rows(self, table: str, column: str) -> list[Any]:
        """Return the distinct non-empty values of a column in ascending order.
        """
        table = validate_identifier(table, 'table')
        column = validate_identifier(column, 'column')
        strategy = get_db_strategy(self._require_connection())
        quoted = strategy.quote_identifier(column)
        sql = (f'SELECT DISTINCT {quoted} FROM {strategy.quote_identifier(table)} '
               f'ORDER BY {quoted} ASC')
        result = self.execute(sql)
        if not isinstance(result, ResultSet):
            raise QueryError('get_unique_rows query did not return a valid result set.')
        return [row[0] for row in iter(result.fetch_row, None) if not is_empty(row[0])]

    def connect_host(self, host: str, user: str, password: str,
                     drivername: str = 'mysql', **kw: Any) -> ConnectionWrapper:
        """Open a server session without a database and inject it."""
        cn = connect_host(host, user, password, drivername=drivername, **kw)
        self.set_connection(cn)
        return cn

    def connect_db(self, host: str, user: str, password: str, database: str | None = None,
                   drivername: str = 'mysql', **kw: Any) -> ConnectionWrapper:
        """Open a session on a database and inject it."""
        cn = connect_db(host, user, password, database, drivername=drivername, **kw)
        self.set_connection(cn)
        return cn

    def _require_connection(self) -> Any:
        if self._connection is None:
            raise ConnectionNotConfigured(
                'Database connection not set. Use set_connection() to inject '
                'a connection before executing queries.')
        return self._connection


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
