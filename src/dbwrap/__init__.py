"""
Parameterized query wrapper for MySQL, PostgreSQL and SQLite.

Statements run through a `QueryExecutor` holding one injected connection, or
through the module functions below, which take the connection as their first
argument:

    cn = connect({'drivername': 'sqlite', 'database': ':memory:'})
    rows = dbwrap.execute(cn, 'select * from users where id = ?', [1])

The module functions are facades over a short-lived `QueryExecutor`.
"""
__version__ = '0.1.0'

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from dbwrap.connection import ConnectionWrapper, connect, connect_db
from dbwrap.connection import connect_host
from dbwrap.exceptions import ConnectFailed, ConnectionFailure
from dbwrap.exceptions import ConnectionNotConfigured, DatabaseError
from dbwrap.exceptions import DbConnectionError, ExecutionError, IntegrityError
from dbwrap.exceptions import InvalidIdentifier, InvalidReturnMode
from dbwrap.exceptions import OperationalError, PrepareError, ProgrammingError
from dbwrap.exceptions import QueryError, SearchResultInvalid
from dbwrap.exceptions import TypeConversionError, ValidationError
from dbwrap.executor import QueryExecutor
from dbwrap.options import DatabaseOptions
from dbwrap.result import ResultSet
from dbwrap.result import collect_rows as collect_rows
from dbwrap.search import SearchOptions, build_search
from dbwrap.sql import quote_identifier, validate_identifier
from dbwrap.types import BindParam, BindType, ReturnMode


def execute(cn: Any, template: str, parameters: Sequence[Any] = (),
            return_mode: ReturnMode | str = ReturnMode.RESULT) -> ResultSet | int | None:
    """Execute a parameterized statement on the connection.
    """
    return QueryExecutor(cn).execute(template, parameters, return_mode)


def search(cn: Any, table: str, text: str, columns: Iterable[str] = ('name',),
           options: SearchOptions | Mapping[str, Any] | None = None) -> ResultSet:
    """Run a relevance-ranked keyword search on the connection.
    """
    return QueryExecutor(cn).search(table, text, columns, options)


def count_rows(cn: Any, table: str, column: str | None = None, value: Any = None) -> int:
    """Count the rows of a table, optionally where column equals value.
    """
    return QueryExecutor(cn).count_rows(table, column, value)


def get_unique_rows(cn: Any, table: str, column: str) -> list[Any]:
    """Return the distinct non-empty values of a column in ascending order.
    """
    return QueryExecutor(cn).get_unique_rows(table, column)


__all__ = [
    # Core
    'QueryExecutor',
    'ConnectionWrapper',
    'DatabaseOptions',
    'ResultSet',
    'SearchOptions',
    'BindParam',
    'BindType',
    'ReturnMode',
    # Connections
    'connect',
    'connect_host',
    'connect_db',
    # Statements
    'execute',
    'collect_rows',
    'search',
    'count_rows',
    'get_unique_rows',
    'build_search',
    'validate_identifier',
    'quote_identifier',
    # Exceptions
    'DatabaseError',
    'ConnectionFailure',
    'ConnectionNotConfigured',
    'ConnectFailed',
    'QueryError',
    'PrepareError',
    'ExecutionError',
    'SearchResultInvalid',
    'ValidationError',
    'InvalidIdentifier',
    'InvalidReturnMode',
    'TypeConversionError',
    'DbConnectionError',
    'IntegrityError',
    'ProgrammingError',
    'OperationalError',
]
