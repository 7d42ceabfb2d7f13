"""
Prepared statement lifecycle on top of a DB-API 2.0 cursor (PEP-249).

A `Statement` is transient: it is prepared from a template, bound once,
executed once, materialized and closed. DB-API drivers parse the statement
when it is executed, so backend errors are classified after the fact into
prepare-phase (`PrepareError`) and execution-phase (`ExecutionError`)
failures by the dialect strategy.
"""
import logging
import time
from collections.abc import Sequence
from functools import wraps
from typing import Any, Self

from dbwrap.exceptions import DriverError, ExecutionError, PrepareError
from dbwrap.result import ResultSet
from dbwrap.sql import count_placeholders
from dbwrap.strategy import DatabaseStrategy, get_db_strategy
from dbwrap.types import bind_parameters
from dbwrap.utils import get_raw_connection

logger = logging.getLogger(__name__)


def dumpsql(func):
    """Decorator for logging statements, bind signatures and timing."""
    @wraps(func)
    def wrapper(self, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{self.template}\ntypes: {self.signature!r} args: {self.values}')
        try:
            return func(self, *args, **kwargs)
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{self.template}\nargs: {self.values}')
            raise
        finally:
            elapsed = time.time() - start
            if hasattr(self.cn, 'addcall'):
                self.cn.addcall(elapsed)
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Statement:
    """One parameterized statement bound to a connection.

    Usage:
        with Statement(cn, 'select * from t where id = ?') as stmt:
            stmt.bind([1])
            stmt.execute()
            rows = stmt.materialize()
    """

    def __init__(self, cn: Any, template: str,
                 strategy: DatabaseStrategy | None = None) -> None:
        self.cn = cn
        self.template = template
        self.strategy = strategy or get_db_strategy(cn)
        self.signature = ''
        self.values: tuple = ()
        self.dbapi_cursor = None

    def __enter__(self) -> Self:
        return self.prepare()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def raw_connection(self) -> Any:
        raw = getattr(self.cn, 'dbapi_connection', None) or self.cn
        return get_raw_connection(raw)

    def prepare(self) -> Self:
        """Open the cursor the statement will run on."""
        if self.dbapi_cursor is None:
            self.dbapi_cursor = self.raw_connection.cursor()
        return self

    def bind(self, params: Sequence[Any]) -> str:
        """Bind all parameters positionally, returning the type signature.

        The placeholder count is not checked here; a mismatch is reported by
        the backend when the statement executes.
        """
        self.signature, self.values = bind_parameters(params)
        expected = count_placeholders(self.template)
        if expected != len(self.values):
            logger.debug(f'Statement has {expected} placeholders but '
                         f'{len(self.values)} parameters were bound')
        return self.signature

    @dumpsql
    def execute(self) -> None:
        """Run the statement, translating driver errors.

        Raises
            PrepareError: The backend rejected the statement text
            ExecutionError: The statement failed while running
        """
        self.prepare()
        try:
            if self.values:
                sql = self.strategy.standardize_sql(self.template)
                self.dbapi_cursor.execute(sql, self.values)
            else:
                self.dbapi_cursor.execute(self.template)
        except DriverError as exc:
            diagnostic = self.strategy.error_text(exc)
            if self.strategy.is_prepare_error(exc):
                raise PrepareError(f'Failed to prepare query: {diagnostic}',
                                   diagnostic=diagnostic) from exc
            raise ExecutionError(f'Query execution failed: {diagnostic}',
                                 diagnostic=diagnostic) from exc

    def materialize(self) -> ResultSet | None:
        """Buffer the statement's row-set, or None if it produced no rows.

        INSERT, UPDATE, DELETE and DDL statements have no row description and
        materialize to None.
        """
        description = self.dbapi_cursor.description
        if description is None:
            return None
        columns = [d[0] for d in description]
        rows = self.dbapi_cursor.fetchall()
        return ResultSet(columns, rows, rowcount=self.dbapi_cursor.rowcount)

    def last_insert_id(self) -> int:
        """Return the connection's last auto-generated row identifier."""
        return self.strategy.last_insert_id(self.dbapi_cursor, self.raw_connection)

    def close(self) -> None:
        """Close the underlying cursor."""
        if self.dbapi_cursor is not None:
            self.dbapi_cursor.close()
            self.dbapi_cursor = None
