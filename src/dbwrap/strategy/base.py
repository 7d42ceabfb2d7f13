"""
Base strategy interface for dialect-specific behavior.

Defines the abstract base class that all dialect strategies inherit from. The
executor and the search builder only ever talk to this interface, so the same
statement pipeline runs against SQLite, PostgreSQL and MySQL:

- connection URL and engine arguments
- connection configuration (autocommit, helper functions)
- placeholder style and identifier quoting
- the SQL expression that strips non-alphanumeric characters from a column
- last-insert-id retrieval
- classification of backend errors into prepare-phase and execution-phase
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import sqlalchemy as sa
from dbwrap.sql import quote_identifier as sql_quote_identifier
from dbwrap.sql import standardize_placeholders

if TYPE_CHECKING:
    from dbwrap.options import DatabaseOptions

# Registry of dialect name -> strategy class
# Defined here to avoid circular imports (concrete strategies import from base)
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Decorator to register a strategy class for a dialect.

    Usage:
        @register_strategy('mysql')
        class MySQLStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Base class for dialect-specific operations.
    """

    #: DB-API paramstyle of the driver, 'qmark' or 'format'
    paramstyle: str = 'format'

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the dialect identifier (e.g., 'mysql', 'sqlite')."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> sa.URL:
        """Build the SQLAlchemy connection URL for this dialect.

        Args:
            options: DatabaseOptions containing connection parameters

        Returns
            URL object suitable for sqlalchemy.create_engine
        """

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Return additional create_engine kwargs for this dialect."""
        return {}

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Return list of required option field names for this dialect.
        """

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Validate options for this dialect.

        Raises
            ValueError: If any required field is None or 0
        """
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    @abstractmethod
    def configure_connection(self, raw_conn: Any) -> None:
        """Configure a freshly opened DBAPI connection.

        Args:
            raw_conn: The raw DBAPI connection (not wrapped)
        """

    @abstractmethod
    def enable_autocommit(self, raw_conn: Any) -> None:
        """Enable auto-commit mode on a raw database connection.
        """

    def quote_identifier(self, identifier: str) -> str:
        """Quote a validated identifier for this dialect."""
        return sql_quote_identifier(identifier, self.dialect_name)

    def standardize_sql(self, sql: str) -> str:
        """Convert placeholders to this driver's paramstyle."""
        return standardize_placeholders(sql, self.paramstyle)

    @abstractmethod
    def strip_expression(self, quoted_column: str) -> str:
        """SQL expression removing every non-alphanumeric character from a column.

        Args:
            quoted_column: Column reference, already quoted

        Returns
            SQL expression text
        """

    def match_term(self, quoted_column: str, case_sensitive: bool) -> str:
        """Build one scored search term for a column.

        A case-sensitive hit scores 2, a case-insensitive hit scores 1.
        """
        stripped = self.strip_expression(quoted_column)
        if case_sensitive:
            return f'(CASE WHEN {stripped} LIKE ? THEN 2 ELSE 0 END)'
        return f'(CASE WHEN LOWER({stripped}) LIKE LOWER(?) THEN 1 ELSE 0 END)'

    def match_pattern(self, keyword: str, case_sensitive: bool) -> str:
        """Build the substring pattern bound to a search term."""
        if case_sensitive:
            return f'%{keyword}%'
        return f'%{keyword.lower()}%'

    @abstractmethod
    def last_insert_id(self, cursor: Any, raw_conn: Any) -> int:
        """Return the connection-level identifier of the last inserted row.

        Returns 0 when the session has not generated an identifier.
        """

    @abstractmethod
    def is_prepare_error(self, exc: BaseException) -> bool:
        """Check if a backend error was raised while parsing the statement.

        Prepare-phase errors are malformed SQL and references to unknown
        tables or columns. Everything else is an execution error.
        """

    def error_text(self, exc: BaseException) -> str:
        """Extract the backend's diagnostic text from a driver exception."""
        return str(exc)
