"""
Database-specific exception classes.
"""
import sqlite3

import psycopg
import pymysql


class DatabaseError(Exception):
    """Base class for all dbwrap errors.
    """


class ConnectionFailure(DatabaseError):
    """Error establishing or maintaining database connection.
    """


class ConnectionNotConfigured(ConnectionFailure):
    """No connection has been injected into the executor.
    """


class ConnectFailed(ConnectionFailure):
    """The backend refused or could not complete a new connection.
    """


class QueryError(DatabaseError):
    """Error in query syntax or execution.

    `diagnostic` holds the backend's own error text, when there is one.
    """

    def __init__(self, message: str = '', diagnostic: str = '') -> None:
        super().__init__(message)
        self.diagnostic = diagnostic


class PrepareError(QueryError):
    """The backend rejected the statement text (syntax, unknown table/column).
    """


class ExecutionError(QueryError):
    """The backend failed while executing a well-formed statement.
    """


class SearchResultInvalid(QueryError):
    """A search statement executed but did not produce a row-set.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class InvalidIdentifier(ValidationError):
    """A table or column name failed lexical validation.
    """


class InvalidReturnMode(ValidationError):
    """The caller asked for a return mode other than 'result' or 'id'.
    """


class TypeConversionError(DatabaseError):
    """Error converting a Python value to a bind parameter.
    """


DriverError = (
    sqlite3.Error,
    psycopg.Error,
    pymysql.err.Error,
    )

DbConnectionError = (
    psycopg.OperationalError,
    psycopg.InterfaceError,
    sqlite3.OperationalError,
    sqlite3.InterfaceError,
    pymysql.err.OperationalError,
    pymysql.err.InterfaceError,
    ConnectionFailure,
    )

IntegrityError = (
    psycopg.IntegrityError,
    sqlite3.IntegrityError,
    pymysql.err.IntegrityError,
    )

ProgrammingError = (
    psycopg.ProgrammingError,
    sqlite3.ProgrammingError,
    pymysql.err.ProgrammingError,
    PrepareError,
    )

OperationalError = (
    psycopg.OperationalError,
    sqlite3.OperationalError,
    pymysql.err.OperationalError,
    )
