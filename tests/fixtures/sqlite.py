import sqlite3

import dbwrap as db
import pytest
from dbwrap import ConnectionWrapper, QueryExecutor

from tests.fixtures.data import stage_products


@pytest.fixture
def sl_conn():
    """In-memory SQLite connection with the products table staged"""
    conn = db.connect({
        'drivername': 'sqlite',
        'database': ':memory:'
    })
    stage_products(conn)

    yield conn
    conn.close()


@pytest.fixture
def sl_executor(sl_conn):
    """QueryExecutor bound to the staged SQLite connection"""
    return QueryExecutor(sl_conn)


@pytest.fixture
def raw_sqlite_conn():
    """Plain sqlite3 connection wrapped without SQLAlchemy"""
    conn = ConnectionWrapper.from_dbapi(sqlite3.connect(':memory:'))
    yield conn
    conn.close()
