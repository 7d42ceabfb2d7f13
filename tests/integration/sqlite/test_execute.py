import dbwrap as db
import pytest
from dbwrap import BindParam, BindType, ResultSet
from dbwrap.exceptions import ExecutionError, PrepareError, QueryError


def test_select_returns_result_set(sl_executor):
    """Row-returning statements in result mode give a ResultSet"""
    result = sl_executor.execute('SELECT name FROM products WHERE category = ? ORDER BY id',
                                 ['accessories'])
    assert isinstance(result, ResultSet)
    assert [row['name'] for row in result] == ['Phone Case', 'phone charger']


def test_format_placeholders_accepted(sl_executor):
    """Templates written with %s run on qmark drivers"""
    result = sl_executor.execute('SELECT name FROM products WHERE id = %s', [1])
    assert result.fetch_next_row() == {'name': 'Phone Case'}


def test_question_mark_in_comment_not_bound(sl_executor):
    """A ? inside a comment is not a placeholder"""
    result = sl_executor.execute('SELECT name FROM products -- by id?\n'
                                 'WHERE id = ? /* one row? */', [1])
    assert result.fetch_next_row() == {'name': 'Phone Case'}


def test_insert_returns_id(sl_executor):
    """id mode returns the generated row identifier"""
    new_id = sl_executor.execute('INSERT INTO products (name, category) VALUES (?, ?)',
                                 ['Mouse Pad', 'accessories'], 'id')
    assert new_id == 7
    result = sl_executor.execute('SELECT name FROM products WHERE id = ?', [new_id])
    assert result.fetch_next_row() == {'name': 'Mouse Pad'}


def test_non_row_statement_returns_none(sl_executor):
    """Result mode on UPDATE gives None"""
    result = sl_executor.execute('UPDATE products SET category = ? WHERE id = ?', ['misc', 1])
    assert result is None


def test_explicit_bind_type(sl_executor):
    """A numeric string bound as INT matches an integer column"""
    result = sl_executor.execute('SELECT name FROM products WHERE id = ?',
                                 [BindParam('2', BindType.INT)])
    assert result.fetch_next_row() == {'name': 'phone charger'}


def test_no_parameters(sl_executor):
    result = sl_executor.execute('SELECT COUNT(*) AS n FROM products')
    assert result.fetch_next_row() == {'n': 6}


def test_parameter_value_not_interpreted(sl_executor):
    """Quoted payloads in parameters stay data"""
    payload = "x'); DROP TABLE products; --"
    sl_executor.execute('INSERT INTO products (name) VALUES (?)', [payload])
    result = sl_executor.execute('SELECT name FROM products WHERE name = ?', [payload])
    assert result.fetch_next_row() == {'name': payload}
    assert sl_executor.count_rows('products') == 7


def test_unknown_table_is_prepare_error(sl_executor):
    with pytest.raises(PrepareError, match='Failed to prepare query') as excinfo:
        sl_executor.execute('SELECT * FROM missing WHERE id = ?', [1])
    assert 'no such table' in excinfo.value.diagnostic
    assert 'no such table' in sl_executor.error()


def test_syntax_error_is_prepare_error(sl_executor):
    with pytest.raises(PrepareError):
        sl_executor.execute('SELEC * FROM products')


def test_constraint_violation_is_execution_error(sl_executor):
    with pytest.raises(ExecutionError, match='Query execution failed') as excinfo:
        sl_executor.execute('INSERT INTO products (id, name) VALUES (?, ?)', [1, 'dupe'])
    assert 'UNIQUE constraint failed' in excinfo.value.diagnostic


def test_parameter_count_mismatch_is_execution_error(sl_executor):
    with pytest.raises(ExecutionError):
        sl_executor.execute('SELECT * FROM products WHERE id = ? AND name = ?', [1])


def test_error_cleared_after_success(sl_executor):
    with pytest.raises(QueryError):
        sl_executor.execute('SELECT * FROM missing')
    assert sl_executor.error() != ''
    sl_executor.execute('SELECT 1')
    assert sl_executor.error() == ''


def test_set_connection_clears_error(sl_executor, sl_conn):
    with pytest.raises(QueryError):
        sl_executor.execute('SELECT * FROM missing')
    sl_executor.set_connection(sl_conn)
    assert sl_executor.error() == ''


def test_module_facade(sl_conn):
    result = db.execute(sl_conn, 'SELECT name FROM products WHERE id = ?', [3])
    assert result.fetch_next_row() == {'name': 'Laptop case'}


def test_connection_tracks_calls(sl_conn):
    calls = sl_conn.calls
    db.execute(sl_conn, 'SELECT 1')
    assert sl_conn.calls == calls + 1


def test_raw_dbapi_connection(raw_sqlite_conn):
    """A plain sqlite3 connection wrapped with from_dbapi runs statements"""
    executor = db.QueryExecutor(raw_sqlite_conn)
    executor.execute('CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)')
    new_id = executor.execute('INSERT INTO t (name) VALUES (?)', ['a'], 'id')
    assert new_id == 1
    assert executor.count_rows('t') == 1
