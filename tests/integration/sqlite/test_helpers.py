import dbwrap as db
import pytest
from dbwrap.exceptions import InvalidIdentifier


def test_count_rows_whole_table(sl_executor):
    assert sl_executor.count_rows('products') == 6


def test_count_rows_filtered(sl_executor):
    assert sl_executor.count_rows('products', 'category', 'cases') == 2


def test_count_rows_no_match(sl_executor):
    assert sl_executor.count_rows('products', 'category', 'garden') == 0


@pytest.mark.parametrize('value', [None, '', 0, '0'])
def test_count_rows_empty_value_counts_all(sl_executor, value):
    assert sl_executor.count_rows('products', 'category', value) == 6


def test_count_rows_empty_column_counts_all(sl_executor):
    assert sl_executor.count_rows('products', '', 'cases') == 6


def test_count_rows_invalid_table(sl_executor):
    with pytest.raises(InvalidIdentifier, match='Invalid table name'):
        sl_executor.count_rows('products; DROP TABLE products')


def test_count_rows_invalid_column(sl_executor):
    with pytest.raises(InvalidIdentifier, match='Invalid column name'):
        sl_executor.count_rows('products', '1category', 'x')


def test_get_unique_rows(sl_executor):
    """Distinct values ascending, with NULL and empty values dropped"""
    assert sl_executor.get_unique_rows('products', 'category') == ['accessories', 'cases']


def test_get_unique_rows_invalid_column(sl_executor):
    with pytest.raises(InvalidIdentifier):
        sl_executor.get_unique_rows('products', 'cat egory')


def test_collect_rows_keyed_by_id(sl_executor):
    result = sl_executor.execute('SELECT id, name FROM products WHERE category = ?', ['cases'])
    collected = sl_executor.collect_rows(result)
    assert collected == {3: {'id': 3, 'name': 'Laptop case'},
                         4: {'id': 4, 'name': 'iPhone case!'}}


def test_collect_rows_without_id(sl_executor):
    result = sl_executor.execute('SELECT name FROM products ORDER BY id LIMIT 2')
    assert sl_executor.collect_rows(result) == {0: {'name': 'Phone Case'},
                                                1: {'name': 'phone charger'}}


def test_module_facades(sl_conn):
    assert db.count_rows(sl_conn, 'products') == 6
    assert db.get_unique_rows(sl_conn, 'products', 'category') == ['accessories', 'cases']
