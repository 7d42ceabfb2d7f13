import sqlite3

import dbwrap as db
import pytest
from dbwrap import QueryExecutor, SearchOptions
from dbwrap.exceptions import InvalidIdentifier

from tests.fixtures.data import PRODUCTS, stage_products


def names(result):
    return [row['name'] for row in result]


def test_case_insensitive_needs_two_hits(sl_executor):
    """Each keyword scores 1, so only rows matching both keywords pass"""
    result = sl_executor.search('products', 'phone case', ['name'])
    assert sorted(names(result)) == ['Phone Case', 'iPhone case!']


def test_relevance_column_returned(sl_executor):
    result = sl_executor.search('products', 'phone case', ['name'])
    assert {row['relevance'] for row in result} == {2}


def test_single_keyword_case_insensitive_returns_nothing(sl_executor):
    result = sl_executor.search('products', 'phone', ['name'])
    assert result.num_rows == 0


def test_case_sensitive_ranking(sl_executor):
    """Exact-case hits score 2, so one hit is enough and two rank first"""
    result = sl_executor.search('products', 'Phone case', ['name'],
                                {'case_sensitive': True})
    rows = result.fetch_all()
    assert rows[0]['name'] == 'iPhone case!'
    assert rows[0]['relevance'] == 4
    assert sorted(r['name'] for r in rows[1:]) == ['Laptop case', 'Phone Case']


def test_non_alphanumeric_ignored_in_column(sl_executor):
    """Punctuation in stored values does not break keyword matches"""
    result = sl_executor.search('products', 'iphonecase phone', ['name'])
    assert names(result) == ['iPhone case!']


def test_multiple_columns(sl_executor):
    result = sl_executor.search('products', 'accessories', ['name', 'category'])
    assert result.num_rows == 0
    result = sl_executor.search('products', 'phone accessories', ['name', 'category'])
    assert sorted(names(result)) == ['Phone Case', 'phone charger']


def test_limit_and_offset(sl_executor):
    opts = SearchOptions(case_sensitive=True, limit=1)
    assert names(sl_executor.search('products', 'Phone case', ['name'], opts)) == ['iPhone case!']
    opts = SearchOptions(case_sensitive=True, limit=5, offset=1)
    assert len(sl_executor.search('products', 'Phone case', ['name'], opts)) == 2


def test_invalid_table(sl_executor):
    with pytest.raises(InvalidIdentifier):
        sl_executor.search('1products', 'phone')


def test_module_facade(sl_conn):
    result = db.search(sl_conn, 'products', 'phone case')
    assert result.num_rows == 2


def test_search_on_bare_sqlite3_connection():
    """A plain sqlite3 connection can be injected and searched directly"""
    raw = sqlite3.connect(':memory:')
    try:
        executor = QueryExecutor(raw)
        assert executor.get_connection() is raw
        stage_products(raw)
        result = executor.search('products', 'phone case')
        assert sorted(names(result)) == ['Phone Case', 'iPhone case!']
        assert executor.count_rows('products') == len(PRODUCTS)
    finally:
        raw.close()
