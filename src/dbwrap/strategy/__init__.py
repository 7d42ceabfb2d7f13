"""
Dialect strategy lookup.

Strategies are stateless, so one instance per dialect is cached and shared.
"""
from functools import lru_cache

from dbwrap.strategy.base import _STRATEGY_REGISTRY
from dbwrap.strategy.base import DatabaseStrategy as DatabaseStrategy
from dbwrap.strategy.base import register_strategy as register_strategy
from dbwrap.strategy.mysql import MySQLStrategy as MySQLStrategy
from dbwrap.strategy.postgres import PostgresStrategy as PostgresStrategy
from dbwrap.strategy.sqlite import SQLiteStrategy as SQLiteStrategy
from dbwrap.utils import get_dialect_name


def get_available_dialects() -> list[str]:
    """Names accepted as `drivername`."""
    return list(_STRATEGY_REGISTRY)


def is_supported_dialect(dialect: str) -> bool:
    return dialect in _STRATEGY_REGISTRY


def get_strategy_class(dialect: str) -> type[DatabaseStrategy]:
    """Look up the registered strategy class for a dialect name.

    Raises
        ValueError: If no strategy is registered for the dialect
    """
    try:
        return _STRATEGY_REGISTRY[dialect]
    except KeyError:
        raise ValueError(f'Unsupported dialect: {dialect}. '
                         f'Available: {get_available_dialects()}') from None


@lru_cache(maxsize=8)
def get_strategy(dialect: str) -> DatabaseStrategy:
    """Shared strategy instance for a dialect name, e.g. when building SQL
    for a backend without a live connection.
    """
    return get_strategy_class(dialect)()


def get_db_strategy(cn) -> DatabaseStrategy:
    """Strategy for whatever dialect the connection speaks."""
    return get_strategy(get_dialect_name(cn))
