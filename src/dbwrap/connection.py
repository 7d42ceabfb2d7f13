"""
Opening and wrapping database sessions.

`connect()` resolves options into a SQLAlchemy engine (one per distinct option
set), checks out a connection and hands back a `ConnectionWrapper`.
`connect_host()` and `connect_db()` are shortcuts taking plain credentials.

Statements never go through SQLAlchemy's execution layer: they run on the
DBAPI connection underneath, which is switched to autocommit when the session
opens. No transactions are managed here.
"""
import atexit
import logging
import threading
from dataclasses import fields
from typing import Any, Self

import sqlalchemy as sa
from dbwrap.exceptions import ConnectFailed
from dbwrap.options import DatabaseOptions
from dbwrap.strategy import get_db_strategy, get_strategy
from dbwrap.utils import get_dialect_name, get_raw_connection
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

from libb import load_options

logger = logging.getLogger(__name__)

# Engines keyed by their option set, guarded for concurrent connects
_engines: dict[str, Engine] = {}
_engines_lock = threading.RLock()


class ConnectionWrapper:
    """One live session, plus statement counters.

    `calls` and `time` accumulate the number and total duration of statements
    run through the wrapper. Unknown attributes resolve on the DBAPI
    connection, so driver methods stay reachable.

    Wrappers normally come from `connect()`. `from_dbapi` wraps a DBAPI
    connection the caller opened itself.
    """

    def __init__(self, sa_connection: sa.engine.Connection | None = None,
                 options: DatabaseOptions | None = None,
                 dbapi_connection: Any | None = None) -> None:
        self.sa_connection = sa_connection
        self.engine = sa_connection.engine if sa_connection is not None else None
        self.options = options
        if dbapi_connection is None and sa_connection is not None:
            dbapi_connection = get_raw_connection(sa_connection.connection)
        self.dbapi_connection = dbapi_connection
        self.calls = 0
        self.time = 0

    @classmethod
    def from_dbapi(cls, dbapi_connection: Any) -> Self:
        """Wrap a DBAPI connection, switching it to autocommit.

        SQLite connections also get the functions the search query needs.
        """
        wrapper = cls(dbapi_connection=dbapi_connection)
        get_db_strategy(wrapper).configure_connection(dbapi_connection)
        return wrapper

    def __repr__(self) -> str:
        if self.closed:
            return f'ConnectionWrapper(closed, calls={self.calls})'
        return f'ConnectionWrapper({self.dialect!r}, calls={self.calls})'

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __getattr__(self, name: str) -> Any:
        if name == 'dbapi_connection':
            raise AttributeError(name)
        return getattr(self.dbapi_connection, name)

    @property
    def dialect(self) -> str:
        """'mysql', 'postgresql' or 'sqlite'."""
        if self.engine is not None:
            return str(self.engine.dialect.name).lower()
        return get_dialect_name(self.dbapi_connection)

    @property
    def closed(self) -> bool:
        if self.sa_connection is not None:
            return self.sa_connection.closed
        return self.dbapi_connection is None

    @property
    def is_pooled(self) -> bool:
        """True when the engine keeps connections open between sessions."""
        if self.engine is None:
            return False
        return not isinstance(self.engine.pool, NullPool)

    def cursor(self) -> Any:
        return self.dbapi_connection.cursor()

    def addcall(self, elapsed: float) -> None:
        """Count one statement that took `elapsed` seconds."""
        self.time += elapsed
        self.calls += 1

    def close(self) -> None:
        """Release the session, logging its statement counters once.
        """
        if self.closed:
            return
        if self.sa_connection is not None:
            self.sa_connection.close()
        else:
            self.dbapi_connection.close()
            self.dbapi_connection = None
        logger.debug(f'Connection closed: {self.calls} queries in {self.time:.2f}s '
                     f'(avg: {self.time/max(1, self.calls):.3f}s per query)')


def get_engine_for_options(options: DatabaseOptions, engine_factory=sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Return the engine for an option set, creating it on first use.

    Without `use_pool` the engine uses NullPool, so closing a wrapper closes
    its session. Extra keyword arguments go to the engine factory and win
    over the computed ones.
    """
    key = str(options)

    with _engines_lock:
        engine = _engines.get(key)
        if engine is not None:
            return engine

        strategy = get_strategy(options.drivername)
        engine_kwargs = {'echo': False, **strategy.get_engine_kwargs(options)}
        if options.use_pool:
            engine_kwargs.update(
                pool_size=options.pool_max_connections,
                pool_recycle=options.pool_max_idle_time,
                pool_timeout=options.pool_wait_timeout,
                max_overflow=10,
                pool_pre_ping=True,
                )
        else:
            engine_kwargs['poolclass'] = NullPool
        engine_kwargs.update(kwargs)

        engine = engine_factory(strategy.build_connection_url(options), **engine_kwargs)
        _engines[key] = engine
        logger.debug(f'Created {options.drivername} engine (pooled={options.use_pool})')
        return engine


def dispose_all_engines() -> None:
    """Close every pooled connection and forget all engines."""
    with _engines_lock:
        for engine in _engines.values():
            engine.dispose()
        _engines.clear()
    logger.debug('Disposed all engines')


atexit.register(dispose_all_engines)


def configure_connection(sa_connection: sa.engine.Connection) -> None:
    """Switch a new connection to autocommit and apply dialect settings.
    """
    sa_connection.execution_options(isolation_level='AUTOCOMMIT')
    strategy = get_db_strategy(sa_connection)
    strategy.configure_connection(get_raw_connection(sa_connection.connection))


@load_options(cls=DatabaseOptions)
def connect(options: DatabaseOptions | dict[str, Any] | str,
            config: Any | None = None, **kw: Any) -> ConnectionWrapper:
    """Open a session.

    Args:
        options: DatabaseOptions, a dict of options, or the name of a section
            in `config`; keyword arguments override individual options
        config: Config module holding named `libb.Setting` sections

    Raises
        ConnectFailed: If the backend refuses the connection
    """
    if isinstance(options, DatabaseOptions):
        for field in fields(options):
            kw.pop(field.name, None)
    else:
        options = load_options(cls=DatabaseOptions)(lambda o, c: o)(options, config, **kw)

    engine = get_engine_for_options(options)
    try:
        sa_connection = engine.connect()
    except sa.exc.DBAPIError as exc:
        logger.error(f'Connection to {options.drivername} at {options.hostname} failed: {exc.orig}')
        raise ConnectFailed(f'Connection failed: {exc.orig}') from exc

    configure_connection(sa_connection)
    logger.debug(f'Connected to {options.drivername} database {options.database!r}')
    return ConnectionWrapper(sa_connection, options)


def connect_host(host: str, user: str, password: str, drivername: str = 'mysql',
                 **kw: Any) -> ConnectionWrapper:
    """Open a server session without selecting a database.
    """
    return connect_db(host, user, password, None, drivername=drivername, **kw)


def connect_db(host: str, user: str, password: str, database: str | None = None,
               drivername: str = 'mysql', **kw: Any) -> ConnectionWrapper:
    """Open a session on a server, optionally selecting a database.
    """
    options = DatabaseOptions(drivername=drivername, hostname=host, username=user,
                              password=password, database=database, **kw)
    return connect(options)
