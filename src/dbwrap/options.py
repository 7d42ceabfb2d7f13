"""
Connection options, loadable from dicts, keywords or `libb.Setting` sections.
"""
from dataclasses import dataclass

from dbwrap.strategy import get_available_dialects, get_strategy_class
from dbwrap.strategy import is_supported_dialect

from libb import ConfigOptions, scriptname

__all__ = ['DatabaseOptions']


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options for opening one session

    drivername selects the dialect: `mysql` (default), `postgresql`, `sqlite`.
    MySQL sessions need no database, so a server can be reached before any
    database is selected. SQLite only needs `database` (a path or ':memory:').

    - charset: MySQL connection character set (default: utf8mb4)
    - timeout: connect timeout in seconds, 0 leaves the driver default
    - appname: reported to the server, defaults to the running script's name

    Engine pooling is off unless use_pool is set:
    - pool_max_connections: connections kept open (default: 5)
    - pool_max_idle_time: seconds before a pooled connection is recycled (default: 300)
    - pool_wait_timeout: seconds to wait for a free connection (default: 30)
    """
    drivername: str = 'mysql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0
    charset: str = 'utf8mb4'
    appname: str = None
    use_pool: bool = False
    pool_max_connections: int = 5
    pool_max_idle_time: int = 300
    pool_wait_timeout: int = 30

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            raise ValueError(f'drivername must be one of: {get_available_dialects()}')
        get_strategy_class(self.drivername).validate_options(self)
        if not self.appname:
            self.appname = scriptname() or 'python_console'
