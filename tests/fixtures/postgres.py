import logging
import pathlib
import sys

import dbwrap as db
import pytest
from testcontainers.postgres import PostgresContainer

from libb import Setting

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
sys.path.insert(0, str(HERE.parent))
import config

from tests.fixtures.data import stage_products

logger = logging.getLogger(__name__)


@pytest.fixture(scope='session')
def psql_docker(request):
    """Session-scoped PostgreSQL container using testcontainers.

    Tests depending on it are skipped when no container runtime is available.
    """
    container = PostgresContainer(
        image='postgres:16',
        username=config.postgresql.username,
        password=config.postgresql.password,
        dbname=config.postgresql.database,
    )

    try:
        container.start()
    except Exception as e:
        logger.warning(f'Unable to start postgres container: {e}')
        pytest.skip(f'PostgreSQL container unavailable: {e}')

    Setting.unlock()
    config.postgresql.hostname = container.get_container_host_ip()
    config.postgresql.port = int(container.get_exposed_port(5432))
    Setting.lock()

    logger.info(
        f'PostgreSQL container started at '
        f'{config.postgresql.hostname}:{config.postgresql.port}'
    )

    def finalizer():
        try:
            container.stop()
            logger.info('PostgreSQL container stopped')
        except Exception as e:
            logger.warning(f'Error stopping container: {e}')

    request.addfinalizer(finalizer)
    return container


@pytest.fixture
def pg_conn(psql_docker):
    """
    Connection fixture with function scope for clean tests.
    Each test gets a fresh connection with reset test data.
    """
    cn = db.connect('postgresql', config=config)
    try:
        stage_products(cn, id_column='id serial primary key')
        yield cn
    finally:
        cn.close()
