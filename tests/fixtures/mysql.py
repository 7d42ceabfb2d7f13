import logging
import pathlib
import sys

import dbwrap as db
import pytest
from testcontainers.mysql import MySqlContainer

from libb import Setting

HERE = pathlib.Path(pathlib.Path(__file__).resolve()).parent
sys.path.insert(0, str(HERE.parent))
import config

from tests.fixtures.data import stage_products

logger = logging.getLogger(__name__)


@pytest.fixture(scope='session')
def mysql_docker(request):
    """Session-scoped MySQL container using testcontainers.

    Tests depending on it are skipped when no container runtime is available.
    """
    container = MySqlContainer(
        image='mysql:8.0',
        username=config.mysql.username,
        password=config.mysql.password,
        dbname=config.mysql.database,
    )

    try:
        container.start()
    except Exception as e:
        logger.warning(f'Unable to start mysql container: {e}')
        pytest.skip(f'MySQL container unavailable: {e}')

    Setting.unlock()
    config.mysql.hostname = container.get_container_host_ip()
    config.mysql.port = int(container.get_exposed_port(3306))
    Setting.lock()

    logger.info(f'MySQL container started at {config.mysql.hostname}:{config.mysql.port}')

    def finalizer():
        try:
            container.stop()
            logger.info('MySQL container stopped')
        except Exception as e:
            logger.warning(f'Error stopping container: {e}')

    request.addfinalizer(finalizer)
    return container


@pytest.fixture
def my_conn(mysql_docker):
    """Function-scoped MySQL connection with reset test data."""
    cn = db.connect('mysql', config=config)
    try:
        stage_products(cn, id_column='id int auto_increment primary key')
        yield cn
    finally:
        cn.close()
