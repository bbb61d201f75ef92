"""
Unit tests for database connection pool

Construction checks run without a database; pooled connections use testcontainers.
"""
import pytest

from src.config import DatabaseSettings
from src.warehouse.connection import DatabaseConnectionPool


def test_password_required():
    """Test that a pool cannot be built without a password"""
    with pytest.raises(ValueError, match="password"):
        DatabaseConnectionPool(password=None)


def test_from_settings():
    """Test that settings map onto the connection string"""
    pool = DatabaseConnectionPool.from_settings(
        DatabaseSettings(host="db", port=6543, name="movements", user="pipeline", password="secret")
    )

    assert "host=db" in pool.conninfo
    assert "port=6543" in pool.conninfo
    assert "dbname=movements" in pool.conninfo
    assert pool.is_open is False


def test_get_connection_requires_open_pool():
    """Test that using a closed pool fails loudly"""
    pool = DatabaseConnectionPool(password="secret")

    with pytest.raises(RuntimeError, match="not open"):
        with pool.get_connection():
            pass


@pytest.mark.integration
def test_connection_pool_initialization(postgres_container):
    """Test that connection pool initializes correctly"""
    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_movements",
        user="test_pipeline",
        password="test_password",
        min_size=2,
        max_size=5,
    )

    pool.open()

    assert pool.is_open is True
    assert pool._pool.min_size == 2
    assert pool._pool.max_size == 5

    pool.close()
    assert pool.is_open is False


@pytest.mark.integration
def test_rows_are_dictionaries(postgres_container):
    """Test getting a connection from the pool"""
    with DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_movements",
        user="test_pipeline",
        password="test_password",
    ) as pool:
        assert pool.execute_query("SELECT 1 AS test") == [{"test": 1}]
