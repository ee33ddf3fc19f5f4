"""
Tests for the orm-workshop command line.
"""

import pytest
from typer.testing import CliRunner

from orm_workshop.main import app

runner = CliRunner()


@pytest.fixture
def env():
    return {
        "DATABASE_URL": "sqlite://",
        "TENANT_DATABASE_URL": "sqlite://",
        "CACHE_ENABLED": "false",
        "WORKSHOP_LOG_LEVEL": "WARNING",
    }


def test_init_db(env):
    """Test init-db reports every database."""
    result = runner.invoke(app, ["init-db"], env=env)
    assert result.exit_code == 0, result.output
    assert "Databases initialized" in result.output
    assert "tenant:korean" in result.output
    assert "tenant:english" in result.output


def test_populate_users(env):
    """Test populate-users inserts the requested number of users."""
    result = runner.invoke(app, ["populate-users", "-c", "3"], env=env)
    assert result.exit_code == 0, result.output
    assert "Inserted 3 users" in result.output


def test_populate_users_rejects_zero(env):
    """Test the count must be positive."""
    result = runner.invoke(app, ["populate-users", "--count", "0"], env=env)
    assert result.exit_code != 0


def test_cache_stats_without_valkey(env):
    """Test cache-stats reports the fallback store when the cache is disabled."""
    result = runner.invoke(app, ["cache-stats"], env=env)
    assert result.exit_code == 0, result.output
    assert "degraded" in result.output
    assert "hit_count" in result.output


def test_invalid_configuration(env):
    """Test a malformed setting exits with an error."""
    env["VALKEY_PORT"] = "70000"
    result = runner.invoke(app, ["cache-stats"], env=env)
    assert result.exit_code == 1
