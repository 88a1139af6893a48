"""CLI fixtures: run commands against an in-memory store and a fake source."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from tunematch.infrastructure.factories import build_match_services
from tunematch.infrastructure.persistence.stores import InMemoryKeyValueStore


@pytest.fixture(autouse=True)
def quiet_logging():
    """Skip file logging setup and the startup banner."""
    with (
        patch("tunematch.infrastructure.cli.app.setup_loguru_logger"),
        patch("tunematch.infrastructure.cli.app.log_startup_info"),
    ):
        yield


@pytest.fixture
def cli_store():
    return InMemoryKeyValueStore()


@pytest.fixture(autouse=True)
def fake_services(cli_store, fake_source):
    """Build the real service graph around test doubles."""

    async def build(config=None, **kwargs):
        return await build_match_services(config, store=cli_store, source=fake_source)

    with patch("tunematch.infrastructure.cli.async_helpers.build_match_services", build):
        yield


@pytest.fixture
def runner():
    return CliRunner()
