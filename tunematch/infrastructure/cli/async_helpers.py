"""Run async service calls from synchronous Typer commands."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tunematch.infrastructure.factories import MatchServices, build_match_services

T = TypeVar("T")


def run_with_services(operation: Callable[[MatchServices], Awaitable[T]]) -> T:
    """Build the service graph, run ``operation`` and always clean up.

    Pending fire-and-forget cache writes are drained and the store is closed
    before returning, even when the operation fails.
    """

    async def runner() -> T:
        services = await build_match_services()
        try:
            return await operation(services)
        finally:
            await services.aclose()

    return asyncio.run(runner())
