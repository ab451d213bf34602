"""Shared pytest fixtures for reactree tests."""

import asyncio

import pytest


async def _tick(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def tick():
    """Let the event loop run until queued deliveries have settled."""
    return _tick
