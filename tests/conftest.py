from collections.abc import Iterator

import pytest
import structlog

from telepoll.poller import PollerRegistry

from tests.fakes import ScriptedTransport


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture
def registry(transport: ScriptedTransport) -> PollerRegistry:
    return PollerRegistry(transport=transport)
