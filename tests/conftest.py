"""Shared fixtures for envshelter tests."""

import asyncio
import logging
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog

from envshelter.context import ShelterContext
from envshelter.core.config import ShelterSettings, reset_runtime_config
from envshelter.core.parser import EdfParser
from envshelter.core.patterns import PatternResolver
from envshelter.masking.renderer import InMemoryRenderer
from envshelter.strategies.registry import StrategyRegistry

ENV_VARS = (
    "ENVSHELTER_CACHE_SIZE",
    "ENVSHELTER_LOG_LEVEL",
    "ENVSHELTER_LOG_FORMAT",
    "ENVSHELTER_CONFIG",
)


class CountingParser:
    """Parser wrapper recording how often content was actually parsed."""

    def __init__(self) -> None:
        self.inner = EdfParser()
        self.calls = 0

    def parse(self, content: bytes):
        self.calls += 1
        return self.inner.parse(content)


@pytest.fixture
def sample_env() -> bytes:
    """A small env file exercising quoting, comments and export."""
    return (
        b"# database settings\n"
        b"DB_PASSWORD=supersecret\n"
        b'API_KEY="abcdef123456"\n'
        b"export TOKEN='tok_live_9876'\n"
        b"#OLD_SECRET=retired\n"
        b"DEBUG=true # inline comment\n"
    )


@pytest.fixture
def parser() -> EdfParser:
    return EdfParser()


@pytest.fixture
def counting_parser() -> CountingParser:
    return CountingParser()


@pytest.fixture
def registry() -> StrategyRegistry:
    return StrategyRegistry()


@pytest.fixture
def resolver() -> PatternResolver:
    resolver = PatternResolver()
    resolver.compile()
    return resolver


@pytest.fixture
def event_loop_instance() -> Generator[asyncio.AbstractEventLoop, None, None]:
    """A private event loop driven explicitly by the test."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def run_loop(event_loop_instance: asyncio.AbstractEventLoop):
    """Advance the test loop by ``seconds``, running due callbacks."""

    def run(seconds: float = 0.01) -> None:
        event_loop_instance.run_until_complete(asyncio.sleep(seconds))

    return run


@pytest.fixture
def renderer() -> InMemoryRenderer:
    return InMemoryRenderer()


@pytest.fixture
def context(
    renderer: InMemoryRenderer, event_loop_instance: asyncio.AbstractEventLoop
) -> Generator[ShelterContext, None, None]:
    ctx = ShelterContext(
        settings=ShelterSettings(peek_duration=0.02, debounce_delay=0.01),
        renderer=renderer,
        loop=event_loop_instance,
    )
    yield ctx
    ctx.close()


@pytest.fixture
def env_file(tmp_path: Path, sample_env: bytes) -> Path:
    path = tmp_path / ".env"
    path.write_bytes(sample_env)
    return path


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Reset process-level state between tests.

    Clears envshelter environment variables, the cached runtime config and
    any handler or structlog configuration the CLI installed.
    """
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_runtime_config()

    yield

    reset_runtime_config()
    package_logger = logging.getLogger("envshelter")
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    structlog.reset_defaults()
