import io
import os
import typing as t

import pytest

from rotolog import core
from rotolog.logger import Logger


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """
    Keeps each test away from ROTOLOG_* variables, stray .env files and the
    process-wide default Logger.
    """
    for key in list(os.environ):
        if key.startswith("ROTOLOG_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    core.reset_logger()
    yield
    core.reset_logger()


@pytest.fixture
def stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def log_path(tmp_path) -> str:
    return str(tmp_path / "app.log")


@pytest.fixture
def make_logger() -> t.Iterator[t.Callable[..., Logger]]:
    """Factory for Loggers that are closed (archival worker joined) at teardown."""
    created: list[Logger] = []

    def factory(*args: t.Any, **kwargs: t.Any) -> Logger:
        logger = Logger(*args, **kwargs)
        created.append(logger)
        return logger

    yield factory
    for logger in created:
        logger.close()
