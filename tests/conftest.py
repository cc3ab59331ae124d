"""Shared pytest fixtures for fixtura tests."""

import logging

import pytest

from fixtura.core.config import FixturaConfig
from fixtura.core.logging import LOGGER_NAME
from fixtura.core.registry import Registry
from fixtura.core.runner import FactoryRunner, configure


@pytest.fixture(autouse=True)
def fresh_process_state():
    """Give every test an empty process registry, default settings and quiet logging."""
    configure(FixturaConfig()).reset()
    yield

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)

    configure(FixturaConfig()).reset()


@pytest.fixture
def registry() -> Registry:
    """Return an isolated registry."""
    return Registry()


@pytest.fixture
def runner(registry: Registry) -> FactoryRunner:
    """Return a runner bound to the isolated registry."""
    return FactoryRunner(registry)
