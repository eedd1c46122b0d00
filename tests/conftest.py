import logging

import pytest


@pytest.fixture(autouse=True)
def restore_vemtl_logger():
    """The CLI installs its own handler on the vemtl logger; undo it."""
    logger = logging.getLogger("vemtl")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate

    yield

    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate
