import logging

from kinesampler.logging_config import PACKAGE_LOGGER, setup_logging


def test_setup_logging_idempotent(tmp_path):
    log_file = tmp_path / 'run.log'
    setup_logging(logging.DEBUG)
    logger = setup_logging(logging.DEBUG, log_file=str(log_file))
    assert logger.name == PACKAGE_LOGGER
    assert len(logger.handlers) == 2

    logging.getLogger('kinesampler.sampling.cache').debug("cache message")
    for handler in logger.handlers:
        handler.flush()
    assert "cache message" in log_file.read_text()

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
