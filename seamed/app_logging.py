import logging

from pythonjsonlogger.json import JsonFormatter

_HANDLER_NAME = 'seamed-json'


def setup_logger(level: str = 'INFO') -> None:
    """Send structured JSON logs to stderr.

    Safe to call more than once; the handler is only installed the first
    time, later calls just adjust the level.
    """
    logger = logging.getLogger()
    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        logHandler = logging.StreamHandler()
        logHandler.set_name(_HANDLER_NAME)
        formatter = JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s',
                                  rename_fields={'levelname': 'level', 'asctime': 'timestamp'})
        logHandler.setFormatter(formatter)
        logger.addHandler(logHandler)
    logger.setLevel(level)
