import logging
import sys

from flask import Flask

FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _has_stream_handler(logger):
    return any(isinstance(handler, logging.StreamHandler) for handler in logger.handlers)


def configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    if not _has_stream_handler(root_logger):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(FORMAT))
        root_logger.addHandler(handler)

    app.logger.setLevel(level)
    logging.getLogger('sportstock').setLevel(level)
    logging.getLogger('werkzeug').setLevel(logging.INFO)
